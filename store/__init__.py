"""Store module owning the in-memory marketplace state.

This module handles:
- The explicit state container shared by all components
- The default process-wide instance and its lifecycle
- Key-value snapshotting of the state to a JSON file
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Union

import aiofiles
from pydantic import ValidationError

from .exceptions import SnapshotError
from .models import (
    Artisan,
    Collectible,
    Product,
    ProductProvenance,
    StateSnapshot,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

_state: Optional['MarketState'] = None


def address_key(address: str) -> str:
    """Case-insensitive lookup key for a wallet address."""
    return address.strip().lower()


class MarketState:
    """Authoritative in-memory collections of the marketplace.

    Components never keep their own copies of these collections; they are
    handed a state instance and read/write it directly. Mutations happen
    synchronously between suspension points, so a reader never observes a
    half-applied change.
    """

    def __init__(self) -> None:
        self.artisans: List[Artisan] = []
        self.products: Dict[str, Product] = {}
        self.provenance: Dict[str, ProductProvenance] = {}
        self.collectibles: Dict[str, List[Collectible]] = {}
        # Product ids with a purchase currently in the settlement phase
        self.settling: Set[str] = set()

    @classmethod
    def new(cls) -> 'MarketState':
        """Create an empty state."""
        return cls()

    def reset(self) -> None:
        """Drop every record held by this state."""
        self.artisans.clear()
        self.products.clear()
        self.provenance.clear()
        self.collectibles.clear()
        self.settling.clear()
        logger.debug("Market state reset")

    def is_empty(self) -> bool:
        return not (self.artisans or self.products or self.collectibles)

    def to_snapshot(self) -> StateSnapshot:
        """Capture the state as a versioned snapshot."""
        return StateSnapshot(
            version=SNAPSHOT_VERSION,
            artisans=[a.model_copy(deep=True) for a in self.artisans],
            products=[p.model_copy(deep=True) for p in self.products.values()],
            provenance=[p.model_copy(deep=True) for p in self.provenance.values()],
            collectibles={
                key: [c.model_copy(deep=True) for c in items]
                for key, items in self.collectibles.items()
            }
        )

    def restore(self, snapshot: StateSnapshot) -> None:
        """Replace the current contents with those of a snapshot.

        Raises:
            SnapshotError: If the snapshot version is not supported
        """
        if snapshot.version != SNAPSHOT_VERSION:
            raise SnapshotError(
                f"Unsupported snapshot version {snapshot.version} "
                f"(expected {SNAPSHOT_VERSION})"
            )

        self.reset()
        self.artisans.extend(snapshot.artisans)
        self.products.update((p.id, p) for p in snapshot.products)
        self.provenance.update((p.product_id, p) for p in snapshot.provenance)
        for key, items in snapshot.collectibles.items():
            self.collectibles[address_key(key)] = list(items)

    @classmethod
    def from_snapshot(cls, snapshot: StateSnapshot) -> 'MarketState':
        state = cls()
        state.restore(snapshot)
        return state


def new_state() -> MarketState:
    """Create a fresh state, independent of the default instance."""
    return MarketState.new()

def get_state() -> MarketState:
    """Get the default process-wide state, creating it on first use."""
    global _state

    if _state is None:
        _state = MarketState.new()
    return _state

def reset_state() -> None:
    """Clear the default state (used between test runs)."""
    if _state is not None:
        _state.reset()

async def save_snapshot(state: MarketState, path: Union[str, Path]) -> Path:
    """Write the state to a JSON snapshot file.

    Args:
        state: State to snapshot
        path: Destination file

    Returns:
        The path written

    Raises:
        SnapshotError: If the file cannot be written
    """
    path = Path(path)
    payload = state.to_snapshot().model_dump_json(indent=2)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, 'w', encoding='utf-8') as f:
            await f.write(payload)
    except OSError as e:
        logger.error(f"Error writing snapshot {path}: {e}")
        raise SnapshotError(f"Failed to write snapshot {path}: {e}") from e

    logger.info(
        f"Saved snapshot to {path} ({len(state.products)} products, "
        f"{len(state.artisans)} artisans)"
    )
    return path

async def load_snapshot(path: Union[str, Path]) -> MarketState:
    """Read a state from a JSON snapshot file.

    Raises:
        SnapshotError: If the file is missing, malformed or of an unknown version
    """
    path = Path(path)

    try:
        async with aiofiles.open(path, 'r', encoding='utf-8') as f:
            raw = await f.read()
    except OSError as e:
        raise SnapshotError(f"Failed to read snapshot {path}: {e}") from e

    try:
        snapshot = StateSnapshot.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        raise SnapshotError(f"Invalid snapshot {path}: {e}") from e

    state = MarketState.from_snapshot(snapshot)
    logger.info(f"Loaded snapshot from {path} ({len(state.products)} products)")
    return state


__all__ = [
    'MarketState', 'new_state', 'get_state', 'reset_state',
    'save_snapshot', 'load_snapshot', 'address_key', 'SNAPSHOT_VERSION',
]
