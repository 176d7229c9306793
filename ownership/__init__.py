"""Ownership ledger: collectibles held per wallet address."""

import logging
from typing import List, Optional

from store import MarketState, address_key, get_state
from store.models import Collectible

logger = logging.getLogger(__name__)

class OwnershipLedger:
    """Append-only map of wallet address to issued collectibles.

    Only a successful purchase adds to it.
    """

    def __init__(self, state: Optional[MarketState] = None):
        self.state = state

    def ensure_state(self) -> MarketState:
        """Ensure we have a market state."""
        if self.state is None:
            self.state = get_state()
        return self.state

    def add(self, address: str, collectible: Collectible) -> None:
        holdings = self.ensure_state().collectibles.setdefault(address_key(address), [])
        holdings.append(collectible.model_copy(deep=True))
        logger.debug(f"Collectible {collectible.token_id} issued to {address}")

    def list(self, address: str) -> List[Collectible]:
        """Collectibles held by an address (a copy; mutating it changes nothing)."""
        holdings = self.ensure_state().collectibles.get(address_key(address), [])
        return [c.model_copy(deep=True) for c in holdings]
