"""Identity module for artisan registration and lookup.

Artisans are keyed by wallet address. Matching is case-insensitive, but the
address is stored exactly as it was registered.
"""

import logging
import uuid
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from notifications import NotificationBus, VARIANT_DESTRUCTIVE
from store import MarketState, address_key, get_state
from store.exceptions import DuplicateIdentityError, InvalidProfileError
from store.models import Artisan, ArtisanProfile, validation_message

logger = logging.getLogger(__name__)

class IdentityRegistry:
    """Registry of artisan identities."""

    def __init__(self, state: Optional[MarketState] = None, bus: Optional[NotificationBus] = None):
        """Initialize the registry.

        Args:
            state: Optional market state. If not provided, will use the default state.
            bus: Optional notification bus for registration outcomes
        """
        self.state = state
        self.bus = bus

    def ensure_state(self) -> MarketState:
        """Ensure we have a market state."""
        if self.state is None:
            self.state = get_state()
        return self.state

    def _find(self, address: str) -> Optional[Artisan]:
        key = address_key(address)
        for artisan in self.ensure_state().artisans:
            if address_key(artisan.wallet_address) == key:
                return artisan
        return None

    def is_registered(self, address: str) -> bool:
        """Check whether an address belongs to a registered artisan."""
        return self._find(address) is not None

    def find_by_address(self, address: str) -> Optional[Artisan]:
        """Look up an artisan by wallet address (case-insensitive)."""
        artisan = self._find(address)
        return artisan.model_copy(deep=True) if artisan else None

    def get_by_id(self, artisan_id: str) -> Optional[Artisan]:
        """Look up an artisan by id."""
        for artisan in self.ensure_state().artisans:
            if artisan.id == artisan_id:
                return artisan.model_copy(deep=True)
        return None

    def register(self, profile: Union[ArtisanProfile, Dict[str, Any]], address: str) -> Artisan:
        """Register a wallet address as an artisan.

        Args:
            profile: Display/profile fields
            address: Wallet address of the new artisan

        Returns:
            The stored artisan record

        Raises:
            DuplicateIdentityError: If the address is already registered
            InvalidProfileError: If the profile fields fail validation
        """
        state = self.ensure_state()

        if isinstance(profile, dict):
            try:
                profile = ArtisanProfile(**profile)
            except ValidationError as e:
                raise InvalidProfileError(f"Invalid artisan profile: {validation_message(e)}") from e

        if self._find(address) is not None:
            logger.info(f"Registration refused, {address} already registered")
            if self.bus:
                self.bus.notify(
                    'identity.registration_failed',
                    "Registration Failed",
                    "This wallet address is already registered as an artisan.",
                    VARIANT_DESTRUCTIVE,
                    address=address
                )
            raise DuplicateIdentityError(address)

        artisan = Artisan(
            id=f"artisan-{uuid.uuid4().hex}",
            wallet_address=address,
            **profile.model_dump()
        )
        state.artisans.append(artisan)

        logger.info(f"Registered artisan {artisan.id} for {address}")
        if self.bus:
            self.bus.notify(
                'identity.registered',
                "Registration Successful",
                f"Welcome, {artisan.name}! You are now registered as an artisan.",
                artisan_id=artisan.id,
                address=address
            )
        return artisan.model_copy(deep=True)


__all__ = ['IdentityRegistry', 'DuplicateIdentityError', 'InvalidProfileError']
