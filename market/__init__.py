"""Market facade wiring every component to one state, gateway and bus.

    market = Market.new()
    artisan = market.register({'name': 'Asha'}, '0xAbC...')
    product = await market.create_product({...}, '0xAbC...')
    result = await market.purchase(product.id, buyer)
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from catalog import CatalogManager, ProductData
from config import settings_conf
from identity import IdentityRegistry
from notifications import NotificationBus
from ownership import OwnershipLedger
from provenance import ProvenanceLedger
from purchases import PurchaseManager, PurchaseResult
from signer import SignerGateway, WalletProvider, create_provider
from store import MarketState, load_snapshot, save_snapshot
from store.seed import seed_demo_data
from store.models import Artisan, ArtisanProfile, Collectible, Product, ProductProvenance
from wallet import WalletSession

logger = logging.getLogger(__name__)

class Market:
    """One marketplace instance: state plus the components operating on it."""

    def __init__(
        self,
        state: Optional[MarketState] = None,
        gateway: Optional[SignerGateway] = None,
        bus: Optional[NotificationBus] = None,
        settings: Optional[Dict[str, Any]] = None
    ):
        self.settings = {**settings_conf, **(settings or {})}
        self.state = state if state is not None else MarketState.new()
        self.gateway = gateway or SignerGateway(
            settlement_delay=self.settings['settlement_delay'],
            timeout=self.settings['signer_timeout']
        )
        self.bus = bus or NotificationBus(self.settings['notification_history'])

        self.registry = IdentityRegistry(self.state, self.bus)
        self.provenance = ProvenanceLedger(self.state)
        self.ownership = OwnershipLedger(self.state)
        self.catalog = CatalogManager(
            self.state,
            registry=self.registry,
            provenance=self.provenance,
            gateway=self.gateway,
            bus=self.bus,
            registry_contract_address=self.settings['registry_contract_address'],
            mint_on_create=self.settings['mint_on_create']
        )
        self.purchases = PurchaseManager(
            self.state,
            gateway=self.gateway,
            registry=self.registry,
            provenance=self.provenance,
            ownership=self.ownership,
            bus=self.bus,
            marketplace_contract_address=self.settings['marketplace_contract_address'],
            registry_contract_address=self.settings['registry_contract_address']
        )

    @classmethod
    def new(
        cls,
        settings: Optional[Dict[str, Any]] = None,
        provider: Optional[WalletProvider] = None,
        state: Optional[MarketState] = None
    ) -> 'Market':
        """Create a market, building the wallet provider from settings if none is given."""
        settings = {**settings_conf, **(settings or {})}
        if provider is None:
            provider = create_provider(settings)
        gateway = SignerGateway(
            provider,
            settlement_delay=settings['settlement_delay'],
            timeout=settings['signer_timeout']
        )
        logger.info(
            f"Market created (wallet provider: {type(provider).__name__ if provider else 'none'}, "
            f"settlement delay: {settings['settlement_delay']}s)"
        )
        return cls(state=state, gateway=gateway, settings=settings)

    def reset(self) -> None:
        """Drop all marketplace records and notification history."""
        self.state.reset()
        self.bus.clear()

    def seed_demo_data(self) -> int:
        """Fill an empty market with the demo artisans and products."""
        return seed_demo_data(self.state, self.settings['registry_contract_address'])

    # Identity
    def is_registered(self, address: str) -> bool:
        return self.registry.is_registered(address)

    def register(self, profile: Union[ArtisanProfile, Dict[str, Any]], address: str) -> Artisan:
        return self.registry.register(profile, address)

    def find_by_address(self, address: str) -> Optional[Artisan]:
        return self.registry.find_by_address(address)

    # Catalog
    async def create_product(self, data: Union[ProductData, Dict[str, Any]], address: str) -> Product:
        return await self.catalog.create(data, address)

    def update_product(self, product_id: str, changes: Dict[str, Any], address: str) -> Product:
        return self.catalog.update(product_id, changes, address)

    def remove_product(self, product_id: str, address: str) -> bool:
        return self.catalog.remove(product_id, address)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.catalog.get_by_id(product_id)

    def list_all(self) -> List[Product]:
        return self.catalog.list_all()

    def list_by_artisan(self, address: str) -> List[Product]:
        return self.catalog.list_by_artisan(address)

    # Purchase, provenance and ownership
    async def purchase(self, product_id: str, buyer_address: str, price: Any = None) -> PurchaseResult:
        return await self.purchases.purchase(product_id, buyer_address, price)

    def get_history(self, product_id: str) -> Optional[ProductProvenance]:
        return self.provenance.get(product_id)

    def list_collectibles(self, address: str) -> List[Collectible]:
        return self.ownership.list(address)

    def session(self) -> WalletSession:
        """New wallet session bound to this market."""
        return WalletSession(self.gateway, self.registry, self.ownership, self.bus)

    # Snapshots
    async def save_snapshot(self, path: Optional[Union[str, Path]] = None) -> Path:
        return await save_snapshot(self.state, path or self.settings['snapshot_path'])

    async def load_snapshot(self, path: Optional[Union[str, Path]] = None) -> None:
        """Replace the current state with a snapshot's contents, in place."""
        loaded = await load_snapshot(path or self.settings['snapshot_path'])
        self.state.restore(loaded.to_snapshot())


__all__ = ['Market']
