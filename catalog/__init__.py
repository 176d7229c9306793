"""Catalog module for managing marketplace products.

This module provides functionality for:
- Creating products, optionally minted through the signer gateway
- Updating and removing products, gated by artisan ownership
- Listing and filtering the catalog

Every mutation writes the product and its provenance in one synchronous
step, so no caller ever sees one without the other.
"""

import logging
import re
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from config import settings_conf
from identity import IdentityRegistry
from notifications import NotificationBus, VARIANT_DESTRUCTIVE
from provenance import ProvenanceLedger
from signer import SignerError, SignerGateway, TransactionRequest, UserRejectedError
from store import MarketState, get_state
from store.exceptions import (
    InvalidProductError,
    NotFoundError,
    UnauthorizedError,
    UnknownArtisanError,
)
from store.models import (
    EVENT_CREATED,
    EVENT_LISTED,
    EVENT_UPDATED,
    Product,
    ProvenanceRecord,
    utcnow,
    validation_message,
)

logger = logging.getLogger(__name__)

REGISTRY_CONTRACT_ADDRESS = settings_conf['registry_contract_address']
MINT_ON_CREATE = settings_conf['mint_on_create']

# User-mutable fields for products
MUTABLE_FIELDS = {
    'name',
    'description',
    'materials',
    'image_url',
    'price',
    'is_verified'
}

# System-managed fields (not directly mutable by users)
SYSTEM_FIELDS = {
    'id',
    'artisan_id',
    'creation_date',
    'is_sold',
    'owner_address'
}

class ProductData(BaseModel):
    """Fields an artisan supplies when listing a product."""
    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., min_length=1)
    description: str = ''
    materials: List[str] = Field(default_factory=list)
    image_url: str = ''
    price: Decimal = Field(..., gt=0)
    is_verified: bool = False

    @field_validator('materials', mode='before')
    @classmethod
    def split_materials(cls, value: Any) -> Any:
        """Accept "clay, glaze" as well as ["clay", "glaze"]."""
        if isinstance(value, str):
            return [s.strip() for s in value.split(',') if s.strip()]
        return value

def short_hash(tx_hash: str) -> str:
    return f"{tx_hash[:10]}..."

class CatalogManager:
    """Manager class for handling catalog operations."""

    def __init__(
        self,
        state: Optional[MarketState] = None,
        registry: Optional[IdentityRegistry] = None,
        provenance: Optional[ProvenanceLedger] = None,
        gateway: Optional[SignerGateway] = None,
        bus: Optional[NotificationBus] = None,
        registry_contract_address: str = REGISTRY_CONTRACT_ADDRESS,
        mint_on_create: bool = MINT_ON_CREATE
    ):
        """Initialize the catalog manager.

        Args:
            state: Optional market state. If not provided, will use the default state.
            registry: Identity registry used for authorization
            provenance: Provenance ledger fed by every mutation
            gateway: Signer gateway used to mint new products
            bus: Optional notification bus
            registry_contract_address: Contract targeted by mint transactions
            mint_on_create: Whether create() routes through a mint transaction
        """
        self.state = state
        self.registry = registry or IdentityRegistry(state, bus)
        self.provenance = provenance or ProvenanceLedger(state)
        self.gateway = gateway or SignerGateway()
        self.bus = bus
        self.registry_contract_address = registry_contract_address
        self.mint_on_create = mint_on_create

    def ensure_state(self) -> MarketState:
        """Ensure we have a market state."""
        if self.state is None:
            self.state = get_state()
        return self.state

    def _notify(self, kind: str, title: str, description: str = '', variant: str = 'default', **data: Any) -> None:
        if self.bus:
            self.bus.notify(kind, title, description, variant, **data)

    def _authorize(self, product_id: str, artisan_address: str, action: str) -> Product:
        """Resolve a product and check the caller owns it, against current state.

        Raises:
            NotFoundError: If the product does not exist
            UnauthorizedError: If the address is not the owning artisan
        """
        product = self.ensure_state().products.get(product_id)
        if product is None:
            self._notify('product.error', "Error", "Product not found.", VARIANT_DESTRUCTIVE, product_id=product_id)
            raise NotFoundError(product_id)

        artisan = self.registry.find_by_address(artisan_address)
        if artisan is None or product.artisan_id != artisan.id:
            logger.warning(f"{artisan_address} refused {action} on product {product_id}")
            self._notify(
                'product.error', "Error", f"Unauthorized to {action} this product.",
                VARIANT_DESTRUCTIVE, product_id=product_id
            )
            raise UnauthorizedError(product_id, artisan_address, action)

        return product

    async def create(
        self,
        data: Union[ProductData, Dict[str, Any]],
        artisan_address: str
    ) -> Product:
        """Create a new product listed by the artisan owning artisan_address.

        Args:
            data: Product fields (name, description, materials, image_url, price, is_verified)
            artisan_address: Wallet address of the listing artisan

        Returns:
            The created product

        Raises:
            UnknownArtisanError: If the address is not a registered artisan
            InvalidProductError: If the product data is invalid
            NoSignerError, UserRejectedError, ProviderError: If minting fails;
                nothing is created in that case
        """
        state = self.ensure_state()

        artisan = self.registry.find_by_address(artisan_address)
        if artisan is None:
            self._notify('product.error', "Error", "Invalid artisan account.", VARIANT_DESTRUCTIVE)
            raise UnknownArtisanError(artisan_address)

        if isinstance(data, dict):
            try:
                data = ProductData(**data)
            except ValidationError as e:
                raise InvalidProductError(f"Invalid product data: {validation_message(e)}") from e

        # Validate the full record before anything is sent to the wallet
        product = Product(
            id=f"product-{uuid.uuid4().hex}",
            artisan_id=artisan.id,
            creation_date=utcnow(),
            is_sold=False,
            owner_address=None,
            **data.model_dump()
        )

        tx_hash = None
        if self.mint_on_create:
            token_name = re.sub(r'\s', '_', product.name)
            request = TransactionRequest(
                to=self.registry_contract_address,
                from_address=artisan_address,
                data=f"0xSIMULATED_MINT_DATA_FOR_{token_name}"
            )
            try:
                self._notify(
                    'product.pending', "Transaction Pending",
                    "Please confirm the transaction in your wallet to mint your product."
                )
                tx_hash = await self.gateway.submit_transaction(request)
                await self.gateway.settle(tx_hash)
            except SignerError as e:
                if isinstance(e, UserRejectedError):
                    self._notify(
                        'product.cancelled', "Transaction Cancelled",
                        "You cancelled the product minting transaction.", VARIANT_DESTRUCTIVE
                    )
                else:
                    self._notify('product.error', "Minting Failed", str(e), VARIANT_DESTRUCTIVE)
                logger.error(f"Minting {product.name} for {artisan_address} failed: {e}")
                raise

        # No suspension point from here on: product and ledger appear together
        now = utcnow()
        product = product.model_copy(update={'creation_date': now})
        if tx_hash:
            created_details = f"Initial minting of {product.name}. Tx: {short_hash(tx_hash)}"
        else:
            created_details = f"Initial listing of {product.name}."

        state.products[product.id] = product
        self.provenance.initialize(product.id, [
            ProvenanceRecord(
                event=EVENT_CREATED,
                timestamp=now,
                actor_address=artisan_address,
                details=created_details,
                transaction_hash=tx_hash
            ),
            ProvenanceRecord(
                event=EVENT_LISTED,
                timestamp=now,
                actor_address=artisan_address,
                details=f"Price set at {product.price} ETH"
            ),
        ])

        logger.info(f"Product {product.id} created by artisan {artisan.id}")
        self._notify(
            'product.created', "Product Added & Minted" if tx_hash else "Product Added",
            f"{product.name} has been listed." + (f" Tx: {short_hash(tx_hash)}" if tx_hash else ''),
            product_id=product.id, transaction_hash=tx_hash
        )
        return product.model_copy(deep=True)

    def update(self, product_id: str, changes: Dict[str, Any], artisan_address: str) -> Product:
        """Update a product's user-mutable fields.

        Args:
            product_id: Product to update
            changes: Fields to merge into the product; unspecified fields are kept
            artisan_address: Wallet address of the caller

        Returns:
            The updated product

        Raises:
            NotFoundError: If the product does not exist
            UnauthorizedError: If the caller does not own the product
            InvalidProductError: If a system field is changed or a value is invalid
        """
        state = self.ensure_state()
        current = self._authorize(product_id, artisan_address, 'edit')

        immutable = set(changes) & SYSTEM_FIELDS
        if immutable:
            raise InvalidProductError(f"Cannot update immutable fields: {', '.join(sorted(immutable))}")
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise InvalidProductError(f"Unknown product fields: {', '.join(sorted(unknown))}")

        try:
            merged = ProductData(**{
                **{field: getattr(current, field) for field in MUTABLE_FIELDS},
                **changes
            })
        except ValidationError as e:
            raise InvalidProductError(f"Invalid product data: {validation_message(e)}") from e

        updated = current.model_copy(update={
            field: getattr(merged, field) for field in changes
        })
        state.products[product_id] = updated
        self.provenance.append(
            product_id,
            EVENT_UPDATED,
            artisan_address,
            f"Details of {updated.name} updated."
        )

        logger.info(f"Product {product_id} updated: {', '.join(sorted(changes))}")
        self._notify(
            'product.updated', "Product Updated",
            f"{updated.name} has been successfully updated.", product_id=product_id
        )
        return updated.model_copy(deep=True)

    def remove(self, product_id: str, artisan_address: str) -> bool:
        """Delete a product together with its provenance ledger.

        Raises:
            NotFoundError: If the product does not exist
            UnauthorizedError: If the caller does not own the product
        """
        state = self.ensure_state()
        self._authorize(product_id, artisan_address, 'remove')

        del state.products[product_id]
        self.provenance.remove(product_id)

        logger.info(f"Product {product_id} removed by {artisan_address}")
        self._notify(
            'product.removed', "Product Removed",
            "Product has been successfully removed.", product_id=product_id
        )
        return True

    def get_by_id(self, product_id: str) -> Optional[Product]:
        product = self.ensure_state().products.get(product_id)
        return product.model_copy(deep=True) if product else None

    def list_all(self) -> List[Product]:
        """All products, unsold first, newest first within each group."""
        newest_first = sorted(
            self.ensure_state().products.values(),
            key=lambda p: p.creation_date,
            reverse=True
        )
        return [p.model_copy(deep=True) for p in sorted(newest_first, key=lambda p: p.is_sold)]

    def list_by_artisan(self, artisan_address: str) -> List[Product]:
        """Products of the artisan owning an address, newest first."""
        artisan = self.registry.find_by_address(artisan_address)
        if artisan is None:
            return []

        products = [
            p for p in self.ensure_state().products.values()
            if p.artisan_id == artisan.id
        ]
        products.sort(key=lambda p: p.creation_date, reverse=True)
        return [p.model_copy(deep=True) for p in products]


__all__ = [
    'CatalogManager', 'ProductData', 'MUTABLE_FIELDS', 'SYSTEM_FIELDS',
    'NotFoundError', 'UnauthorizedError', 'UnknownArtisanError', 'InvalidProductError',
]
