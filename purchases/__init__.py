"""Purchases module driving the marketplace purchase protocol.

A purchase moves through the states:

    idle -> validating -> awaiting_signature -> settling -> completed | failed

The product, the buyer's collectible and the "Sold" provenance entry are all
written in one synchronous step at the end of settlement. That step is the
only point where a purchase mutates state; everything before it can fail
without leaving a trace.
"""
import logging
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from config import settings_conf
from identity import IdentityRegistry
from notifications import NotificationBus, VARIANT_DESTRUCTIVE
from ownership import OwnershipLedger
from provenance import ProvenanceLedger
from signer import (
    NoSignerError,
    ProviderError,
    SignerError,
    SignerGateway,
    TransactionRequest,
    UserRejectedError,
    to_hex,
    to_wei,
)
from store import MarketState, get_state
from store.exceptions import InvalidAmountError, MarketError, NotAvailableError
from store.models import EVENT_SOLD, Collectible, Product

logger = logging.getLogger(__name__)

MARKETPLACE_CONTRACT_ADDRESS = settings_conf['marketplace_contract_address']
REGISTRY_CONTRACT_ADDRESS = settings_conf['registry_contract_address']
UNKNOWN_ARTISAN_NAME = 'Unknown Artisan'

REASON_CANCELLED = 'cancelled'

class PurchaseState(str, Enum):
    """States of a single purchase attempt."""
    IDLE = 'idle'
    VALIDATING = 'validating'
    AWAITING_SIGNATURE = 'awaiting_signature'
    SETTLING = 'settling'
    COMPLETED = 'completed'
    FAILED = 'failed'

class PurchaseResult(BaseModel):
    """Outcome of a purchase attempt."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    state: PurchaseState
    product_id: str
    buyer_address: str
    transaction_hash: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[MarketError] = None

StateListener = Callable[[str, PurchaseState], None]

class PurchaseManager:
    """Runs purchase attempts against the shared market state."""

    def __init__(
        self,
        state: Optional[MarketState] = None,
        gateway: Optional[SignerGateway] = None,
        registry: Optional[IdentityRegistry] = None,
        provenance: Optional[ProvenanceLedger] = None,
        ownership: Optional[OwnershipLedger] = None,
        bus: Optional[NotificationBus] = None,
        marketplace_contract_address: str = MARKETPLACE_CONTRACT_ADDRESS,
        registry_contract_address: str = REGISTRY_CONTRACT_ADDRESS
    ) -> None:
        """Initialize purchase manager.

        Args:
            state: Optional market state. If not provided, will use the default state.
            gateway: Signer gateway the buyer signs through
            registry: Identity registry, used for the artisan name snapshot
            provenance: Provenance ledger receiving the "Sold" entry
            ownership: Ownership ledger receiving the collectible
            bus: Optional notification bus
            marketplace_contract_address: Destination of purchase transactions
            registry_contract_address: Contract of issued collectibles
        """
        self.state = state
        self.gateway = gateway or SignerGateway()
        self.registry = registry or IdentityRegistry(state)
        self.provenance = provenance or ProvenanceLedger(state)
        self.ownership = ownership or OwnershipLedger(state)
        self.bus = bus
        self.marketplace_contract_address = marketplace_contract_address
        self.registry_contract_address = registry_contract_address
        self._listeners: List[StateListener] = []

    def ensure_state(self) -> MarketState:
        """Ensure we have a market state."""
        if self.state is None:
            self.state = get_state()
        return self.state

    def on_state_change(self, callback: StateListener) -> None:
        """Observe state transitions as (product_id, state) pairs."""
        self._listeners.append(callback)

    def _transition(self, product_id: str, new_state: PurchaseState) -> PurchaseState:
        logger.debug(f"Purchase of {product_id} -> {new_state.value}")
        for callback in self._listeners:
            callback(product_id, new_state)
        return new_state

    def _notify(self, kind: str, title: str, description: str = '', variant: str = 'default', **data: Any) -> None:
        if self.bus:
            self.bus.notify(kind, title, description, variant, **data)

    def _available(self, product_id: str) -> Product:
        """Product that can still be bought, read from current state.

        Raises:
            NotAvailableError: If the product is missing or already sold
        """
        product = self.ensure_state().products.get(product_id)
        if product is None or product.is_sold:
            raise NotAvailableError(product_id)
        return product

    def _amount(self, product: Product, price: Optional[Union[Decimal, int, float, str]]) -> Decimal:
        """Amount to pay, the listed price unless the buyer named one.

        Raises:
            InvalidAmountError: If the amount is unparseable, not finite or not positive
        """
        if price is None:
            return product.price
        try:
            amount = price if isinstance(price, Decimal) else Decimal(str(price))
        except (InvalidOperation, ValueError, TypeError) as e:
            raise InvalidAmountError(product.id, price) from e
        if not amount.is_finite() or amount <= 0:
            raise InvalidAmountError(product.id, price)
        return amount

    def _fail(
        self,
        product_id: str,
        buyer_address: str,
        error: MarketError,
        reason: str,
        transaction_hash: Optional[str] = None
    ) -> PurchaseResult:
        self._transition(product_id, PurchaseState.FAILED)
        logger.warning(f"Purchase of {product_id} by {buyer_address} failed: {reason}")

        if isinstance(error, UserRejectedError):
            self._notify(
                'purchase.cancelled', "Transaction Cancelled",
                "You cancelled the purchase transaction.", VARIANT_DESTRUCTIVE,
                product_id=product_id
            )
        elif isinstance(error, NoSignerError):
            self._notify(
                'purchase.failed', "Wallet Not Found",
                "Please install a wallet to perform this action.", VARIANT_DESTRUCTIVE,
                product_id=product_id
            )
        else:
            self._notify(
                'purchase.failed', "Purchase Failed", reason, VARIANT_DESTRUCTIVE,
                product_id=product_id
            )

        return PurchaseResult(
            success=False,
            state=PurchaseState.FAILED,
            product_id=product_id,
            buyer_address=buyer_address,
            transaction_hash=transaction_hash,
            reason=reason,
            error=error
        )

    def build_transaction(self, product: Product, buyer_address: str, price: Decimal) -> TransactionRequest:
        """Transaction paying price to the marketplace contract for a product."""
        return TransactionRequest(
            to=self.marketplace_contract_address,
            from_address=buyer_address,
            value=to_hex(to_wei(price)),
            data=f"0xSIMULATED_PURCHASE_DATA_FOR_{product.id}"
        )

    async def purchase(
        self,
        product_id: str,
        buyer_address: str,
        price: Optional[Union[Decimal, int, float, str]] = None
    ) -> PurchaseResult:
        """Buy a product.

        Args:
            product_id: Product to buy
            buyer_address: Wallet address paying and receiving the collectible
            price: Amount to pay; defaults to the product's listed price

        Returns:
            PurchaseResult; on failure it carries the typed error
            (NotAvailableError, InvalidAmountError, NoSignerError, UserRejectedError,
            ProviderError)
        """
        state = self.ensure_state()
        self._transition(product_id, PurchaseState.IDLE)

        # Validating
        self._transition(product_id, PurchaseState.VALIDATING)
        try:
            product = self._available(product_id)
        except NotAvailableError as e:
            return self._fail(product_id, buyer_address, e, "Product not available or already sold.")

        try:
            amount = self._amount(product, price)
        except InvalidAmountError as e:
            return self._fail(product_id, buyer_address, e, "Purchase amount must be a positive number.")

        if not self.gateway.is_available:
            return self._fail(product_id, buyer_address, NoSignerError(), "No wallet provider available.")

        request = self.build_transaction(product, buyer_address, amount)

        # Awaiting signature
        self._transition(product_id, PurchaseState.AWAITING_SIGNATURE)
        self._notify(
            'purchase.pending', "Transaction Pending",
            "Please confirm the transaction in your wallet to purchase.",
            product_id=product_id
        )
        try:
            tx_hash = await self.gateway.submit_transaction(request)
        except UserRejectedError as e:
            return self._fail(product_id, buyer_address, e, REASON_CANCELLED)
        except SignerError as e:
            error = e if isinstance(e, (ProviderError, NoSignerError)) else ProviderError(str(e))
            return self._fail(product_id, buyer_address, error, str(e) or "Could not complete the purchase.")

        # Settling: one attempt per product at a time
        if product_id in state.settling:
            return self._fail(
                product_id, buyer_address,
                NotAvailableError(product_id, "Another purchase of this product is settling"),
                "Another purchase of this product is already settling.",
                transaction_hash=tx_hash
            )

        self._transition(product_id, PurchaseState.SETTLING)
        state.settling.add(product_id)
        try:
            await self.gateway.settle(tx_hash)

            # Re-validate against current state, then commit in one step
            try:
                product = self._available(product_id)
            except NotAvailableError as e:
                return self._fail(
                    product_id, buyer_address, e,
                    "Product was sold or removed before settlement.",
                    transaction_hash=tx_hash
                )
            self._commit(product, buyer_address, tx_hash)
        finally:
            state.settling.discard(product_id)

        self._transition(product_id, PurchaseState.COMPLETED)
        logger.info(f"Product {product_id} purchased by {buyer_address} (tx {tx_hash})")
        self._notify(
            'purchase.completed', "Purchase Successful!",
            f"You now own {product.name}. Tx: {tx_hash[:10]}...",
            product_id=product_id, transaction_hash=tx_hash
        )
        return PurchaseResult(
            success=True,
            state=PurchaseState.COMPLETED,
            product_id=product_id,
            buyer_address=buyer_address,
            transaction_hash=tx_hash
        )

    def _commit(self, product: Product, buyer_address: str, tx_hash: str) -> None:
        """Apply a settled sale: product, collectible and provenance together."""
        state = self.ensure_state()
        artisan = self.registry.get_by_id(product.artisan_id)

        collectible = Collectible(
            token_id=product.id,
            contract_address=self.registry_contract_address,
            name=product.name,
            image_url=product.image_url,
            description=product.description,
            artisan_name=artisan.name if artisan else UNKNOWN_ARTISAN_NAME
        )

        state.products[product.id] = product.model_copy(update={
            'is_sold': True,
            'owner_address': buyer_address,
        })
        self.ownership.add(buyer_address, collectible)
        self.provenance.append(
            product.id,
            EVENT_SOLD,
            buyer_address,
            f"Purchased by {buyer_address[:6]}... Tx: {tx_hash[:10]}...",
            transaction_hash=tx_hash,
            create_if_missing=True
        )


__all__ = [
    'PurchaseManager', 'PurchaseResult', 'PurchaseState',
    'InvalidAmountError', 'NotAvailableError', 'REASON_CANCELLED',
]
