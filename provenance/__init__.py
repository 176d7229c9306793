"""Provenance ledger: append-only lifecycle history per product."""

import logging
from typing import Iterable, Optional

from store import MarketState, get_state
from store.models import ProductProvenance, ProvenanceRecord, utcnow

logger = logging.getLogger(__name__)

class ProvenanceLedger:
    """Per-product event logs. Records are appended, never edited."""

    def __init__(self, state: Optional[MarketState] = None):
        self.state = state

    def ensure_state(self) -> MarketState:
        """Ensure we have a market state."""
        if self.state is None:
            self.state = get_state()
        return self.state

    def initialize(self, product_id: str, first_entries: Iterable[ProvenanceRecord]) -> ProductProvenance:
        """Create the ledger of a new product.

        Called once, in the same synchronous step that stores the product.
        """
        state = self.ensure_state()
        if product_id in state.provenance:
            raise ValueError(f"Provenance for product {product_id} already initialized")

        ledger = ProductProvenance(product_id=product_id, history=list(first_entries))
        state.provenance[product_id] = ledger
        return ledger

    def append(
        self,
        product_id: str,
        event: str,
        actor_address: str,
        details: str = '',
        transaction_hash: Optional[str] = None,
        create_if_missing: bool = False
    ) -> bool:
        """Append a record stamped with the current time.

        Args:
            product_id: Product the event belongs to
            event: Event kind
            actor_address: Address that caused the event
            details: Free text description
            transaction_hash: Hash of the transaction behind the event, if any
            create_if_missing: Create the ledger when the product has none
                (sale recording of products predating their ledger)

        Returns:
            True if the record was appended, False if there was no ledger
        """
        state = self.ensure_state()
        ledger = state.provenance.get(product_id)

        if ledger is None:
            if not create_if_missing:
                logger.debug(f"No provenance ledger for {product_id}, '{event}' not recorded")
                return False
            logger.warning(f"Creating missing provenance ledger for {product_id} while recording '{event}'")
            ledger = ProductProvenance(product_id=product_id)
            state.provenance[product_id] = ledger

        ledger.history.append(ProvenanceRecord(
            event=event,
            timestamp=utcnow(),
            actor_address=actor_address,
            details=details,
            transaction_hash=transaction_hash
        ))
        return True

    def get(self, product_id: str) -> Optional[ProductProvenance]:
        """Full ordered history of a product, or None."""
        ledger = self.ensure_state().provenance.get(product_id)
        return ledger.model_copy(deep=True) if ledger else None

    def remove(self, product_id: str) -> None:
        """Delete a product's ledger."""
        self.ensure_state().provenance.pop(product_id, None)
