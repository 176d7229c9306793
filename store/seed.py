"""Demo records for a freshly started marketplace.

The seeded products are written straight into the state as pre-existing
listings; no wallet is involved. One product is seeded as already sold so the
collectibles view has something to show.
"""

import logging
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List

from ownership import OwnershipLedger
from provenance import ProvenanceLedger

from . import MarketState
from .models import (
    EVENT_CREATED,
    EVENT_LISTED,
    EVENT_SOLD,
    Artisan,
    Collectible,
    Product,
    ProvenanceRecord,
    utcnow,
)

logger = logging.getLogger(__name__)

DEMO_COLLECTOR_ADDRESS = '0x1111222233334444555566667777888899990000'
DEMO_SALE_TX_HASH = '0x' + 'ab' * 32

ARTISANS_DATA: List[Dict[str, Any]] = [
    {
        "name": "Elena Rodriguez",
        "bio": "Third-generation potter working with local clay and wood-fired kilns.",
        "location": "Oaxaca, Mexico",
        "avatar_url": "https://placehold.co/100x100.png",
        "wallet_address": "0x9f2a5B1c7D3e4F60718293a4b5C6d7E8f9012345",
    },
    {
        "name": "Kenji Tanaka",
        "bio": "Woodworker specialising in hand-planed joinery without nails or glue.",
        "location": "Kyoto, Japan",
        "avatar_url": "https://placehold.co/100x100.png",
        "wallet_address": "0x4b7C2d9E1f3A5b6C8d0E2f4A6b8C0d2E4f6A8b0C",
    },
]

PRODUCTS_DATA: List[Dict[str, Any]] = [
    {
        "artisan": 0,
        "name": "Barro Negro Vase",
        "description": "Burnished black clay vase, fired at low temperature for its metallic sheen.",
        "materials": ["black clay"],
        "image_url": "https://placehold.co/600x400.png",
        "price": Decimal("0.05"),
        "is_verified": True,
    },
    {
        "artisan": 0,
        "name": "Talavera Serving Bowl",
        "description": "Hand-painted tin-glazed earthenware bowl.",
        "materials": ["clay", "tin glaze", "mineral pigments"],
        "image_url": "https://placehold.co/600x400.png",
        "price": Decimal("0.12"),
        "is_verified": True,
    },
    {
        "artisan": 1,
        "name": "Kumiko Lantern",
        "description": "Cedar lantern with an interlocking kumiko lattice.",
        "materials": ["hinoki cypress", "washi paper"],
        "image_url": "https://placehold.co/600x400.png",
        "price": Decimal("0.3"),
        "is_verified": False,
    },
    {
        "artisan": 1,
        "name": "Walnut Tea Tray",
        "description": "Single-board walnut tray finished with urushi lacquer.",
        "materials": ["walnut", "urushi"],
        "image_url": "https://placehold.co/600x400.png",
        "price": Decimal("0.08"),
        "is_verified": True,
        "sold_to": DEMO_COLLECTOR_ADDRESS,
    },
]

def seed_demo_data(state: MarketState, registry_contract_address: str) -> int:
    """Populate an empty state with demo artisans and products.

    Args:
        state: State to populate; left untouched if it already holds records
        registry_contract_address: Contract recorded on seeded collectibles

    Returns:
        Number of products created
    """
    if not state.is_empty():
        logger.info("State already holds records, skipping demo data")
        return 0

    provenance = ProvenanceLedger(state)
    ownership = OwnershipLedger(state)
    now = utcnow()

    artisans = []
    for data in ARTISANS_DATA:
        artisan = Artisan(id=f"artisan-{uuid.uuid4().hex}", **data)
        state.artisans.append(artisan)
        artisans.append(artisan)

    for i, data in enumerate(PRODUCTS_DATA):
        data = dict(data)
        artisan = artisans[data.pop("artisan")]
        sold_to = data.pop("sold_to", None)
        # Older entries first, a day apart
        created = now - timedelta(days=len(PRODUCTS_DATA) - i)

        product = Product(
            id=f"product-{uuid.uuid4().hex}",
            artisan_id=artisan.id,
            creation_date=created,
            is_sold=sold_to is not None,
            owner_address=sold_to,
            **data
        )
        state.products[product.id] = product
        provenance.initialize(product.id, [
            ProvenanceRecord(
                event=EVENT_CREATED,
                timestamp=created,
                actor_address=artisan.wallet_address,
                details=f"Initial listing of {product.name}."
            ),
            ProvenanceRecord(
                event=EVENT_LISTED,
                timestamp=created,
                actor_address=artisan.wallet_address,
                details=f"Price set at {product.price} ETH"
            ),
        ])

        if sold_to:
            provenance.append(
                product.id,
                EVENT_SOLD,
                sold_to,
                f"Purchased by {sold_to[:6]}... Tx: {DEMO_SALE_TX_HASH[:10]}...",
                transaction_hash=DEMO_SALE_TX_HASH
            )
            ownership.add(sold_to, Collectible(
                token_id=product.id,
                contract_address=registry_contract_address,
                name=product.name,
                image_url=product.image_url,
                description=product.description,
                artisan_name=artisan.name
            ))

    logger.info(f"Seeded {len(artisans)} artisans and {len(PRODUCTS_DATA)} products")
    return len(PRODUCTS_DATA)
