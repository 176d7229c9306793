"""Record models for the marketplace state.

All records are pydantic models so they validate on construction and
serialize cleanly into snapshots and API responses.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

# Event kinds recorded in product provenance
EVENT_CREATED = 'Created'
EVENT_LISTED = 'Listed for Sale'
EVENT_UPDATED = 'Updated'
EVENT_SOLD = 'Sold'


def utcnow() -> datetime:
    """Current UTC time, timezone aware."""
    return datetime.now(timezone.utc)

def validation_message(error: ValidationError) -> str:
    """One-line summary of a pydantic validation failure."""
    return '; '.join(
        f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in error.errors()
    )


class ArtisanProfile(BaseModel):
    """Profile fields supplied at registration."""
    name: str = Field(..., min_length=1, description="Display name of the artisan")
    bio: Optional[str] = Field(None, description="Short biography")
    location: Optional[str] = Field(None, description="Where the artisan works")
    avatar_url: Optional[str] = Field(None, description="Profile image URL")


class Artisan(ArtisanProfile):
    """Registered seller identity tied to one wallet address."""
    id: str
    wallet_address: str


class Product(BaseModel):
    """Catalog entry, sellable once."""
    id: str
    artisan_id: str
    name: str
    description: str = ''
    materials: List[str] = Field(default_factory=list)
    image_url: str = ''
    price: Decimal = Field(..., gt=0)
    is_verified: bool = False
    creation_date: datetime
    is_sold: bool = False
    owner_address: Optional[str] = None


class ProvenanceRecord(BaseModel):
    """One append-only provenance entry."""
    event: str
    timestamp: datetime = Field(default_factory=utcnow)
    actor_address: str
    details: str = ''
    transaction_hash: Optional[str] = None


class ProductProvenance(BaseModel):
    """Ordered provenance history of a single product."""
    product_id: str
    history: List[ProvenanceRecord] = Field(default_factory=list)


class Collectible(BaseModel):
    """Receipt token issued to a buyer on purchase."""
    token_id: str
    contract_address: str
    name: str
    image_url: str = ''
    description: str = ''
    artisan_name: str


class StateSnapshot(BaseModel):
    """Versioned key-value snapshot of the whole market state."""
    version: int
    saved_at: datetime = Field(default_factory=utcnow)
    artisans: List[Artisan] = Field(default_factory=list)
    products: List[Product] = Field(default_factory=list)
    provenance: List[ProductProvenance] = Field(default_factory=list)
    collectibles: Dict[str, List[Collectible]] = Field(default_factory=dict)
