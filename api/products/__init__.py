"""Products API endpoints: catalog, purchase and provenance."""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from auth import get_wallet_address
from market import Market
from purchases import PurchaseState
from store.exceptions import MarketError
from store.models import Product, ProductProvenance

from ..dependencies import get_market, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)

# Model definitions
class CreateProductRequest(BaseModel):
    """Request model for listing a product.

    Fields are checked by the catalog so that invalid data is reported the
    same way for API and library callers.
    """
    model_config = ConfigDict(extra='allow')

    name: Optional[str] = Field(None, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    materials: Optional[List[str]] = Field(None, description="Materials, in display order")
    image_url: Optional[str] = Field(None, description="Image URL")
    price: Optional[Decimal] = Field(None, description="Price in ETH")
    is_verified: Optional[bool] = Field(None, description="Verified handmade")

class UpdateProductRequest(CreateProductRequest):
    """Request model for updating a product; only sent fields change."""
    pass

class PurchaseRequest(BaseModel):
    """Request model for buying a product."""
    price: Optional[Decimal] = Field(
        None, gt=0, description="Amount to pay; defaults to the listed price"
    )

class PurchaseResponse(BaseModel):
    """Outcome of a completed purchase."""
    success: bool
    state: PurchaseState
    product_id: str
    buyer_address: str
    transaction_hash: Optional[str] = None

def _changes(request: BaseModel) -> Dict[str, Any]:
    """Fields the client actually sent, unknown ones included."""
    return {**request.model_dump(exclude_unset=True), **(request.model_extra or {})}

""" Public Endpoints """
@router.get("/", response_model=List[Product])
async def list_products(market: Market = Depends(get_market)):
    """All products, unsold first, newest first."""
    return market.list_all()

@router.get("/artisan/{address}", response_model=List[Product])
async def list_artisan_products(address: str, market: Market = Depends(get_market)):
    """Products listed by the artisan owning an address."""
    return market.list_by_artisan(address)

@router.get("/{product_id}", response_model=Product)
async def get_product(product_id: str, market: Market = Depends(get_market)):
    """Get a product by id."""
    product = market.get_product(product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product {product_id} not found"
        )
    return product

@router.get("/{product_id}/provenance", response_model=ProductProvenance)
async def get_provenance(product_id: str, market: Market = Depends(get_market)):
    """Full provenance history of a product."""
    history = market.get_history(product_id)
    if history is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No provenance recorded for product {product_id}"
        )
    return history

""" Identity-bound Endpoints """
@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: CreateProductRequest,
    address: str = Depends(get_wallet_address),
    market: Market = Depends(get_market)
):
    """List a new product as the calling artisan."""
    try:
        return await market.create_product(_changes(request), address)
    except MarketError as e:
        raise to_http_exception(e)

@router.patch("/{product_id}", response_model=Product)
async def update_product(
    product_id: str,
    request: UpdateProductRequest,
    address: str = Depends(get_wallet_address),
    market: Market = Depends(get_market)
):
    """Update fields of a product owned by the caller."""
    try:
        return market.update_product(product_id, _changes(request), address)
    except MarketError as e:
        raise to_http_exception(e)

@router.delete("/{product_id}")
async def remove_product(
    product_id: str,
    address: str = Depends(get_wallet_address),
    market: Market = Depends(get_market)
):
    """Remove a product owned by the caller, with its provenance."""
    try:
        market.remove_product(product_id, address)
    except MarketError as e:
        raise to_http_exception(e)
    return {"product_id": product_id, "removed": True}

@router.post("/{product_id}/purchase", response_model=PurchaseResponse)
async def purchase_product(
    product_id: str,
    request: Optional[PurchaseRequest] = None,
    address: str = Depends(get_wallet_address),
    market: Market = Depends(get_market)
):
    """Buy a product as the calling wallet."""
    price = request.price if request else None
    result = await market.purchase(product_id, address, price)
    if not result.success:
        raise to_http_exception(result.error)

    return PurchaseResponse(
        success=True,
        state=result.state,
        product_id=result.product_id,
        buyer_address=result.buyer_address,
        transaction_hash=result.transaction_hash
    )
