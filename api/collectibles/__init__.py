"""Collectibles API endpoints."""

from typing import List

from fastapi import APIRouter, Depends

from market import Market
from store.models import Collectible

from ..dependencies import get_market

router = APIRouter(
    prefix="/collectibles",
    tags=["Collectibles"]
)

@router.get("/{address}", response_model=List[Collectible])
async def list_collectibles(address: str, market: Market = Depends(get_market)):
    """Collectibles held by a wallet address, in issue order."""
    return market.list_collectibles(address)
