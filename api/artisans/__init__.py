"""Artisan identity API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from auth import get_wallet_address
from market import Market
from store.exceptions import MarketError
from store.models import Artisan, ArtisanProfile

from ..dependencies import get_market, to_http_exception

router = APIRouter(
    prefix="/artisans",
    tags=["Artisans"]
)

class RegistrationStatus(BaseModel):
    """Whether an address belongs to a registered artisan."""
    address: str
    registered: bool

@router.get("/{address}", response_model=Artisan)
async def get_artisan(address: str, market: Market = Depends(get_market)):
    """Get the artisan registered under an address."""
    artisan = market.find_by_address(address)
    if artisan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No artisan registered for {address}"
        )
    return artisan

@router.get("/{address}/registered", response_model=RegistrationStatus)
async def is_registered(address: str, market: Market = Depends(get_market)):
    """Check whether an address is a registered artisan."""
    return RegistrationStatus(address=address, registered=market.is_registered(address))

@router.post("/", response_model=Artisan, status_code=status.HTTP_201_CREATED)
async def register_artisan(
    profile: ArtisanProfile,
    address: str = Depends(get_wallet_address),
    market: Market = Depends(get_market)
):
    """Register the calling wallet as an artisan."""
    try:
        return market.register(profile, address)
    except MarketError as e:
        raise to_http_exception(e)
