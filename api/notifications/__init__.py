"""Notifications API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from market import Market
from notifications import Notification

from ..dependencies import get_market

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"]
)

@router.get("/", response_model=List[Notification])
async def list_notifications(
    limit: int = Query(50, ge=1, le=500),
    kind: Optional[str] = Query(None, description="Only notifications of this kind, e.g. purchase.completed"),
    market: Market = Depends(get_market)
):
    """Most recent marketplace notifications, newest first."""
    return market.bus.recent(limit=limit, kind=kind)
