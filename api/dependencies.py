"""Shared dependencies and error mapping for the API routers."""

from typing import Dict, Type

from fastapi import HTTPException, Request, status

from market import Market
from signer import NoSignerError, ProviderError, UserRejectedError
from store.exceptions import (
    DuplicateIdentityError,
    InvalidAmountError,
    InvalidProductError,
    InvalidProfileError,
    MarketError,
    NotAvailableError,
    NotFoundError,
    UnauthorizedError,
    UnknownArtisanError,
)

# Checked in order, so subclasses must come before their bases
ERROR_STATUS: Dict[Type[MarketError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    UnknownArtisanError: status.HTTP_403_FORBIDDEN,
    DuplicateIdentityError: status.HTTP_409_CONFLICT,
    NotAvailableError: status.HTTP_409_CONFLICT,
    InvalidProductError: status.HTTP_400_BAD_REQUEST,
    InvalidProfileError: status.HTTP_400_BAD_REQUEST,
    InvalidAmountError: status.HTTP_400_BAD_REQUEST,
    UserRejectedError: status.HTTP_400_BAD_REQUEST,
    NoSignerError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
}

def to_http_exception(error: MarketError) -> HTTPException:
    """Translate a marketplace error into the matching HTTP error."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )

def get_market(request: Request) -> Market:
    """The market instance owned by the running application."""
    return request.app.state.market
