"""Claimed-identity dependency for the HTTP API.

There is no real signing in this marketplace: a caller claims a wallet
address through the X-Wallet-Address header and the domain layer decides
what that address may do (artisan ownership, buyer identity).
"""

import logging
import re
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

# Configure logging
logger = logging.getLogger(__name__)

# Constants
WALLET_HEADER = "X-Wallet-Address"
ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class InvalidAddressError(AuthError):
    """Raised when the claimed address is not a wallet address."""
    pass

def validate_address(address: str) -> str:
    """Check that a claimed address looks like a wallet address.

    Args:
        address: Address as sent by the client

    Returns:
        The address, stripped, with its case preserved

    Raises:
        InvalidAddressError: If the address is malformed
    """
    address = address.strip()
    if not ADDRESS_PATTERN.match(address):
        raise InvalidAddressError(f"Invalid wallet address: {address!r}")
    return address

# FastAPI security scheme
auth_scheme = APIKeyHeader(
    name=WALLET_HEADER,
    auto_error=False,
    description="Wallet address the caller acts as"
)

async def get_wallet_address(
    claimed: Optional[str] = Depends(auth_scheme)
) -> str:
    """FastAPI dependency for the caller's claimed wallet address.

    Returns:
        The claimed address

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not claimed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{WALLET_HEADER} header required"
        )
    try:
        return validate_address(claimed)
    except InvalidAddressError as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

# Export public interface
__all__ = [
    'get_wallet_address',
    'validate_address',
    'auth_scheme',
    'AuthError',
    'InvalidAddressError',
    'WALLET_HEADER'
]
