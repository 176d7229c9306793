"""Signer gateway for the external wallet.

This module is the only place that talks to a wallet provider. It provides:
- Account access (interactive) and active-account queries (non-interactive)
- Transaction submission and the simulated settlement delay
- Asking the wallet to track an issued collectible
- Normalization of every provider failure into UserRejectedError or ProviderError
- Exact conversion of prices to the chain's smallest unit
"""

import asyncio
import json
import logging
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from store.exceptions import MarketError
from store.models import Collectible
from .port import (
    USER_REJECTED_CODE,
    AccountsListener,
    WalletProvider,
    WalletRequestError,
)
from .fake_adapter import FakeWallet
from .rpc_adapter import RPCWallet, NodeConnectionError, NodeAuthError

logger = logging.getLogger(__name__)

WEI_PER_UNIT = 10 ** 18

class SignerError(MarketError):
    """Base exception for signer gateway failures."""
    pass

class NoSignerError(SignerError):
    """Raised when no wallet provider is reachable."""
    def __init__(self, message: str = "No wallet provider available. Please install a wallet to use this marketplace."):
        super().__init__(message)

class UserRejectedError(SignerError):
    """Raised when the user explicitly declined a wallet request."""
    def __init__(self, message: str = "User rejected the request"):
        self.message = message
        super().__init__(message)

class ProviderError(SignerError):
    """Raised for any other wallet provider failure; carries an opaque message."""
    def __init__(self, message: str, code: Optional[int] = None):
        self.message = message
        self.code = code
        super().__init__(message)

class TransactionRequest(BaseModel):
    """Transaction handed to the wallet for signing."""
    model_config = ConfigDict(populate_by_name=True)

    to: str
    from_address: str = Field(..., alias='from')
    value: Optional[str] = None
    data: Optional[str] = None

    def to_params(self) -> Dict[str, Any]:
        """Provider parameters ({to, from, value, data}), omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

def to_wei(price: Union[Decimal, int, float, str]) -> int:
    """Convert a price to the chain's smallest unit: round(price * 10^18).

    Floats are converted through their shortest decimal representation so
    0.05 becomes exactly 50000000000000000.
    """
    amount = price if isinstance(price, Decimal) else Decimal(str(price))
    with localcontext() as ctx:
        ctx.prec = 80
        scaled = amount * WEI_PER_UNIT
        return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))

def to_hex(value: int) -> str:
    """Hex quantity as used in transaction parameters."""
    return hex(value)

def _describe_unknown(error: Any) -> str:
    if isinstance(error, dict) and not error:
        return (
            "The wallet provider returned an unspecified error. This can happen if "
            "the token ID format is not supported or if the asset is already being watched."
        )
    try:
        text = json.dumps(error, default=str)
    except (TypeError, ValueError):
        return "A non-descript error object was returned by the wallet provider. Please try again."
    if text in ('{}', '""', 'null'):
        return "The wallet provider returned an unspecified error object. Please try again."
    suffix = '...' if len(text) > 100 else ''
    return f"An unexpected error occurred: {text[:100]}{suffix}"

def normalize_provider_error(error: Any) -> SignerError:
    """Map a raw provider failure onto UserRejectedError or ProviderError.

    Accepts provider exceptions, error payload dicts, plain strings and
    anything else a provider may produce; raw structures never leave the
    gateway.
    """
    if isinstance(error, SignerError):
        return error

    # Exceptions that carry the payload as their only argument
    if isinstance(error, Exception) and not isinstance(error, WalletRequestError):
        if len(error.args) == 1 and isinstance(error.args[0], dict):
            error = error.args[0]

    code = getattr(error, 'code', None)
    message = getattr(error, 'message', None)
    if isinstance(error, dict):
        code = error.get('code')
        message = error.get('message')

    if code == USER_REJECTED_CODE:
        return UserRejectedError(message or "User rejected the request")

    if isinstance(message, str) and message.strip():
        return ProviderError(message.strip(), code=code if isinstance(code, int) else None)

    if isinstance(error, str):
        return ProviderError(error.strip() or "Unknown wallet provider error")

    if isinstance(error, BaseException):
        text = str(error).strip()
        return ProviderError(text or f"{type(error).__name__} raised by the wallet provider")

    return ProviderError(_describe_unknown(error))

class SignerGateway:
    """Boundary adapter between the marketplace and a wallet provider."""

    def __init__(
        self,
        provider: Optional[WalletProvider] = None,
        settlement_delay: float = 2.0,
        timeout: Optional[float] = None
    ):
        """Initialize the gateway.

        Args:
            provider: Wallet provider; None models "no wallet installed"
            settlement_delay: Seconds waited after acceptance before a hash is final
            timeout: Optional limit in seconds for each provider call (None or 0 waits forever)
        """
        self.provider = provider
        self.settlement_delay = settlement_delay
        self.timeout = timeout or None

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    async def _request(self, action: str, request: Callable[[], Awaitable[Any]]) -> Any:
        """Run a provider request, normalizing any failure."""
        try:
            return await request()
        except Exception as e:
            normalized = normalize_provider_error(e)
            logger.warning(f"Wallet {action} failed: {normalized}")
            raise normalized from e

    async def _call(self, action: str, request: Callable[[], Awaitable[Any]]) -> Any:
        """Run a provider request under the gateway timeout, if one is set."""
        if not self.timeout:
            return await self._request(action, request)

        # Provider errors are already normalized, so a timeout here is our own
        try:
            return await asyncio.wait_for(self._request(action, request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Wallet {action} timed out after {self.timeout}s")
            raise ProviderError(f"Wallet did not respond to {action} within {self.timeout} seconds")

    async def request_account_access(self) -> Optional[str]:
        """Prompt the user for account access.

        Returns:
            The first exposed account, or None if there is no provider, the
            provider exposes no accounts, or the request failed
        """
        if not self.is_available:
            logger.info("Account access requested but no wallet provider is available")
            return None

        try:
            accounts = await self._call('account access', self.provider.request_accounts)
        except SignerError as e:
            logger.error(f"Error connecting to wallet: {e}")
            return None

        return accounts[0] if accounts else None

    async def get_active_account(self) -> Optional[str]:
        """Currently exposed account, without prompting the user."""
        if not self.is_available:
            return None

        try:
            accounts = await self._call('account query', self.provider.get_accounts)
        except SignerError as e:
            logger.error(f"Error getting current wallet: {e}")
            return None

        return accounts[0] if accounts else None

    async def submit_transaction(self, request: TransactionRequest) -> str:
        """Ask the wallet to sign and broadcast a transaction.

        Returns:
            The transaction hash

        Raises:
            NoSignerError: If no provider is configured
            UserRejectedError: If the user declined
            ProviderError: For any other provider failure
        """
        if not self.is_available:
            raise NoSignerError()

        params = request.to_params()
        logger.debug(f"Submitting transaction {params}")
        tx_hash = await self._call(
            'transaction', lambda: self.provider.send_transaction(params)
        )

        if not isinstance(tx_hash, str) or not tx_hash:
            raise ProviderError(f"Wallet returned an invalid transaction hash: {tx_hash!r}")

        logger.info(f"Transaction {tx_hash} accepted by wallet")
        return tx_hash

    async def settle(self, tx_hash: str) -> str:
        """Wait for the simulated block confirmation of an accepted transaction."""
        if self.settlement_delay > 0:
            await asyncio.sleep(self.settlement_delay)
        logger.debug(f"Transaction {tx_hash} settled")
        return tx_hash

    async def register_asset(self, collectible: Collectible) -> bool:
        """Ask the wallet to track a collectible as an ERC721 token.

        Raises:
            NoSignerError: If no provider is configured
            UserRejectedError: If the user declined
            ProviderError: For any other provider failure
        """
        if not self.is_available:
            raise NoSignerError()

        params = {
            'type': 'ERC721',
            'options': {
                'address': collectible.contract_address,
                'tokenId': collectible.token_id,
            },
        }
        added = await self._call('watch asset', lambda: self.provider.watch_asset(params))
        return bool(added)

    def subscribe_accounts_changed(self, callback: AccountsListener) -> None:
        if self.is_available:
            self.provider.on_accounts_changed(callback)

    def unsubscribe_accounts_changed(self, callback: AccountsListener) -> None:
        if self.is_available:
            self.provider.remove_listener(callback)

def create_provider(settings: Dict[str, Any]) -> Optional[WalletProvider]:
    """Build the wallet provider named by the settings."""
    kind = settings.get('wallet_provider', 'fake')
    if kind == 'fake':
        return FakeWallet(accounts=settings.get('fake_accounts') or [])
    if kind == 'rpc':
        return RPCWallet(settings['wallet_rpc_url'])
    return None


__all__ = [
    'SignerGateway', 'TransactionRequest', 'WalletProvider', 'FakeWallet', 'RPCWallet',
    'SignerError', 'NoSignerError', 'UserRejectedError', 'ProviderError',
    'WalletRequestError', 'NodeConnectionError', 'NodeAuthError',
    'normalize_provider_error', 'to_wei', 'to_hex', 'create_provider',
]
