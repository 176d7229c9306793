"""JSON-RPC wallet provider.

Talks to an Ethereum-style JSON-RPC endpoint (a development node or a wallet
daemon exposing the EIP-1193 methods) over HTTP. Requests are blocking, so
each call runs in a worker thread to keep the event loop responsive.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import backoff
import requests

from .port import WalletProvider, WalletRequestError

logger = logging.getLogger(__name__)

class NodeConnectionError(WalletRequestError):
    """Raised when connection to the wallet endpoint fails"""
    pass

class NodeAuthError(WalletRequestError):
    """Raised when authentication failed"""
    pass

class RPCMethod:
    """Descriptor class for RPC methods"""
    def __init__(self, method_name: str, object_params: bool = False):
        self.method_name = method_name
        self.object_params = object_params

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self

        def caller(*args) -> Any:
            params = args[0] if self.object_params else list(args)
            return obj._call_method(self.method_name, params)

        return caller

class RPCWallet(WalletProvider):
    """Wallet provider backed by a JSON-RPC endpoint"""

    def __init__(self, url: str, timeout: float = 10, auth: Optional[tuple] = None):
        """Initialize RPC client

        Args:
            url: Endpoint URL, e.g. http://127.0.0.1:8545
            timeout: Per-request HTTP timeout in seconds
            auth: Optional (user, password) for basic auth
        """
        super().__init__()
        self.url = url
        self.timeout = timeout

        # Initialize session with auth
        self.session = requests.Session()
        if auth:
            self.session.auth = auth
        self.session.headers['content-type'] = 'application/json'

        # Request ID counter
        self._request_id = 0
        self._watch_task: Optional[asyncio.Task] = None

    def _get_request_id(self) -> int:
        """Get unique request ID"""
        self._request_id += 1
        return self._request_id

    def _call_method(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        """Make RPC call to the wallet endpoint

        Args:
            method: RPC method name
            params: Positional (list) or named (dict) parameters

        Returns:
            Result field of the response

        Raises:
            NodeConnectionError: Connection to the endpoint failed
            NodeAuthError: Authentication failed
            WalletRequestError: Endpoint returned a JSON-RPC error
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._get_request_id()
        }

        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)

            # Check for auth error
            if response.status_code == 401:
                raise NodeAuthError("Authentication failed - check wallet RPC credentials")

            # Try to parse response even if status code is error
            result = response.json()

            # Check for RPC error
            if isinstance(result, dict) and result.get('error') is not None:
                error = result['error']
                if not isinstance(error, dict):
                    raise WalletRequestError(str(error) or 'Unknown error', data=error)
                raise WalletRequestError(
                    error.get('message', 'Unknown error'),
                    error.get('code'),
                    error.get('data')
                )

            # Now check for HTTP errors after we've tried to parse potential error response
            response.raise_for_status()

            return result['result']

        except requests.exceptions.Timeout as e:
            raise NodeConnectionError(
                f"Request timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NodeConnectionError(
                f"Failed to connect to wallet endpoint at {self.url}"
            ) from e
        except requests.exceptions.HTTPError as e:
            raise NodeConnectionError(
                f"HTTP error occurred: {str(e)}"
            ) from e
        except requests.exceptions.RequestException as e:
            raise NodeConnectionError(
                f"Request failed: {str(e)}"
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            raise NodeConnectionError(
                f"Invalid response format: {str(e)}"
            ) from e

    # Define RPC methods as descriptors
    eth_requestAccounts = RPCMethod('eth_requestAccounts')
    eth_accounts = RPCMethod('eth_accounts')
    eth_sendTransaction = RPCMethod('eth_sendTransaction')
    wallet_watchAsset = RPCMethod('wallet_watchAsset', object_params=True)

    async def request_accounts(self) -> List[str]:
        return list(await asyncio.to_thread(self.eth_requestAccounts) or [])

    @backoff.on_exception(backoff.expo, NodeConnectionError, max_tries=3)
    async def get_accounts(self) -> List[str]:
        return list(await asyncio.to_thread(self.eth_accounts) or [])

    async def send_transaction(self, params: Dict[str, Any]) -> str:
        return await asyncio.to_thread(self.eth_sendTransaction, params)

    async def watch_asset(self, params: Dict[str, Any]) -> bool:
        return bool(await asyncio.to_thread(self.wallet_watchAsset, params))

    async def watch_accounts(self, interval: float = 2.0) -> None:
        """Poll eth_accounts and emit accountsChanged when the list changes.

        HTTP endpoints cannot push events, so this loop stands in for the
        provider's accountsChanged subscription. Runs until cancelled.
        """
        last: Optional[List[str]] = None
        while True:
            try:
                accounts = await self.get_accounts()
            except WalletRequestError as e:
                logger.warning(f"Account poll failed: {e}")
            else:
                if last is not None and [a.lower() for a in accounts] != [a.lower() for a in last]:
                    logger.info(f"Wallet accounts changed: {accounts}")
                    self.emit_accounts_changed(accounts)
                last = accounts
            await asyncio.sleep(interval)

    def start_watching(self, interval: float = 2.0) -> asyncio.Task:
        """Start the account poll loop in the running event loop."""
        if self._watch_task is None or self._watch_task.done():
            self._watch_task = asyncio.create_task(self.watch_accounts(interval))
        return self._watch_task

    async def close(self) -> None:
        """Stop polling and release the HTTP session."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
        self.session.close()
