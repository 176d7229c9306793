"""Configurable fake wallet for development and testing.

This adapter simulates a browser wallet without any external calls. It can be
configured at runtime to approve, reject or fail requests, which makes it
useful for:
- Automated tests with predictable outcomes
- Running the API locally without a wallet or node
"""

import asyncio
import secrets
from typing import Any, Dict, List, Optional

from .port import USER_REJECTED_CODE, WalletProvider, WalletRequestError

class FakeWallet(WalletProvider):
    """Scripted wallet provider."""

    def __init__(self, accounts: Optional[List[str]] = None, authorized: bool = False, delay: float = 0) -> None:
        super().__init__()
        self.accounts: List[str] = list(accounts or [])
        self.authorized = authorized
        self.delay = delay
        self.should_approve: bool = True
        self.error: Optional[BaseException] = None
        self.watch_result: bool = True
        self.calls: List[Dict[str, Any]] = []
        self.transactions: List[Dict[str, Any]] = []

    def configure(
        self,
        should_approve: bool = True,
        error: Optional[BaseException] = None,
        watch_result: bool = True
    ) -> None:
        """Configure wallet behavior at runtime."""
        self.should_approve = should_approve
        self.error = error
        self.watch_result = watch_result

    def switch_account(self, address: str) -> None:
        """Make another account active, as if the user switched in the wallet."""
        self.accounts = [address] + [a for a in self.accounts if a != address]
        self.authorized = True
        self.emit_accounts_changed(self.accounts)

    def lock(self) -> None:
        """Simulate the user locking the wallet."""
        self.authorized = False
        self.emit_accounts_changed([])

    async def _respond(self, method: str, params: Any = None) -> None:
        self.calls.append({'method': method, 'params': params})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if not self.should_approve:
            raise WalletRequestError("User rejected the request.", code=USER_REJECTED_CODE)

    async def request_accounts(self) -> List[str]:
        await self._respond('eth_requestAccounts')
        self.authorized = True
        return list(self.accounts)

    async def get_accounts(self) -> List[str]:
        self.calls.append({'method': 'eth_accounts', 'params': None})
        return list(self.accounts) if self.authorized else []

    async def send_transaction(self, params: Dict[str, Any]) -> str:
        await self._respond('eth_sendTransaction', params)
        tx_hash = '0x' + secrets.token_hex(32)
        self.transactions.append({'hash': tx_hash, **params})
        return tx_hash

    async def watch_asset(self, params: Dict[str, Any]) -> bool:
        await self._respond('wallet_watchAsset', params)
        return self.watch_result
