"""Wallet provider port (abstract interface).

Defines the contract every wallet provider adapter implements. The signer
gateway only ever talks to this interface, which allows swapping between
FakeWallet (dev/test) and RPCWallet (a JSON-RPC node or wallet daemon)
without touching any marketplace code.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# EIP-1193 code for "user rejected the request"
USER_REJECTED_CODE = 4001

AccountsListener = Callable[[List[str]], None]

class WalletRequestError(Exception):
    """Raised by providers when the wallet answers a request with an error."""
    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(f"[{code}] {message}" if code is not None else message)

class WalletProvider(ABC):
    """Abstract wallet provider interface."""

    def __init__(self) -> None:
        self._listeners: List[AccountsListener] = []

    @abstractmethod
    async def request_accounts(self) -> List[str]:
        """Ask the user to expose their accounts (interactive)."""
        ...

    @abstractmethod
    async def get_accounts(self) -> List[str]:
        """Accounts already exposed to the application (non-interactive)."""
        ...

    @abstractmethod
    async def send_transaction(self, params: Dict[str, Any]) -> str:
        """Ask the user to sign and broadcast a transaction; returns its hash."""
        ...

    @abstractmethod
    async def watch_asset(self, params: Dict[str, Any]) -> bool:
        """Ask the wallet to track a token; returns whether it was added."""
        ...

    def on_accounts_changed(self, callback: AccountsListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: AccountsListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def emit_accounts_changed(self, accounts: List[str]) -> None:
        """Deliver an account change to every listener."""
        for callback in list(self._listeners):
            try:
                callback(list(accounts))
            except Exception as e:
                logger.error(f"accountsChanged listener {callback!r} failed: {e}")
