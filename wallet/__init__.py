"""Wallet session for the connected account.

Tracks which account is connected and keeps the derived view of it (artisan
profile, held collectibles) in step with the wallet's account-change stream.
"""

import logging
from typing import List, Optional

from identity import IdentityRegistry
from notifications import NotificationBus, VARIANT_DESTRUCTIVE
from ownership import OwnershipLedger
from signer import SignerError, SignerGateway, UserRejectedError
from store import address_key
from store.models import Artisan, Collectible

logger = logging.getLogger(__name__)

def short_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"

class WalletSession:
    """Connected-account state of one client."""

    def __init__(
        self,
        gateway: SignerGateway,
        registry: IdentityRegistry,
        ownership: OwnershipLedger,
        bus: Optional[NotificationBus] = None
    ):
        self.gateway = gateway
        self.registry = registry
        self.ownership = ownership
        self.bus = bus

        self.account: Optional[str] = None
        self.artisan_profile: Optional[Artisan] = None
        self.collectibles: List[Collectible] = []

        self.gateway.subscribe_accounts_changed(self.handle_accounts_changed)

    @property
    def is_connected(self) -> bool:
        return self.account is not None

    @property
    def is_artisan(self) -> bool:
        return self.artisan_profile is not None

    def _notify(self, kind: str, title: str, description: str = '', variant: str = 'default') -> None:
        if self.bus:
            self.bus.notify(kind, title, description, variant, account=self.account)

    def _load_account(self, account: str) -> None:
        self.account = account
        self.refresh_artisan_profile()
        self.refresh_collectibles()

    async def connect(self) -> Optional[str]:
        """Prompt the wallet for access and load the chosen account."""
        if not self.gateway.is_available:
            self._notify(
                'wallet.missing', "Wallet Not Found",
                "Please install a wallet to use this marketplace.", VARIANT_DESTRUCTIVE
            )
            return None

        account = await self.gateway.request_account_access()
        if account is None:
            self._notify(
                'wallet.error', "Connection Error",
                "Failed to connect wallet.", VARIANT_DESTRUCTIVE
            )
            return None

        self._load_account(account)
        logger.info(f"Wallet connected: {account}")
        self._notify('wallet.connected', "Wallet Connected", f"Address: {short_address(account)}")
        return account

    async def restore(self) -> Optional[str]:
        """Reload an already-authorized account without prompting."""
        account = await self.gateway.get_active_account()
        if account is not None:
            self._load_account(account)
            logger.info(f"Wallet session restored for {account}")
        return account

    def disconnect(self) -> None:
        self.account = None
        self.artisan_profile = None
        self.collectibles = []
        self._notify('wallet.disconnected', "Wallet Disconnected")

    def refresh_artisan_profile(self) -> Optional[Artisan]:
        """Re-resolve the connected account against the identity registry."""
        if self.account is None:
            self.artisan_profile = None
        else:
            self.artisan_profile = self.registry.find_by_address(self.account)
        return self.artisan_profile

    def refresh_collectibles(self) -> List[Collectible]:
        """Re-fetch the collectibles held by the connected account."""
        self.collectibles = self.ownership.list(self.account) if self.account else []
        return self.collectibles

    def handle_accounts_changed(self, accounts: List[str]) -> None:
        """React to the wallet's accountsChanged stream."""
        if not accounts:
            logger.info("Wallet exposed no accounts, disconnecting")
            self.disconnect()
            return

        new_account = accounts[0]
        if self.account is not None and address_key(new_account) == address_key(self.account):
            return

        self._load_account(new_account)
        logger.info(f"Wallet account switched to {new_account}")
        self._notify('wallet.switched', "Account Switched", f"Connected to {short_address(new_account)}")

    async def add_to_wallet(self, collectible: Collectible) -> bool:
        """Ask the wallet to display a collectible.

        Returns:
            True if the wallet added it; False if it declined or failed
        """
        try:
            added = await self.gateway.register_asset(collectible)
        except UserRejectedError:
            self._notify(
                'wallet.watch_cancelled', "Request Cancelled",
                "You cancelled the request to add the NFT to your wallet.", VARIANT_DESTRUCTIVE
            )
            return False
        except SignerError as e:
            self._notify('wallet.watch_failed', "Failed to Add NFT", str(e), VARIANT_DESTRUCTIVE)
            return False

        if added:
            self._notify(
                'wallet.watch_added', "NFT Added to Wallet",
                f"{collectible.name} should now be visible in your wallet."
            )
        else:
            self._notify(
                'wallet.watch_declined', "NFT Not Added",
                "Could not add the NFT to your wallet. The request may have been cancelled or failed."
            )
        return added

    def close(self) -> None:
        """Stop following the wallet's account changes."""
        self.gateway.unsubscribe_accounts_changed(self.handle_accounts_changed)
