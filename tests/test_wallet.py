"""Tests for the wallet session."""

import pytest

from signer import FakeWallet, SignerGateway, WalletRequestError
from store.models import Collectible

from conftest import ARTISAN_ADDRESS, BUYER_ADDRESS

@pytest.fixture
def session(market):
    session = market.session()
    yield session
    session.close()

@pytest.mark.asyncio
async def test_connect_loads_account(market, artisan, product, session, wallet):
    """Test connecting resolves the artisan profile and collectibles."""
    await market.purchase(product.id, BUYER_ADDRESS)

    assert await session.connect() == BUYER_ADDRESS
    assert session.is_connected
    assert not session.is_artisan
    assert [c.token_id for c in session.collectibles] == [product.id]

    wallet.switch_account(ARTISAN_ADDRESS)
    assert session.account == ARTISAN_ADDRESS
    assert session.is_artisan
    assert session.artisan_profile.id == artisan.id
    assert session.collectibles == []
    assert market.bus.recent(kind='wallet.switched')

@pytest.mark.asyncio
async def test_connect_without_wallet(market):
    """Test connecting without a wallet reports it and stays disconnected."""
    market.gateway.provider = None
    session = market.session()

    assert await session.connect() is None
    assert not session.is_connected
    assert market.bus.recent(kind='wallet.missing')

@pytest.mark.asyncio
async def test_connect_rejected(market, session, wallet):
    wallet.configure(should_approve=False)
    assert await session.connect() is None
    assert market.bus.recent(kind='wallet.error')

@pytest.mark.asyncio
async def test_restore_without_prompt(market):
    """Test restoring only picks up an already authorized account."""
    wallet = FakeWallet(accounts=[BUYER_ADDRESS])
    market.gateway = SignerGateway(wallet, settlement_delay=0)
    session = market.session()

    assert await session.restore() is None
    assert wallet.calls == [{'method': 'eth_accounts', 'params': None}]

    wallet.authorized = True
    assert await session.restore() == BUYER_ADDRESS
    session.close()

@pytest.mark.asyncio
async def test_lock_disconnects(market, session, wallet):
    """Test an empty account list disconnects the session."""
    await session.connect()
    wallet.lock()

    assert not session.is_connected
    assert session.artisan_profile is None
    assert session.collectibles == []
    assert market.bus.recent(kind='wallet.disconnected')

@pytest.mark.asyncio
async def test_same_account_is_ignored(market, session):
    """Test an accounts event for the current account (any case) is a no-op."""
    await session.connect()
    session.handle_accounts_changed([BUYER_ADDRESS.lower()])
    assert session.account == BUYER_ADDRESS
    assert not market.bus.recent(kind='wallet.switched')

@pytest.mark.asyncio
async def test_refresh_after_registration(market, session):
    """Test a newly registered connected account becomes an artisan on refresh."""
    await session.connect()
    assert not session.is_artisan

    market.register({"name": "Late Bloomer"}, BUYER_ADDRESS)
    assert session.refresh_artisan_profile().name == "Late Bloomer"
    assert session.is_artisan

@pytest.mark.asyncio
async def test_add_to_wallet(market, session, wallet):
    """Test offering a collectible to the wallet, including failures."""
    collectible = Collectible(
        token_id="product-1",
        contract_address=market.settings['registry_contract_address'],
        name="Mug",
        artisan_name="Ada"
    )
    assert await session.add_to_wallet(collectible) is True
    assert market.bus.recent(kind='wallet.watch_added')

    wallet.configure(watch_result=False)
    assert await session.add_to_wallet(collectible) is False
    assert market.bus.recent(kind='wallet.watch_declined')

    wallet.configure(should_approve=False)
    assert await session.add_to_wallet(collectible) is False
    assert market.bus.recent(kind='wallet.watch_cancelled')

    wallet.configure(error=WalletRequestError("Asset already watched", code=-32602))
    assert await session.add_to_wallet(collectible) is False
    failed = market.bus.recent(kind='wallet.watch_failed')[0]
    assert failed.variant == 'destructive'
    assert "Asset already watched" in failed.description

def test_close_stops_following(market, wallet):
    """Test a closed session ignores further account changes."""
    session = market.session()
    session.close()
    wallet.switch_account(ARTISAN_ADDRESS)
    assert session.account is None
