"""Tests for the signer gateway and its fake wallet."""

import asyncio
from decimal import Decimal

import pytest

from signer import (
    FakeWallet,
    NoSignerError,
    ProviderError,
    SignerGateway,
    TransactionRequest,
    UserRejectedError,
    WalletRequestError,
    create_provider,
    normalize_provider_error,
    to_hex,
    to_wei,
)
from store.models import Collectible

from conftest import BUYER_ADDRESS

def _request():
    return TransactionRequest(
        to="0xMockMarketplaceContract0123456789abc",
        from_address=BUYER_ADDRESS,
        value=to_hex(to_wei("0.05")),
        data="0xSIMULATED_PURCHASE_DATA_FOR_product-1"
    )

def test_to_wei_exact():
    """Test conversion to the smallest unit is exact."""
    assert to_wei("0.05") == 50000000000000000
    assert to_wei(Decimal("0.05")) == 50000000000000000
    assert to_wei(0.05) == 50000000000000000
    assert to_wei(1) == 10 ** 18
    assert to_wei("1.5") == 1500000000000000000

def test_to_wei_rounds_half_up():
    """Test digits beyond 18 decimals round half up."""
    assert to_wei("0.0000000000000000005") == 1
    assert to_wei("0.0000000000000000004") == 0

def test_transaction_params_use_wire_names():
    """Test transaction parameters carry "from" and omit unset fields."""
    params = TransactionRequest(to="0x1", from_address="0x2", data="0xdata").to_params()
    assert params == {"to": "0x1", "from": "0x2", "data": "0xdata"}

    full = _request().to_params()
    assert full["value"] == hex(50000000000000000)

@pytest.mark.parametrize("raw", [
    WalletRequestError("User rejected the request.", code=4001),
    {"code": 4001, "message": "denied"},
    Exception({"code": 4001, "message": "denied"}),
])
def test_normalize_user_rejection(raw):
    """Test code 4001 in any shape becomes UserRejectedError."""
    assert isinstance(normalize_provider_error(raw), UserRejectedError)

def test_normalize_provider_failures():
    """Test other failures become ProviderError with a usable message."""
    error = normalize_provider_error(WalletRequestError("insufficient funds", code=-32000))
    assert isinstance(error, ProviderError)
    assert error.message == "insufficient funds"
    assert error.code == -32000

    assert normalize_provider_error("node exploded").message == "node exploded"
    assert "unspecified error" in normalize_provider_error({}).message
    assert "RuntimeError" in normalize_provider_error(RuntimeError()).message

    long_payload = {"detail": "x" * 200}
    message = normalize_provider_error(long_payload).message
    assert message.startswith("An unexpected error occurred:")
    assert message.endswith("...")

def test_normalize_keeps_signer_errors():
    """Test already-normalized errors pass through unchanged."""
    error = NoSignerError()
    assert normalize_provider_error(error) is error

@pytest.mark.asyncio
async def test_account_access(wallet):
    """Test requesting and querying accounts."""
    gateway = SignerGateway(wallet, settlement_delay=0)
    assert await gateway.request_account_access() == BUYER_ADDRESS
    assert await gateway.get_active_account() == BUYER_ADDRESS

@pytest.mark.asyncio
async def test_account_access_without_provider():
    """Test a missing wallet yields no account rather than an error."""
    gateway = SignerGateway(None)
    assert not gateway.is_available
    assert await gateway.request_account_access() is None
    assert await gateway.get_active_account() is None

@pytest.mark.asyncio
async def test_account_access_rejected(wallet):
    """Test a declined connection yields no account."""
    wallet.configure(should_approve=False)
    gateway = SignerGateway(wallet)
    assert await gateway.request_account_access() is None

@pytest.mark.asyncio
async def test_active_account_requires_authorization():
    """Test the non-interactive query exposes nothing before access is granted."""
    wallet = FakeWallet(accounts=[BUYER_ADDRESS])
    gateway = SignerGateway(wallet)
    assert await gateway.get_active_account() is None

    await gateway.request_account_access()
    assert await gateway.get_active_account() == BUYER_ADDRESS

@pytest.mark.asyncio
async def test_submit_transaction(wallet, gateway):
    """Test an approved transaction returns the wallet's hash."""
    tx_hash = await gateway.submit_transaction(_request())

    assert tx_hash.startswith("0x") and len(tx_hash) == 66
    sent = wallet.transactions[-1]
    assert sent["hash"] == tx_hash
    assert sent["from"] == BUYER_ADDRESS
    assert sent["value"] == "0xb1a2bc2ec50000"

@pytest.mark.asyncio
async def test_submit_transaction_errors(wallet, gateway):
    """Test each submission failure mode."""
    with pytest.raises(NoSignerError):
        await SignerGateway(None).submit_transaction(_request())

    wallet.configure(should_approve=False)
    with pytest.raises(UserRejectedError):
        await gateway.submit_transaction(_request())

    wallet.configure(error=WalletRequestError("gas required exceeds allowance", code=-32000))
    with pytest.raises(ProviderError, match="gas required exceeds allowance"):
        await gateway.submit_transaction(_request())

@pytest.mark.asyncio
async def test_submit_transaction_timeout():
    """Test an unanswered request fails once the timeout expires."""
    wallet = FakeWallet(accounts=[BUYER_ADDRESS], authorized=True, delay=1)
    gateway = SignerGateway(wallet, settlement_delay=0, timeout=0.05)

    with pytest.raises(ProviderError, match="did not respond"):
        await gateway.submit_transaction(_request())

@pytest.mark.asyncio
async def test_provider_raised_timeout(wallet):
    """Test a timeout raised by the provider keeps its own message."""
    gateway = SignerGateway(wallet, settlement_delay=0)
    wallet.configure(error=TimeoutError("node took too long"))

    with pytest.raises(ProviderError, match="node took too long") as exc_info:
        await gateway.submit_transaction(_request())
    assert "within" not in str(exc_info.value)

    timed = SignerGateway(wallet, settlement_delay=0, timeout=5)
    with pytest.raises(ProviderError, match="node took too long"):
        await timed.submit_transaction(_request())

@pytest.mark.asyncio
async def test_settle_waits_for_delay(wallet):
    """Test settlement takes at least the configured delay."""
    gateway = SignerGateway(wallet, settlement_delay=0.05)
    loop = asyncio.get_running_loop()

    started = loop.time()
    assert await gateway.settle("0xabc") == "0xabc"
    assert loop.time() - started >= 0.04

@pytest.mark.asyncio
async def test_register_asset(wallet, gateway):
    """Test collectibles are offered to the wallet as ERC721 tokens."""
    collectible = Collectible(
        token_id="product-1",
        contract_address="0xMockProductRegistryContract0123456789",
        name="Mug",
        artisan_name="Ada"
    )

    assert await gateway.register_asset(collectible) is True
    call = wallet.calls[-1]
    assert call["method"] == "wallet_watchAsset"
    assert call["params"] == {
        "type": "ERC721",
        "options": {
            "address": "0xMockProductRegistryContract0123456789",
            "tokenId": "product-1",
        },
    }

    wallet.configure(watch_result=False)
    assert await gateway.register_asset(collectible) is False

def test_account_change_subscription(wallet, gateway):
    """Test account changes reach subscribers until they unsubscribe."""
    seen = []
    gateway.subscribe_accounts_changed(seen.append)

    wallet.switch_account("0x" + "9" * 40)
    gateway.unsubscribe_accounts_changed(seen.append)
    wallet.lock()

    assert seen == [["0x" + "9" * 40, BUYER_ADDRESS]]

def test_create_provider():
    """Test providers are built from settings."""
    fake = create_provider({'wallet_provider': 'fake', 'fake_accounts': [BUYER_ADDRESS]})
    assert isinstance(fake, FakeWallet)
    assert fake.accounts == [BUYER_ADDRESS]
    assert create_provider({'wallet_provider': 'none'}) is None
