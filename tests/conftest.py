"""Shared fixtures for the marketplace tests."""

import pytest
import pytest_asyncio

from market import Market
from signer import FakeWallet, SignerGateway
from store import MarketState

ARTISAN_ADDRESS = "0xA11CE00000000000000000000000000000000001"
OTHER_ARTISAN_ADDRESS = "0xB0B0000000000000000000000000000000000002"
BUYER_ADDRESS = "0xC0FFEE0000000000000000000000000000000003"

TEST_SETTINGS = {
    'settlement_delay': 0,
    'signer_timeout': 0,
    'mint_on_create': True,
    'seed_demo_data': False,
}

SAMPLE_PRODUCT = {
    "name": "Hand Thrown Mug",
    "description": "Stoneware mug with an ash glaze",
    "materials": ["stoneware", "ash glaze"],
    "image_url": "https://example.com/mug.png",
    "price": "0.05",
}

@pytest.fixture
def state() -> MarketState:
    """Fresh, empty market state."""
    return MarketState.new()

@pytest.fixture
def wallet() -> FakeWallet:
    """Fake wallet that approves everything."""
    return FakeWallet(accounts=[BUYER_ADDRESS], authorized=True)

@pytest.fixture
def gateway(wallet) -> SignerGateway:
    return SignerGateway(wallet, settlement_delay=0)

@pytest.fixture
def market(state, gateway) -> Market:
    """Market wired to the fake wallet, with no settlement delay."""
    return Market(state=state, gateway=gateway, settings=TEST_SETTINGS)

@pytest.fixture
def artisan(market):
    return market.register({"name": "Ada Potter", "location": "Leeds"}, ARTISAN_ADDRESS)

@pytest_asyncio.fixture
async def product(market, artisan):
    """A listed product owned by the registered artisan."""
    return await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)
