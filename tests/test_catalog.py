"""Tests for the catalog module."""

from datetime import timedelta
from decimal import Decimal

import pytest

from catalog import (
    InvalidProductError,
    NotFoundError,
    UnauthorizedError,
    UnknownArtisanError,
)
from signer import NoSignerError, ProviderError, SignerGateway, UserRejectedError, WalletRequestError
from market import Market
from store.models import EVENT_CREATED, EVENT_LISTED, EVENT_UPDATED, utcnow

from conftest import (
    ARTISAN_ADDRESS,
    BUYER_ADDRESS,
    OTHER_ARTISAN_ADDRESS,
    SAMPLE_PRODUCT,
    TEST_SETTINGS,
)

@pytest.mark.asyncio
async def test_create_product(market, artisan, wallet):
    """Test creating a product mints it and starts its provenance."""
    product = await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)

    assert product.id.startswith("product-")
    assert product.artisan_id == artisan.id
    assert product.price == Decimal("0.05")
    assert product.materials == ["stoneware", "ash glaze"]
    assert not product.is_sold
    assert product.owner_address is None

    # Minted through the registry contract
    sent = wallet.transactions[-1]
    assert sent["to"] == market.settings['registry_contract_address']
    assert sent["from"] == ARTISAN_ADDRESS
    assert sent["data"] == "0xSIMULATED_MINT_DATA_FOR_Hand_Thrown_Mug"

    history = market.get_history(product.id).history
    assert [r.event for r in history] == [EVENT_CREATED, EVENT_LISTED]
    assert history[0].transaction_hash == sent["hash"]
    assert history[1].details == "Price set at 0.05 ETH"
    assert market.bus.recent(kind='product.created')

@pytest.mark.asyncio
async def test_create_without_minting(state, artisan, wallet):
    """Test products can be listed without a mint transaction."""
    market = Market(
        state=state,
        gateway=SignerGateway(None),
        settings={**TEST_SETTINGS, 'mint_on_create': False}
    )

    product = await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)
    assert market.get_product(product.id) is not None
    assert market.get_history(product.id).history[0].transaction_hash is None
    assert wallet.transactions == []

@pytest.mark.asyncio
async def test_materials_from_comma_string(market, artisan):
    """Test materials may be given as a comma separated string."""
    product = await market.create_product(
        {**SAMPLE_PRODUCT, "materials": "oak,  linseed oil ,"}, ARTISAN_ADDRESS
    )
    assert product.materials == ["oak", "linseed oil"]

@pytest.mark.asyncio
async def test_create_unknown_artisan(market, state):
    """Test only registered artisans can list products."""
    with pytest.raises(UnknownArtisanError):
        await market.create_product(SAMPLE_PRODUCT, BUYER_ADDRESS)
    assert state.products == {}

@pytest.mark.asyncio
@pytest.mark.parametrize("data", [
    {**SAMPLE_PRODUCT, "price": "0"},
    {**SAMPLE_PRODUCT, "price": "-1"},
    {**SAMPLE_PRODUCT, "name": ""},
    {k: v for k, v in SAMPLE_PRODUCT.items() if k != "name"},
    {**SAMPLE_PRODUCT, "is_sold": True},
])
async def test_create_invalid_product(market, artisan, state, wallet, data):
    """Test invalid product data is refused before anything is minted."""
    with pytest.raises(InvalidProductError):
        await market.create_product(data, ARTISAN_ADDRESS)
    assert state.products == {}
    assert wallet.transactions == []

@pytest.mark.asyncio
async def test_create_mint_rejected(market, artisan, state, wallet):
    """Test a declined mint creates nothing."""
    wallet.configure(should_approve=False)

    with pytest.raises(UserRejectedError):
        await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)

    assert state.products == {}
    assert state.provenance == {}
    assert market.bus.recent(kind='product.cancelled')

@pytest.mark.asyncio
async def test_create_mint_failures(market, artisan, state, wallet):
    """Test provider failures and a missing wallet abort creation."""
    wallet.configure(error=WalletRequestError("execution reverted", code=-32000))
    with pytest.raises(ProviderError):
        await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)

    market.gateway.provider = None
    with pytest.raises(NoSignerError):
        await market.create_product(SAMPLE_PRODUCT, ARTISAN_ADDRESS)

    assert state.products == {}

@pytest.mark.asyncio
async def test_update_product(market, product):
    """Test updating user-mutable fields."""
    updated = market.update_product(
        product.id, {"price": "0.07", "description": "Now with a lid"}, ARTISAN_ADDRESS
    )

    assert updated.price == Decimal("0.07")
    assert updated.description == "Now with a lid"
    assert updated.name == product.name
    assert updated.creation_date == product.creation_date

    history = market.get_history(product.id).history
    assert history[-1].event == EVENT_UPDATED
    assert history[-1].details == f"Details of {product.name} updated."

@pytest.mark.asyncio
async def test_update_address_case_insensitive(market, product):
    """Test the owner is recognized under any address case."""
    updated = market.update_product(product.id, {"name": "Mug"}, ARTISAN_ADDRESS.lower())
    assert updated.name == "Mug"

@pytest.mark.asyncio
async def test_update_unauthorized(market, product, state):
    """Test other artisans and unknown addresses cannot edit a product."""
    market.register({"name": "Bob"}, OTHER_ARTISAN_ADDRESS)
    before = state.products[product.id].model_copy(deep=True)
    history_len = len(state.provenance[product.id].history)

    with pytest.raises(UnauthorizedError):
        market.update_product(product.id, {"price": "9"}, OTHER_ARTISAN_ADDRESS)
    with pytest.raises(UnauthorizedError):
        market.update_product(product.id, {"price": "9"}, BUYER_ADDRESS)

    assert state.products[product.id] == before
    assert len(state.provenance[product.id].history) == history_len

@pytest.mark.asyncio
async def test_update_not_found(market, artisan):
    with pytest.raises(NotFoundError):
        market.update_product("product-missing", {"price": "1"}, ARTISAN_ADDRESS)

@pytest.mark.asyncio
@pytest.mark.parametrize("changes", [
    {"is_sold": True},
    {"owner_address": BUYER_ADDRESS},
    {"artisan_id": "artisan-other"},
    {"price": "0"},
    {"colour": "blue"},
])
async def test_update_invalid_changes(market, product, state, changes):
    """Test system fields, unknown fields and invalid values are refused."""
    with pytest.raises(InvalidProductError):
        market.update_product(product.id, changes, ARTISAN_ADDRESS)

    stored = state.products[product.id]
    assert not stored.is_sold
    assert stored.owner_address is None
    assert stored.price == Decimal("0.05")

@pytest.mark.asyncio
async def test_remove_product(market, product, state):
    """Test removing a product deletes its provenance too."""
    assert market.remove_product(product.id, ARTISAN_ADDRESS) is True
    assert market.get_product(product.id) is None
    assert market.get_history(product.id) is None

    with pytest.raises(NotFoundError):
        market.remove_product(product.id, ARTISAN_ADDRESS)

@pytest.mark.asyncio
async def test_remove_unauthorized(market, product):
    market.register({"name": "Bob"}, OTHER_ARTISAN_ADDRESS)
    with pytest.raises(UnauthorizedError):
        market.remove_product(product.id, OTHER_ARTISAN_ADDRESS)
    assert market.get_product(product.id) is not None

@pytest.mark.asyncio
async def test_list_ordering(market, artisan, state):
    """Test listings put unsold first and newest first within each group."""
    created = {}
    for name in ("A", "B", "C", "D"):
        created[name] = await market.create_product({**SAMPLE_PRODUCT, "name": name}, ARTISAN_ADDRESS)

    base = utcnow()
    for offset, name in enumerate(("A", "B", "C", "D")):
        product_id = created[name].id
        state.products[product_id] = state.products[product_id].model_copy(
            update={"creation_date": base + timedelta(minutes=offset)}
        )
    state.products[created["D"].id] = state.products[created["D"].id].model_copy(
        update={"is_sold": True, "owner_address": BUYER_ADDRESS}
    )

    assert [p.name for p in market.list_all()] == ["C", "B", "A", "D"]
    assert [p.name for p in market.list_by_artisan(ARTISAN_ADDRESS)] == ["D", "C", "B", "A"]

@pytest.mark.asyncio
async def test_list_by_artisan_filters(market, product):
    """Test artisan listings only hold that artisan's products."""
    market.register({"name": "Bob"}, OTHER_ARTISAN_ADDRESS)
    await market.create_product({**SAMPLE_PRODUCT, "name": "Bob's Bowl"}, OTHER_ARTISAN_ADDRESS)

    assert [p.id for p in market.list_by_artisan(ARTISAN_ADDRESS)] == [product.id]
    assert market.list_by_artisan(BUYER_ADDRESS) == []
    assert len(market.list_all()) == 2

@pytest.mark.asyncio
async def test_reads_return_copies(market, product, state):
    """Test mutating returned products leaves the catalog untouched."""
    market.get_product(product.id).name = "Changed"
    market.list_all()[0].materials.append("gold")
    assert state.products[product.id].name == product.name
    assert state.products[product.id].materials == product.materials
