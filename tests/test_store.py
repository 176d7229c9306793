"""Tests for the market state, snapshots and demo seeding."""

import json

import pytest

from store import SNAPSHOT_VERSION, MarketState, get_state, load_snapshot, reset_state, save_snapshot
from store.exceptions import SnapshotError
from store.seed import ARTISANS_DATA, DEMO_COLLECTOR_ADDRESS, PRODUCTS_DATA, seed_demo_data

from conftest import BUYER_ADDRESS

REGISTRY = "0xMockProductRegistryContract0123456789"

def test_default_state_lifecycle():
    """Test the default state is shared and can be reset."""
    state = get_state()
    assert get_state() is state

    state.products["product-1"] = None
    reset_state()
    assert get_state() is state
    assert state.products == {}

@pytest.mark.asyncio
async def test_snapshot_round_trip(market, product, tmp_path):
    """Test a saved snapshot restores the same records."""
    await market.purchase(product.id, BUYER_ADDRESS)
    path = tmp_path / "nested" / "snapshot.json"

    assert await save_snapshot(market.state, path) == path
    restored = await load_snapshot(path)

    def dump(state):
        return state.to_snapshot().model_dump(exclude={'saved_at'})

    assert dump(restored) == dump(market.state)
    assert len(restored.collectibles[BUYER_ADDRESS.lower()]) == 1
    assert restored.settling == set()

@pytest.mark.asyncio
async def test_market_load_snapshot_in_place(market, product, tmp_path):
    """Test loading into a running market keeps its components wired."""
    path = await market.save_snapshot(tmp_path / "snapshot.json")
    market.reset()
    assert market.list_all() == []

    await market.load_snapshot(path)
    assert [p.id for p in market.list_all()] == [product.id]
    result = await market.purchase(product.id, BUYER_ADDRESS)
    assert result.success

@pytest.mark.asyncio
async def test_load_missing_snapshot(tmp_path):
    with pytest.raises(SnapshotError):
        await load_snapshot(tmp_path / "missing.json")

@pytest.mark.asyncio
async def test_load_invalid_snapshot(tmp_path):
    """Test malformed and unknown-version snapshots are refused."""
    garbage = tmp_path / "garbage.json"
    garbage.write_text("{not json")
    with pytest.raises(SnapshotError):
        await load_snapshot(garbage)

    future = tmp_path / "future.json"
    future.write_text(json.dumps({"version": SNAPSHOT_VERSION + 1}))
    with pytest.raises(SnapshotError, match="Unsupported snapshot version"):
        await load_snapshot(future)

def test_seed_demo_data():
    """Test seeding fills an empty state consistently."""
    state = MarketState.new()

    assert seed_demo_data(state, REGISTRY) == len(PRODUCTS_DATA)
    assert len(state.artisans) == len(ARTISANS_DATA)
    assert len(state.products) == len(PRODUCTS_DATA)
    assert set(state.provenance) == set(state.products)

    sold = [p for p in state.products.values() if p.is_sold]
    assert len(sold) == 1
    assert sold[0].owner_address == DEMO_COLLECTOR_ADDRESS
    assert state.provenance[sold[0].id].history[-1].event == "Sold"
    assert state.collectibles[DEMO_COLLECTOR_ADDRESS.lower()][0].token_id == sold[0].id

    # A second run leaves the populated state alone
    assert seed_demo_data(state, REGISTRY) == 0
    assert len(state.products) == len(PRODUCTS_DATA)
