"""Script to populate the marketplace snapshot with demo artisans and products.

This script:
- Loads the existing snapshot, if any
- Seeds the demo artisans and products into an empty market
- Writes the snapshot the API loads on start-up

Pass --fresh to discard the existing snapshot first.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from market import Market
from store.exceptions import SnapshotError
from store.seed import ARTISANS_DATA, PRODUCTS_DATA

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def main(fresh: bool = False, snapshot_path: str = None):
    """Seed the demo data and write the snapshot."""
    market = Market.new()
    path = Path(snapshot_path or market.settings['snapshot_path'])

    if path.exists() and not fresh:
        logger.info(f"Loading existing snapshot {path}...")
        await market.load_snapshot(path)

    created = market.seed_demo_data()
    if not created:
        logger.info("Market already populated, nothing to do (use --fresh to start over)")
        return

    await market.save_snapshot(path)

    print("\nCreated Artisans:")
    for data in ARTISANS_DATA:
        print(f"  {data['name']} ({data['location']}): {data['wallet_address']}")

    print("\nCreated Products:")
    for product in market.list_all():
        status = f"sold to {product.owner_address}" if product.is_sold else "for sale"
        print(f"  {product.name}: {product.price} ETH, {status}")

    print("\nSummary:")
    print(f"Total Artisans: {len(ARTISANS_DATA)}")
    print(f"Total Products: {len(PRODUCTS_DATA)}")
    print(f"Snapshot: {path}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--fresh', action='store_true', help="Ignore any existing snapshot")
    parser.add_argument('--snapshot', help="Snapshot file to write (defaults to snapshot_path)")
    args = parser.parse_args()

    try:
        asyncio.run(main(fresh=args.fresh, snapshot_path=args.snapshot))
    except KeyboardInterrupt:
        print("\nPopulation interrupted by user")
    except SnapshotError as e:
        logger.error(f"Fatal error: {e}")
        raise
