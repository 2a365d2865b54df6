#!/usr/bin/env python3
"""
Load shops, catalog products, shipping providers and shop settings from a JSON
file into the configured store.

File format:
    {
      "shops": [{"id": "...", "name": "...", "domains": [...], ...}],
      "catalog": [{"id": "...", "shop_id": "...", ...}],
      "shipping": [{"id": "...", "shop_id": "...", "methods": [...]}],
      "settings": [{"shop_id": "...", "google_shopping_shipping_country": "DE"}]
    }
"""

import argparse
import asyncio
import json
import secrets
import sys
from pathlib import Path

# Add parent directory to path to import feedapp modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from feedapp.deps import get_feed_context, shutdown_dependencies
from feedapp.schemas.catalog import CatalogProduct
from feedapp.schemas.settings import ShopSettingsUpdate
from feedapp.schemas.shipping import ShippingProvider
from feedapp.schemas.shops import Shop


async def load(path: Path) -> None:
    data = json.loads(path.read_text(encoding="utf-8"))
    ctx = await get_feed_context()

    for raw in data.get("shops", []):
        shop = Shop.model_validate(raw)
        if not shop.api_key:
            shop.api_key = secrets.token_hex(32)
            print(f"Generated API key for shop '{shop.id}': {shop.api_key}")
        await ctx.shops.replace_one({"id": shop.id}, shop.model_dump(mode="json"), upsert=True)

    for raw in data.get("catalog", []):
        product = CatalogProduct.model_validate(raw)
        await ctx.catalog.replace_one({"id": product.id}, product.model_dump(mode="json"), upsert=True)

    for raw in data.get("shipping", []):
        provider = ShippingProvider.model_validate(raw)
        await ctx.shipping.replace_one({"id": provider.id}, provider.model_dump(mode="json"), upsert=True)

    for raw in data.get("settings", []):
        shop_id = raw["shop_id"]
        update = ShopSettingsUpdate.model_validate({k: v for k, v in raw.items() if k != "shop_id"})
        await ctx.shop_settings.update(shop_id, update)

    print(
        f"Loaded {len(data.get('shops', []))} shop(s), {len(data.get('catalog', []))} product(s), "
        f"{len(data.get('shipping', []))} shipping provider(s)"
    )


async def _main(path: Path) -> None:
    try:
        await load(path)
    finally:
        await shutdown_dependencies()


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("fixture", type=Path, help="JSON file to load")
    args = parser.parse_args()

    try:
        asyncio.run(_main(args.fixture))
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
