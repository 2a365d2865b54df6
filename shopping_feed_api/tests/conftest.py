"""Shared test fixtures for the feed API test suite."""

import asyncio
import copy

import pytest

from feedapp.config import Settings
from feedapp.core.events import NotificationEmitter
from feedapp.core.feed.service import FeedContext
from feedapp.core.feed.store import FeedStore
from feedapp.core.shop_settings import ShopSettingsStore
from feedapp.core.store import InMemoryCollection
from feedapp.schemas.catalog import CatalogProduct
from feedapp.schemas.shops import Shop


SHOP_DOC = {
    "id": "shop1",
    "name": "Acme Store",
    "description": "Everything Acme",
    "domains": ["shop.example"],
    "shop_type": "primary",
    "api_key": "secret-key",
}

OTHER_SHOP_DOC = {
    "id": "shop2",
    "name": "Other Store",
    "domains": ["other.example"],
    "shop_type": "merchant",
    "api_key": "other-key",
}

SIMPLE_PRODUCT_DOC = {
    "id": "prod-abc",
    "shop_id": "shop1",
    "title": "Anvil",
    "description": "<p>Heavy &amp; reliable</p>",
    "sku": "ABC",
    "vendor": "Acme",
    "slug": "anvil",
    "supported_fulfillment_types": ["shipping"],
    "primary_image": {"urls": {"large": "/img/anvil.jpg"}},
    "media": [
        {"urls": {"large": "/img/anvil.jpg"}},
        {"urls": {"large": "/img/anvil-side.jpg"}},
    ],
    "pricing": {"USD": {"price": 9.99}},
    "updated_at": "2024-01-01T00:00:00Z",
}

VARIANT_PRODUCT_DOC = {
    "id": "prod-tshirt",
    "shop_id": "shop1",
    "title": "T-Shirt",
    "description": "Soft cotton",
    "sku": "TSHIRT",
    "vendor": "Acme",
    "slug": "t-shirt",
    "supported_fulfillment_types": ["shipping", "pickup"],
    "primary_image": {"urls": {"large": "/img/tshirt.jpg"}},
    "pricing": {"USD": {"min_price": 10.0, "max_price": 12.0}},
    "variants": [
        {
            "id": "var-red",
            "title": "Red T-Shirt",
            "attribute_label": "Color",
            "option_title": "Red",
            "pricing": {"USD": {"price": 10.0}},
            "options": [
                {
                    "id": "opt-red-s",
                    "title": "Red / Small",
                    "sku": "TSHIRT-RED-S",
                    "barcode": "0001",
                    "attribute_label": "Size",
                    "option_title": "Small",
                    "pricing": {"USD": {"price": 10.0}},
                },
                {
                    "id": "opt-red-l",
                    "sku": "TSHIRT-RED-L",
                    "attribute_label": "Size",
                    "option_title": "Large",
                    "is_sold_out": True,
                    "pricing": {"USD": {"price": 12.0}},
                },
            ],
        },
        {
            "id": "var-blue",
            "title": "Blue T-Shirt",
            "attribute_label": "Color",
            "option_title": "Blue",
            "pricing": {"USD": {"price": 11.0}},
            "primary_image": {"urls": {"large": "/img/tshirt-blue.jpg"}},
        },
    ],
    "updated_at": "2024-01-01T00:00:00Z",
}

SHIPPING_DOC = {
    "id": "ship1",
    "shop_id": "shop1",
    "name": "Flat Rate",
    "enabled": True,
    "methods": [
        {"id": "std", "label": "Standard", "rate": 4.5, "fulfillment_types": ["shipping"]},
        {"id": "off", "label": "Disabled", "rate": 1.0, "enabled": False, "fulfillment_types": ["shipping"]},
    ],
}


@pytest.fixture
def shop_doc():
    return copy.deepcopy(SHOP_DOC)


@pytest.fixture
def other_shop_doc():
    return copy.deepcopy(OTHER_SHOP_DOC)


@pytest.fixture
def shop(shop_doc):
    return Shop.model_validate(shop_doc)


@pytest.fixture
def simple_product_doc():
    return copy.deepcopy(SIMPLE_PRODUCT_DOC)


@pytest.fixture
def simple_product(simple_product_doc):
    return CatalogProduct.model_validate(simple_product_doc)


@pytest.fixture
def variant_product_doc():
    return copy.deepcopy(VARIANT_PRODUCT_DOC)


@pytest.fixture
def variant_product(variant_product_doc):
    return CatalogProduct.model_validate(variant_product_doc)


@pytest.fixture
def shipping_doc():
    return copy.deepcopy(SHIPPING_DOC)


@pytest.fixture
def memory_settings():
    """Settings for an in-memory deployment."""
    return Settings(
        storage_backend="memory",
        api_root_url="https://api.example",
        storefront_url="https://shop.example",
    )


class RecordingNotifier(NotificationEmitter):
    """Notifier that keeps notifications instead of sending them."""

    def __init__(self):
        super().__init__(None)
        self.sent = []

    async def create_notification(self, account_id, type, message, url=None):
        self.sent.append({"account_id": account_id, "type": type, "message": message, "url": url})


@pytest.fixture
def feed_context(memory_settings):
    """FeedContext over empty in-memory collections."""
    return FeedContext(
        shops=InMemoryCollection("Shops"),
        catalog=InMemoryCollection("Catalog"),
        shipping=InMemoryCollection("Shipping"),
        feed_store=FeedStore(InMemoryCollection("GoogleShoppingFeeds")),
        shop_settings=ShopSettingsStore(InMemoryCollection("AppSettings"), memory_settings),
        notifier=RecordingNotifier(),
        feed_handle=memory_settings.feed_handle,
    )


@pytest.fixture
def seeded_context(feed_context, shop_doc, other_shop_doc, simple_product_doc, variant_product_doc, shipping_doc):
    """FeedContext holding one shop with two products and a shipping provider."""

    async def seed():
        await feed_context.shops.insert_one(shop_doc)
        await feed_context.shops.insert_one(other_shop_doc)
        await feed_context.catalog.insert_one(simple_product_doc)
        await feed_context.catalog.insert_one(variant_product_doc)
        await feed_context.shipping.insert_one(shipping_doc)

    asyncio.run(seed())
    return feed_context
