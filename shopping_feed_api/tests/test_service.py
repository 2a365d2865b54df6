"""Test feed persistence, staleness checks and feed generation."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from feedapp.core.feed.service import (
    ShopNotFoundError,
    generate_feed_for_shop,
    generate_feeds,
    get_product_feed_items,
)
from feedapp.core.feed.staleness import should_regenerate
from feedapp.core.feed.store import FeedStore
from feedapp.core.store import InMemoryCollection
from feedapp.schemas.feed import GoogleShoppingFeed
from feedapp.schemas.settings import ShopSettingsUpdate


HANDLE = "google-shopping-feed.xml"


class TestFeedStore:
    """Tests for FeedStore."""

    def test_replace_feed_upserts(self):
        async def run():
            store = FeedStore(InMemoryCollection("GoogleShoppingFeeds"))
            created = datetime(2024, 1, 1, tzinfo=timezone.utc)
            await store.replace_feed("s1", HANDLE, {"shop_id": "s1", "handle": HANDLE, "xml": "<a/>", "created_at": created})
            await store.replace_feed("s1", HANDLE, {"shop_id": "s1", "handle": HANDLE, "xml": "<b/>", "created_at": created})
            return await store.find_feed("s1", HANDLE), await store.collection.find()

        feed, docs = asyncio.run(run())
        assert feed.xml == "<b/>"
        assert len(docs) == 1
        assert docs[0]["id"] == f"s1:{HANDLE}"

    def test_invalid_document_writes_nothing(self):
        async def run():
            store = FeedStore(InMemoryCollection("GoogleShoppingFeeds"))
            with pytest.raises(ValidationError):
                await store.replace_feed("s1", HANDLE, {"shop_id": "s1", "handle": HANDLE, "xml": "<a/>"})
            return await store.collection.find()

        assert asyncio.run(run()) == []

    def test_mismatched_key_rejected(self):
        async def run():
            store = FeedStore(InMemoryCollection("GoogleShoppingFeeds"))
            doc = {"shop_id": "s2", "handle": HANDLE, "xml": "<a/>", "created_at": datetime.now(timezone.utc)}
            with pytest.raises(ValueError):
                await store.replace_feed("s1", HANDLE, doc)
            return await store.collection.find()

        assert asyncio.run(run()) == []

    def test_find_missing_feed(self):
        store = FeedStore(InMemoryCollection("GoogleShoppingFeeds"))
        assert asyncio.run(store.find_feed("s1", HANDLE)) is None


class TestShouldRegenerate:
    """Tests for should_regenerate."""

    def _feed(self, created_at):
        return GoogleShoppingFeed(shop_id="shop1", handle=HANDLE, xml="<rss/>", created_at=created_at)

    def test_no_feed(self):
        assert asyncio.run(should_regenerate(None, InMemoryCollection("Catalog"), "shop1")) is True

    def test_catalog_unchanged(self, seeded_context):
        feed = self._feed(datetime(2024, 6, 1, tzinfo=timezone.utc))
        assert asyncio.run(should_regenerate(feed, seeded_context.catalog, "shop1")) is False

    def test_catalog_changed_after_feed(self, seeded_context):
        feed = self._feed(datetime(2023, 12, 31, tzinfo=timezone.utc))
        assert asyncio.run(should_regenerate(feed, seeded_context.catalog, "shop1")) is True

    def test_equal_timestamp_is_not_newer(self, seeded_context):
        feed = self._feed(datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert asyncio.run(should_regenerate(feed, seeded_context.catalog, "shop1")) is False

    def test_other_shop_changes_ignored(self, seeded_context):
        async def run():
            await seeded_context.catalog.insert_one({
                "id": "other-prod",
                "shop_id": "shop2",
                "updated_at": "2025-01-01T00:00:00Z",
            })
            feed = self._feed(datetime(2024, 6, 1, tzinfo=timezone.utc))
            return await should_regenerate(feed, seeded_context.catalog, "shop1")

        assert asyncio.run(run()) is False


class TestGenerateFeedForShop:
    """Tests for generate_feed_for_shop and generate_feeds."""

    def test_generates_and_stores_feed(self, seeded_context):
        async def run():
            regenerated = await generate_feed_for_shop(seeded_context, "shop1")
            return regenerated, await seeded_context.feed_store.find_feed("shop1", HANDLE)

        regenerated, feed = asyncio.run(run())
        assert regenerated is True
        assert feed.shop_id == "shop1"
        assert "<g:id>ABC</g:id>" in feed.xml
        assert "<g:id>TSHIRT-RED-S</g:id>" in feed.xml
        assert "<g:service>Standard</g:service>" in feed.xml
        assert feed.created_at.tzinfo is not None

    def test_skips_when_up_to_date(self, seeded_context):
        async def run():
            await generate_feed_for_shop(seeded_context, "shop1")
            first = await seeded_context.feed_store.find_feed("shop1", HANDLE)
            regenerated = await generate_feed_for_shop(seeded_context, "shop1")
            second = await seeded_context.feed_store.find_feed("shop1", HANDLE)
            return regenerated, first, second

        regenerated, first, second = asyncio.run(run())
        assert regenerated is False
        assert first.created_at == second.created_at

    def test_regenerates_after_catalog_update(self, seeded_context):
        async def run():
            await generate_feed_for_shop(seeded_context, "shop1")
            later = (datetime.now(timezone.utc) + timedelta(minutes=1)).isoformat()
            await seeded_context.catalog.update_one(
                {"id": "prod-abc"}, {"title": "Better Anvil", "updated_at": later}
            )
            regenerated = await generate_feed_for_shop(seeded_context, "shop1")
            return regenerated, await seeded_context.feed_store.find_feed("shop1", HANDLE)

        regenerated, feed = asyncio.run(run())
        assert regenerated is True
        assert "Better Anvil" in feed.xml

    def test_same_catalog_same_xml(self, seeded_context):
        async def run():
            await generate_feed_for_shop(seeded_context, "shop1")
            first = await seeded_context.feed_store.find_feed("shop1", HANDLE)
            # Age the stored feed so the next run rebuilds it
            await seeded_context.feed_store.replace_feed("shop1", HANDLE, {
                "shop_id": "shop1",
                "handle": HANDLE,
                "xml": "",
                "created_at": datetime(2000, 1, 1, tzinfo=timezone.utc),
            })
            regenerated = await generate_feed_for_shop(seeded_context, "shop1")
            second = await seeded_context.feed_store.find_feed("shop1", HANDLE)
            return regenerated, first, second

        regenerated, first, second = asyncio.run(run())
        assert regenerated is True
        assert second.xml == first.xml

    def test_hidden_and_deleted_products_excluded(self, seeded_context):
        async def run():
            await seeded_context.catalog.update_one({"id": "prod-abc"}, {"is_visible": False})
            await seeded_context.catalog.update_one({"id": "prod-tshirt"}, {"is_deleted": True})
            return await get_product_feed_items(seeded_context.catalog, "shop1")

        assert asyncio.run(run()) == []

    def test_shop_settings_applied(self, seeded_context):
        async def run():
            await seeded_context.shop_settings.update(
                "shop1", ShopSettingsUpdate(google_shopping_shipping_country="DE")
            )
            await generate_feed_for_shop(seeded_context, "shop1")
            return await seeded_context.feed_store.find_feed("shop1", HANDLE)

        feed = asyncio.run(run())
        assert "<g:country>DE</g:country>" in feed.xml

    def test_unknown_shop(self, seeded_context):
        with pytest.raises(ShopNotFoundError):
            asyncio.run(generate_feed_for_shop(seeded_context, "missing"))

    def test_generate_feeds_requires_shops(self, seeded_context):
        with pytest.raises(ValueError):
            asyncio.run(generate_feeds(seeded_context, []))

    def test_generate_feeds_notifies_user(self, seeded_context):
        asyncio.run(generate_feeds(seeded_context, ["shop1", "shop2"], notify_user_id="user-1"))

        assert seeded_context.notifier.sent == [{
            "account_id": "user-1",
            "type": "googleShoppingFeedGenerated",
            "message": "Google Shopping feed refresh is complete",
            "url": f"/{HANDLE}",
        }]

    def test_generate_feeds_without_user_does_not_notify(self, seeded_context):
        asyncio.run(generate_feeds(seeded_context, ["shop1"]))
        assert seeded_context.notifier.sent == []

    def test_generate_feeds_per_shop(self, seeded_context):
        async def run():
            await generate_feeds(seeded_context, ["shop1", "shop2"])
            return (
                await seeded_context.feed_store.find_feed("shop1", HANDLE),
                await seeded_context.feed_store.find_feed("shop2", HANDLE),
            )

        first, second = asyncio.run(run())
        assert "<g:id>ABC</g:id>" in first.xml
        assert "<g:id>" not in second.xml
