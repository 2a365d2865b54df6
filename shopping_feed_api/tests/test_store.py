"""Test document collections, query matching and text helpers."""

import asyncio
from datetime import datetime, timezone

import pytest

from feedapp.core.store import InMemoryCollection, matches
from feedapp.core.utils import parse_url_domain, strip_html


class TestMatches:
    """Tests for the query matcher."""

    def test_empty_query(self):
        assert matches({"a": 1}, None)
        assert matches({"a": 1}, {})

    def test_equality_and_dotted_path(self):
        doc = {"shop_id": "s1", "urls": {"large": "/a.jpg"}}
        assert matches(doc, {"shop_id": "s1", "urls.large": "/a.jpg"})
        assert not matches(doc, {"shop_id": "s2"})

    def test_list_membership(self):
        doc = {"domains": ["shop.example", "www.shop.example"]}
        assert matches(doc, {"domains": "www.shop.example"})
        assert not matches(doc, {"domains": "other.example"})

    def test_gt_parses_iso_strings(self):
        doc = {"updated_at": "2024-01-02T00:00:00Z"}
        assert matches(doc, {"updated_at": {"$gt": datetime(2024, 1, 1, tzinfo=timezone.utc)}})
        assert not matches(doc, {"updated_at": {"$gt": datetime(2024, 1, 2, tzinfo=timezone.utc)}})

    def test_gt_naive_datetime_taken_as_utc(self):
        doc = {"updated_at": "2024-01-02T00:00:00+00:00"}
        assert matches(doc, {"updated_at": {"$gt": datetime(2024, 1, 1)}})

    def test_gt_missing_field(self):
        assert not matches({}, {"updated_at": {"$gt": datetime(2024, 1, 1)}})

    def test_in_and_ne(self):
        doc = {"id": "b"}
        assert matches(doc, {"id": {"$in": ["a", "b"]}})
        assert not matches(doc, {"id": {"$ne": "b"}})

    def test_unsupported_operator(self):
        with pytest.raises(ValueError):
            matches({"a": 1}, {"a": {"$regex": "x"}})


class TestInMemoryCollection:
    """Tests for InMemoryCollection."""

    def test_insert_and_find(self):
        async def run():
            col = InMemoryCollection("Test")
            await col.insert_one({"id": "1", "shop_id": "s1"})
            await col.insert_one({"id": "2", "shop_id": "s2"})
            return await col.find({"shop_id": "s1"}), await col.find_one({"id": "2"})

        found, one = asyncio.run(run())
        assert [d["id"] for d in found] == ["1"]
        assert one["shop_id"] == "s2"

    def test_insert_generates_id(self):
        async def run():
            col = InMemoryCollection("Test")
            doc_id = await col.insert_one({"name": "x"})
            return doc_id, await col.find_one({"name": "x"})

        doc_id, doc = asyncio.run(run())
        assert doc_id
        assert doc["id"] == doc_id

    def test_replace_one_upsert_and_replace(self):
        async def run():
            col = InMemoryCollection("Test")
            await col.replace_one({"key": "k"}, {"id": "a", "key": "k", "v": 1, "extra": True}, upsert=True)
            await col.replace_one({"key": "k"}, {"key": "k", "v": 2}, upsert=True)
            return await col.find()

        docs = asyncio.run(run())
        assert docs == [{"id": "a", "key": "k", "v": 2}]

    def test_replace_one_without_upsert(self):
        async def run():
            col = InMemoryCollection("Test")
            written = await col.replace_one({"key": "k"}, {"key": "k"})
            return written, await col.find()

        written, docs = asyncio.run(run())
        assert written is False
        assert docs == []

    def test_update_one_merges(self):
        async def run():
            col = InMemoryCollection("Test")
            await col.insert_one({"id": "1", "a": 1, "b": 2})
            await col.update_one({"id": "1"}, {"b": 3})
            return await col.find_one({"id": "1"})

        assert asyncio.run(run()) == {"id": "1", "a": 1, "b": 3}

    def test_returned_documents_are_copies(self):
        async def run():
            col = InMemoryCollection("Test")
            await col.insert_one({"id": "1", "tags": ["a"]})
            doc = await col.find_one({"id": "1"})
            doc["tags"].append("b")
            return await col.find_one({"id": "1"})

        assert asyncio.run(run())["tags"] == ["a"]


class TestStripHtml:
    """Tests for strip_html."""

    def test_removes_tags_and_decodes_entities(self):
        assert strip_html("<p>Fish &amp; chips</p>") == "Fish & chips"

    def test_encoded_markup_stays_text(self):
        assert strip_html("Use &lt;b&gt; for bold") == "Use <b> for bold"

    def test_block_tags_separate_words(self):
        assert strip_html("<p>One</p><p>Two</p>line<br/>break") == "One Two line break"

    def test_drops_scripts_and_comments(self):
        text = "A<script>alert(1)</script><!-- hidden -->B<style>p{}</style>"
        assert strip_html(text) == "AB"

    def test_empty(self):
        assert strip_html(None) == ""
        assert strip_html("") == ""


class TestParseUrlDomain:
    """Tests for parse_url_domain."""

    def test_hostname(self):
        assert parse_url_domain("https://Shop.Example:8443/path") == "shop.example"

    def test_trailing_slash(self):
        assert parse_url_domain("https://shop.example/") == "shop.example"

    def test_no_hostname(self):
        assert parse_url_domain("not a url") is None
