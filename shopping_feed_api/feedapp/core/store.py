"""
Document collections backing shops, catalog, shipping, settings and feeds.

Documents are plain JSON-compatible dicts keyed by their ``id`` field. Queries
use a small Mongo-like syntax:

- ``{"shop_id": "s1"}`` equality (dotted paths allowed)
- ``{"domains": "shop.example"}`` membership when the stored value is a list
- ``{"updated_at": {"$gt": datetime}}`` and ``{"id": {"$in": [...]}}``
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import redis.asyncio as aioredis


_MISSING = object()


def _get_path(doc: Dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _comparable(stored: Any, expected: Any) -> Tuple[Any, Any]:
    """Parse ISO strings back to datetimes when comparing against a datetime."""
    if isinstance(expected, datetime):
        if isinstance(stored, str):
            try:
                stored = datetime.fromisoformat(stored.replace("Z", "+00:00"))
            except ValueError:
                return stored, expected.isoformat()
        if isinstance(stored, datetime):
            return _as_utc(stored), _as_utc(expected)
    return stored, expected


def _match_value(stored: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(k.startswith("$") for k in condition):
        for op, operand in condition.items():
            if op == "$gt":
                if stored is _MISSING or stored is None or operand is None:
                    return False
                left, right = _comparable(stored, operand)
                if not left > right:
                    return False
            elif op == "$in":
                if stored is _MISSING or stored not in operand:
                    return False
            elif op == "$ne":
                if stored is not _MISSING and stored == operand:
                    return False
            else:
                raise ValueError(f"Unsupported query operator: {op}")
        return True

    if stored is _MISSING:
        return condition is None
    if isinstance(stored, list) and not isinstance(condition, list):
        return condition in stored
    return stored == condition


def matches(doc: Dict[str, Any], query: Optional[Dict[str, Any]]) -> bool:
    """Check whether a document satisfies a query."""
    if not query:
        return True
    return all(_match_value(_get_path(doc, path), cond) for path, cond in query.items())


def _encode(doc: Dict[str, Any]) -> str:
    return json.dumps(doc, default=_json_default, sort_keys=True)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DocumentCollection(ABC):
    """A named collection of JSON documents."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def _all(self) -> List[Dict[str, Any]]:
        """Return every document in the collection."""

    @abstractmethod
    async def _put(self, doc_id: str, doc: Dict[str, Any]) -> None:
        """Write a document under its id, replacing any previous value."""

    async def find(self, query: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        docs = await self._all()
        return [doc for doc in docs if matches(doc, query)]

    async def find_one(self, query: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        for doc in await self._all():
            if matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc: Dict[str, Any]) -> str:
        doc_id = str(doc.get("id") or uuid.uuid4())
        stored = {**doc, "id": doc_id}
        await self._put(doc_id, stored)
        return doc_id

    async def replace_one(
        self,
        query: Dict[str, Any],
        doc: Dict[str, Any],
        upsert: bool = False
    ) -> bool:
        """
        Replace the first document matching ``query`` with ``doc``.

        The replaced document keeps its id. With ``upsert`` a new document is
        inserted when nothing matches, using ``doc["id"]`` when present.

        Returns:
            True if a document was written.
        """
        existing = await self.find_one(query)
        if existing is not None:
            await self._put(existing["id"], {**doc, "id": existing["id"]})
            return True
        if upsert:
            await self.insert_one(doc)
            return True
        return False

    async def update_one(self, query: Dict[str, Any], changes: Dict[str, Any]) -> bool:
        """Shallow-merge ``changes`` into the first matching document."""
        existing = await self.find_one(query)
        if existing is None:
            return False
        await self._put(existing["id"], {**existing, **changes})
        return True


class InMemoryCollection(DocumentCollection):
    """Process-local collection."""

    def __init__(self, name: str):
        super().__init__(name)
        self._docs: Dict[str, str] = {}

    async def _all(self) -> List[Dict[str, Any]]:
        return [json.loads(raw) for raw in self._docs.values()]

    async def _put(self, doc_id: str, doc: Dict[str, Any]) -> None:
        # Stored encoded so callers never share mutable state with the store
        self._docs[doc_id] = _encode(doc)


class RedisCollection(DocumentCollection):
    """Collection stored as a Redis hash of id -> JSON document."""

    def __init__(self, redis_client: aioredis.Redis, name: str, prefix: str = "gsf"):
        """
        Initialize Redis collection.

        Args:
            redis_client: Redis async client (decode_responses=True)
            name: Collection name
            prefix: Key prefix
        """
        super().__init__(name)
        self.redis = redis_client
        self.key = f"{prefix}:{name}"

    async def _all(self) -> List[Dict[str, Any]]:
        raw = await self.redis.hgetall(self.key)
        return [json.loads(value) for _, value in sorted(raw.items())]

    async def _put(self, doc_id: str, doc: Dict[str, Any]) -> None:
        await self.redis.hset(self.key, doc_id, _encode(doc))
