"""
Expiring key/value stores used for rate-limit counters and audit logs.

The request pipeline only needs two operations: read a live value and write a
value with a time-to-live. Per-key atomicity is the store's job.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Interface: get(key) -> value or None, put(key, value, ttl_seconds)."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def put(self, key: str, value: str, ttl: int) -> None:
        raise NotImplementedError


class MongoKeyValueStore(KeyValueStore):
    """
    KV store on top of a motor collection.

    Documents look like {_id: key, value: str, expires_at: datetime}. A TTL
    index on expires_at (see init_db) removes them eventually; reads also skip
    anything already past its expiry since the TTL monitor only runs once a minute.
    """

    def __init__(self, collection):
        self.collection = collection

    async def get(self, key: str) -> Optional[str]:
        doc = await self.collection.find_one({
            "_id": key,
            "expires_at": {"$gt": datetime.now(timezone.utc)}
        })
        return doc.get("value") if doc else None

    async def put(self, key: str, value: str, ttl: int) -> None:
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl)
        await self.collection.replace_one(
            {"_id": key},
            {"_id": key, "value": value, "expires_at": expires_at},
            upsert=True
        )
