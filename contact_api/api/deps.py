"""
Request dependencies for the contact endpoint.

Each keyed store is optional: a missing binding turns the matching feature
(rate limiting, submission logs, error logs) off instead of failing requests.
"""

from typing import Optional

import httpx
from fastapi import Depends

from contact_api.core.config import Settings, get_settings
from contact_api.db.kv import KeyValueStore
from contact_api.db.mongo import get_store


class Stores:
    def __init__(
        self,
        rate_limit: Optional[KeyValueStore] = None,
        analytics: Optional[KeyValueStore] = None,
        error_logs: Optional[KeyValueStore] = None,
    ):
        self.rate_limit = rate_limit
        self.analytics = analytics
        self.error_logs = error_logs


def get_stores(settings: Settings = Depends(get_settings)) -> Stores:
    return Stores(
        rate_limit=get_store(settings.rate_limit_collection),
        analytics=get_store(settings.analytics_collection),
        error_logs=get_store(settings.error_logs_collection),
    )


def get_email_transport() -> Optional[httpx.AsyncBaseTransport]:
    """None means httpx's default network transport"""
    return None
