import json
import time
from typing import Callable, Dict, Iterable, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from contact_api.api.deps import Stores, get_email_transport, get_stores
from contact_api.core import email_delivery
from contact_api.core.config import Settings, get_settings
from contact_api.db.kv import KeyValueStore
from contact_api.main import app


VALID_FORM = {
    "firstName": "Ann",
    "lastName": "Lee",
    "email": "ann@example.com",
    "message": "Hello, I would like to book a call please.",
}


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store with expiry, driven by an injectable clock."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._items: Dict[str, Tuple[str, float]] = {}

    async def get(self, key):
        item = self._items.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self.clock() >= expires_at:
            del self._items[key]
            return None
        return value

    async def put(self, key, value, ttl):
        now = self.clock()
        # Audit keys are never read back, so expire everything on write
        self._items = {k: item for k, item in self._items.items() if item[1] > now}
        self._items[key] = (value, now + ttl)

    def keys(self):
        now = self.clock()
        return [k for k, (_, expires_at) in self._items.items() if expires_at > now]


class BrokenStore(KeyValueStore):
    async def get(self, key):
        raise ConnectionError("store unreachable")

    async def put(self, key, value, ttl):
        raise ConnectionError("store unreachable")


class ResendStub:
    """Stands in for the Resend API; replays scripted statuses, the last one repeating."""

    def __init__(self, statuses: Optional[Iterable[int]] = None):
        self.statuses = list(statuses or [200])
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if status >= 400:
            return httpx.Response(status, json={"name": "application_error", "message": "Something went wrong"})
        return httpx.Response(status, json={"id": f"email_{len(self.calls)}"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def payloads(self):
        return [json.loads(call.content) for call in self.calls]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(email_delivery, "backoff_sleep", fake_sleep)
    return delays


@pytest.fixture
def settings():
    return Settings(_env_file=None, resend_api_key="re_test_key", mongodb_url=None)


@pytest.fixture
def stores():
    return Stores(
        rate_limit=MemoryKeyValueStore(),
        analytics=MemoryKeyValueStore(),
        error_logs=MemoryKeyValueStore(),
    )


@pytest.fixture
def resend():
    return ResendStub()


@pytest.fixture
def override_app(settings, stores, resend, sleeps):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_stores] = lambda: stores
    app.dependency_overrides[get_email_transport] = lambda: resend.transport
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_app):
    return TestClient(override_app)


def stored_entries(store: MemoryKeyValueStore, prefix: str):
    return [json.loads(store._items[key][0]) for key in store.keys() if key.startswith(prefix)]
