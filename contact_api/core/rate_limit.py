"""
Fixed-window rate limiting per client address.

Counters live in an external expiring store; this module holds no state of its
own. When the store misbehaves the limiter fails open, because a working
contact channel matters more than a strict quota.
"""

import json
import logging
import math
import time
from typing import Callable, Optional

from contact_api.db.kv import KeyValueStore
from contact_api.models.contact import RateLimitResult

logger = logging.getLogger(__name__)

MAX_REQUESTS = 5
WINDOW_SECONDS = 60 * 60
FAIL_OPEN_REMAINING = MAX_REQUESTS - 1
UNKNOWN_CLIENT = "unknown"
CLIENT_IP_HEADER = "CF-Connecting-IP"


def client_address(headers) -> str:
    """Address reported by the edge. All clients without one share a bucket."""
    return headers.get(CLIENT_IP_HEADER) or UNKNOWN_CLIENT


def rate_limit_key(client_ip: str) -> str:
    return f"rate_limit:{client_ip}"


async def check_rate_limit(
    store: Optional[KeyValueStore],
    client_ip: str,
    clock: Callable[[], float] = time.time,
) -> RateLimitResult:
    """
    Count this request against the client's window.

    A window starts at count=1 on the first request and keeps its original
    reset time while it is incremented. Once MAX_REQUESTS have been counted the
    remaining requests in the window are refused.

    Args:
        store: Counter store, or None when rate limiting is not configured
        client_ip: Key for the bucket
        clock: Current time in epoch seconds

    Returns:
        RateLimitResult: allowed flag, remaining slots and reset information
    """
    now = clock()
    if store is None:
        return RateLimitResult(allowed=True, remaining=FAIL_OPEN_REMAINING, reset_time=now + WINDOW_SECONDS)

    key = rate_limit_key(client_ip)
    try:
        raw = await store.get(key)
        counter = json.loads(raw) if raw else None

        if counter and counter.get("reset_at", 0) > now:
            count = int(counter.get("count", 0))
            reset_at = float(counter["reset_at"])
        else:
            count = 0
            reset_at = now + WINDOW_SECONDS

        if count >= MAX_REQUESTS:
            retry_after = max(1, math.ceil(reset_at - now))
            logger.warning(f"🚫 Rate limit exceeded for {client_ip} ({count} requests, resets in {retry_after}s)")
            return RateLimitResult(allowed=False, remaining=0, reset_time=reset_at, retry_after=retry_after)

        count += 1
        ttl = max(1, math.ceil(reset_at - now))
        await store.put(key, json.dumps({"count": count, "reset_at": reset_at}), ttl)

        return RateLimitResult(allowed=True, remaining=MAX_REQUESTS - count, reset_time=reset_at)

    except Exception as e:
        logger.error(f"Rate limiting error for {client_ip}, allowing request: {str(e)}")
        return RateLimitResult(allowed=True, remaining=FAIL_OPEN_REMAINING, reset_time=now + WINDOW_SECONDS)
