"""
Best-effort audit trail for contact form requests.

Records are written to the log and, when a store is bound, persisted with an
expiry. These helpers run as background tasks after the response has been
sent; a failed write is logged and dropped, never raised.
"""

import json
import logging
import secrets
import string
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from contact_api.db.kv import KeyValueStore

logger = logging.getLogger(__name__)

SUBMISSION_LOG_TTL = 30 * 24 * 60 * 60  # 30 days
ERROR_LOG_TTL = 7 * 24 * 60 * 60  # 7 days

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def _log_key(prefix: str) -> str:
    suffix = "".join(secrets.choice(_KEY_ALPHABET) for _ in range(9))
    return f"{prefix}:{int(time.time() * 1000)}:{suffix}"


async def log_submission(data: Dict[str, Any], store: Optional[KeyValueStore] = None) -> None:
    """Record one submission outcome (success, spam_detected, rate_limited, ...)"""
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": "form_submission",
        **data
    }
    logger.info(f"Form submission: {json.dumps(log_entry, default=str)}")

    if store is None:
        return
    try:
        await store.put(_log_key("log"), json.dumps(log_entry, default=str), SUBMISSION_LOG_TTL)
    except Exception as e:
        logger.error(f"Failed to store submission log: {str(e)}")


async def log_error(
    error: BaseException,
    context: Dict[str, Any],
    store: Optional[KeyValueStore] = None,
) -> None:
    """Record an error with its context; the stack trace stays server side"""
    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "type": "error",
        "error": str(error),
        "error_type": type(error).__name__,
        "stack": "".join(traceback.format_exception(type(error), error, error.__traceback__)),
        "context": context
    }
    logger.error(f"Error: {json.dumps({k: v for k, v in log_entry.items() if k != 'stack'}, default=str)}")

    if store is None:
        return
    try:
        await store.put(_log_key("error"), json.dumps(log_entry, default=str), ERROR_LOG_TTL)
    except Exception as e:
        logger.error(f"Failed to store error log: {str(e)}")
