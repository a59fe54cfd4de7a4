"""
Database initialization for the contact form backend.

Ensures every bound keyed-store collection carries a TTL index on expires_at,
so counters and audit logs disappear on their own. Safe to call repeatedly.
"""

import logging
from datetime import datetime, timezone
from pymongo.errors import PyMongoError

from contact_api.core.config import get_settings
from contact_api.db.mongo import get_db

# Set up logger
logger = logging.getLogger(__name__)

TTL_INDEX = {"keys": [("expires_at", 1)], "expireAfterSeconds": 0}


def bound_collections(settings=None):
    """Collection names that are actually configured, with their purpose"""
    settings = settings or get_settings()
    bindings = [
        (settings.rate_limit_collection, "Rate-limit counters per client address"),
        (settings.analytics_collection, "Form submission audit trail"),
        (settings.error_logs_collection, "Error audit trail"),
    ]
    return [{"name": name, "description": description} for name, description in bindings if name]


async def ensure_ttl_index(db, collection_config):
    """
    Create the expiry index for one collection.

    Returns:
        bool: True if successful, False otherwise
    """
    collection_name = collection_config["name"]
    try:
        options = {k: v for k, v in TTL_INDEX.items() if k != "keys"}
        await db[collection_name].create_index(TTL_INDEX["keys"], **options)
        logger.info(f"✅ TTL index ensured for '{collection_name}' ({collection_config['description']})")
        return True
    except PyMongoError as e:
        logger.error(f"❌ Failed to create TTL index for '{collection_name}': {str(e)}")
        return False


async def initialize_database():
    """
    Initialize TTL indexes for all configured stores.

    Returns:
        bool: True if everything configured was initialized (or nothing is configured)
    """
    db = get_db()
    if db is None:
        logger.info("MONGODB_URL not set - keyed stores disabled, skipping database initialization")
        return True

    start_time = datetime.now(timezone.utc)
    collections = bound_collections()
    logger.info(f"🚀 Initializing {len(collections)} store collection(s) in database: {db.name}")

    error_count = 0
    for collection_config in collections:
        if not await ensure_ttl_index(db, collection_config):
            error_count += 1

    duration = (datetime.now(timezone.utc) - start_time).total_seconds()
    if error_count == 0:
        logger.info(f"🎉 Database initialization completed in {duration:.2f}s")
        return True

    logger.warning(f"⚠️ Database initialization completed with {error_count} error(s) in {duration:.2f}s")
    return False
