import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConfigurationError as MongoConfigurationError

from contact_api.core.config import get_settings
from contact_api.db.kv import MongoKeyValueStore

# Set up logger
logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "contact_form"

client = None


def mask_uri(uri: str) -> str:
    """Hide the password part of a MongoDB connection string for logging"""
    if "@" not in uri or "://" not in uri:
        return uri
    scheme, rest = uri.split("://", 1)
    credentials, host = rest.split("@", 1)
    if ":" not in credentials:
        return uri
    user, password = credentials.split(":", 1)
    return f"{scheme}://{user}:{'*' * len(password)}@{host}"


def get_db():
    """
    Returns the database handle, or None when MONGODB_URL is not configured.
    The client is created lazily on first use.
    """
    global client
    settings = get_settings()
    if not settings.mongodb_url:
        return None
    if client is None:
        logger.info(f"MongoDB URI configured: {mask_uri(settings.mongodb_url)}")
        client = AsyncIOMotorClient(
            settings.mongodb_url,
            maxPoolSize=10,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=10000
        )
    try:
        return client.get_default_database()
    except MongoConfigurationError:
        # URI without a database path
        return client[DEFAULT_DB_NAME]


def get_store(collection_name: Optional[str]) -> Optional[MongoKeyValueStore]:
    """KV store bound to a collection, or None if the binding is absent"""
    if not collection_name:
        return None
    db = get_db()
    if db is None:
        return None
    return MongoKeyValueStore(db[collection_name])


def close():
    global client
    if client is not None:
        client.close()
        client = None
