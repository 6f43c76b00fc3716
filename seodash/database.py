import logging

import certifi
from motor.motor_asyncio import AsyncIOMotorClient

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

client: AsyncIOMotorClient = None
db = None


async def connect_db():
    global client, db
    if not settings.mongo_uri:
        logger.info("No MONGO_URI configured, using in-memory store")
        return

    kwargs = {"serverSelectionTimeoutMS": 5000}
    if settings.mongo_uri.startswith("mongodb+srv://"):
        # Atlas certificates are verified against certifi's bundle
        kwargs.update(tls=True, tlsCAFile=certifi.where())

    client = AsyncIOMotorClient(settings.mongo_uri, **kwargs)
    await client.admin.command("ping")
    db = client[settings.mongo_db_name]
    logger.info("Connected to MongoDB: %s", settings.mongo_db_name)


async def ensure_indexes():
    if db is None:
        return
    await db.user_profiles.create_index("user_id", unique=True)
    await db.user_roles.create_index("user_id")
    await db.usage_events.create_index([("user_id", 1), ("action", 1), ("created_at", -1)])
    await db.scans.create_index([("user_id", 1), ("created_at", -1)])
    await db.scans.create_index([("url", 1), ("user_id", 1)])
    await db.content_drafts.create_index([("writer_id", 1), ("updated_at", -1)])
    await db.content_drafts.create_index([("status", 1), ("last_saved_at", -1)])
    await db.wordpress_sites.create_index("user_id")
    await db.api_tokens.create_index("token_hash", unique=True)
    await db.api_tokens.create_index([("user_id", 1), ("is_active", 1)])
    await db.admin_settings.create_index("setting_key", unique=True)
    await db.package_features.create_index([("package_id", 1), ("feature_type", 1)], unique=True)
    await db.scheduled_scans.create_index([("is_active", 1), ("next_scan_at", 1)])
    await db.optimization_history.create_index([("user_id", 1), ("created_at", -1)])
    await db.organization_members.create_index([("organization_id", 1), ("status", 1)])
    await db.api_logs.create_index("created_at")
    await db.event_logs.create_index([("user_id", 1), ("created_at", -1)])
    await db.alerts.create_index([("user_id", 1), ("created_at", -1)])
    await db.payment_orders.create_index([("user_id", 1), ("created_at", -1)])


async def close_db():
    global client, db
    if client:
        client.close()
        client = None
        db = None
        logger.info("MongoDB connection closed")


def get_db():
    return db
