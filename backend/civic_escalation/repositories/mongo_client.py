"""MongoDB Client - Connection and Collection Management"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


# Collection names
COMPLAINTS = "complaints"
COMPLAINT_STATUS_HISTORY = "complaint_status_history"
ESCALATION_RULES = "escalation_rules"
COMPLAINT_ESCALATIONS = "complaint_escalations"
OFFICERS = "officers"
AUDIT_LOG = "audit_log"
PILOT_METRICS_EVENTS = "pilot_metrics_events"
NOTIFICATION_OUTBOX = "notification_outbox"


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        # Stored datetimes come back as aware UTC values, never local time
        _client = PyMongoClient(
            settings.mongo_uri,
            tz_aware=True,
            tzinfo=timezone.utc,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def to_document(model: BaseModel, document_id: Any) -> Dict[str, Any]:
    """
    Dump a model for storage.

    Enums and nested values are dumped JSON-style; top-level datetimes are
    kept as native values so they are stored as BSON dates and stay
    comparable in queries.
    """
    doc = model.model_dump(mode="json")
    for name, value in model:
        if isinstance(value, datetime):
            doc[name] = value
    doc["_id"] = document_id
    return doc


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Complaints collection
    complaints = db[COMPLAINTS]
    complaints.create_index("complaint_id", unique=True)
    complaints.create_index("complaint_number", unique=True)
    complaints.create_index([("current_status", ASCENDING), ("created_at", ASCENDING)])
    complaints.create_index("assigned_department_id")
    complaints.create_index("escalation_lock_until")

    # Status history collection
    history = db[COMPLAINT_STATUS_HISTORY]
    history.create_index("history_id", unique=True)
    history.create_index([("complaint_id", ASCENDING), ("created_at", DESCENDING)])

    # Escalation rules collection
    rules = db[ESCALATION_RULES]
    rules.create_index("rule_id", unique=True)
    rules.create_index([("is_active", ASCENDING), ("escalation_level", ASCENDING)])

    # Escalations collection
    escalations = db[COMPLAINT_ESCALATIONS]
    escalations.create_index("escalation_id", unique=True)
    escalations.create_index([
        ("complaint_id", ASCENDING),
        ("escalation_level", ASCENDING),
        ("created_at", DESCENDING),
    ])

    # Officers collection
    officers = db[OFFICERS]
    officers.create_index("officer_id", unique=True)
    officers.create_index("employee_id", unique=True)
    officers.create_index([
        ("department_id", ASCENDING),
        ("location_id", ASCENDING),
        ("is_active", ASCENDING),
    ])

    # Audit log collection
    audit_log = db[AUDIT_LOG]
    audit_log.create_index("audit_id", unique=True)
    audit_log.create_index([
        ("entity_type", ASCENDING),
        ("entity_id", ASCENDING),
        ("action", ASCENDING),
        ("created_at", DESCENDING),
    ])
    audit_log.create_index("correlation_id")

    # Pilot metrics collection
    metrics = db[PILOT_METRICS_EVENTS]
    metrics.create_index("event_id", unique=True)
    metrics.create_index([("event_type", ASCENDING), ("created_at", DESCENDING)])

    # Notification outbox collection
    notification_outbox = db[NOTIFICATION_OUTBOX]
    notification_outbox.create_index("notification_id", unique=True)
    notification_outbox.create_index([("status", ASCENDING), ("created_at", ASCENDING)])
    notification_outbox.create_index("complaint_id")

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except PyMongoError as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
