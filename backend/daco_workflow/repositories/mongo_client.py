"""MongoDB Client - Connection, Collection and Transaction Management"""
from typing import Any, Callable, Dict, Optional, TypeVar
from pymongo import MongoClient as PyMongoClient
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=30000,
            tz_aware=True,
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


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Applications collection
    applications = db["applications"]
    applications.create_index("application_id", unique=True)
    applications.create_index("state")
    applications.create_index("owner_user_id")
    applications.create_index("updated_at", background=True)

    # Application actions (audit log)
    actions = db["application_actions"]
    actions.create_index("action_id", unique=True)
    actions.create_index([("application_id", ASCENDING), ("sequence", ASCENDING)], unique=True)
    actions.create_index([("application_id", ASCENDING), ("created_at", DESCENDING)])
    actions.create_index("user_id")

    # Revision requests collection
    revision_requests = db["revision_requests"]
    revision_requests.create_index("revision_request_id", unique=True)
    revision_requests.create_index([("application_id", ASCENDING), ("created_at", ASCENDING)])

    # Notification ledger - the unique key is the reminder idempotency guarantee
    ledger = db["notification_ledger"]
    ledger.create_index("ledger_id", unique=True)
    ledger.create_index(
        [("application_id", ASCENDING), ("application_action_id", ASCENDING), ("email_type", ASCENDING)],
        unique=True
    )
    ledger.create_index("status")

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


class MongoTransactionRunner:
    """
    Run a unit of work inside a multi-document transaction

    The callback receives the ClientSession and must pass it to every
    repository call it makes. pymongo retries the callback on transient
    transaction errors, so the callback must be safe to re-run.
    """

    def __init__(self, client: Optional[PyMongoClient] = None):
        self._client = client

    @property
    def client(self) -> PyMongoClient:
        if self._client is None:
            self._client = get_client()
        return self._client

    def run(self, callback: Callable[[ClientSession], T]) -> T:
        with self.client.start_session() as session:
            return session.with_transaction(
                callback,
                read_concern=ReadConcern("snapshot"),
                write_concern=WriteConcern("majority"),
                max_commit_time_ms=settings.transaction_timeout_ms,
            )
