"""Repository modules - Data access layer"""
from .mongo_client import get_database, get_collection, MongoTransactionRunner
from .application_repo import ApplicationRepository
from .audit_repo import AuditRepository
from .revision_request_repo import RevisionRequestRepository
from .notification_ledger_repo import NotificationLedgerRepository

__all__ = [
    "get_database",
    "get_collection",
    "MongoTransactionRunner",
    "ApplicationRepository",
    "AuditRepository",
    "RevisionRequestRepository",
    "NotificationLedgerRepository",
]
