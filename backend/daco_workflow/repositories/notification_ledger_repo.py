"""Notification Ledger Repository - Reminder idempotency records

The unique index on (application_id, application_action_id, email_type)
makes the insert in `reserve` the single point that decides whether a
reminder for a stall window may be sent.
"""
from datetime import datetime
from typing import Optional
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from .mongo_client import get_collection
from ..domain.models import NotificationLedgerEntry
from ..domain.enums import EmailType, LedgerStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationLedgerRepository:
    """Repository for the sent-reminder ledger"""

    def __init__(self, collection: Optional[Collection] = None):
        self._ledger: Collection = (
            collection if collection is not None else get_collection("notification_ledger")
        )

    def reserve(self, entry: NotificationLedgerEntry) -> bool:
        """
        Insert a PENDING entry for the stall window

        Returns:
            True if this caller owns the reservation, False if the key already exists
        """
        doc = entry.model_dump()
        doc["_id"] = entry.ledger_id

        try:
            self._ledger.insert_one(doc)
        except DuplicateKeyError:
            logger.debug(
                f"Ledger key already present for {entry.application_id}",
                extra={
                    "application_id": entry.application_id,
                    "action_id": entry.application_action_id,
                    "email_type": entry.email_type.value,
                }
            )
            return False
        return True

    def mark_sending(self, ledger_id: str) -> None:
        """Record that the send is about to be attempted; the window is never reclaimed after this"""
        self._ledger.update_one(
            {"ledger_id": ledger_id, "status": LedgerStatus.PENDING.value},
            {"$set": {"status": LedgerStatus.SENDING.value}}
        )

    def mark_sent(self, ledger_id: str, sent_at: datetime) -> None:
        """Flip a reservation to SENT"""
        self._ledger.update_one(
            {"ledger_id": ledger_id},
            {"$set": {"status": LedgerStatus.SENT.value, "sent_at": sent_at}}
        )

    def release(self, ledger_id: str) -> None:
        """Drop a reservation whose send failed so the next run can retry"""
        self._ledger.delete_one({
            "ledger_id": ledger_id,
            "status": {"$in": [LedgerStatus.PENDING.value, LedgerStatus.SENDING.value]},
        })

    def release_stale(self, older_than: datetime) -> int:
        """
        Drop PENDING reservations left behind by a run that died before sending

        SENDING entries are kept: their reminder may already have gone out.
        """
        result = self._ledger.delete_many({
            "status": LedgerStatus.PENDING.value,
            "created_at": {"$lt": older_than},
        })
        if result.deleted_count:
            logger.warning(f"Released {result.deleted_count} stale reminder reservations")
        return result.deleted_count

    def find(
        self,
        application_id: str,
        application_action_id: Optional[str],
        email_type: EmailType
    ) -> Optional[NotificationLedgerEntry]:
        """Look up the ledger entry for a stall window"""
        doc = self._ledger.find_one({
            "application_id": application_id,
            "application_action_id": application_action_id,
            "email_type": email_type.value,
        })
        if doc:
            doc.pop("_id", None)
            return NotificationLedgerEntry.model_validate(doc)
        return None
