"""Revision Request Repository - Data access for revision requests"""
from typing import List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection
from ..domain.models import RevisionRequest
from ..utils.logger import get_logger

logger = get_logger(__name__)


class RevisionRequestRepository:
    """Repository for revision requests (insert-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._revision_requests: Collection = (
            collection if collection is not None else get_collection("revision_requests")
        )

    def create_revision_request(
        self,
        revision_request: RevisionRequest,
        session: Optional[ClientSession] = None
    ) -> RevisionRequest:
        """Insert a revision request"""
        doc = revision_request.model_dump()
        doc["_id"] = revision_request.revision_request_id

        self._revision_requests.insert_one(doc, session=session)
        return revision_request

    def get_latest(self, application_id: str) -> Optional[RevisionRequest]:
        """Get the newest revision request for an application"""
        doc = self._revision_requests.find_one(
            {"application_id": application_id},
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        if doc:
            doc.pop("_id", None)
            return RevisionRequest.model_validate(doc)
        return None

    def list_for_application(self, application_id: str) -> List[RevisionRequest]:
        """List revision requests for an application, oldest first"""
        cursor = self._revision_requests.find({"application_id": application_id}).sort(
            [("created_at", ASCENDING), ("_id", ASCENDING)]
        )
        requests = []
        for doc in cursor:
            doc.pop("_id", None)
            requests.append(RevisionRequest.model_validate(doc))
        return requests
