"""Audit Repository - Data access for application actions"""
from typing import Any, Dict, List, Optional, Tuple
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING

from .mongo_client import get_collection
from ..domain.models import ApplicationAction
from ..domain.enums import SortDirection
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuditRepository:
    """Repository for application action operations (append-only)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._actions: Collection = (
            collection if collection is not None else get_collection("application_actions")
        )

    def create_action(
        self,
        action: ApplicationAction,
        session: Optional[ClientSession] = None
    ) -> ApplicationAction:
        """Insert an action record (append-only)"""
        doc = action.model_dump()
        doc["_id"] = action.action_id

        self._actions.insert_one(doc, session=session)
        return action

    def list_actions(
        self,
        application_id: str,
        user_id: Optional[str] = None,
        sort: SortDirection = SortDirection.DESC,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[ApplicationAction], int]:
        """List actions for an application, returning (page items, total count)"""
        query: Dict[str, Any] = {"application_id": application_id}
        if user_id:
            query["user_id"] = user_id

        direction = ASCENDING if sort == SortDirection.ASC else DESCENDING
        cursor = (
            self._actions.find(query)
            .sort([("sequence", direction)])
            .skip(skip)
            .limit(limit)
        )
        actions = []
        for doc in cursor:
            doc.pop("_id", None)
            actions.append(ApplicationAction.model_validate(doc))

        total = self._actions.count_documents(query)
        return actions, total

    def get_latest_action(self, application_id: str) -> Optional[ApplicationAction]:
        """Get the most recent action for an application"""
        doc = self._actions.find_one(
            {"application_id": application_id},
            sort=[("sequence", DESCENDING)]
        )
        if doc:
            doc.pop("_id", None)
            return ApplicationAction.model_validate(doc)
        return None
