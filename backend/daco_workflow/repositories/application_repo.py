"""Application Repository - Data access for applications"""
from typing import Any, Dict, Iterable, List, Optional
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo import ReturnDocument, ASCENDING

from .mongo_client import get_collection
from ..domain.models import Application
from ..domain.enums import ApplicationState, LEGACY_REP_REVISION_STATE
from ..domain.errors import ApplicationNotFoundError, ConcurrencyError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApplicationRepository:
    """Repository for application operations"""

    def __init__(self, collection: Optional[Collection] = None):
        self._applications: Collection = (
            collection if collection is not None else get_collection("applications")
        )

    def create_application(self, application: Application) -> Application:
        """Create a new application"""
        # Don't use mode="json" - it converts datetime to strings, breaking MongoDB sorting
        doc = application.model_dump()
        doc["_id"] = application.application_id

        self._applications.insert_one(doc)
        logger.info(
            f"Created application: {application.application_id}",
            extra={"application_id": application.application_id, "user_id": application.owner_user_id}
        )
        return application

    def get_application(
        self,
        application_id: str,
        session: Optional[ClientSession] = None
    ) -> Optional[Application]:
        """Get application by ID"""
        doc = self._applications.find_one({"application_id": application_id}, session=session)
        if doc:
            doc.pop("_id", None)
            return Application.model_validate(doc)
        return None

    def get_application_or_raise(self, application_id: str) -> Application:
        """Get application by ID or raise error"""
        application = self.get_application(application_id)
        if not application:
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                details={"application_id": application_id}
            )
        return application

    def update_application(
        self,
        application_id: str,
        updates: Dict[str, Any],
        expected_version: int,
        expected_content_revision: int = 0,
        content_edit: bool = False,
        session: Optional[ClientSession] = None
    ) -> Application:
        """
        Compare-and-set update guarded by both counters the caller observed

        Transitions bump `version`, content edits bump `content_revision`.
        Either kind of write invalidates a snapshot taken before it.

        Args:
            application_id: Application to update
            updates: Fields to $set (updated_at must be included by the caller)
            expected_version: Version of the snapshot the change was computed from
            expected_content_revision: Content revision of that snapshot
            content_edit: Bump content_revision instead of version
            session: Transaction session

        Raises:
            ConcurrencyError: Application exists but changed since the snapshot
            ApplicationNotFoundError: Application does not exist
        """
        updates = dict(updates)
        if content_edit:
            updates["content_revision"] = expected_content_revision + 1
        else:
            updates["version"] = expected_version + 1

        result = self._applications.find_one_and_update(
            {
                "application_id": application_id,
                "version": expected_version,
                "content_revision": _content_revision_filter(expected_content_revision),
            },
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
            session=session
        )

        if result is None:
            exists = self._applications.find_one(
                {"application_id": application_id}, {"version": 1, "content_revision": 1}, session=session
            )
            if exists:
                raise ConcurrencyError(
                    f"Application {application_id} was modified. Please refresh and try again.",
                    details={
                        "application_id": application_id,
                        "expected_version": expected_version,
                        "current_version": exists.get("version"),
                        "expected_content_revision": expected_content_revision,
                        "current_content_revision": exists.get("content_revision", 0),
                    }
                )
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                details={"application_id": application_id}
            )

        result.pop("_id", None)
        logger.debug(f"Updated application: {application_id}", extra={"application_id": application_id})
        return Application.model_validate(result)

    def list_by_states(self, states: Iterable[ApplicationState]) -> List[Application]:
        """List applications currently in any of the given states"""
        state_values = [s.value for s in states]
        if ApplicationState.REP_REVISION.value in state_values:
            state_values.append(LEGACY_REP_REVISION_STATE)

        cursor = self._applications.find({"state": {"$in": state_values}}).sort(
            "application_id", ASCENDING
        )
        applications = []
        for doc in cursor:
            doc.pop("_id", None)
            applications.append(Application.model_validate(doc))
        return applications


def _content_revision_filter(expected: int) -> Any:
    # Documents written before content edits were counted have no field
    if expected == 0:
        return {"$in": [0, None]}
    return expected
