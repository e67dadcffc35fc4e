"""Revision Request Workflow - Section-level rework requests attached to revision transitions"""
from typing import List, Optional, Set

from pymongo.client_session import ClientSession

from ..domain.models import Application, RevisionRequest, RevisionRequestInput
from ..domain.enums import ApplicationState, ActorRole, ReviewSection, REVISION_STATES
from ..domain.errors import ApplicationNotFoundError
from ..repositories.application_repo import ApplicationRepository
from ..repositories.revision_request_repo import RevisionRequestRepository
from ..utils.idgen import generate_revision_request_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Content sections that are not part of a reviewer's per-section verdict
UNREVIEWED_SECTIONS = frozenset({"agreements"})

ALL_CONTENT_SECTIONS = frozenset({s.value for s in ReviewSection} | UNREVIEWED_SECTIONS)


class RevisionRequestWorkflow:
    """
    Create and read revision requests

    A revision request is written once, in the same transaction as the
    revision_request transition. Every new cycle adds a new record, so the
    full history of requested changes can be replayed from `list_for`.
    """

    def __init__(
        self,
        repo: Optional[RevisionRequestRepository] = None,
        application_repo: Optional[ApplicationRepository] = None
    ):
        self.repo = repo if repo is not None else RevisionRequestRepository()
        self._application_repo = application_repo

    @property
    def application_repo(self) -> ApplicationRepository:
        if self._application_repo is None:
            self._application_repo = ApplicationRepository()
        return self._application_repo

    def build(
        self,
        application_id: str,
        section_flags: RevisionRequestInput,
        requested_by_role: ActorRole
    ) -> RevisionRequest:
        """Materialize a revision request record without storing it"""
        return RevisionRequest(
            revision_request_id=generate_revision_request_id(),
            application_id=application_id,
            requested_by_role=requested_by_role,
            created_at=utc_now(),
            **section_flags.model_dump()
        )

    def create(
        self,
        application_id: str,
        section_flags: RevisionRequestInput,
        requested_by_role: ActorRole,
        session: Optional[ClientSession] = None
    ) -> RevisionRequest:
        """Build and insert a revision request"""
        return self.insert(self.build(application_id, section_flags, requested_by_role), session=session)

    def insert(
        self,
        revision_request: RevisionRequest,
        session: Optional[ClientSession] = None
    ) -> RevisionRequest:
        """
        Store a built revision request

        Raises:
            PyMongoError: Storage layer failed (left as is for transaction retries)
        """
        stored = self.repo.create_revision_request(revision_request, session=session)

        logger.info(
            f"Created revision request {revision_request.revision_request_id}",
            extra={"application_id": revision_request.application_id}
        )
        return stored

    def latest_for(self, application_id: str) -> Optional[RevisionRequest]:
        """Newest revision request, if any"""
        return self.repo.get_latest(application_id)

    def list_for(self, application_id: str) -> List[RevisionRequest]:
        """All revision requests, oldest first"""
        return self.repo.list_for_application(application_id)

    def editable_sections(self, application_id: str) -> Set[str]:
        """
        Content sections the applicant may change right now

        DRAFT: everything. Revision states: only the sections the latest
        revision request did not approve. Any other state: nothing.

        Raises:
            ApplicationNotFoundError: Application does not exist
        """
        application = self.application_repo.get_application(application_id)
        if application is None:
            raise ApplicationNotFoundError(
                f"Application {application_id} not found",
                details={"application_id": application_id}
            )
        return self.editable_sections_for(application)

    def editable_sections_for(self, application: Application) -> Set[str]:
        if application.state == ApplicationState.DRAFT:
            return set(ALL_CONTENT_SECTIONS)

        if application.state not in REVISION_STATES:
            return set()

        latest = self.latest_for(application.application_id)
        if latest is None:
            # Revision state without a record (legacy data): reviewed sections stay open
            return {s.value for s in ReviewSection}
        return {s.value for s in latest.sections_needing_revision()}
