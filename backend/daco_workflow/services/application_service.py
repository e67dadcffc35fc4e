"""Application Service - Creation, content editing and read APIs"""
from typing import Any, Dict, List, Optional

from ..domain.models import (
    ActorContext, Application, ApplicationContent, ApplicationContentUpdate,
    ActionPage, RevisionRequest
)
from ..domain.enums import ApplicationState, SortDirection, EDITABLE_STATES, REVISION_STATES
from ..domain.errors import ApplicationNotEditableError, SectionLockedError
from ..engine.audit_log import AuditLog, DEFAULT_PAGE_SIZE
from ..engine.revision_workflow import RevisionRequestWorkflow
from ..engine.transition_resolver import allowed_events
from ..repositories.application_repo import ApplicationRepository
from ..utils.idgen import generate_application_id
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ApplicationService:
    """Operations on applications that are not lifecycle transitions"""

    def __init__(
        self,
        application_repo: Optional[ApplicationRepository] = None,
        audit_log: Optional[AuditLog] = None,
        revision_workflow: Optional[RevisionRequestWorkflow] = None
    ):
        self.application_repo = application_repo if application_repo is not None else ApplicationRepository()
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.revision_workflow = (
            revision_workflow if revision_workflow is not None
            else RevisionRequestWorkflow(application_repo=self.application_repo)
        )

    def create_application(
        self,
        actor: ActorContext,
        content: Optional[ApplicationContent] = None
    ) -> Application:
        """Create a new application in DRAFT owned by the caller"""
        now = utc_now()
        application = Application(
            application_id=generate_application_id(),
            owner_user_id=actor.user_id,
            state=ApplicationState.DRAFT,
            content=content or ApplicationContent(),
            created_at=now,
            updated_at=now,
            version=0
        )
        return self.application_repo.create_application(application)

    def get_application(self, application_id: str) -> Application:
        """Get application or raise ApplicationNotFoundError"""
        return self.application_repo.get_application_or_raise(application_id)

    def update_content(
        self,
        application_id: str,
        update: ApplicationContentUpdate,
        actor: ActorContext
    ) -> Application:
        """
        Replace the provided content sections

        Only allowed in DRAFT and the two revision states. In a revision
        state, sections the latest revision request approved are locked.

        Raises:
            ApplicationNotFoundError: Unknown application
            ApplicationNotEditableError: State does not allow edits
            SectionLockedError: Update touches an approved section
            ConcurrencyError: Application transitioned or was edited concurrently
        """
        application = self.application_repo.get_application_or_raise(application_id)

        if application.state not in EDITABLE_STATES:
            raise ApplicationNotEditableError(
                f"Application {application_id} cannot be edited in state {application.state.value}",
                details={"application_id": application_id, "state": application.state.value}
            )

        changed = update.provided_fields()
        if application.state in REVISION_STATES:
            editable = self.revision_workflow.editable_sections_for(application)
            locked = sorted(changed - editable)
            if locked:
                raise SectionLockedError(
                    f"Sections approved in the latest revision request cannot be changed: {', '.join(locked)}",
                    details={
                        "application_id": application_id,
                        "locked_sections": locked,
                        "editable_sections": sorted(editable),
                    }
                )

        merged = application.content.model_copy(update={name: getattr(update, name) for name in changed})
        updated = self.application_repo.update_application(
            application_id,
            {"content": merged.model_dump(), "updated_at": utc_now()},
            expected_version=application.version,
            expected_content_revision=application.content_revision,
            content_edit=True
        )
        logger.info(
            f"Updated content sections {sorted(changed)} on {application_id}",
            extra={"application_id": application_id, "user_id": actor.user_id, "state": updated.state.value}
        )
        return updated

    def list_history(
        self,
        application_id: str,
        user_id: Optional[str] = None,
        sort: SortDirection = SortDirection.DESC,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> ActionPage:
        """Paginated audit history for the timeline view"""
        self.application_repo.get_application_or_raise(application_id)
        return self.audit_log.list_by_application(
            application_id, user_id=user_id, sort=sort, page=page, page_size=page_size
        )

    def list_revision_requests(self, application_id: str) -> List[RevisionRequest]:
        self.application_repo.get_application_or_raise(application_id)
        return self.revision_workflow.list_for(application_id)

    def get_latest_revision_request(self, application_id: str) -> Optional[RevisionRequest]:
        self.application_repo.get_application_or_raise(application_id)
        return self.revision_workflow.latest_for(application_id)

    def describe(self, application: Application) -> Dict[str, Any]:
        """API view of an application including what can happen next"""
        data = application.model_dump(mode="json")
        data["allowed_events"] = [e.value for e in allowed_events(application.state)]
        data["editable_sections"] = sorted(self.revision_workflow.editable_sections_for(application))
        return data
