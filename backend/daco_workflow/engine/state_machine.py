"""
Application Workflow - The state machine driving DACO applications

Every public operation follows the same path:

1. Load the application snapshot (callers never pass state in)
2. Look the (state, event) pair up in the transition table
3. For submit, run the validation gate against the snapshot content
4. In one transaction: compare-and-set the application on the snapshot
   version and content revision, append the audit row, and store the
   revision request if any
5. Report the outcome as a TransitionResult

Failures never raise out of this class. They come back in
`TransitionResult.error`. Notifications are not sent here; reminders are
the scheduler's job.
"""
from typing import Any, Callable, Dict, Optional

from pymongo.errors import PyMongoError

from ..config.settings import settings
from ..domain.models import (
    ActorContext, Application, ApplicationAction, RevisionRequest,
    RevisionRequestInput, TransitionResult
)
from ..domain.enums import ApplicationEvent, ApplicationState
from ..domain.errors import (
    DomainError, ApplicationNotFoundError, IncompleteApplicationError,
    PersistenceError, ValidationError
)
from ..repositories.application_repo import ApplicationRepository
from ..repositories.mongo_client import MongoTransactionRunner
from ..utils.idgen import generate_action_id
from ..utils.logger import get_logger, get_correlation_id
from ..utils.time import utc_now, add_days
from .audit_log import AuditLog
from .revision_workflow import RevisionRequestWorkflow
from .transition_resolver import apply_event
from .validation_gate import ContentValidator, validate_application_content

logger = get_logger(__name__)


class ApplicationWorkflow:
    """Apply lifecycle events to applications"""

    def __init__(
        self,
        application_repo: Optional[ApplicationRepository] = None,
        audit_log: Optional[AuditLog] = None,
        revision_workflow: Optional[RevisionRequestWorkflow] = None,
        transaction_runner: Optional[Any] = None,
        validator: Optional[ContentValidator] = None
    ):
        self.application_repo = application_repo if application_repo is not None else ApplicationRepository()
        self.audit_log = audit_log if audit_log is not None else AuditLog()
        self.revision_workflow = (
            revision_workflow if revision_workflow is not None
            else RevisionRequestWorkflow(application_repo=self.application_repo)
        )
        self.transaction_runner = transaction_runner if transaction_runner is not None else MongoTransactionRunner()
        self.validator: ContentValidator = validator or validate_application_content

    # =========================================================================
    # Public operations
    # =========================================================================

    def submit(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """Submit for the next review stage (content must pass the validation gate)"""
        return self._apply(application_id, ApplicationEvent.SUBMIT, actor)

    def edit(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """Reopen for editing (from a review state this returns the application to DRAFT)"""
        return self._apply(application_id, ApplicationEvent.EDIT, actor)

    def close(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """Close the application"""
        return self._apply(application_id, ApplicationEvent.CLOSE, actor)

    def request_revision(
        self,
        application_id: str,
        actor: ActorContext,
        section_flags: RevisionRequestInput
    ) -> TransitionResult:
        """Send the application back with per-section revision requests"""
        return self._apply(
            application_id, ApplicationEvent.REVISION_REQUEST, actor, section_flags=section_flags
        )

    def approve(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """DAC approval"""
        return self._apply(application_id, ApplicationEvent.APPROVE, actor)

    def reject(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """DAC rejection"""
        return self._apply(application_id, ApplicationEvent.REJECT, actor)

    def revoke(self, application_id: str, actor: ActorContext) -> TransitionResult:
        """Revoke a previously approved application"""
        return self._apply(application_id, ApplicationEvent.REVOKED, actor)

    # =========================================================================
    # Core
    # =========================================================================

    def _apply(
        self,
        application_id: str,
        event: ApplicationEvent,
        actor: ActorContext,
        section_flags: Optional[RevisionRequestInput] = None
    ) -> TransitionResult:
        log_extra = {"application_id": application_id, "event": event.value, "user_id": actor.user_id}
        snapshot: Optional[Application] = None

        try:
            snapshot = self.application_repo.get_application(application_id)
            if snapshot is None:
                raise ApplicationNotFoundError(
                    f"Application {application_id} not found",
                    details={"application_id": application_id}
                )

            transition = apply_event(snapshot.state, event)

            if event == ApplicationEvent.SUBMIT:
                self._run_validation_gate(snapshot)

            revision_request = None
            if event == ApplicationEvent.REVISION_REQUEST:
                revision_request = self._build_revision_request(snapshot, actor, section_flags)

            now = utc_now()
            action = ApplicationAction(
                action_id=generate_action_id(),
                application_id=application_id,
                user_id=actor.user_id,
                user_role=actor.role,
                action=transition.action_type,
                state_before=snapshot.state,
                state_after=transition.next_state,
                sequence=snapshot.version + 1,
                created_at=now,
                revision_request_id=revision_request.revision_request_id if revision_request else None,
                correlation_id=get_correlation_id()
            )
            updates = self._state_updates(transition.next_state, now)

            updated = self.transaction_runner.run(
                self._commit(snapshot, updates, action, revision_request)
            )

        except DomainError as e:
            log = logger.error if e.http_status >= 500 else logger.warning
            log(
                f"Rejected {event.value} on {application_id}: {e.error_code}",
                extra={**log_extra, "error_code": e.error_code,
                       "state": snapshot.state.value if snapshot else None}
            )
            return TransitionResult.failed(application_id, e, state=snapshot.state if snapshot else None)
        except PyMongoError as e:
            logger.error(f"Storage failure applying {event.value} to {application_id}: {e}", extra=log_extra)
            error = PersistenceError(
                f"Could not apply {event.value} to application {application_id}",
                details={"application_id": application_id, "cause": str(e)}
            )
            return TransitionResult.failed(application_id, error, state=snapshot.state if snapshot else None)

        logger.info(
            f"Application {application_id}: {action.state_before.value} --{event.value}--> {updated.state.value}",
            extra={**log_extra, "action_id": action.action_id, "state": updated.state.value}
        )
        return TransitionResult(
            success=True,
            application_id=application_id,
            state=updated.state,
            action=action,
            revision_request=revision_request
        )

    def _commit(
        self,
        snapshot: Application,
        updates: Dict[str, Any],
        action: ApplicationAction,
        revision_request: Optional[RevisionRequest]
    ) -> Callable[[Any], Application]:
        """Unit of work for the transaction; safe to re-run on transient errors"""
        def callback(session) -> Application:
            # CAS on the counters we read before the transaction: a retry can
            # never land this transition on newer state or content than was validated
            updated = self.application_repo.update_application(
                snapshot.application_id,
                updates,
                expected_version=snapshot.version,
                expected_content_revision=snapshot.content_revision,
                session=session
            )
            if revision_request is not None:
                self.revision_workflow.insert(revision_request, session=session)
            self.audit_log.append(action, session=session)
            return updated
        return callback

    def _run_validation_gate(self, snapshot: Application) -> None:
        outcome = self.validator(snapshot.content)
        if not outcome.valid:
            raise IncompleteApplicationError(
                f"Application {snapshot.application_id} is incomplete and cannot be submitted",
                details={"errors": [issue.model_dump() for issue in outcome.errors]}
            )

    def _build_revision_request(
        self,
        snapshot: Application,
        actor: ActorContext,
        section_flags: Optional[RevisionRequestInput]
    ) -> RevisionRequest:
        if section_flags is None or not section_flags.sections_needing_revision():
            raise ValidationError(
                "A revision request must mark at least one section as needing revision",
                details={"application_id": snapshot.application_id}
            )
        return self.revision_workflow.build(snapshot.application_id, section_flags, actor.role)

    @staticmethod
    def _state_updates(next_state: ApplicationState, now) -> Dict[str, Any]:
        updates: Dict[str, Any] = {"state": next_state.value, "updated_at": now}
        if next_state == ApplicationState.APPROVED:
            updates["approved_at"] = now
            updates["expires_at"] = add_days(now, settings.approval_validity_days)
        return updates
