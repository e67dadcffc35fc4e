"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from .enums import (
    ApplicationState, ApplicationActionType, ActorRole, ReviewSection,
    EmailType, LedgerStatus
)
from .errors import DomainError


# ============================================================================
# Identity
# ============================================================================

class ActorContext(BaseModel):
    """Current actor context from JWT token"""
    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., description="Subject claim of the caller")
    email: EmailStr = Field(..., description="User email")
    display_name: Optional[str] = Field(None, description="User display name")
    role: ActorRole = Field(..., description="Role the caller is acting in")


# ============================================================================
# Application Content (form sections, all optional while drafting)
# ============================================================================

class ApplicantSection(BaseModel):
    """Applicant information"""
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    primary_affiliation: Optional[str] = None
    institutional_email: Optional[str] = None
    profile_url: Optional[str] = None
    position_title: Optional[str] = None


class InstitutionalRepSection(BaseModel):
    """Institutional representative information"""
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    primary_affiliation: Optional[str] = None
    institutional_email: Optional[str] = None
    profile_url: Optional[str] = None
    position_title: Optional[str] = None


class Collaborator(BaseModel):
    """Collaborator listed on the application"""
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    title: Optional[str] = None
    institutional_email: Optional[str] = None
    position_title: Optional[str] = None


class ProjectSection(BaseModel):
    """Project information"""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    website: Optional[str] = None
    background: Optional[str] = None
    aims: Optional[str] = None
    methodology: Optional[str] = None
    summary: Optional[str] = None


class ApplicationContent(BaseModel):
    """All form sections of an application"""
    model_config = ConfigDict(extra="ignore")

    applicant: ApplicantSection = Field(default_factory=ApplicantSection)
    institutional_rep: InstitutionalRepSection = Field(default_factory=InstitutionalRepSection)
    collaborators: List[Collaborator] = Field(default_factory=list)
    project: ProjectSection = Field(default_factory=ProjectSection)
    requested_studies: List[str] = Field(default_factory=list, description="Requested study IDs")
    agreements: List[str] = Field(default_factory=list, description="Accepted agreement keys")


class ApplicationContentUpdate(BaseModel):
    """Partial content update - only provided sections are replaced"""
    model_config = ConfigDict(extra="forbid")

    applicant: Optional[ApplicantSection] = None
    institutional_rep: Optional[InstitutionalRepSection] = None
    collaborators: Optional[List[Collaborator]] = None
    project: Optional[ProjectSection] = None
    requested_studies: Optional[List[str]] = None
    agreements: Optional[List[str]] = None

    def provided_fields(self) -> Set[str]:
        """Names of the sections present in this update"""
        return set(self.model_dump(exclude_unset=True).keys())


# ============================================================================
# Application & Audit Log
# ============================================================================

class Application(BaseModel):
    """Application instance"""
    model_config = ConfigDict(extra="ignore")  # Allow extra fields from DB

    application_id: str = Field(..., description="Unique application ID")
    owner_user_id: str
    state: ApplicationState = Field(default=ApplicationState.DRAFT)
    content: ApplicationContent = Field(default_factory=ApplicationContent)
    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    version: int = Field(default=0, description="Optimistic concurrency version, +1 per transition")
    content_revision: int = Field(default=0, description="+1 per content edit, checked by transitions")


class ApplicationAction(BaseModel):
    """Audit record of an accepted transition (append-only)"""
    model_config = ConfigDict(extra="ignore")

    action_id: str
    application_id: str
    user_id: str
    user_role: ActorRole
    action: ApplicationActionType
    state_before: ApplicationState
    state_after: ApplicationState
    sequence: int = Field(..., description="Application version produced by this transition")
    created_at: datetime
    revision_request_id: Optional[str] = None
    correlation_id: Optional[str] = None


class ActionPage(BaseModel):
    """One page of audit history"""
    items: List[ApplicationAction] = Field(default_factory=list)
    page: int
    page_size: int
    total: int


# ============================================================================
# Revision Requests
# ============================================================================

class RevisionRequestInput(BaseModel):
    """Section flags supplied by the reviewer requesting revisions"""
    model_config = ConfigDict(extra="forbid")

    applicant_approved: bool = True
    applicant_notes: Optional[str] = None
    institutional_rep_approved: bool = True
    institutional_rep_notes: Optional[str] = None
    collaborators_approved: bool = True
    collaborators_notes: Optional[str] = None
    project_approved: bool = True
    project_notes: Optional[str] = None
    requested_studies_approved: bool = True
    requested_studies_notes: Optional[str] = None
    comments: Optional[str] = None

    def is_approved(self, section: ReviewSection) -> bool:
        return getattr(self, f"{section.value}_approved")

    def notes_for(self, section: ReviewSection) -> Optional[str]:
        return getattr(self, f"{section.value}_notes")

    def sections_needing_revision(self) -> Set[ReviewSection]:
        """Sections the reviewer did not approve"""
        return {section for section in ReviewSection if not self.is_approved(section)}


class RevisionRequest(RevisionRequestInput):
    """Revision request record - immutable once created"""
    model_config = ConfigDict(extra="ignore")

    revision_request_id: str
    application_id: str
    requested_by_role: ActorRole
    created_at: datetime


# ============================================================================
# Notification Ledger
# ============================================================================

class NotificationLedgerEntry(BaseModel):
    """Reminder idempotency record, one per stall window and email type"""
    model_config = ConfigDict(extra="ignore")

    ledger_id: str
    application_id: str
    application_action_id: Optional[str] = Field(
        None, description="Action that opened the stall window; None for a never-transitioned draft"
    )
    email_type: EmailType
    recipient_emails: List[str] = Field(default_factory=list)
    status: LedgerStatus = Field(default=LedgerStatus.PENDING)
    created_at: datetime
    sent_at: Optional[datetime] = None


# ============================================================================
# Validation & Results
# ============================================================================

class ValidationIssue(BaseModel):
    """A single content problem found by the validation gate"""
    section: str
    field: str
    message: str


class ValidationOutcome(BaseModel):
    """Result of validating application content"""
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)


class TransitionResult(BaseModel):
    """Outcome of a workflow operation - failures are carried in `error`, never raised"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    application_id: str
    state: Optional[ApplicationState] = None
    action: Optional[ApplicationAction] = None
    revision_request: Optional[RevisionRequest] = None
    error: Optional[DomainError] = None

    @classmethod
    def failed(
        cls,
        application_id: str,
        error: DomainError,
        state: Optional[ApplicationState] = None
    ) -> "TransitionResult":
        return cls(success=False, application_id=application_id, state=state, error=error)

    def to_response(self) -> Dict[str, Any]:
        """Serialize a successful result for the API"""
        return {
            "application_id": self.application_id,
            "state": self.state.value if self.state else None,
            "action": self.action.model_dump(mode="json") if self.action else None,
            "revision_request": (
                self.revision_request.model_dump(mode="json") if self.revision_request else None
            ),
        }


class ReminderRunSummary(BaseModel):
    """Counters for one reminder scheduler run"""
    run_id: str
    scanned: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    cancelled: bool = False
    already_running: bool = False
    reference_time: Optional[datetime] = Field(None, description="Time stall windows were measured against")
