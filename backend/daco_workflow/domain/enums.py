"""Domain Enumerations - All state, event and type definitions"""
from enum import Enum


class ApplicationState(str, Enum):
    """Review state of a DACO application"""
    DRAFT = "DRAFT"
    INSTITUTIONAL_REP_REVIEW = "INSTITUTIONAL_REP_REVIEW"
    REP_REVISION = "REP_REVISION"
    DAC_REVIEW = "DAC_REVIEW"
    DAC_REVISIONS_REQUESTED = "DAC_REVISIONS_REQUESTED"
    REJECTED = "REJECTED"
    APPROVED = "APPROVED"
    CLOSED = "CLOSED"
    REVOKED = "REVOKED"

    @classmethod
    def _missing_(cls, value):
        # Older documents were written with the pre-rename value
        if value == LEGACY_REP_REVISION_STATE:
            return cls.REP_REVISION
        return None


LEGACY_REP_REVISION_STATE = "INSTITUTIONAL_REP_REVISION_REQUESTED"


class ApplicationEvent(str, Enum):
    """Events that drive the application state machine"""
    SUBMIT = "submit"
    EDIT = "edit"
    CLOSE = "close"
    REVISION_REQUEST = "revision_request"
    APPROVE = "approve"
    REJECT = "reject"
    REVOKED = "revoked"


class ApplicationActionType(str, Enum):
    """Action type recorded on each audit row"""
    SUBMIT_DRAFT = "SUBMIT_DRAFT"
    EDIT_DRAFT = "EDIT_DRAFT"
    WITHDRAW = "WITHDRAW"
    CLOSE = "CLOSE"
    INSTITUTIONAL_REP_REVISION_REQUEST = "INSTITUTIONAL_REP_REVISION_REQUEST"
    INSTITUTIONAL_REP_APPROVED = "INSTITUTIONAL_REP_APPROVED"
    INSTITUTIONAL_REP_SUBMIT = "INSTITUTIONAL_REP_SUBMIT"
    DAC_REVIEW_APPROVED = "DAC_REVIEW_APPROVED"
    DAC_REVIEW_REJECTED = "DAC_REVIEW_REJECTED"
    DAC_REVIEW_REVISION_REQUEST = "DAC_REVIEW_REVISION_REQUEST"
    DAC_REVIEW_SUBMIT = "DAC_REVIEW_SUBMIT"
    REVOKE = "REVOKE"


class ActorRole(str, Enum):
    """Role of the user acting on an application"""
    APPLICANT = "APPLICANT"
    INSTITUTIONAL_REP = "INSTITUTIONAL_REP"
    DAC_MEMBER = "DAC_MEMBER"


class ReviewSection(str, Enum):
    """Application sections a reviewer can approve or send back"""
    APPLICANT = "applicant"
    INSTITUTIONAL_REP = "institutional_rep"
    COLLABORATORS = "collaborators"
    PROJECT = "project"
    REQUESTED_STUDIES = "requested_studies"


class EmailType(str, Enum):
    """Reminder email kinds"""
    REMINDER_SUBMIT_DRAFT = "REMINDER_SUBMIT_DRAFT"
    REMINDER_SUBMIT_INSTITUTIONAL_REP_REVIEW = "REMINDER_SUBMIT_INSTITUTIONAL_REP_REVIEW"
    REMINDER_SUBMIT_REVISIONS_INSTITUTIONAL_REP = "REMINDER_SUBMIT_REVISIONS_INSTITUTIONAL_REP"
    REMINDER_SUBMIT_DAC_REVIEW = "REMINDER_SUBMIT_DAC_REVIEW"
    REMINDER_REVIEW_SUBMITTED_REVISIONS = "REMINDER_REVIEW_SUBMITTED_REVISIONS"
    REMINDER_SUBMIT_REVISIONS_DAC_REVIEW = "REMINDER_SUBMIT_REVISIONS_DAC_REVIEW"


class LedgerStatus(str, Enum):
    """Notification ledger entry status"""
    PENDING = "PENDING"  # Reserved, send not attempted yet
    SENDING = "SENDING"  # Send attempted, outcome not recorded
    SENT = "SENT"


class SortDirection(str, Enum):
    """Sort order for history listings"""
    ASC = "asc"
    DESC = "desc"


# Terminal states have no outgoing transitions
TERMINAL_STATES = frozenset({
    ApplicationState.REJECTED,
    ApplicationState.CLOSED,
    ApplicationState.REVOKED,
})

# Content may only change while the applicant holds the application
EDITABLE_STATES = frozenset({
    ApplicationState.DRAFT,
    ApplicationState.REP_REVISION,
    ApplicationState.DAC_REVISIONS_REQUESTED,
})

REVISION_STATES = frozenset({
    ApplicationState.REP_REVISION,
    ApplicationState.DAC_REVISIONS_REQUESTED,
})

# States the reminder job scans
ACTIONABLE_STATES = (
    ApplicationState.DRAFT,
    ApplicationState.INSTITUTIONAL_REP_REVIEW,
    ApplicationState.REP_REVISION,
    ApplicationState.DAC_REVIEW,
    ApplicationState.DAC_REVISIONS_REQUESTED,
)
