"""
Pytest Configuration and Fixtures

Shared fixtures for all tests. Storage is replaced by the in-memory fakes
in tests/fakes.py so no MongoDB is needed.
"""
from datetime import datetime, timezone
from typing import Callable, Optional

import pytest

from daco_workflow.domain.enums import ApplicationState, ActorRole
from daco_workflow.domain.models import (
    ActorContext, Application, ApplicationContent, ApplicantSection,
    InstitutionalRepSection, ProjectSection, Collaborator
)
from daco_workflow.engine.audit_log import AuditLog
from daco_workflow.engine.revision_workflow import RevisionRequestWorkflow
from daco_workflow.engine.state_machine import ApplicationWorkflow
from daco_workflow.engine.validation_gate import AGREEMENT_KEYS
from daco_workflow.services.application_service import ApplicationService

from tests.fakes import (
    FakeTransactionRunner, InMemoryApplicationRepository, InMemoryAuditRepository,
    InMemoryLedgerRepository, InMemoryRevisionRequestRepository, RecordingSender
)

APPLICANT_EMAIL = "alice.applicant@uhn.ca"
REP_EMAIL = "rob.rep@uhn.ca"
DAC_EMAIL = "daco@oicr.on.ca"


# =============================================================================
# Actors
# =============================================================================

@pytest.fixture
def applicant() -> ActorContext:
    return ActorContext(user_id="user-applicant", email=APPLICANT_EMAIL, role=ActorRole.APPLICANT)


@pytest.fixture
def rep() -> ActorContext:
    return ActorContext(user_id="user-rep", email=REP_EMAIL, role=ActorRole.INSTITUTIONAL_REP)


@pytest.fixture
def dac() -> ActorContext:
    return ActorContext(user_id="user-dac", email=DAC_EMAIL, role=ActorRole.DAC_MEMBER)


# =============================================================================
# Content
# =============================================================================

def build_complete_content() -> ApplicationContent:
    """Content that passes the submit validation gate"""
    return ApplicationContent(
        applicant=ApplicantSection(
            first_name="Alice",
            last_name="Nguyen",
            primary_affiliation="University Health Network",
            institutional_email=APPLICANT_EMAIL,
            position_title="Principal Investigator",
        ),
        institutional_rep=InstitutionalRepSection(
            first_name="Rob",
            last_name="Singh",
            primary_affiliation="University Health Network",
            institutional_email=REP_EMAIL,
            position_title="Research Ethics Officer",
        ),
        collaborators=[
            Collaborator(
                first_name="Chen",
                last_name="Li",
                institutional_email="chen.li@uhn.ca",
                position_title="Postdoctoral Fellow",
            )
        ],
        project=ProjectSection(
            title="Germline variants in pancreatic cancer",
            background="Pancreatic cancer has poor outcomes.",
            aims="Identify recurrent germline variants.",
            methodology="Joint variant calling over controlled cohorts.",
            summary="We will study inherited risk in pancreatic cancer.",
        ),
        requested_studies=["PACA-CA"],
        agreements=list(AGREEMENT_KEYS),
    )


@pytest.fixture
def complete_content() -> ApplicationContent:
    return build_complete_content()


# =============================================================================
# Storage and services
# =============================================================================

@pytest.fixture
def application_repo() -> InMemoryApplicationRepository:
    return InMemoryApplicationRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def revision_repo() -> InMemoryRevisionRequestRepository:
    return InMemoryRevisionRequestRepository()


@pytest.fixture
def ledger_repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def transaction_runner() -> FakeTransactionRunner:
    return FakeTransactionRunner()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def audit_log(audit_repo) -> AuditLog:
    return AuditLog(repo=audit_repo)


@pytest.fixture
def revision_workflow(revision_repo, application_repo) -> RevisionRequestWorkflow:
    return RevisionRequestWorkflow(repo=revision_repo, application_repo=application_repo)


@pytest.fixture
def workflow(application_repo, audit_log, revision_workflow, transaction_runner) -> ApplicationWorkflow:
    return ApplicationWorkflow(
        application_repo=application_repo,
        audit_log=audit_log,
        revision_workflow=revision_workflow,
        transaction_runner=transaction_runner,
    )


@pytest.fixture
def application_service(application_repo, audit_log, revision_workflow) -> ApplicationService:
    return ApplicationService(
        application_repo=application_repo,
        audit_log=audit_log,
        revision_workflow=revision_workflow,
    )


@pytest.fixture
def make_application(application_repo) -> Callable[..., Application]:
    """Store an application directly in a given state"""
    counter = {"n": 0}

    def factory(
        state: ApplicationState = ApplicationState.DRAFT,
        content: Optional[ApplicationContent] = None,
        created_at: Optional[datetime] = None,
        version: int = 0,
        application_id: Optional[str] = None,
    ) -> Application:
        counter["n"] += 1
        created_at = created_at or datetime(2024, 1, 2, 9, 0, tzinfo=timezone.utc)
        application = Application(
            application_id=application_id or f"APP-{counter['n']:04d}",
            owner_user_id="user-applicant",
            state=state,
            content=content if content is not None else build_complete_content(),
            created_at=created_at,
            updated_at=created_at,
            version=version,
        )
        return application_repo.put(application)

    return factory
