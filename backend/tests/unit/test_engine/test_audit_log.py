"""Tests for the audit log reader and writer."""
from datetime import datetime, timedelta, timezone

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure

from daco_workflow.domain.enums import (
    ApplicationState, ApplicationActionType, ActorRole, SortDirection
)
from daco_workflow.domain.models import ApplicationAction
from daco_workflow.engine.audit_log import MAX_PAGE_SIZE


def _action(sequence: int, user_id: str = "user-applicant") -> ApplicationAction:
    return ApplicationAction(
        action_id=f"ACT-{sequence}",
        application_id="APP-1",
        user_id=user_id,
        user_role=ActorRole.APPLICANT,
        action=ApplicationActionType.EDIT_DRAFT,
        state_before=ApplicationState.DRAFT,
        state_after=ApplicationState.DRAFT,
        sequence=sequence,
        created_at=datetime(2024, 3, 1, tzinfo=timezone.utc) + timedelta(minutes=sequence),
    )


class TestAuditLog:

    @pytest.fixture
    def filled_log(self, audit_log):
        for sequence in range(1, 6):
            audit_log.append(_action(sequence, user_id="user-rep" if sequence % 2 == 0 else "user-applicant"))
        return audit_log

    def test_newest_first_by_default(self, filled_log):
        page = filled_log.list_by_application("APP-1")

        assert [a.sequence for a in page.items] == [5, 4, 3, 2, 1]
        assert page.total == 5

    def test_ascending_with_pagination(self, filled_log):
        page = filled_log.list_by_application("APP-1", sort=SortDirection.ASC, page=2, page_size=2)

        assert [a.sequence for a in page.items] == [3, 4]
        assert (page.page, page.page_size, page.total) == (2, 2, 5)

    def test_filter_by_user(self, filled_log):
        page = filled_log.list_by_application("APP-1", user_id="user-rep")

        assert [a.sequence for a in page.items] == [4, 2]
        assert page.total == 2

    def test_page_size_is_capped(self, filled_log):
        page = filled_log.list_by_application("APP-1", page=0, page_size=MAX_PAGE_SIZE * 10)

        assert page.page == 1
        assert page.page_size == MAX_PAGE_SIZE

    def test_most_recent_action(self, filled_log):
        assert filled_log.most_recent_action("APP-1").action_id == "ACT-5"
        assert filled_log.most_recent_action("APP-other") is None

    def test_storage_errors_keep_their_labels(self, audit_log, audit_repo):
        audit_repo.transient_failures = 1

        with pytest.raises(OperationFailure) as exc_info:
            audit_log.append(_action(1))

        assert exc_info.value.has_error_label("TransientTransactionError")
        assert audit_repo.actions == []

    def test_sequence_is_unique_per_application(self, audit_log):
        audit_log.append(_action(1))

        with pytest.raises(DuplicateKeyError):
            audit_log.append(_action(1).model_copy(update={"action_id": "ACT-dup"}))
