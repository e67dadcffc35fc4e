"""Audit Log - Append-only, per-application ordered record of accepted transitions"""
from typing import Optional

from pymongo.client_session import ClientSession

from ..domain.models import ApplicationAction, ActionPage
from ..domain.enums import SortDirection
from ..repositories.audit_repo import AuditRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class AuditLog:
    """
    Write and read application actions

    Records are only ever appended. Within one application they are totally
    ordered by `sequence`, which equals the application version the
    transition produced.
    """

    def __init__(self, repo: Optional[AuditRepository] = None):
        self.repo = repo if repo is not None else AuditRepository()

    def append(
        self,
        record: ApplicationAction,
        session: Optional[ClientSession] = None
    ) -> ApplicationAction:
        """
        Append an action record

        Storage errors propagate unchanged so a surrounding transaction
        keeps their retry labels.

        Raises:
            PyMongoError: Storage layer failed
        """
        action = self.repo.create_action(record, session=session)

        logger.info(
            f"Appended action {record.action.value}: {record.state_before.value} -> {record.state_after.value}",
            extra={
                "application_id": record.application_id,
                "action_id": record.action_id,
                "user_id": record.user_id,
                "state": record.state_after.value,
            }
        )
        return action

    def list_by_application(
        self,
        application_id: str,
        user_id: Optional[str] = None,
        sort: SortDirection = SortDirection.DESC,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> ActionPage:
        """
        List actions for an application

        Args:
            application_id: Application to read
            user_id: Only actions by this user
            sort: By sequence, newest first by default
            page: 1-based page number
            page_size: Items per page, capped at MAX_PAGE_SIZE
        """
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

        items, total = self.repo.list_actions(
            application_id=application_id,
            user_id=user_id,
            sort=sort,
            skip=(page - 1) * page_size,
            limit=page_size
        )
        return ActionPage(items=items, page=page, page_size=page_size, total=total)

    def most_recent_action(self, application_id: str) -> Optional[ApplicationAction]:
        """The last accepted transition for an application, if any"""
        return self.repo.get_latest_action(application_id)
