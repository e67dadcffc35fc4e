"""
Application History Routes

Read-only views of the audit log and revision requests.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...deps import get_current_user_dep, get_application_service_dep
from ....domain.enums import SortDirection
from ....domain.models import ActorContext, RevisionRequest
from ....domain.errors import DomainError, NotFoundError
from ....engine.audit_log import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ....services.application_service import ApplicationService
from .schemas import HistoryResponse, RevisionRequestListResponse

router = APIRouter()


@router.get("/{application_id}/history", response_model=HistoryResponse)
async def get_history(
    application_id: str,
    sort: SortDirection = Query(SortDirection.DESC),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: Optional[str] = Query(None, description="Only actions by this user"),
    actor: ActorContext = Depends(get_current_user_dep),
    service: ApplicationService = Depends(get_application_service_dep)
):
    """Paginated audit history for the timeline view."""
    try:
        action_page = service.list_history(
            application_id, user_id=user_id, sort=sort, page=page, page_size=page_size
        )
        return HistoryResponse(**action_page.model_dump())
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{application_id}/revision-requests", response_model=RevisionRequestListResponse)
async def list_revision_requests(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ApplicationService = Depends(get_application_service_dep)
):
    """All revision requests, oldest first."""
    try:
        return RevisionRequestListResponse(items=service.list_revision_requests(application_id))
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{application_id}/revision-requests/latest", response_model=RevisionRequest)
async def get_latest_revision_request(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ApplicationService = Depends(get_application_service_dep)
):
    """The revision request the applicant is currently addressing."""
    try:
        latest = service.get_latest_revision_request(application_id)
        if latest is None:
            raise NotFoundError(
                f"Application {application_id} has no revision requests",
                details={"application_id": application_id}
            )
        return latest
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
