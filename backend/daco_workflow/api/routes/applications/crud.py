"""
Application CRUD Routes

Endpoints to create applications, read them and edit their content.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from ...deps import get_current_user_dep, get_correlation_id_dep, get_application_service_dep
from ....domain.models import ActorContext, ApplicationContentUpdate
from ....domain.errors import DomainError
from ....services.application_service import ApplicationService
from ....utils.logger import get_logger
from .schemas import CreateApplicationRequest, CreateApplicationResponse

logger = get_logger(__name__)
router = APIRouter()


@router.post("", response_model=CreateApplicationResponse, status_code=201)
async def create_application(
    request: CreateApplicationRequest,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ApplicationService = Depends(get_application_service_dep)
):
    """Create a new application in DRAFT owned by the caller."""
    try:
        application = service.create_application(actor, content=request.content)
        return CreateApplicationResponse(
            application_id=application.application_id,
            state=application.state.value
        )
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    service: ApplicationService = Depends(get_application_service_dep)
) -> Dict[str, Any]:
    """Get application with its allowed events and editable sections."""
    try:
        application = service.get_application(application_id)
        return service.describe(application)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())


@router.put("/{application_id}/content")
async def update_content(
    application_id: str,
    request: ApplicationContentUpdate,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    service: ApplicationService = Depends(get_application_service_dep)
) -> Dict[str, Any]:
    """
    Replace the provided content sections.

    Allowed in DRAFT and the revision states; during a revision only the
    sections the reviewer sent back can change.
    """
    try:
        application = service.update_content(application_id, request, actor)
        return service.describe(application)
    except DomainError as e:
        raise HTTPException(status_code=e.http_status, detail=e.to_dict())
