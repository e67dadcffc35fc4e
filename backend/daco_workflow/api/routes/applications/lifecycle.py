"""
Application Lifecycle Routes

One endpoint per state machine event:
- submit, edit, close
- revision-request
- approve, reject, revoke
"""
from fastapi import APIRouter, Depends, HTTPException

from ...deps import get_current_user_dep, get_correlation_id_dep, get_workflow_dep
from ....domain.models import ActorContext, RevisionRequestInput, TransitionResult
from ....engine.state_machine import ApplicationWorkflow
from ....utils.logger import get_logger
from .schemas import TransitionResponse

logger = get_logger(__name__)
router = APIRouter()


def _respond(result: TransitionResult) -> TransitionResponse:
    if not result.success:
        raise HTTPException(status_code=result.error.http_status, detail=result.error.to_dict())
    return TransitionResponse(**result.to_response())


@router.post("/{application_id}/submit", response_model=TransitionResponse)
async def submit_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """Submit to the next review stage. Content must be complete."""
    return _respond(workflow.submit(application_id, actor))


@router.post("/{application_id}/edit", response_model=TransitionResponse)
async def edit_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """Reopen for editing. From a review state this withdraws it to DRAFT."""
    return _respond(workflow.edit(application_id, actor))


@router.post("/{application_id}/close", response_model=TransitionResponse)
async def close_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """Close the application."""
    return _respond(workflow.close(application_id, actor))


@router.post("/{application_id}/revision-request", response_model=TransitionResponse)
async def request_revision(
    application_id: str,
    request: RevisionRequestInput,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """Send back for revisions, flagging each section approved or not."""
    return _respond(workflow.request_revision(application_id, actor, request))


@router.post("/{application_id}/approve", response_model=TransitionResponse)
async def approve_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """DAC approval."""
    return _respond(workflow.approve(application_id, actor))


@router.post("/{application_id}/reject", response_model=TransitionResponse)
async def reject_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """DAC rejection."""
    return _respond(workflow.reject(application_id, actor))


@router.post("/{application_id}/revoke", response_model=TransitionResponse)
async def revoke_application(
    application_id: str,
    actor: ActorContext = Depends(get_current_user_dep),
    correlation_id: str = Depends(get_correlation_id_dep),
    workflow: ApplicationWorkflow = Depends(get_workflow_dep)
):
    """Revoke an approved application."""
    return _respond(workflow.revoke(application_id, actor))
