"""API Dependencies - Common dependencies for routes"""
from functools import lru_cache
from typing import Optional
from fastapi import Header, HTTPException, status

from ..domain.models import ActorContext
from ..domain.errors import AuthenticationError
from ..engine.state_machine import ApplicationWorkflow
from ..services.application_service import ApplicationService
from ..utils.jwt import get_current_user as _jwt_get_current_user  # Internal use only
from ..utils.logger import set_correlation_id
from ..utils.idgen import generate_correlation_id


async def get_correlation_id_dep(
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-Id")
) -> str:
    """
    Get or generate correlation ID for request tracing

    If client provides X-Correlation-Id, use it.
    Otherwise generate a new one.
    """
    correlation_id = x_correlation_id or generate_correlation_id()
    set_correlation_id(correlation_id)
    return correlation_id


async def get_current_user_dep(
    authorization: Optional[str] = Header(None)
) -> ActorContext:
    """
    Dependency to get current user from Authorization header

    Raises:
        HTTPException: 401 if token is invalid or missing
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AuthenticationError("Authorization header is missing").to_dict(),
            headers={"WWW-Authenticate": "Bearer"}
        )

    try:
        return _jwt_get_current_user(authorization)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.to_dict(),
            headers={"WWW-Authenticate": "Bearer"}
        )


@lru_cache()
def get_workflow_dep() -> ApplicationWorkflow:
    """Shared state machine instance"""
    return ApplicationWorkflow()


@lru_cache()
def get_application_service_dep() -> ApplicationService:
    """Shared application service instance"""
    return ApplicationService()
