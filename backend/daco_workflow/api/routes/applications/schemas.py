"""
Application Schemas

Request and response models for application API endpoints.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from ....domain.models import ApplicationContent, ApplicationAction, RevisionRequest


# =============================================================================
# CRUD Schemas
# =============================================================================

class CreateApplicationRequest(BaseModel):
    """Request to create a new application"""
    content: Optional[ApplicationContent] = None


class CreateApplicationResponse(BaseModel):
    """Response after creating application"""
    application_id: str
    state: str


# =============================================================================
# Lifecycle Schemas
# =============================================================================

class TransitionResponse(BaseModel):
    """Response after an accepted transition"""
    application_id: str
    state: str
    action: Optional[Dict[str, Any]] = None
    revision_request: Optional[Dict[str, Any]] = None


# =============================================================================
# History Schemas
# =============================================================================

class HistoryResponse(BaseModel):
    """One page of audit history"""
    items: List[ApplicationAction]
    page: int
    page_size: int
    total: int


class RevisionRequestListResponse(BaseModel):
    """All revision requests, oldest first"""
    items: List[RevisionRequest] = Field(default_factory=list)
