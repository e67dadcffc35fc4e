"""
Application Routes Module

Application API endpoints organized by functionality:

- crud.py: Create, get, edit content
- lifecycle.py: One endpoint per state machine event
- history.py: Audit history and revision requests

All routes are combined into a single router for inclusion in the API.
"""

from fastapi import APIRouter

from .schemas import (
    CreateApplicationRequest, CreateApplicationResponse, TransitionResponse,
    HistoryResponse, RevisionRequestListResponse
)
from .crud import router as crud_router
from .lifecycle import router as lifecycle_router
from .history import router as history_router

router = APIRouter()

router.include_router(crud_router, prefix="/applications")
router.include_router(lifecycle_router, prefix="/applications")
router.include_router(history_router, prefix="/applications")

__all__ = [
    "router",
    # Schemas
    "CreateApplicationRequest", "CreateApplicationResponse", "TransitionResponse",
    "HistoryResponse", "RevisionRequestListResponse"
]
