"""API Routes module"""
from fastapi import APIRouter

from .applications import router as applications_router

# Main API router
api_router = APIRouter()

api_router.include_router(applications_router, tags=["Applications"])

__all__ = ["api_router"]
