"""API Routes module"""
from fastapi import APIRouter

from .escalations import router as escalations_router

# Main API router
api_router = APIRouter()

api_router.include_router(escalations_router, prefix="/escalations", tags=["Escalations"])

__all__ = ["api_router"]
