"""
API v1 package.

Contains versioned API routes for walk requests and reviews.
"""

from fastapi import APIRouter

from walkbook.api.v1.reviews import router as reviews_router
from walkbook.api.v1.walk_requests import router as walk_requests_router

router = APIRouter()
router.include_router(walk_requests_router)
router.include_router(reviews_router)

__all__ = ["router"]
