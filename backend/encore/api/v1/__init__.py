"""API v1 router aggregation."""

from fastapi import APIRouter

from encore.api.v1.review import router as review_router
from encore.api.v1.runs import router as runs_router
from encore.api.v1.sources import router as sources_router
from encore.api.v1.staged import router as staged_router

router = APIRouter(prefix="/api/v1")

router.include_router(runs_router)
router.include_router(sources_router)
router.include_router(staged_router)
router.include_router(review_router)
