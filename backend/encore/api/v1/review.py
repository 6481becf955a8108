"""Review endpoint consumed by the admin dashboard."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from encore.core.exceptions import ReviewError
from encore.dependencies.auth import get_is_admin
from encore.dependencies.store import get_store
from encore.schemas.review import ReviewErrorDetail, ReviewRequest, ReviewResponse
from encore.services.review import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/review", tags=["review"])

_STATUS_CODES = {
    "invalid_parameters": 400,
    "unauthorized": 403,
    "not_found": 404,
    "store_error": 500,
    "promotion_failed": 500,
}


@router.post("", response_model=ReviewResponse)
async def review_record(
    body: ReviewRequest,
    store=Depends(get_store),
    is_admin: bool = Depends(get_is_admin),
):
    """Approve or reject one staged record."""
    service = ReviewService(store)
    try:
        result = await service.review(body.table, body.id, body.action, body.notes, is_admin=is_admin)
    except ReviewError as e:
        logger.warning(f"Review of {body.table} {body.id} failed ({e.code}): {e.message}")
        response = ReviewResponse(success=False, error=ReviewErrorDetail(code=e.code, message=e.message))
        return JSONResponse(
            status_code=_STATUS_CODES.get(e.code, 500),
            content=response.model_dump(mode="json"),
        )

    production_id = result.production_row.get("id") if result.production_row else None
    return ReviewResponse(success=True, status=result.status.value, production_id=production_id)
