"""
Review API endpoints: engagement counters and the administrative write path.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from review_pipeline.api.dependencies import client_ip, get_engagement_service, get_review_store, require_admin
from review_pipeline.core.engagement import EngagementService
from review_pipeline.core.review_store import ReviewStore
from review_pipeline.models import (
    LikeRequest,
    LikeResult,
    ReviewCreateRequest,
    ReviewUpdateRequest,
    ReviewWriteResult,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/reviews/{review_id}/likes", response_model=LikeResult)
async def toggle_like(
    review_id: int,
    request: LikeRequest,
    ip: str = Depends(client_ip),
    service: EngagementService = Depends(get_engagement_service),
) -> LikeResult:
    """Like (`increment: true`) or unlike a review."""
    return await service.toggle_like(review_id, request.increment, ip)


@router.post("/reviews/{review_id}/views", status_code=status.HTTP_204_NO_CONTENT)
async def track_view(
    review_id: int,
    ip: str = Depends(client_ip),
    service: EngagementService = Depends(get_engagement_service),
) -> Response:
    """Count a view. Always answers 204."""
    await service.track_view(review_id, ip)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/reviews",
    response_model=ReviewWriteResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_review(
    request: ReviewCreateRequest,
    store: ReviewStore = Depends(get_review_store),
) -> ReviewWriteResult:
    """Create a review in the default locale. Publishing it starts a background translation."""
    return await store.create_review(request)


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewWriteResult,
    dependencies=[Depends(require_admin)],
)
async def update_review(
    review_id: int,
    request: ReviewUpdateRequest,
    locale: Optional[str] = Query(None, description="Locale to write, defaults to the primary locale"),
    store: ReviewStore = Depends(get_review_store),
) -> ReviewWriteResult:
    """
    Update a review.

    Changes to the primary locale of a published review are translated in
    the background; the response does not wait for the translation.
    """
    return await store.update_review(review_id, request, locale=locale)
