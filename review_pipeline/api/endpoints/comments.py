"""
Comment API endpoints: submission, listing, reporting and moderation.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Path, status

from review_pipeline.api.dependencies import (
    client_ip,
    get_moderation_service,
    get_trust_ledger,
    is_privileged,
    require_admin,
)
from review_pipeline.core.moderation import CommentModerationService
from review_pipeline.core.trust_ledger import TrustLedger
from review_pipeline.models import (
    BanRequest,
    CommentCreateRequest,
    CommentDTO,
    CommenterDTO,
    CommentStatusUpdate,
    ReportCommentRequest,
    ReportResult,
    SubmitCommentResult,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/reviews/{review_id}/comments",
    response_model=SubmitCommentResult,
    status_code=status.HTTP_201_CREATED,
)
async def submit_comment(
    request: CommentCreateRequest,
    review_id: int = Path(..., description="Review being commented on"),
    ip: str = Depends(client_ip),
    service: CommentModerationService = Depends(get_moderation_service),
) -> SubmitCommentResult:
    """
    Submit a comment on a review.

    Clean comments are published immediately; comments that look like spam
    are held for moderation.
    """
    submission = {
        "name": request.name,
        "email": request.email,
        "content": request.content,
        "review_id": review_id,
    }
    return await service.submit_comment(submission, ip)


@router.get("/reviews/{review_id}/comments", response_model=List[CommentDTO])
async def list_comments(
    review_id: int,
    privileged: bool = Depends(is_privileged),
    service: CommentModerationService = Depends(get_moderation_service),
) -> List[CommentDTO]:
    """Approved comments for readers, every comment for moderators."""
    return await service.list_comments(review_id, is_privileged=privileged)


@router.post("/comments/{comment_id}/reports", response_model=ReportResult, status_code=status.HTTP_201_CREATED)
async def report_comment(
    comment_id: int,
    request: ReportCommentRequest,
    ip: str = Depends(client_ip),
    service: CommentModerationService = Depends(get_moderation_service),
) -> ReportResult:
    """Report a comment as inappropriate. Each reader can report a comment once."""
    return await service.report_comment(comment_id, request.reporter_email, ip)


@router.patch("/comments/{comment_id}/status", response_model=CommentDTO)
async def set_comment_status(
    comment_id: int,
    request: CommentStatusUpdate,
    privileged: bool = Depends(is_privileged),
    service: CommentModerationService = Depends(get_moderation_service),
) -> CommentDTO:
    """Moderator status change. Approving a pending comment counts towards the commenter's trust."""
    return await service.set_comment_status(
        comment_id,
        request.status,
        is_privileged=privileged,
        expected_status=request.expected_status,
    )


@router.patch(
    "/commenters/{commenter_id}/ban",
    response_model=CommenterDTO,
    dependencies=[Depends(require_admin)],
)
async def set_commenter_ban(
    commenter_id: int,
    request: BanRequest,
    ledger: TrustLedger = Depends(get_trust_ledger),
) -> CommenterDTO:
    """Ban or unban a commenter."""
    return await ledger.set_banned(commenter_id, request.banned)
