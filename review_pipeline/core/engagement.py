"""
Likes and views on reviews, built on the atomic counter store.
"""

import logging

from review_pipeline.core.counter_store import CounterStore
from review_pipeline.core.exceptions import CommentValidationError, RateLimitExceededError, ReviewNotFoundError
from review_pipeline.core.rate_limiter import LIKE_POLICY, VIEW_POLICY, RateLimiter
from review_pipeline.models import LikeResult

logger = logging.getLogger(__name__)


class EngagementService:
    def __init__(self, rate_limiter: RateLimiter, counter_store: CounterStore):
        self.rate_limiter = rate_limiter
        self.counter_store = counter_store

    async def toggle_like(self, review_id: int, increment: bool, client_ip: str) -> LikeResult:
        """
        Like or unlike a review.

        Args:
            review_id: Review to update.
            increment: True to like, False to take a like back.
            client_ip: Caller address; limited to 5 toggles per review per minute.

        Returns:
            LikeResult: The new like count.

        Raises:
            CommentValidationError: Non-positive review id.
            RateLimitExceededError: Toggle limit reached.
            ReviewNotFoundError: No such review.
        """
        if review_id <= 0:
            raise CommentValidationError("Invalid review ID")

        admission = await self.rate_limiter.admit_policy(f"like:{client_ip}:{review_id}", LIKE_POLICY)
        if not admission.allowed:
            raise RateLimitExceededError.for_likes(admission.reset_in_seconds)

        if increment:
            likes = await self.counter_store.increment(review_id, "likes")
        else:
            likes = await self.counter_store.decrement(review_id, "likes")
        if likes is None:
            raise ReviewNotFoundError()
        return LikeResult(review_id=review_id, likes=likes)

    async def track_view(self, review_id: int, client_ip: str) -> None:
        """
        Count a view, at most once per address per review per minute.

        Never raises: view tracking must not break page rendering.
        """
        try:
            admission = await self.rate_limiter.admit_policy(f"view:{client_ip}:{review_id}", VIEW_POLICY)
            if not admission.allowed:
                return
            views = await self.counter_store.increment(review_id, "views")
            if views is None:
                logger.debug(f"View tracked for missing review {review_id}")
        except Exception as e:
            logger.error(f"Failed to track view for review {review_id}: {e}", exc_info=True)
