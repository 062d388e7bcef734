"""
Atomic Counter Store for review engagement counters.

Every change is a single `UPDATE ... RETURNING` evaluated by the database, so
concurrent increments never lose updates.
"""

import logging
from typing import Optional

from sqlalchemy import case, func, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from review_pipeline.models import ReviewORM
from review_pipeline.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)

COUNTER_FIELDS = frozenset({"views", "likes"})


class CounterStore:
    """Increments and decrements whitelisted integer columns of `reviews`."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    @staticmethod
    def _column(field: str):
        if field not in COUNTER_FIELDS:
            raise ValueError(f"Unsupported counter field: {field}")
        return getattr(ReviewORM, field)

    async def _apply(self, review_id: int, field: str, value_expr, session: Optional[AsyncSession]) -> Optional[int]:
        column = self._column(field)
        stmt = (
            update(ReviewORM)
            .where(ReviewORM.id == review_id)
            .values({field: value_expr})
            .returning(column)
            .execution_options(synchronize_session=False)
        )
        async with get_db_session_context_manager(existing_session=session, session_factory=self._session_factory) as db:
            value = (await db.execute(stmt)).scalar_one_or_none()
        if value is None:
            logger.debug(f"Counter update on missing review {review_id} ({field})")
        return value

    async def increment(
        self, review_id: int, field: str, delta: int = 1, session: Optional[AsyncSession] = None
    ) -> Optional[int]:
        """
        Add `delta` to a counter.

        Args:
            review_id: Review to update.
            field: "views" or "likes".
            delta: Non-negative amount to add.
            session: Optional session to join.

        Returns:
            int | None: The new value, or None if the review does not exist.
        """
        if delta < 0:
            raise ValueError("delta must be non-negative")
        current = func.coalesce(self._column(field), 0)
        return await self._apply(review_id, field, current + delta, session)

    async def decrement(
        self, review_id: int, field: str, delta: int = 1, session: Optional[AsyncSession] = None
    ) -> Optional[int]:
        """Subtract `delta` from a counter, never going below zero."""
        if delta < 0:
            raise ValueError("delta must be non-negative")
        current = func.coalesce(self._column(field), 0)
        clamped = case((current - delta < 0, 0), else_=current - delta)
        return await self._apply(review_id, field, clamped, session)
