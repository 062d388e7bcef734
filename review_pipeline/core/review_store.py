"""
Review write path.

Persists reviews and their per-locale rich content, then hands primary-locale
writes to the translation engine. Writes carrying `skip_translation` in their
context (the engine's own writes) never trigger another translation.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from review_pipeline.config.settings import settings
from review_pipeline.core.exceptions import DuplicateSlugError, ReviewNotFoundError
from review_pipeline.models import (
    ReviewCreateRequest,
    ReviewDocument,
    ReviewLocaleORM,
    ReviewORM,
    ReviewStatus,
    ReviewUpdateRequest,
    ReviewWriteResult,
    SyncStrategy,
)
from review_pipeline.models.dtos import RICH_TEXT_FIELDS
from review_pipeline.utils.db_session import get_db_session_context_manager

logger = logging.getLogger(__name__)

LOCALE_FIELDS = RICH_TEXT_FIELDS + ("favorite_quotes",)
REVIEW_FIELDS = ("title", "slug", "author_id", "status")


def to_document(review: ReviewORM, locale_row: Optional[ReviewLocaleORM], locale: str) -> ReviewDocument:
    """Build a detached document from a review row and one of its locale rows."""
    content: Dict[str, Any] = {}
    if locale_row is not None:
        for field in RICH_TEXT_FIELDS:
            content[field] = copy.deepcopy(getattr(locale_row, field))
        content["favorite_quotes"] = copy.deepcopy(locale_row.favorite_quotes) or []
    return ReviewDocument(
        id=review.id,
        title=review.title,
        slug=review.slug,
        author_id=review.author_id,
        status=review.status,
        publish_date=review.publish_date,
        views=review.views or 0,
        likes=review.likes or 0,
        locale=locale,
        **content,
    )


class ReviewStore:
    """
    Content store for reviews.

    `translation_engine` is attached after construction because the engine
    itself writes translations back through this store.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        translation_engine=None,
        default_locale: Optional[str] = None,
    ):
        self._session_factory = session_factory
        self.translation_engine = translation_engine
        self.default_locale = default_locale or settings.DEFAULT_LOCALE

    def _session_scope(self, session: Optional[AsyncSession] = None):
        return get_db_session_context_manager(existing_session=session, session_factory=self._session_factory)

    @staticmethod
    async def _load_locale(session: AsyncSession, review_id: int, locale: str) -> Optional[ReviewLocaleORM]:
        result = await session.execute(
            select(ReviewLocaleORM).where(
                ReviewLocaleORM.review_id == review_id,
                ReviewLocaleORM.locale == locale,
            )
        )
        return result.scalars().first()

    @staticmethod
    async def _ensure_unique_slug(session: AsyncSession, slug: str, review_id: Optional[int] = None) -> None:
        query = select(ReviewORM.id).where(ReviewORM.slug == slug)
        if review_id is not None:
            query = query.where(ReviewORM.id != review_id)
        if (await session.execute(query)).scalar_one_or_none() is not None:
            raise DuplicateSlugError(slug)

    async def get_document(self, review_id: int, locale: Optional[str] = None) -> Optional[ReviewDocument]:
        """
        Read a review in one locale.

        Returns:
            ReviewDocument | None: None if the review does not exist. Rich-text
            fields are None when the locale has no content yet.
        """
        locale = locale or self.default_locale
        async with self._session_scope() as session:
            review = await session.get(ReviewORM, review_id)
            if review is None:
                return None
            locale_row = await self._load_locale(session, review_id, locale)
            return to_document(review, locale_row, locale)

    def _translate_after_write(
        self,
        new_doc: ReviewDocument,
        previous_doc: Optional[ReviewDocument],
        locale: str,
        context: Optional[Mapping[str, Any]],
    ) -> SyncStrategy:
        if context and context.get("skip_translation"):
            return SyncStrategy.SKIPPED
        if locale != self.default_locale or self.translation_engine is None:
            return SyncStrategy.SKIPPED
        return self.translation_engine.on_review_published(new_doc, previous_doc, context)

    async def create_review(
        self,
        data: ReviewCreateRequest,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ReviewWriteResult:
        """
        Create a review with its default-locale content.

        Raises:
            DuplicateSlugError: The slug is taken.
        """
        async with self._session_scope() as session:
            await self._ensure_unique_slug(session, data.slug)
            review = ReviewORM(
                title=data.title,
                slug=data.slug,
                author_id=data.author_id,
                status=data.status.value,
                views=0,
                likes=0,
                publish_date=datetime.now(timezone.utc) if data.status == ReviewStatus.PUBLISHED else None,
            )
            session.add(review)
            await session.flush()

            locale_row = ReviewLocaleORM(
                review_id=review.id,
                locale=self.default_locale,
                review_content=data.review_content,
                what_i_loved=data.what_i_loved,
                what_could_be_better=data.what_could_be_better,
                perfect_for=data.perfect_for,
                favorite_quotes=[quote.model_dump() for quote in data.favorite_quotes],
            )
            session.add(locale_row)
            await session.flush()
            await session.refresh(review)
            new_doc = to_document(review, locale_row, self.default_locale)

        logger.info(f"Created review {new_doc.id} ({new_doc.slug}) as {new_doc.status.value}")
        strategy = self._translate_after_write(new_doc, None, self.default_locale, context)
        return ReviewWriteResult(review=new_doc, translation=strategy.value)

    async def update_review(
        self,
        review_id: int,
        data: Union[ReviewUpdateRequest, Mapping[str, Any]],
        locale: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ReviewWriteResult:
        """
        Apply a partial update to a review in one locale.

        Only fields present in `data` are written. After the write commits,
        a change to the default locale is passed to the translation engine
        together with the document as it was before the write.

        Args:
            review_id: Review to update.
            data: Fields to change.
            locale: Locale whose rich content is written, defaults to the primary locale.
            context: Write context, e.g. `{"skip_translation": True}`.

        Returns:
            ReviewWriteResult: The updated document in `locale` and the translation strategy.

        Raises:
            ReviewNotFoundError: No such review.
            DuplicateSlugError: The new slug is taken.
        """
        locale = locale or self.default_locale
        if not isinstance(data, ReviewUpdateRequest):
            data = ReviewUpdateRequest.model_validate(dict(data))
        changes = data.model_dump(exclude_unset=True)

        async with self._session_scope() as session:
            review = await session.get(ReviewORM, review_id)
            if review is None:
                raise ReviewNotFoundError()

            primary_row = await self._load_locale(session, review_id, self.default_locale)
            previous_doc = to_document(review, primary_row, self.default_locale)

            if "slug" in changes and changes["slug"] != review.slug:
                await self._ensure_unique_slug(session, changes["slug"], review_id)
            for field in REVIEW_FIELDS:
                if field in changes and changes[field] is not None:
                    value = changes[field]
                    setattr(review, field, value.value if isinstance(value, ReviewStatus) else value)
            if review.status == ReviewStatus.PUBLISHED.value and review.publish_date is None:
                review.publish_date = datetime.now(timezone.utc)

            locale_changes = {field: changes[field] for field in LOCALE_FIELDS if field in changes}
            locale_row = primary_row if locale == self.default_locale else await self._load_locale(
                session, review_id, locale
            )
            if locale_changes:
                if locale_row is None:
                    locale_row = ReviewLocaleORM(review_id=review_id, locale=locale)
                    session.add(locale_row)
                for field, value in locale_changes.items():
                    setattr(locale_row, field, value)

            await session.flush()
            await session.refresh(review)
            new_doc = to_document(review, locale_row, locale)

        logger.info(f"Updated review {review_id} ({locale})")
        strategy = self._translate_after_write(new_doc, previous_doc, locale, context)
        return ReviewWriteResult(review=new_doc, translation=strategy.value)
