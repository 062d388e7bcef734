"""
Translation Synchronization Engine.

Keeps the secondary locale of a review in step with the primary one. After
each primary write it decides between a full translation, a format-only sync
or nothing, and hands the work to the background dispatcher.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol

from review_pipeline.config.settings import settings
from review_pipeline.core.rich_text import (
    collect_text_leaves,
    create_rich_text_from_plain,
    extract_plain_text,
    sync_rich_text_format,
)
from review_pipeline.core.task_dispatcher import BackgroundTaskDispatcher
from review_pipeline.models import FavoriteQuote, ReviewDocument, ReviewUpdateRequest, SyncStrategy
from review_pipeline.models.dtos import RICH_TEXT_FIELDS
from review_pipeline.monitoring.metrics import record_translation_run

logger = logging.getLogger(__name__)


class Translator(Protocol):
    async def translate(self, text: str, target_language: Optional[str] = None) -> str: ...


class LocaleContentStore(Protocol):
    async def get_document(self, review_id: int, locale: str) -> Optional[ReviewDocument]: ...

    async def update_review(
        self,
        review_id: int,
        data: ReviewUpdateRequest,
        locale: str = ...,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Any: ...


def plain_text_snapshot(doc: Optional[ReviewDocument]) -> Dict[str, Any]:
    """Plain text of every translatable field, used to detect content edits."""
    if doc is None:
        return {}
    snapshot: Dict[str, Any] = {field: extract_plain_text(getattr(doc, field)) for field in RICH_TEXT_FIELDS}
    snapshot["favorite_quotes"] = [quote.quote for quote in doc.favorite_quotes]
    return snapshot


def structure_snapshot(doc: Optional[ReviewDocument]) -> str:
    """Canonical serialisation of the translatable fields, used to detect formatting edits."""
    if doc is None:
        return ""
    payload = {field: getattr(doc, field) for field in RICH_TEXT_FIELDS}
    payload["favorite_quotes"] = [quote.model_dump() for quote in doc.favorite_quotes]
    return json.dumps(payload, sort_keys=True, ensure_ascii=False)


class TranslationSyncEngine:
    """
    Decides and performs the translation work for published reviews.
    """

    def __init__(
        self,
        translator: Translator,
        content_store: LocaleContentStore,
        dispatcher: BackgroundTaskDispatcher,
        target_locale: Optional[str] = None,
    ):
        """
        Args:
            translator: Client used for full translations.
            content_store: Review store used to read and write the target locale.
            dispatcher: Owner of the background tasks.
            target_locale: Locale kept in sync, defaults to `TRANSLATION_TARGET_LOCALE`.
        """
        self.translator = translator
        self.content_store = content_store
        self.dispatcher = dispatcher
        self.target_locale = target_locale or settings.TRANSLATION_TARGET_LOCALE

    def decide(self, new_doc: ReviewDocument, previous_doc: Optional[ReviewDocument]) -> SyncStrategy:
        """Pick the strategy for a published document."""
        if previous_doc is None or not previous_doc.is_published:
            return SyncStrategy.FULL
        if plain_text_snapshot(new_doc) != plain_text_snapshot(previous_doc):
            return SyncStrategy.FULL
        if structure_snapshot(new_doc) != structure_snapshot(previous_doc):
            return SyncStrategy.FORMAT_SYNC
        return SyncStrategy.NONE

    def on_review_published(
        self,
        new_doc: ReviewDocument,
        previous_doc: Optional[ReviewDocument] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> SyncStrategy:
        """
        React to a write of the primary locale.

        The decision is taken here; the translation itself runs on the
        dispatcher and is never awaited by the caller.

        Args:
            new_doc: The document as just persisted.
            previous_doc: The document before the write, None on creation.
            context: Write context; `skip_translation` suppresses all work.

        Returns:
            SyncStrategy: What was dispatched.
        """
        if context and context.get("skip_translation"):
            logger.debug(f"Skipping translation for review {new_doc.id}: skip_translation is set")
            return SyncStrategy.SKIPPED
        if not new_doc.is_published:
            return SyncStrategy.SKIPPED
        if new_doc.id is None:
            logger.warning("Cannot translate a review without an id")
            return SyncStrategy.SKIPPED

        strategy = self.decide(new_doc, previous_doc)
        if strategy == SyncStrategy.FULL:
            self.dispatcher.dispatch(self.run_full_translation(new_doc), name=f"translate-review-{new_doc.id}")
        elif strategy == SyncStrategy.FORMAT_SYNC:
            self.dispatcher.dispatch(self.run_format_sync(new_doc), name=f"format-sync-review-{new_doc.id}")
        logger.info(f"Review {new_doc.id}: translation strategy {strategy.value}")
        return strategy

    async def _translate_field(self, rich_text: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if rich_text is None:
            return None
        translated = await self.translator.translate(extract_plain_text(rich_text), self.target_locale)
        return create_rich_text_from_plain(translated)

    async def _translate_quotes(self, quotes: List[FavoriteQuote]) -> List[FavoriteQuote]:
        async def translate_quote(quote: FavoriteQuote) -> FavoriteQuote:
            text = await self.translator.translate(quote.quote, self.target_locale)
            return FavoriteQuote(quote=text, page=quote.page)

        return list(await asyncio.gather(*(translate_quote(quote) for quote in quotes)))

    async def _write_target(self, review_id: int, fields: Dict[str, Any]) -> None:
        await self.content_store.update_review(
            review_id,
            ReviewUpdateRequest(**fields),
            locale=self.target_locale,
            context={"skip_translation": True},
        )

    async def run_full_translation(self, doc: ReviewDocument) -> None:
        """Translate every field of `doc` and overwrite the target locale."""
        logger.info(f"Starting background translation for review {doc.id} ({doc.title})")
        try:
            fields: Dict[str, Any] = {}
            for field in RICH_TEXT_FIELDS:
                fields[field] = await self._translate_field(getattr(doc, field))
            fields["favorite_quotes"] = await self._translate_quotes(doc.favorite_quotes)
            await self._write_target(doc.id, fields)
        except Exception as e:
            record_translation_run(SyncStrategy.FULL.value, "failed")
            logger.error(f"Background translation failed for review {doc.id}: {e}", exc_info=True)
            return
        record_translation_run(SyncStrategy.FULL.value, "success")
        logger.info(f"Translation complete for review {doc.id}")

    async def run_format_sync(self, doc: ReviewDocument) -> None:
        """
        Re-apply the formatting of `doc` to the existing translation.

        Falls back to a full translation when the target locale is missing a
        field the primary has, when a field no longer has the same number of
        text nodes on both sides, or when the quotes no longer line up.
        """
        logger.info(f"Starting format sync for review {doc.id}")
        try:
            target = await self.content_store.get_document(doc.id, self.target_locale)
            if target is None:
                logger.info(f"Review {doc.id} has no {self.target_locale} content, translating in full")
                await self.run_full_translation(doc)
                return

            fields: Dict[str, Any] = {}
            for field in RICH_TEXT_FIELDS:
                source = getattr(doc, field)
                translated = getattr(target, field)
                if source is not None and translated is None:
                    logger.info(
                        f"Review {doc.id} {self.target_locale} content lacks {field}, translating in full"
                    )
                    await self.run_full_translation(doc)
                    return
                if len(collect_text_leaves(source)) != len(collect_text_leaves(translated)):
                    logger.info(
                        f"Review {doc.id} {field} no longer lines up with its {self.target_locale} text, "
                        "translating in full"
                    )
                    await self.run_full_translation(doc)
                    return
                fields[field] = sync_rich_text_format(source, translated)

            if len(target.favorite_quotes) != len(doc.favorite_quotes):
                logger.info(f"Review {doc.id} quotes are out of step, translating in full")
                await self.run_full_translation(doc)
                return
            fields["favorite_quotes"] = [
                FavoriteQuote(quote=translated.quote, page=source.page)
                for source, translated in zip(doc.favorite_quotes, target.favorite_quotes)
            ]

            await self._write_target(doc.id, fields)
        except Exception as e:
            record_translation_run(SyncStrategy.FORMAT_SYNC.value, "failed")
            logger.error(f"Format sync failed for review {doc.id}: {e}", exc_info=True)
            return
        record_translation_run(SyncStrategy.FORMAT_SYNC.value, "success")
        logger.info(f"Format sync complete for review {doc.id}")
