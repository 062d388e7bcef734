"""
Google Cloud Translation (v2 REST) client with a Redis-backed cache.

Translation never fails the caller: on timeout, HTTP error or missing
configuration the original text is returned.
"""

import asyncio
import logging
from typing import Optional

import httpx
from redis.asyncio import Redis

from review_pipeline.config.settings import settings
from review_pipeline.monitoring.metrics import record_cache_lookup, record_translation_fallback

logger = logging.getLogger(__name__)


class TranslationCache:
    """
    Caches translations under `translate:<lang>:<text>`.

    Cache errors are logged and otherwise ignored.
    """

    def __init__(self, redis: Optional[Redis], ttl_seconds: Optional[int] = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.TRANSLATION_CACHE_TTL_SECONDS

    @staticmethod
    def key(text: str, target_language: str) -> str:
        return f"translate:{target_language}:{text}"

    async def get(self, text: str, target_language: str) -> Optional[str]:
        if self.redis is None:
            return None
        try:
            cached = await self.redis.get(self.key(text, target_language))
        except Exception as e:
            logger.warning(f"Translation cache read failed: {e}")
            return None
        record_cache_lookup(cached is not None)
        if isinstance(cached, bytes):
            cached = cached.decode("utf-8")
        return cached

    async def set(self, text: str, target_language: str, translation: str) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.setex(self.key(text, target_language), self.ttl_seconds, translation)
        except Exception as e:
            logger.warning(f"Translation cache write failed: {e}")


class GoogleTranslateClient:
    """
    Async client for the Google Cloud Translation v2 REST API.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[TranslationCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the translation client.

        Args:
            api_key: API key; without one every call returns its input unchanged.
            api_url: Endpoint, defaults to `TRANSLATION_API_URL`.
            timeout: Limit in seconds for a whole request, defaults to `TRANSLATION_TIMEOUT_SECONDS`.
            cache: Optional translation cache.
            transport: Optional httpx transport, used to stub the API in tests.
        """
        self.api_key = api_key if api_key is not None else settings.TRANSLATION_API_KEY
        self.api_url = api_url or settings.TRANSLATION_API_URL
        self.timeout = timeout if timeout is not None else settings.TRANSLATION_TIMEOUT_SECONDS
        self.cache = cache

        self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=transport)

        if not self.api_key:
            logger.warning("TRANSLATION_API_KEY not configured - texts will be returned untranslated")
        else:
            logger.info(f"Translation client initialized for {self.api_url}")

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
        logger.info("Translation client closed")

    async def translate(self, text: str, target_language: Optional[str] = None) -> str:
        """
        Translate `text`, returning the original on any failure.

        Args:
            text: Plain text to translate. Empty or blank text is returned as is.
            target_language: ISO code, defaults to `TRANSLATION_TARGET_LOCALE`.

        Returns:
            str: The translation, or `text` itself.
        """
        if not text or not text.strip():
            return text
        target_language = target_language or settings.TRANSLATION_TARGET_LOCALE

        if self.cache is not None:
            cached = await self.cache.get(text, target_language)
            if cached is not None:
                return cached

        if not self.api_key:
            record_translation_fallback("unconfigured")
            return text

        logger.info(f"Translating {len(text)} chars to {target_language}")
        try:
            # httpx limits each phase; wait_for bounds the whole exchange
            response = await asyncio.wait_for(
                self.client.post(
                    self.api_url,
                    params={"key": self.api_key},
                    json={"q": text, "target": target_language, "format": "text"},
                ),
                timeout=self.timeout,
            )
            response.raise_for_status()
            translation = response.json()["data"]["translations"][0]["translatedText"]
        except (httpx.TimeoutException, asyncio.TimeoutError):
            logger.error(f"Translation request timed out after {self.timeout} seconds")
            record_translation_fallback("timeout")
            return text
        except httpx.HTTPStatusError as e:
            logger.error(f"Translation API returned HTTP {e.response.status_code}: {e.response.text[:200]}")
            record_translation_fallback("http_error")
            return text
        except Exception as e:
            logger.error(f"Translation failed: {e}", exc_info=True)
            record_translation_fallback("error")
            return text

        if self.cache is not None:
            await self.cache.set(text, target_language, translation)
        return translation
