"""Test doubles and data builders shared across the test-suite."""

import time
from typing import Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from review_pipeline.models import ReviewLocaleORM, ReviewORM, ReviewStatus


class InMemoryRedis:
    """
    Test double for the handful of `redis.asyncio.Redis` commands the service uses.

    Expiry follows the monotonic clock; `advance` moves it forward so window
    resets can be tested without sleeping.
    """

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}
        self._expires: Dict[str, float] = {}
        self._offset = 0.0

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def _purge(self, key: str) -> None:
        deadline = self._expires.get(key)
        if deadline is not None and deadline <= self._now():
            self._values.pop(key, None)
            self._expires.pop(key, None)

    def advance(self, seconds: float) -> None:
        self._offset += seconds

    async def incr(self, key: str) -> int:
        self._purge(key)
        value = int(self._values.get(key, "0")) + 1
        self._values[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        self._purge(key)
        if key not in self._values:
            return False
        self._expires[key] = self._now() + seconds
        return True

    async def ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self._values:
            return -2
        deadline = self._expires.get(key)
        if deadline is None:
            return -1
        return max(1, int(round(deadline - self._now())))

    async def get(self, key: str) -> Optional[str]:
        self._purge(key)
        return self._values.get(key)

    async def setex(self, key: str, seconds: int, value: str) -> bool:
        self._values[key] = value
        self._expires[key] = self._now() + seconds
        return True


class UpperCaseTranslator:
    """Deterministic translator: upper-cases its input and records every call."""

    def __init__(self) -> None:
        self.calls = []

    async def translate(self, text: str, target_language: Optional[str] = None) -> str:
        self.calls.append((text, target_language))
        if not text or not text.strip():
            return text
        return text.upper()


async def create_review_row(
    session_factory: async_sessionmaker[AsyncSession],
    slug: str = "the-hobbit",
    status: ReviewStatus = ReviewStatus.PUBLISHED,
    review_id: Optional[int] = None,
    likes: int = 0,
    content: Optional[dict] = None,
) -> int:
    """Insert a review (and its English content) directly, returning its id."""
    async with session_factory() as session:
        review = ReviewORM(title=slug.replace("-", " ").title(), slug=slug, status=status.value, likes=likes, views=0)
        if review_id is not None:
            review.id = review_id
        session.add(review)
        await session.flush()
        session.add(ReviewLocaleORM(review_id=review.id, locale="en", review_content=content, favorite_quotes=[]))
        await session.commit()
        return review.id


def paragraphs(*lines: str) -> dict:
    """Minimal rich-text document with one paragraph per line."""
    return {
        "root": {
            "type": "root",
            "children": [
                {"type": "paragraph", "children": [{"type": "text", "text": line}]}
                for line in lines
            ],
        }
    }


def formatted_paragraph(*runs: Tuple[int, str]) -> dict:
    """Rich-text document with one paragraph made of (format, text) inline runs."""
    return {
        "root": {
            "type": "root",
            "children": [
                {
                    "type": "paragraph",
                    "children": [{"type": "text", "format": fmt, "text": text} for fmt, text in runs],
                }
            ],
        }
    }
