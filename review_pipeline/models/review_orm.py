"""
SQLAlchemy ORM models for the 'reviews' and 'review_locales' tables.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base, JSONType
from .enums import ReviewStatus

_ID = BigInteger().with_variant(Integer, "sqlite")


class ReviewORM(Base):
    """
    SQLAlchemy ORM model representing a book review.

    Locale-independent columns live here; the rich content of each locale is
    stored in `ReviewLocaleORM`.

    Attributes:
        id (int): Primary key, auto-incrementing.
        title (str): Review title.
        slug (str): Unique URL slug.
        author_id (int, optional): Author of the review.
        status (str): draft or published.
        views (int): View counter, only changed through atomic updates.
        likes (int): Like counter, only changed through atomic updates.
        publish_date (datetime, optional): When the review was first published.
    """
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    author_id: Mapped[Optional[int]] = mapped_column(_ID, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ReviewStatus.DRAFT.value, server_default=ReviewStatus.DRAFT.value
    )
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    publish_date: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_reviews_status_publish_date", "status", "publish_date"),
    )

    def __repr__(self) -> str:
        return f"<ReviewORM(id={self.id}, slug='{self.slug}', status='{self.status}')>"


class ReviewLocaleORM(Base):
    """
    Rich content of a review in one locale.

    Each rich-text field holds a Lexical-style JSON tree (`{"root": {...}}`);
    `favorite_quotes` is a list of `{"quote": str, "page": str | None}`.
    """
    __tablename__ = "review_locales"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(_ID, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    locale: Mapped[str] = mapped_column(String(8), nullable=False)
    review_content: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    what_i_loved: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    what_could_be_better: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    perfect_for: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    favorite_quotes: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(JSONType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("review_id", "locale", name="uq_review_locales_review_locale"),
    )

    def __repr__(self) -> str:
        return f"<ReviewLocaleORM(review_id={self.review_id}, locale='{self.locale}')>"
