"""
Pydantic Data Transfer Objects (DTOs) for the Review Pipeline service.

These models are used for API request/response validation and internal data transfer.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import CommentStatus, ReviewStatus

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Rich-text fields of a review locale, in the order they are processed
RICH_TEXT_FIELDS = ("review_content", "what_i_loved", "what_could_be_better", "perfect_for")


class CommentSubmission(BaseModel):
    """
    A reader's comment as submitted through the site.

    Name and content are trimmed before their length checks. Validators raise
    `ValueError` with the user-facing message, so the first error of a failed
    validation can be shown verbatim.
    """
    name: str
    email: str
    content: str
    review_id: int

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, v: Any) -> str:
        name = str(v or "").strip()
        if len(name) < 2:
            raise ValueError("Name must be at least 2 characters")
        if len(name) > 100:
            raise ValueError("Name must be less than 100 characters")
        return name

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        email = str(v or "").strip()
        if not EMAIL_PATTERN.match(email):
            raise ValueError("Please enter a valid email address")
        return email

    @field_validator("content", mode="before")
    @classmethod
    def check_content(cls, v: Any) -> str:
        content = str(v or "").strip()
        if len(content) < 3:
            raise ValueError("Comment must be at least 3 characters")
        if len(content) > 2000:
            raise ValueError("Comment must be less than 2000 characters")
        return content

    @field_validator("review_id")
    @classmethod
    def check_review_id(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Review ID must be positive")
        return v


class CommentCreateRequest(BaseModel):
    """Request body for posting a comment; the review id comes from the path."""
    # Missing fields reach CommentSubmission as blanks and get its messages
    name: str = ""
    email: str = ""
    content: str = ""


class CommentDTO(BaseModel):
    """
    DTO for a stored comment.

    Mirrors CommentORM and is used for API responses.
    """
    id: int
    review_id: int
    author_name: str
    content: str
    status: CommentStatus
    report_count: int = 0
    created_at: Optional[datetime] = None
    # Only filled in for moderators
    spam_reasons: Optional[List[str]] = None

    model_config = {"from_attributes": True}


class SubmitCommentResult(BaseModel):
    """Outcome of a successful submission."""
    comment: CommentDTO
    status: CommentStatus
    message: str


class ReportCommentRequest(BaseModel):
    reporter_email: str


class ReportResult(BaseModel):
    comment_id: int
    report_count: int
    status: CommentStatus
    message: str = "Thank you for your report. We will review this comment."


class CommentStatusUpdate(BaseModel):
    """
    Administrative status change.

    `expected_status`, when given, must match the stored status or the change
    is refused.
    """
    status: CommentStatus
    expected_status: Optional[CommentStatus] = None


class CommenterDTO(BaseModel):
    id: int
    name: str
    approved_comment_count: int
    trusted: bool
    banned: bool

    model_config = {"from_attributes": True}


class BanRequest(BaseModel):
    banned: bool = True


class RateLimitResult(BaseModel):
    """Result of one admission check against a fixed window."""
    allowed: bool
    remaining: int
    reset_in_seconds: int


class LikeRequest(BaseModel):
    increment: bool = True


class LikeResult(BaseModel):
    review_id: int
    likes: int


class FavoriteQuote(BaseModel):
    quote: str
    page: Optional[str] = None

    model_config = {"coerce_numbers_to_str": True}


class ReviewDocument(BaseModel):
    """
    A review as seen in one locale: locale-independent columns plus the rich
    content of that locale.

    This is what the translation engine compares between writes.
    """
    id: Optional[int] = None
    title: str
    slug: str
    author_id: Optional[int] = None
    status: ReviewStatus = ReviewStatus.DRAFT
    publish_date: Optional[datetime] = None
    views: int = 0
    likes: int = 0
    locale: str = "en"
    review_content: Optional[Dict[str, Any]] = None
    what_i_loved: Optional[Dict[str, Any]] = None
    what_could_be_better: Optional[Dict[str, Any]] = None
    perfect_for: Optional[Dict[str, Any]] = None
    favorite_quotes: List[FavoriteQuote] = Field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.status == ReviewStatus.PUBLISHED


class ReviewCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255)
    author_id: Optional[int] = None
    status: ReviewStatus = ReviewStatus.DRAFT
    review_content: Optional[Dict[str, Any]] = None
    what_i_loved: Optional[Dict[str, Any]] = None
    what_could_be_better: Optional[Dict[str, Any]] = None
    perfect_for: Optional[Dict[str, Any]] = None
    favorite_quotes: List[FavoriteQuote] = Field(default_factory=list)


class ReviewUpdateRequest(BaseModel):
    """Partial update; fields left out keep their stored value."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    author_id: Optional[int] = None
    status: Optional[ReviewStatus] = None
    review_content: Optional[Dict[str, Any]] = None
    what_i_loved: Optional[Dict[str, Any]] = None
    what_could_be_better: Optional[Dict[str, Any]] = None
    perfect_for: Optional[Dict[str, Any]] = None
    favorite_quotes: Optional[List[FavoriteQuote]] = None


class ReviewWriteResult(BaseModel):
    review: ReviewDocument
    translation: str
