"""
SQLAlchemy ORM models for the 'comments' and 'comment_reports' tables.
"""

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Index, Integer, String, Text, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from .base import Base
from .enums import CommentStatus

_ID = BigInteger().with_variant(Integer, "sqlite")


class CommentORM(Base):
    """
    SQLAlchemy ORM model representing a reader comment on a review.

    Attributes:
        id (int): Primary key, auto-incrementing.
        author_name (str): Name shown with the comment.
        content (str): Comment body, at most 2000 characters.
        review_id (int): Review the comment belongs to.
        commenter_id (int): Commenter who wrote it.
        status (str): One of pending, approved, rejected, reported.
        report_count (int): Number of distinct reporters.
        created_at (datetime): Submission timestamp.
        updated_at (datetime): Last modification timestamp.
    """
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    review_id: Mapped[int] = mapped_column(_ID, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    commenter_id: Mapped[int] = mapped_column(_ID, ForeignKey("commenters.id"), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=CommentStatus.PENDING.value, server_default=CommentStatus.PENDING.value
    )
    report_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_comments_review_status_created", "review_id", "status", "created_at"),
        Index("idx_comments_commenter", "commenter_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<CommentORM(id={self.id}, review_id={self.review_id}, "
            f"status='{self.status}', reports={self.report_count})>"
        )


class CommentReportORM(Base):
    """
    One report of a comment by one reporter identity.

    The (comment_id, reporter_hash) pair is unique, which is what makes a
    second report from the same identity fail.
    """
    __tablename__ = "comment_reports"

    id: Mapped[int] = mapped_column(_ID, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(_ID, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)
    reporter_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    reported_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("comment_id", "reporter_hash", name="uq_comment_reports_comment_reporter"),
    )

    def __repr__(self) -> str:
        return f"<CommentReportORM(comment_id={self.comment_id}, reporter='{self.reporter_hash[:8]}...')>"
