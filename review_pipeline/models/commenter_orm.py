"""
SQLAlchemy ORM model for the 'commenters' table.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Integer, String, TIMESTAMP, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func, expression

from .base import Base


class CommenterORM(Base):
    """
    SQLAlchemy ORM model representing a commenter and their trust record.

    Attributes:
        id (int): Primary key, auto-incrementing.
        name (str): Display name from the most recent submission.
        email_hash (str): SHA-256 hex digest of the lowercased email. Unique.
        approved_comment_count (int): Number of comments moved from pending to approved.
        trusted (bool): Set once approved_comment_count reaches the trust threshold.
        banned (bool): Administrator-set flag; banned commenters cannot post.
        created_at (datetime): Row creation timestamp.
        updated_at (datetime): Last modification timestamp.
    """
    __tablename__ = "commenters"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Display name, last write wins.")
    email_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, comment="SHA-256 of the lowercased email.")
    approved_comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    trusted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=expression.false())
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=expression.false())
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_commenters_banned", "banned"),
    )

    def __repr__(self) -> str:
        return (
            f"<CommenterORM(id={self.id}, name='{self.name}', "
            f"approved={self.approved_comment_count}, trusted={self.trusted}, banned={self.banned})>"
        )
