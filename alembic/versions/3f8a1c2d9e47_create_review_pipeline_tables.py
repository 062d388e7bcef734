"""create review, commenter and comment tables

Revision ID: 3f8a1c2d9e47
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the review content tables (one row per review, one row per review
and locale) and the comment moderation tables. The unique constraints on
`commenters.email_hash`, `comment_reports (comment_id, reporter_hash)` and
`review_locales (review_id, locale)` back the ON CONFLICT upserts.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "3f8a1c2d9e47"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")
JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _timestamps(*names: str):
    return [
        sa.Column(name, sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now())
        for name in names
    ]


def upgrade() -> None:
    op.create_table(
        "reviews",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("author_id", ID, nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="draft"),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("publish_date", sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("idx_reviews_status_publish_date", "reviews", ["status", "publish_date"])

    op.create_table(
        "review_locales",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("review_id", ID, sa.ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False),
        sa.Column("locale", sa.String(8), nullable=False),
        sa.Column("review_content", JSON, nullable=True),
        sa.Column("what_i_loved", JSON, nullable=True),
        sa.Column("what_could_be_better", JSON, nullable=True),
        sa.Column("perfect_for", JSON, nullable=True),
        sa.Column("favorite_quotes", JSON, nullable=True),
        *_timestamps("updated_at"),
        sa.UniqueConstraint("review_id", "locale", name="uq_review_locales_review_locale"),
    )

    op.create_table(
        "commenters",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, comment="Display name, last write wins."),
        sa.Column("email_hash", sa.String(64), nullable=False, unique=True, comment="SHA-256 of the lowercased email."),
        sa.Column("approved_comment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("trusted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("idx_commenters_banned", "commenters", ["banned"])

    op.create_table(
        "comments",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("review_id", ID, sa.ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False),
        sa.Column("commenter_id", ID, sa.ForeignKey("commenters.id"), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps("created_at", "updated_at"),
    )
    op.create_index("idx_comments_review_status_created", "comments", ["review_id", "status", "created_at"])
    op.create_index("idx_comments_commenter", "comments", ["commenter_id"])

    op.create_table(
        "comment_reports",
        sa.Column("id", ID, primary_key=True, autoincrement=True),
        sa.Column("comment_id", ID, sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reporter_hash", sa.String(64), nullable=False),
        sa.Column("reported_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("comment_id", "reporter_hash", name="uq_comment_reports_comment_reporter"),
    )


def downgrade() -> None:
    op.drop_table("comment_reports")
    op.drop_index("idx_comments_commenter", table_name="comments")
    op.drop_index("idx_comments_review_status_created", table_name="comments")
    op.drop_table("comments")
    op.drop_index("idx_commenters_banned", table_name="commenters")
    op.drop_table("commenters")
    op.drop_table("review_locales")
    op.drop_index("idx_reviews_status_publish_date", table_name="reviews")
    op.drop_table("reviews")
