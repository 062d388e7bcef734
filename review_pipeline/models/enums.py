"""Status vocabularies stored as plain strings in the database."""

from enum import Enum


class CommentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REPORTED = "reported"


class ReviewStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class SyncStrategy(str, Enum):
    """Outcome of the translation decision for one review write."""
    FULL = "full"
    FORMAT_SYNC = "format_sync"
    NONE = "none"
    SKIPPED = "skipped"
