"""
Error types raised by the Review Pipeline core.

Every error carries a user-facing `message` and a machine-readable `code`;
the API layer maps each class to an HTTP status.
"""

import math


class PipelineError(Exception):
    """Base error for comment, engagement and review operations."""

    status_code = 500

    def __init__(self, message: str, code: str = "pipeline_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CommentValidationError(PipelineError):
    """Submitted input failed validation."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, "validation_error")


class CommenterBannedError(PipelineError):
    """The commenter has been banned by an administrator."""

    status_code = 403

    def __init__(self, message: str = "You are not allowed to comment."):
        super().__init__(message, "commenter_banned")


class AlreadyReportedError(PipelineError):
    """The reporter identity already reported this comment."""

    status_code = 409

    def __init__(self, message: str = "You have already reported this comment"):
        super().__init__(message, "already_reported")


class RateLimitExceededError(PipelineError):
    """The caller exceeded the admission limit for an action."""

    status_code = 429

    def __init__(self, message: str, retry_after: int):
        self.retry_after = retry_after
        super().__init__(message, "rate_limit_exceeded")

    @classmethod
    def for_comments(cls, retry_after: int) -> "RateLimitExceededError":
        return cls(f"Too many comments. Please wait {retry_after} seconds.", retry_after)

    @classmethod
    def for_reports(cls, retry_after: int) -> "RateLimitExceededError":
        minutes = math.ceil(retry_after / 60)
        return cls(f"Too many reports. Please wait {minutes} minutes.", retry_after)

    @classmethod
    def for_likes(cls, retry_after: int) -> "RateLimitExceededError":
        return cls(f"Too many requests. Please wait {retry_after} seconds.", retry_after)


class PermissionDeniedError(PipelineError):
    """The caller is not privileged for an administrative operation."""

    status_code = 403

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


class InvalidTransitionError(PipelineError):
    """A status change was requested from a state the comment is no longer in."""

    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, "invalid_transition")


class ReviewNotFoundError(PipelineError):
    status_code = 404

    def __init__(self, message: str = "Review not found"):
        super().__init__(message, "review_not_found")


class CommentNotFoundError(PipelineError):
    status_code = 404

    def __init__(self, message: str = "Comment not found"):
        super().__init__(message, "comment_not_found")


class CommenterNotFoundError(PipelineError):
    status_code = 404

    def __init__(self, message: str = "Commenter not found"):
        super().__init__(message, "commenter_not_found")


class DuplicateSlugError(PipelineError):
    status_code = 409

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"A review with slug '{slug}' already exists", "duplicate_slug")
