"""
Models package for the Review Pipeline service.

This package contains SQLAlchemy ORM models and Pydantic DTOs.
"""

# Ensure all ORM models are registered with the Base metadata when this package is imported.
from . import base
from . import commenter_orm
from . import comment_orm
from . import review_orm

# Import Base and ORM models for easy access
from .base import Base
from .commenter_orm import CommenterORM
from .comment_orm import CommentORM, CommentReportORM
from .review_orm import ReviewORM, ReviewLocaleORM
from .enums import CommentStatus, ReviewStatus, SyncStrategy

# Import DTOs for easy access
from .dtos import (
    BanRequest,
    CommentCreateRequest,
    CommentDTO,
    CommenterDTO,
    CommentStatusUpdate,
    CommentSubmission,
    FavoriteQuote,
    LikeRequest,
    LikeResult,
    RateLimitResult,
    ReportCommentRequest,
    ReportResult,
    ReviewCreateRequest,
    ReviewDocument,
    ReviewUpdateRequest,
    ReviewWriteResult,
    SubmitCommentResult,
)

__all__ = [
    # Base
    "Base",
    # ORMs
    "CommenterORM",
    "CommentORM",
    "CommentReportORM",
    "ReviewORM",
    "ReviewLocaleORM",
    # Enums
    "CommentStatus",
    "ReviewStatus",
    "SyncStrategy",
    # DTOs
    "BanRequest",
    "CommentCreateRequest",
    "CommentDTO",
    "CommenterDTO",
    "CommentStatusUpdate",
    "CommentSubmission",
    "FavoriteQuote",
    "LikeRequest",
    "LikeResult",
    "RateLimitResult",
    "ReportCommentRequest",
    "ReportResult",
    "ReviewCreateRequest",
    "ReviewDocument",
    "ReviewUpdateRequest",
    "ReviewWriteResult",
    "SubmitCommentResult",
]
