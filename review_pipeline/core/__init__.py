"""
Core components of the Review Pipeline service.
"""

from .counter_store import CounterStore
from .engagement import EngagementService
from .moderation import CommentModerationService
from .rate_limiter import RateLimiter
from .review_store import ReviewStore
from .spam_classifier import get_spam_reasons, is_spam_content
from .task_dispatcher import BackgroundTaskDispatcher
from .translation_sync import TranslationSyncEngine
from .trust_ledger import TrustLedger

__all__ = [
    "BackgroundTaskDispatcher",
    "CommentModerationService",
    "CounterStore",
    "EngagementService",
    "RateLimiter",
    "ReviewStore",
    "TranslationSyncEngine",
    "TrustLedger",
    "get_spam_reasons",
    "is_spam_content",
]
