"""
Shared FastAPI dependencies: service lookup, client identity and privilege.
"""

import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request

from review_pipeline.config.settings import settings
from review_pipeline.core.engagement import EngagementService
from review_pipeline.core.exceptions import PermissionDeniedError
from review_pipeline.core.moderation import CommentModerationService
from review_pipeline.core.review_store import ReviewStore
from review_pipeline.core.task_dispatcher import BackgroundTaskDispatcher
from review_pipeline.core.translation_sync import TranslationSyncEngine
from review_pipeline.core.trust_ledger import TrustLedger
from review_pipeline.integrations.redis_client import RedisResource
from review_pipeline.integrations.translator import GoogleTranslateClient
from review_pipeline.utils.identity import get_client_ip


@dataclass
class Services:
    """Everything the endpoints need, built once in the application lifespan."""
    moderation: CommentModerationService
    trust_ledger: TrustLedger
    engagement: EngagementService
    review_store: ReviewStore
    translation_engine: TranslationSyncEngine
    dispatcher: BackgroundTaskDispatcher
    redis: RedisResource
    translator: GoogleTranslateClient


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_moderation_service(services: Services = Depends(get_services)) -> CommentModerationService:
    return services.moderation


def get_trust_ledger(services: Services = Depends(get_services)) -> TrustLedger:
    return services.trust_ledger


def get_engagement_service(services: Services = Depends(get_services)) -> EngagementService:
    return services.engagement


def get_review_store(services: Services = Depends(get_services)) -> ReviewStore:
    return services.review_store


def client_ip(request: Request) -> str:
    """Caller address from proxy headers."""
    return get_client_ip(request.headers)


def is_privileged(x_admin_token: Optional[str] = Header(None)) -> bool:
    """True when the `X-Admin-Token` header matches `ADMIN_API_TOKEN`."""
    expected = settings.ADMIN_API_TOKEN
    if not expected or not x_admin_token:
        return False
    return secrets.compare_digest(x_admin_token.encode("utf-8"), expected.encode("utf-8"))


def require_admin(privileged: bool = Depends(is_privileged)) -> None:
    if not privileged:
        raise PermissionDeniedError()
