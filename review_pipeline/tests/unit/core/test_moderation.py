import pytest
from sqlalchemy import func, select

from review_pipeline.core.exceptions import (
    AlreadyReportedError,
    CommentNotFoundError,
    CommentValidationError,
    CommenterBannedError,
    InvalidTransitionError,
    PermissionDeniedError,
    RateLimitExceededError,
    ReviewNotFoundError,
)
from review_pipeline.core.moderation import (
    PENDING_MESSAGE,
    POSTED_MESSAGE,
    CommentModerationService,
    decide_initial_status,
)
from review_pipeline.core.rate_limiter import RateLimiter
from review_pipeline.core.trust_ledger import TrustLedger
from review_pipeline.models import CommentCreateRequest, CommentORM, CommentReportORM, CommentStatus, ReviewStatus
from review_pipeline.tests.helpers import create_review_row


@pytest.fixture
def ledger(session_factory) -> TrustLedger:
    return TrustLedger(session_factory=session_factory, trust_threshold=3)


@pytest.fixture
def service(rate_limiter, ledger, session_factory) -> CommentModerationService:
    return CommentModerationService(rate_limiter, ledger, session_factory=session_factory, report_threshold=3)


@pytest.fixture
def unlimited_service(ledger, session_factory) -> CommentModerationService:
    """Service whose rate limiter admits everything, for tests that post many comments."""
    return CommentModerationService(
        RateLimiter(None, enabled=False), ledger, session_factory=session_factory, report_threshold=3
    )


def submission(rid: int, content: str = "Loved every page of it.", **overrides) -> dict:
    data = {"name": "Jo Lee", "email": "jo@example.com", "content": content, "review_id": rid}
    data.update(overrides)
    return data


async def count_rows(session_factory, model) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


# --- Submission ---

def test_initial_status_follows_spam_verdict():
    assert decide_initial_status("A thoughtful review") == CommentStatus.APPROVED
    assert decide_initial_status("buy viagra now") == CommentStatus.PENDING


@pytest.mark.asyncio
async def test_clean_comment_from_new_commenter_is_approved(service, published_review_id, ledger):
    result = await service.submit_comment(submission(published_review_id), "203.0.113.9")

    assert result.status == CommentStatus.APPROVED
    assert result.message == POSTED_MESSAGE
    assert result.comment.author_name == "Jo Lee"
    commenter = await ledger.get_by_email("jo@example.com")
    assert commenter.approved_comment_count == 0
    assert commenter.trusted is False


@pytest.mark.asyncio
async def test_spam_comment_is_held_for_moderation(service, published_review_id):
    result = await service.submit_comment(submission(published_review_id, "buy viagra now"), "203.0.113.9")

    assert result.status == CommentStatus.PENDING
    assert result.message == PENDING_MESSAGE


@pytest.mark.asyncio
async def test_banned_commenter_is_rejected_without_a_row(service, ledger, published_review_id, session_factory):
    commenter = await ledger.get_or_create("jo@example.com", "Jo Lee")
    await ledger.set_banned(commenter.id, True)

    with pytest.raises(CommenterBannedError) as exc_info:
        await service.submit_comment(submission(published_review_id), "203.0.113.9")

    assert exc_info.value.message == "You are not allowed to comment."
    assert await count_rows(session_factory, CommentORM) == 0


@pytest.mark.asyncio
async def test_fourth_comment_in_a_minute_is_rate_limited(service, session_factory, published_review_id):
    for i in range(3):
        await service.submit_comment(submission(published_review_id, f"Comment number {i}"), "203.0.113.9")

    with pytest.raises(RateLimitExceededError) as exc_info:
        await service.submit_comment(submission(published_review_id), "203.0.113.9")

    assert exc_info.value.message.startswith("Too many comments. Please wait ")
    assert exc_info.value.retry_after > 0
    assert await count_rows(session_factory, CommentORM) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"name": " J "}, "Name must be at least 2 characters"),
        ({"name": "x" * 101}, "Name must be less than 100 characters"),
        ({"email": "not-an-email"}, "Please enter a valid email address"),
        ({"content": "  hi  "}, "Comment must be at least 3 characters"),
        ({"content": "a" * 2001}, "Comment must be less than 2000 characters"),
        ({"review_id": 0}, "Review ID must be positive"),
        # the first failing field wins
        ({"name": "J", "email": "bad"}, "Name must be at least 2 characters"),
    ],
)
async def test_validation_messages(service, published_review_id, overrides, message):
    data = submission(published_review_id, **overrides)

    with pytest.raises(CommentValidationError) as exc_info:
        await service.submit_comment(data, "203.0.113.9")

    assert exc_info.value.message == message


@pytest.mark.asyncio
async def test_empty_request_body_gets_name_message(service, published_review_id):
    data = CommentCreateRequest().model_dump()
    data["review_id"] = published_review_id

    with pytest.raises(CommentValidationError) as exc_info:
        await service.submit_comment(data, "203.0.113.9")

    assert exc_info.value.message == "Name must be at least 2 characters"


@pytest.mark.asyncio
async def test_comment_content_is_trimmed(service, published_review_id):
    result = await service.submit_comment(submission(published_review_id, "   Great read!   "), "203.0.113.9")

    assert result.comment.content == "Great read!"


@pytest.mark.asyncio
async def test_draft_or_missing_review_is_not_found(service, session_factory):
    draft_id = await create_review_row(session_factory, slug="draft", status=ReviewStatus.DRAFT)

    with pytest.raises(ReviewNotFoundError):
        await service.submit_comment(submission(draft_id), "203.0.113.9")
    with pytest.raises(ReviewNotFoundError):
        await service.submit_comment(submission(9999), "203.0.113.10")


# --- Approval and trust ---

@pytest.mark.asyncio
async def test_approving_pending_comments_builds_trust(unlimited_service, ledger, published_review_id):
    pending_ids = []
    for i in range(3):
        result = await unlimited_service.submit_comment(
            submission(published_review_id, f"casino tips part {i}"), "203.0.113.9"
        )
        assert result.status == CommentStatus.PENDING
        pending_ids.append(result.comment.id)

    for comment_id in pending_ids:
        approved = await unlimited_service.set_comment_status(comment_id, CommentStatus.APPROVED, is_privileged=True)
        assert approved.status == CommentStatus.APPROVED

    commenter = await ledger.get_by_email("jo@example.com")
    assert commenter.approved_comment_count == 3
    assert commenter.trusted is True


@pytest.mark.asyncio
async def test_double_approval_counts_once(unlimited_service, ledger, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id, "buy viagra now"), "1.1.1.1")

    await unlimited_service.set_comment_status(result.comment.id, CommentStatus.APPROVED, is_privileged=True)
    await unlimited_service.set_comment_status(result.comment.id, CommentStatus.APPROVED, is_privileged=True)

    commenter = await ledger.get_by_email("jo@example.com")
    assert commenter.approved_comment_count == 1


@pytest.mark.asyncio
async def test_other_transitions_leave_trust_alone(unlimited_service, ledger, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")

    rejected = await unlimited_service.set_comment_status(result.comment.id, CommentStatus.REJECTED, is_privileged=True)
    approved = await unlimited_service.set_comment_status(result.comment.id, CommentStatus.APPROVED, is_privileged=True)

    assert rejected.status == CommentStatus.REJECTED
    assert approved.status == CommentStatus.APPROVED
    commenter = await ledger.get_by_email("jo@example.com")
    assert commenter.approved_comment_count == 0


@pytest.mark.asyncio
async def test_status_change_requires_privilege(unlimited_service, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")

    with pytest.raises(PermissionDeniedError):
        await unlimited_service.set_comment_status(result.comment.id, CommentStatus.REJECTED, is_privileged=False)


@pytest.mark.asyncio
async def test_stale_expected_status_is_refused(unlimited_service, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")

    with pytest.raises(InvalidTransitionError):
        await unlimited_service.set_comment_status(
            result.comment.id,
            CommentStatus.APPROVED,
            is_privileged=True,
            expected_status=CommentStatus.PENDING,
        )


@pytest.mark.asyncio
async def test_status_change_on_missing_comment(unlimited_service):
    with pytest.raises(CommentNotFoundError):
        await unlimited_service.set_comment_status(42, CommentStatus.REJECTED, is_privileged=True)


# --- Reporting ---

@pytest.mark.asyncio
async def test_third_distinct_report_flags_comment(unlimited_service, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")
    comment_id = result.comment.id

    first = await unlimited_service.report_comment(comment_id, "a@example.com", "2.2.2.2")
    second = await unlimited_service.report_comment(comment_id, "b@example.com", "2.2.2.2")
    third = await unlimited_service.report_comment(comment_id, "c@example.com", "2.2.2.2")

    assert [first.report_count, second.report_count, third.report_count] == [1, 2, 3]
    assert first.status == CommentStatus.APPROVED
    assert second.status == CommentStatus.APPROVED
    assert third.status == CommentStatus.REPORTED


@pytest.mark.asyncio
async def test_duplicate_reporter_is_refused_without_increment(unlimited_service, published_review_id, session_factory):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")
    comment_id = result.comment.id
    await unlimited_service.report_comment(comment_id, "a@example.com", "2.2.2.2")

    with pytest.raises(AlreadyReportedError):
        await unlimited_service.report_comment(comment_id, "A@Example.com", "2.2.2.2")

    async with session_factory() as session:
        comment = await session.get(CommentORM, comment_id)
    assert comment.report_count == 1
    assert await count_rows(session_factory, CommentReportORM) == 1


@pytest.mark.asyncio
async def test_rejected_comment_stays_rejected_when_reported(unlimited_service, published_review_id):
    result = await unlimited_service.submit_comment(submission(published_review_id), "1.1.1.1")
    comment_id = result.comment.id
    await unlimited_service.set_comment_status(comment_id, CommentStatus.REJECTED, is_privileged=True)

    for reporter in ("a", "b", "c"):
        outcome = await unlimited_service.report_comment(comment_id, f"{reporter}@example.com", "2.2.2.2")

    assert outcome.report_count == 3
    assert outcome.status == CommentStatus.REJECTED


@pytest.mark.asyncio
async def test_report_missing_comment(unlimited_service):
    with pytest.raises(CommentNotFoundError):
        await unlimited_service.report_comment(777, "a@example.com", "2.2.2.2")


@pytest.mark.asyncio
async def test_report_rate_limit_message_is_in_minutes(service, published_review_id):
    result = await service.submit_comment(submission(published_review_id), "1.1.1.1")
    for i in range(5):
        await service.report_comment(result.comment.id, f"r{i}@example.com", "2.2.2.2")

    with pytest.raises(RateLimitExceededError) as exc_info:
        await service.report_comment(result.comment.id, "late@example.com", "2.2.2.2")

    assert exc_info.value.message == "Too many reports. Please wait 5 minutes."


# --- Listing ---

@pytest.mark.asyncio
async def test_public_listing_shows_only_approved(unlimited_service, published_review_id):
    clean = await unlimited_service.submit_comment(submission(published_review_id, "Wonderful book"), "1.1.1.1")
    await unlimited_service.submit_comment(submission(published_review_id, "buy viagra now"), "1.1.1.1")

    public = await unlimited_service.list_comments(published_review_id, is_privileged=False)
    everything = await unlimited_service.list_comments(published_review_id, is_privileged=True)

    assert [c.id for c in public] == [clean.comment.id]
    assert public[0].spam_reasons is None
    assert len(everything) == 2
    spam = next(c for c in everything if c.status == CommentStatus.PENDING)
    assert 'Contains blocked keyword: "viagra"' in spam.spam_reasons


@pytest.mark.asyncio
async def test_listing_is_newest_first(unlimited_service, published_review_id):
    ids = []
    for i in range(3):
        result = await unlimited_service.submit_comment(submission(published_review_id, f"Thought {i}"), "1.1.1.1")
        ids.append(result.comment.id)

    listed = await unlimited_service.list_comments(published_review_id)

    assert [c.id for c in listed] == list(reversed(ids))
