"""
Comment Moderation State Machine.

Comments start as `approved` or `pending` depending on the spam verdict,
move `pending -> approved` by administrator action (which feeds the trust
ledger), and become `reported` once enough distinct readers report them.
"""

import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy import and_, case, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from review_pipeline.config.settings import settings
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
from review_pipeline.core.rate_limiter import COMMENT_POLICY, REPORT_POLICY, RateLimiter
from review_pipeline.core.spam_classifier import get_spam_reasons, is_spam_content
from review_pipeline.core.trust_ledger import TrustLedger
from review_pipeline.models import (
    CommentDTO,
    CommentORM,
    CommentReportORM,
    CommentStatus,
    CommentSubmission,
    ReportResult,
    ReviewORM,
    ReviewStatus,
    SubmitCommentResult,
)
from review_pipeline.models.dtos import EMAIL_PATTERN
from review_pipeline.monitoring.metrics import record_comment_decision, record_report
from review_pipeline.utils.db_session import dialect_insert, get_db_session_context_manager
from review_pipeline.utils.identity import hash_email

logger = logging.getLogger(__name__)

POSTED_MESSAGE = "Your comment has been posted!"
PENDING_MESSAGE = "Your comment has been submitted and is pending moderation. It will appear once approved."
PUBLIC_LIST_LIMIT = 100


def first_validation_message(exc: ValidationError) -> str:
    """Return the message of the first failed check of a pydantic validation."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    error = errors[0]
    ctx_error = (error.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return error.get("msg", "Invalid input")


def decide_initial_status(content: str) -> CommentStatus:
    """Spam waits for a moderator, everything else is published immediately."""
    if is_spam_content(content):
        return CommentStatus.PENDING
    return CommentStatus.APPROVED


class CommentModerationService:
    """
    Entry point for comment submission, reporting and moderation.
    """

    def __init__(
        self,
        rate_limiter: RateLimiter,
        trust_ledger: Optional[TrustLedger] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        report_threshold: Optional[int] = None,
    ):
        """
        Args:
            rate_limiter: Admission control for submissions and reports.
            trust_ledger: Commenter store; built over the same session factory when omitted.
            session_factory: Session factory; the application factory when omitted.
            report_threshold: Distinct reports that flag a comment, defaults to `REPORT_THRESHOLD`.
        """
        self.rate_limiter = rate_limiter
        self._session_factory = session_factory
        self.trust_ledger = trust_ledger or TrustLedger(session_factory=session_factory)
        self.report_threshold = report_threshold if report_threshold is not None else settings.REPORT_THRESHOLD

    def _session_scope(self, session: Optional[AsyncSession] = None):
        return get_db_session_context_manager(existing_session=session, session_factory=self._session_factory)

    async def submit_comment(
        self, submission: Union[CommentSubmission, Mapping[str, Any]], client_ip: str
    ) -> SubmitCommentResult:
        """
        Accept a reader comment.

        Order of checks: rate limit, input validation, review lookup, ban
        check, spam classification. Nothing is written unless every check
        passes.

        Args:
            submission: Raw form fields (name, email, content, review_id) or an
                already validated submission.
            client_ip: Caller address used for rate limiting.

        Returns:
            SubmitCommentResult: The stored comment and the message to show.

        Raises:
            RateLimitExceededError: More than 3 submissions per minute from this address.
            CommentValidationError: Input failed validation.
            ReviewNotFoundError: The review is missing or not published.
            CommenterBannedError: The commenter is banned.
        """
        admission = await self.rate_limiter.admit_policy(f"comment:{client_ip}", COMMENT_POLICY)
        if not admission.allowed:
            raise RateLimitExceededError.for_comments(admission.reset_in_seconds)

        if not isinstance(submission, CommentSubmission):
            try:
                submission = CommentSubmission.model_validate(dict(submission))
            except ValidationError as e:
                raise CommentValidationError(first_validation_message(e)) from e

        async with self._session_scope() as session:
            review = await session.get(ReviewORM, submission.review_id)
            if review is None or review.status != ReviewStatus.PUBLISHED.value:
                raise ReviewNotFoundError()

            commenter = await self.trust_ledger.get_or_create(submission.email, submission.name, session=session)
            if commenter.banned:
                logger.info(f"Rejected comment from banned commenter {commenter.id}")
                raise CommenterBannedError()

            status = decide_initial_status(submission.content)
            comment = CommentORM(
                author_name=submission.name,
                content=submission.content,
                review_id=submission.review_id,
                commenter_id=commenter.id,
                status=status.value,
                report_count=0,
            )
            session.add(comment)
            await session.flush()
            await session.refresh(comment)
            comment_dto = CommentDTO.model_validate(comment)

        record_comment_decision(status.value)
        if status == CommentStatus.PENDING:
            logger.info(
                f"Comment {comment_dto.id} on review {submission.review_id} held for moderation: "
                f"{', '.join(get_spam_reasons(submission.content))}"
            )
            message = PENDING_MESSAGE
        else:
            logger.info(f"Comment {comment_dto.id} on review {submission.review_id} published")
            message = POSTED_MESSAGE
        return SubmitCommentResult(comment=comment_dto, status=status, message=message)

    async def report_comment(self, comment_id: int, reporter_email: str, client_ip: str) -> ReportResult:
        """
        Record a report of a comment by one reader.

        The report row and the counter update share one transaction. The
        counter and the status move in a single UPDATE, so the comment turns
        `reported` on exactly the report that reaches the threshold.

        Raises:
            RateLimitExceededError: More than 5 reports per 5 minutes from this address.
            CommentValidationError: Bad comment id or reporter email.
            CommentNotFoundError: No such comment.
            AlreadyReportedError: This reporter already reported the comment.
        """
        admission = await self.rate_limiter.admit_policy(f"report:{client_ip}", REPORT_POLICY)
        if not admission.allowed:
            raise RateLimitExceededError.for_reports(admission.reset_in_seconds)

        if comment_id <= 0:
            raise CommentValidationError("Comment ID must be positive")
        if not reporter_email or not EMAIL_PATTERN.match(reporter_email.strip()):
            raise CommentValidationError("Please enter a valid email address")

        reporter_hash = hash_email(reporter_email)
        new_count = CommentORM.report_count + 1
        flag_status = case(
            (
                and_(new_count >= self.report_threshold, CommentORM.status != CommentStatus.REJECTED.value),
                CommentStatus.REPORTED.value,
            ),
            else_=CommentORM.status,
        )

        async with self._session_scope() as session:
            exists = await session.execute(select(CommentORM.id).where(CommentORM.id == comment_id))
            if exists.scalar_one_or_none() is None:
                raise CommentNotFoundError()

            inserted = await session.execute(
                dialect_insert(session, CommentReportORM)
                .values(comment_id=comment_id, reporter_hash=reporter_hash)
                .on_conflict_do_nothing(index_elements=["comment_id", "reporter_hash"])
                .returning(CommentReportORM.id)
            )
            if inserted.scalar_one_or_none() is None:
                raise AlreadyReportedError()

            row = (
                await session.execute(
                    update(CommentORM)
                    .where(CommentORM.id == comment_id)
                    .values(report_count=new_count, status=flag_status)
                    .returning(CommentORM.report_count, CommentORM.status)
                    .execution_options(synchronize_session=False)
                )
            ).one()

        record_report()
        report_count, status = row
        if status == CommentStatus.REPORTED.value and report_count == self.report_threshold:
            logger.warning(f"Comment {comment_id} flagged after {report_count} reports")
        else:
            logger.info(f"Comment {comment_id} reported ({report_count} total)")
        return ReportResult(comment_id=comment_id, report_count=report_count, status=CommentStatus(status))

    async def set_comment_status(
        self,
        comment_id: int,
        status: CommentStatus,
        is_privileged: bool,
        expected_status: Optional[CommentStatus] = None,
    ) -> CommentDTO:
        """
        Administrative status change.

        Any status may be set. Only `pending -> approved` counts towards the
        commenter's trust, and it is applied with a conditional UPDATE so that
        two concurrent approvals count once.

        Args:
            comment_id: Comment to change.
            status: Target status.
            is_privileged: Whether the caller is an administrator.
            expected_status: When given, the change only applies from this status.

        Raises:
            PermissionDeniedError: Caller is not privileged.
            CommentNotFoundError: No such comment.
            InvalidTransitionError: The comment is not in `expected_status`.
        """
        if not is_privileged:
            raise PermissionDeniedError()
        status = CommentStatus(status)

        async with self._session_scope() as session:
            current = (
                await session.execute(select(CommentORM.status).where(CommentORM.id == comment_id))
            ).scalar_one_or_none()
            if current is None:
                raise CommentNotFoundError()
            if expected_status is not None and current != CommentStatus(expected_status).value:
                raise InvalidTransitionError(
                    f"Comment {comment_id} is {current}, expected {CommentStatus(expected_status).value}"
                )

            approving = status == CommentStatus.APPROVED and current == CommentStatus.PENDING.value
            stmt = update(CommentORM).where(CommentORM.id == comment_id).values(status=status.value)
            if approving:
                stmt = stmt.where(CommentORM.status == CommentStatus.PENDING.value)
            else:
                stmt = stmt.where(CommentORM.status == current)
            changed = (
                await session.execute(
                    stmt.returning(CommentORM.commenter_id).execution_options(synchronize_session=False)
                )
            ).scalar_one_or_none()

            if changed is None:
                if expected_status is not None:
                    raise InvalidTransitionError(f"Comment {comment_id} changed concurrently")
                logger.info(f"Comment {comment_id} status changed concurrently, leaving it as is")
            elif approving:
                await self.trust_ledger.record_approval(changed, session=session)

            comment = (
                await session.execute(
                    select(CommentORM).where(CommentORM.id == comment_id).execution_options(populate_existing=True)
                )
            ).scalars().one()
            result = CommentDTO.model_validate(comment)

        logger.info(f"Comment {comment_id} status {current} -> {result.status.value}")
        return result

    async def list_comments(self, review_id: int, is_privileged: bool = False) -> List[CommentDTO]:
        """
        Comments of a review, newest first.

        Public callers see approved comments only, capped at 100. Privileged
        callers see every comment with the spam reasons attached.
        """
        query = select(CommentORM).where(CommentORM.review_id == review_id)
        if not is_privileged:
            query = query.where(CommentORM.status == CommentStatus.APPROVED.value).limit(PUBLIC_LIST_LIMIT)
        query = query.order_by(desc(CommentORM.created_at), desc(CommentORM.id))

        async with self._session_scope() as session:
            comments = (await session.execute(query)).scalars().all()
            results = [CommentDTO.model_validate(comment) for comment in comments]

        if is_privileged:
            for comment in results:
                comment.spam_reasons = get_spam_reasons(comment.content)
        logger.debug(f"Listed {len(results)} comments for review {review_id}")
        return results
