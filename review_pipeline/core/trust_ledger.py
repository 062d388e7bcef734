"""
Trust Ledger: commenter identities and their approval history.

A commenter is keyed by the hash of their email. The approved-comment count
only moves up, and only through a single atomic UPDATE, so a commenter's
`trusted` flag is set exactly once the count reaches the threshold and is
never cleared automatically.
"""

import logging
from typing import Optional

from sqlalchemy import case, select, true, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from review_pipeline.config.settings import settings
from review_pipeline.core.exceptions import CommenterNotFoundError
from review_pipeline.models import CommenterDTO, CommenterORM
from review_pipeline.utils.db_session import dialect_insert, get_db_session_context_manager
from review_pipeline.utils.identity import hash_email

logger = logging.getLogger(__name__)


class TrustLedger:
    """
    Reads and updates commenter records.

    Every method accepts an optional `session`; when given, the work joins the
    caller's transaction, otherwise a session is opened and committed here.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        trust_threshold: Optional[int] = None,
    ):
        self._session_factory = session_factory
        self.trust_threshold = trust_threshold if trust_threshold is not None else settings.TRUST_THRESHOLD

    def _session_scope(self, session: Optional[AsyncSession]):
        return get_db_session_context_manager(existing_session=session, session_factory=self._session_factory)

    async def get_by_email(self, email: str, session: Optional[AsyncSession] = None) -> Optional[CommenterORM]:
        async with self._session_scope(session) as db:
            result = await db.execute(select(CommenterORM).where(CommenterORM.email_hash == hash_email(email)))
            return result.scalars().first()

    async def get_or_create(self, email: str, name: str, session: Optional[AsyncSession] = None) -> CommenterORM:
        """
        Find the commenter for `email`, creating it on first sight.

        The display name follows the latest submission, except for banned
        commenters whose record is left untouched.

        Args:
            email: Raw email; only its hash is stored.
            name: Trimmed display name.
            session: Optional session to join.

        Returns:
            CommenterORM: The stored commenter.
        """
        email_hash = hash_email(email)
        async with self._session_scope(session) as db:
            result = await db.execute(select(CommenterORM).where(CommenterORM.email_hash == email_hash))
            commenter = result.scalars().first()
            if commenter is not None:
                if not commenter.banned and commenter.name != name:
                    commenter.name = name
                    await db.flush()
                return commenter

            # Two first submissions may race; the unique hash lets one insert win.
            await db.execute(
                dialect_insert(db, CommenterORM)
                .values(name=name, email_hash=email_hash)
                .on_conflict_do_nothing(index_elements=["email_hash"])
            )
            result = await db.execute(select(CommenterORM).where(CommenterORM.email_hash == email_hash))
            commenter = result.scalars().one()
            logger.info(f"Commenter {commenter.id} registered")
            return commenter

    async def record_approval(self, commenter_id: int, session: Optional[AsyncSession] = None) -> Optional[CommenterDTO]:
        """
        Count one approved comment for a commenter.

        Increment and trust promotion happen in one UPDATE ... RETURNING, so
        concurrent approvals never lose an increment.

        Returns:
            CommenterDTO | None: Updated record, or None when the commenter does not exist.
        """
        new_count = CommenterORM.approved_comment_count + 1
        stmt = (
            update(CommenterORM)
            .where(CommenterORM.id == commenter_id)
            .values(
                approved_comment_count=new_count,
                trusted=case((new_count >= self.trust_threshold, true()), else_=CommenterORM.trusted),
            )
            .returning(
                CommenterORM.id,
                CommenterORM.name,
                CommenterORM.approved_comment_count,
                CommenterORM.trusted,
                CommenterORM.banned,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope(session) as db:
            row = (await db.execute(stmt)).mappings().first()
        if row is None:
            logger.warning(f"Approval recorded for unknown commenter {commenter_id}")
            return None
        commenter = CommenterDTO(**row)
        if commenter.trusted and commenter.approved_comment_count == self.trust_threshold:
            logger.info(f"Commenter {commenter_id} is now trusted")
        return commenter

    async def set_banned(self, commenter_id: int, banned: bool, session: Optional[AsyncSession] = None) -> CommenterDTO:
        """
        Ban or unban a commenter.

        Raises:
            CommenterNotFoundError: If no commenter has this id.
        """
        stmt = (
            update(CommenterORM)
            .where(CommenterORM.id == commenter_id)
            .values(banned=banned)
            .returning(
                CommenterORM.id,
                CommenterORM.name,
                CommenterORM.approved_comment_count,
                CommenterORM.trusted,
                CommenterORM.banned,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._session_scope(session) as db:
            row = (await db.execute(stmt)).mappings().first()
        if row is None:
            raise CommenterNotFoundError()
        logger.info(f"Commenter {commenter_id} {'banned' if banned else 'unbanned'}")
        return CommenterDTO(**row)

    async def get_commenter(self, commenter_id: int, session: Optional[AsyncSession] = None) -> CommenterDTO:
        async with self._session_scope(session) as db:
            commenter = await db.get(CommenterORM, commenter_id)
            if commenter is None:
                raise CommenterNotFoundError()
            return CommenterDTO.model_validate(commenter)
