"""Repository for FeedbackItem reads and link writes."""

import asyncio

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_sync.db.models import LINK_COLUMNS, FeedbackItem, Vote
from feedback_sync.schemas import Provider, WorkItemRef

from .base import BaseRepository


class FeedbackRepository(BaseRepository[FeedbackItem]):
    """Repository for FeedbackItem entities.

    The engine never edits feedback content. Its only write is the
    per-provider link, which is set at most once:

        set_link() issues UPDATE ... WHERE <url column> IS NULL, so two
        concurrent pushes of the same (item, provider) cannot both win.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, FeedbackItem, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_in_project(self, project_id: int, feedback_id: int) -> FeedbackItem | None:
        """Get a feedback item only if it belongs to the project.

        Args:
            project_id: Project ID
            feedback_id: Feedback item ID

        Returns:
            FeedbackItem or None if missing or owned by another project
        """
        stmt = select(FeedbackItem).where(
            FeedbackItem.id == feedback_id,
            FeedbackItem.project_id == project_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_voter_ids(self, feedback_id: int) -> list[str]:
        """SDK user ids of everyone who voted on an item."""
        stmt = select(Vote.user_id).where(Vote.feedback_id == feedback_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Link Writes
    # -------------------------------------------------------------------------

    async def set_link(self, feedback_id: int, provider: Provider, ref: WorkItemRef) -> bool:
        """Record a provider link if none exists yet.

        Args:
            feedback_id: Feedback item ID
            provider: Provider the work item was created in
            ref: Created work item reference

        Returns:
            True if the link was written, False if the item was already
            linked to this provider (or does not exist)
        """
        url_col, id_col = LINK_COLUMNS[provider]
        external_id: int | str = ref.external_id
        if provider is Provider.GITHUB:
            external_id = int(ref.external_id)

        stmt = (
            update(FeedbackItem)
            .where(
                FeedbackItem.id == feedback_id,
                getattr(FeedbackItem, url_col).is_(None),
            )
            .values({url_col: ref.url, id_col: external_id})
        )

        return await self.execute_write(stmt) == 1
