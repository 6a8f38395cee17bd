"""Repository for Project reads used by notifications."""

import asyncio
from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedback_sync.db.models import Project, ProjectMember, User
from feedback_sync.schemas import SubscriptionTier

from .base import BaseRepository

NotificationKind = Literal["feedback", "comments"]


class ProjectRepository(BaseRepository[Project]):
    """Read access to projects, their owners and members."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Project, write_lock)

    async def get_with_members(self, project_id: int) -> Project | None:
        """Get a project with owner and members eagerly loaded."""
        stmt = (
            select(Project)
            .where(Project.id == project_id)
            .options(
                selectinload(Project.owner),
                selectinload(Project.members).selectinload(ProjectMember.user),
            )
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_notification_recipients(
        self,
        project_id: int,
        kind: NotificationKind,
        *,
        min_tier: SubscriptionTier | None = None,
    ) -> list[str]:
        """Emails of the owner and members who opted into a notification.

        Args:
            project_id: Project ID
            kind: "feedback" for new feedback, "comments" for new comments
            min_tier: Only include users whose tier meets this requirement

        Returns:
            De-duplicated email list, owner first
        """
        project = await self.get_with_members(project_id)
        if project is None:
            return []

        users: list[User] = [project.owner, *(m.user for m in project.members)]
        emails: list[str] = []
        for user in users:
            opted_in = user.notify_new_feedback if kind == "feedback" else user.notify_new_comments
            if not opted_in:
                continue
            if min_tier is not None and not user.subscription_tier.meets_requirement(min_tier):
                continue
            if user.email not in emails:
                emails.append(user.email)
        return emails
