"""Repository for SDKUser revenue lookups."""

import asyncio

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_sync.db.models import SDKUser

from .base import BaseRepository


class SDKUserRepository(BaseRepository[SDKUser]):
    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, SDKUser, write_lock)

    async def total_mrr(self, project_id: int, user_ids: set[str]) -> float:
        """Sum tracked monthly revenue over a set of SDK users.

        Users without an SDKUser row or without tracked revenue count as 0.
        """
        if not user_ids:
            return 0.0
        stmt = select(func.coalesce(func.sum(SDKUser.mrr), 0.0)).where(
            SDKUser.project_id == project_id,
            SDKUser.user_id.in_(user_ids),
        )
        result = await self._session.execute(stmt)
        return float(result.scalar() or 0.0)
