"""Repository for SyncFailure model CRUD operations."""

import asyncio
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_sync.db.models import SyncFailure

from .base import BaseRepository


class SyncFailureRepository(BaseRepository[SyncFailure]):
    """Repository for swallowed fan-out failures.

    Failures are append-only: each swallowed error becomes one row. There
    is no retry lifecycle, so the table only serves operator queries.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session
            write_lock: Optional lock to serialize write operations
        """
        super().__init__(session, SyncFailure, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_recent(
        self,
        provider: str | None = None,
        project_id: int | None = None,
        limit: int = 50,
    ) -> list[SyncFailure]:
        """Get the most recent failures.

        Args:
            provider: Filter by provider or "slack"/"email" (optional)
            project_id: Filter by project (optional)
            limit: Maximum number of failures to return

        Returns:
            List of failures ordered by failed_at (newest first)
        """
        stmt = select(SyncFailure).order_by(SyncFailure.failed_at.desc(), SyncFailure.id.desc())

        if provider is not None:
            stmt = stmt.where(SyncFailure.provider == provider)
        if project_id is not None:
            stmt = stmt.where(SyncFailure.project_id == project_id)

        result = await self._session.execute(stmt.limit(limit))
        return list(result.scalars().all())

    async def get_stats(self, project_id: int | None = None) -> dict[str, Any]:
        """Get failure counts grouped by provider.

        Args:
            project_id: Filter by project (optional)

        Returns:
            Dictionary with a per-provider count mapping and total
        """
        stmt = select(SyncFailure.provider, func.count(SyncFailure.id))
        if project_id is not None:
            stmt = stmt.where(SyncFailure.project_id == project_id)
        stmt = stmt.group_by(SyncFailure.provider).order_by(SyncFailure.provider)

        result = await self._session.execute(stmt)
        stats: dict[str, Any] = {"by_provider": {}, "total": 0}
        for provider, count in result.all():
            stats["by_provider"][provider] = count
            stats["total"] += count
        return stats

    # -------------------------------------------------------------------------
    # Create/Delete Methods
    # -------------------------------------------------------------------------

    async def record_failure(
        self,
        provider: str,
        operation: str,
        error: Exception | str,
        *,
        project_id: int | None = None,
        feedback_id: int | None = None,
    ) -> SyncFailure:
        """Record one swallowed failure.

        Args:
            provider: Provider value, "slack" or "email"
            operation: SyncOperation value
            error: Exception or error message string
            project_id: Project the failure belongs to
            feedback_id: Feedback item the failure belongs to

        Returns:
            The new failure record
        """
        failure = SyncFailure(
            project_id=project_id,
            feedback_id=feedback_id,
            provider=provider,
            operation=operation,
            error_message=str(error),
            error_type=type(error).__name__ if isinstance(error, Exception) else "Unknown",
            http_status=getattr(error, "http_status", None),
            failed_at=datetime.now(UTC),
        )
        self.add(failure)
        await self.flush()
        return failure

    async def delete_before(self, before: datetime) -> int:
        """Delete failures older than a cutoff.

        Returns:
            Number of deleted records
        """
        stmt = delete(SyncFailure).where(SyncFailure.failed_at < before)
        return await self.execute_write(stmt)
