"""Repository for IntegrationConfig model CRUD operations."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedback_sync.db.models import IntegrationConfig
from feedback_sync.schemas import SLACK, IntegrationSettingsUpdate, Provider

from .base import BaseRepository

# Every integration a project carries: the six trackers plus the notifier
INTEGRATION_NAMES: tuple[str, ...] = (*(p.value for p in Provider), SLACK)


class IntegrationConfigRepository(BaseRepository[IntegrationConfig]):
    """Repository for per-project integration configuration.

    One row per (project, integration name). Rows are created implicitly
    for a new project and afterwards only changed through merge updates.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, IntegrationConfig, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get(self, project_id: int, name: str) -> IntegrationConfig | None:
        """Get the config row for one integration of a project.

        Args:
            project_id: Project ID
            name: Provider value ("github", ...) or "slack"

        Returns:
            IntegrationConfig or None if the row was never created
        """
        stmt = select(IntegrationConfig).where(
            IntegrationConfig.project_id == project_id,
            IntegrationConfig.provider == name,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_project(self, project_id: int) -> list[IntegrationConfig]:
        """All integration rows of a project, ordered by name."""
        stmt = (
            select(IntegrationConfig)
            .where(IntegrationConfig.project_id == project_id)
            .order_by(IntegrationConfig.provider)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Create/Update Methods
    # -------------------------------------------------------------------------

    async def get_or_create(
        self,
        project_id: int,
        name: str,
    ) -> tuple[IntegrationConfig, bool]:
        """Get existing config or create an empty one.

        Returns:
            Tuple of (config, created) where created is True if new
        """
        if name not in INTEGRATION_NAMES:
            raise ValueError(f"Unknown integration: {name}")

        existing = await self.get(project_id, name)
        if existing is not None:
            return existing, False

        config = IntegrationConfig(project_id=project_id, provider=name, default_labels=[])
        self.add(config)
        await self.flush()
        return config, True

    async def ensure_project_defaults(self, project_id: int) -> list[IntegrationConfig]:
        """Create any missing integration rows for a project.

        New rows carry no credentials, so none of them is configured.

        Returns:
            All integration rows of the project
        """
        for name in INTEGRATION_NAMES:
            await self.get_or_create(project_id, name)
        return await self.list_for_project(project_id)

    async def apply_update(
        self,
        project_id: int,
        name: str,
        update: IntegrationSettingsUpdate,
    ) -> IntegrationConfig:
        """Merge a partial settings update into a project's config.

        Only fields present in the update are written; an explicit empty
        string clears a field.

        Args:
            project_id: Project ID
            name: Provider value or "slack"
            update: Partial update as sent by the caller

        Returns:
            The updated config row
        """
        config, _ = await self.get_or_create(project_id, name)
        for field, value in update.changes().items():
            setattr(config, field, value)
        await self.flush()
        return config
