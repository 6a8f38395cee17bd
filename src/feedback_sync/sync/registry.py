"""Resolution of a project's integrations into eligible adapters."""

from dataclasses import dataclass

from feedback_sync.db.repositories import IntegrationConfigRepository
from feedback_sync.providers import AdapterMap, ProviderAdapter
from feedback_sync.schemas import SLACK, IntegrationSettings, Provider


@dataclass(frozen=True)
class ResolvedIntegration:
    """A provider's config snapshot together with its derived flags."""

    provider: Provider
    settings: IntegrationSettings
    adapter: ProviderAdapter
    configured: bool
    active: bool

    def link_target(self, link: tuple[str, str] | None) -> str | None:
        """External id to act on, or None if this integration must not act."""
        if not self.active or link is None:
            return None
        return link[1]


class IntegrationRegistry:
    """Per-project lookup of provider configuration.

    A provider is eligible to act only when it is both configured (its
    required fields are present) and active (master toggle on). Rows that
    were never created resolve to an empty, unconfigured snapshot.
    """

    def __init__(
        self,
        repository: IntegrationConfigRepository,
        adapters: AdapterMap,
    ) -> None:
        self._repository = repository
        self._adapters = adapters

    def adapter(self, provider: Provider) -> ProviderAdapter:
        try:
            return self._adapters[provider]
        except KeyError:
            raise ValueError(f"No adapter registered for {provider.value}") from None

    async def snapshot(self, project_id: int, name: str) -> IntegrationSettings:
        row = await self._repository.get(project_id, name)
        if row is None:
            return IntegrationSettings(project_id=project_id, provider=name)
        return IntegrationSettings.from_orm(row)

    async def resolve(self, project_id: int, provider: Provider) -> ResolvedIntegration:
        """Resolve one provider for a project."""
        adapter = self.adapter(provider)
        settings = await self.snapshot(project_id, provider.value)
        return ResolvedIntegration(
            provider=provider,
            settings=settings,
            adapter=adapter,
            configured=adapter.is_configured(settings),
            active=adapter.is_active(settings),
        )

    async def resolve_all(self, project_id: int) -> list[ResolvedIntegration]:
        """Resolve every registered provider for a project."""
        return [
            await self.resolve(project_id, provider)
            for provider in Provider
            if provider in self._adapters
        ]

    async def notifier(self, project_id: int) -> IntegrationSettings | None:
        """Slack notifier snapshot, or None unless configured and active."""
        settings = await self.snapshot(project_id, SLACK)
        if not settings.webhook_url or not settings.is_active:
            return None
        return settings
