"""Provider-name keyed adapter registry."""

from collections.abc import Mapping

from feedback_sync.config import Settings, get_settings
from feedback_sync.schemas import Provider

from .base import ProviderAdapter
from .clickup import ClickUpAdapter
from .github import GitHubAdapter
from .linear import LinearAdapter
from .monday import MondayAdapter
from .notion import NotionAdapter
from .trello import TrelloAdapter

AdapterMap = Mapping[Provider, ProviderAdapter]


def default_adapters(settings: Settings | None = None) -> dict[Provider, ProviderAdapter]:
    """Build one adapter per provider from application settings."""
    settings = settings or get_settings()
    http = settings.http
    return {
        Provider.GITHUB: GitHubAdapter(http_config=http),
        Provider.CLICKUP: ClickUpAdapter(http_config=http),
        Provider.NOTION: NotionAdapter(http_config=http),
        Provider.MONDAY: MondayAdapter(http_config=http),
        Provider.LINEAR: LinearAdapter(http_config=http),
        Provider.TRELLO: TrelloAdapter(api_key=settings.trello_api_key, http_config=http),
    }


async def close_adapters(adapters: AdapterMap) -> None:
    for adapter in adapters.values():
        await adapter.aclose()
