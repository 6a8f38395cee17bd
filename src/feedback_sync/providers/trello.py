"""Trello REST v1 adapter."""

from typing import Any, ClassVar

import httpx

from feedback_sync.config import HttpConfig, get_settings
from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .base import HttpProviderAdapter
from .exceptions import ProviderError, ProviderNotConfiguredError


class TrelloAdapter(HttpProviderAdapter):
    """Cards in a Trello list.

    Trello authenticates with the application key (from settings) plus the
    project's user token, both as query parameters. ``container_id`` is the
    list new cards go to; status moves need ``group_id`` (the board id).
    """

    provider = Provider.TRELLO
    base_url = "https://api.trello.com/1"

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "To Do",
        FeedbackStatus.APPROVED: "Approved",
        FeedbackStatus.IN_PROGRESS: "In Progress",
        FeedbackStatus.TESTFLIGHT: "In Review",
        FeedbackStatus.COMPLETED: "Done",
        FeedbackStatus.REJECTED: "Closed",
    }

    def __init__(
        self,
        api_key: str | None = None,
        http_config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(http_config=http_config, transport=transport)
        self._api_key = api_key if api_key is not None else get_settings().trello_api_key

    def is_configured(self, config: IntegrationSettings) -> bool:
        return bool(self._api_key) and super().is_configured(config)

    def _auth_headers(self, config: IntegrationSettings) -> dict[str, str]:
        return {}

    def _params(self, config: IntegrationSettings, **extra: Any) -> dict[str, Any]:
        if not self._api_key:
            raise ProviderNotConfiguredError(
                self.provider.display_name,
                "Trello API key not configured. Set TRELLO_API_KEY environment variable.",
            )
        return {"key": self._api_key, "token": config.token, **extra}

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        params = self._params(
            config,
            idList=config.container_id,
            name=draft.title,
            desc=draft.body,
            pos="bottom",
        )
        card = await self._request("POST", "/cards", config, params=params)
        try:
            return WorkItemRef(url=card["url"], external_id=str(card["id"]))
        except (KeyError, TypeError) as e:
            raise ProviderError(self.provider.display_name, f"Unexpected card response: {card}") from e

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        await self._request(
            "POST",
            f"/cards/{external_id}/actions/comments",
            config,
            params=self._params(config, text=text),
        )
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        if not config.group_id:
            return self._skip("no board configured")
        list_name = self.map_status(status)
        if list_name is None:
            return self._skip("no status mapping for {}", status.value)

        lists = await self._request(
            "GET",
            f"/boards/{config.group_id}/lists",
            config,
            params=self._params(config, filter="open"),
        )
        target = next(
            (
                board_list
                for board_list in lists or []
                if str(board_list.get("name", "")).lower() == list_name.lower()
            ),
            None,
        )
        if target is None:
            return self._skip("board has no list named {!r}", list_name)

        await self._request(
            "PUT",
            f"/cards/{external_id}",
            config,
            params=self._params(config, idList=target["id"]),
        )
        return True
