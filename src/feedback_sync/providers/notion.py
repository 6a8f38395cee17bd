"""Notion pages adapter."""

from typing import Any, ClassVar

from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .base import HttpProviderAdapter
from .exceptions import ProviderError

NOTION_VERSION = "2022-06-28"
TITLE_PROPERTY = "Name"
# Notion rejects rich text objects longer than this
MAX_TEXT_LENGTH = 2000


def _chunks(text: str) -> list[str]:
    return [text[i : i + MAX_TEXT_LENGTH] for i in range(0, len(text), MAX_TEXT_LENGTH)] or [""]


def _rich_text(text: str) -> list[dict[str, Any]]:
    return [{"type": "text", "text": {"content": chunk}} for chunk in _chunks(text)]


def _paragraphs(text: str) -> list[dict[str, Any]]:
    return [
        {
            "object": "block",
            "type": "paragraph",
            "paragraph": {"rich_text": [{"type": "text", "text": {"content": chunk}}]},
        }
        for chunk in _chunks(text)
    ]


class NotionAdapter(HttpProviderAdapter):
    """Pages in a Notion database.

    ``container_id`` is the database id, ``status_field`` the name of a
    status property and ``votes_field`` the name of a number property.
    """

    provider = Provider.NOTION
    base_url = "https://api.notion.com/v1"
    supports_vote_field = True

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "To Do",
        FeedbackStatus.APPROVED: "Approved",
        FeedbackStatus.IN_PROGRESS: "In Progress",
        FeedbackStatus.TESTFLIGHT: "In Review",
        FeedbackStatus.COMPLETED: "Complete",
        FeedbackStatus.REJECTED: "Closed",
    }

    def _auth_headers(self, config: IntegrationSettings) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {config.token or ''}",
            "Notion-Version": NOTION_VERSION,
        }

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        properties: dict[str, Any] = {
            TITLE_PROPERTY: {"title": [{"type": "text", "text": {"content": draft.title}}]},
        }
        if config.votes_field:
            properties[config.votes_field] = {"number": draft.vote_count}

        payload = {
            "parent": {"database_id": config.container_id},
            "properties": properties,
            "children": _paragraphs(draft.body),
        }
        page = await self._request("POST", "/pages", config, json=payload)
        try:
            return WorkItemRef(url=page["url"], external_id=str(page["id"]))
        except (KeyError, TypeError) as e:
            raise ProviderError(self.provider.display_name, f"Unexpected page response: {page}") from e

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        await self._request(
            "POST",
            "/comments",
            config,
            json={"parent": {"page_id": external_id}, "rich_text": _rich_text(text)},
        )
        return True

    async def update_numeric_field(
        self,
        config: IntegrationSettings,
        external_id: str,
        field_id: str | None,
        value: int,
    ) -> bool:
        if not field_id:
            return self._skip("no votes property configured")
        await self._update_properties(config, external_id, {field_id: {"number": value}})
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        if not config.status_field:
            return self._skip("no status property configured")
        native = self.map_status(status)
        if native is None:
            return self._skip("no status mapping for {}", status.value)
        await self._update_properties(
            config, external_id, {config.status_field: {"status": {"name": native}}}
        )
        return True

    async def _update_properties(
        self,
        config: IntegrationSettings,
        page_id: str,
        properties: dict[str, Any],
    ) -> None:
        await self._request("PATCH", f"/pages/{page_id}", config, json={"properties": properties})
