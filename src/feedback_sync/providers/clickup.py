"""ClickUp REST v2 adapter."""

from typing import ClassVar

from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .base import HttpProviderAdapter
from .exceptions import ProviderError


class ClickUpAdapter(HttpProviderAdapter):
    """Tasks in a ClickUp list.

    ``container_id`` is the list id; ``votes_field`` a number custom field id.
    The personal token is sent as the raw Authorization header.
    """

    provider = Provider.CLICKUP
    base_url = "https://api.clickup.com/api/v2"
    native_labels = True
    supports_vote_field = True

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "to do",
        FeedbackStatus.APPROVED: "approved",
        FeedbackStatus.IN_PROGRESS: "in progress",
        FeedbackStatus.TESTFLIGHT: "in review",
        FeedbackStatus.COMPLETED: "complete",
        FeedbackStatus.REJECTED: "closed",
    }

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        payload = {
            "name": draft.title,
            "markdown_description": draft.body,
            "tags": draft.labels,
            "notify_all": False,
        }
        task = await self._request("POST", f"/list/{config.container_id}/task", config, json=payload)
        try:
            return WorkItemRef(url=task["url"], external_id=str(task["id"]))
        except (KeyError, TypeError) as e:
            raise ProviderError(self.provider.display_name, f"Unexpected task response: {task}") from e

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        await self._request(
            "POST",
            f"/task/{external_id}/comment",
            config,
            json={"comment_text": text, "notify_all": False},
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
            return self._skip("no vote field configured")
        await self._request(
            "POST",
            f"/task/{external_id}/field/{field_id}",
            config,
            json={"value": value},
        )
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        native = self.map_status(status)
        if native is None:
            return self._skip("no status mapping for {}", status.value)
        await self._request("PUT", f"/task/{external_id}", config, json={"status": native})
        return True
