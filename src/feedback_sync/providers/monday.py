"""Monday.com GraphQL adapter."""

import json
from typing import Any, ClassVar

from feedback_sync.logging import get_logger
from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .base import GraphQLProviderAdapter
from .exceptions import ProviderError

logger = get_logger(__name__)

API_VERSION = "2024-01"

CREATE_ITEM = """
mutation ($boardId: ID!, $groupId: String, $name: String!, $columnValues: JSON) {
  create_item(board_id: $boardId, group_id: $groupId, item_name: $name, column_values: $columnValues) {
    id
    url
  }
}
"""

CREATE_UPDATE = """
mutation ($itemId: ID!, $body: String!) {
  create_update(item_id: $itemId, body: $body) {
    id
  }
}
"""

CHANGE_SIMPLE_VALUE = """
mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: String!) {
  change_simple_column_value(board_id: $boardId, item_id: $itemId, column_id: $columnId, value: $value) {
    id
  }
}
"""

CHANGE_VALUE = """
mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: JSON!) {
  change_column_value(board_id: $boardId, item_id: $itemId, column_id: $columnId, value: $value) {
    id
  }
}
"""


class MondayAdapter(GraphQLProviderAdapter):
    """Items on a Monday.com board.

    ``container_id`` is the board id and ``group_id`` the optional group.
    The item body is posted as the item's first update. ``status_field`` is
    a status column id and ``votes_field`` a numbers column id.
    """

    provider = Provider.MONDAY
    base_url = "https://api.monday.com"
    graphql_path = "/v2"
    supports_vote_field = True

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "Pending",
        FeedbackStatus.APPROVED: "Approved",
        FeedbackStatus.IN_PROGRESS: "Working on it",
        FeedbackStatus.TESTFLIGHT: "In Review",
        FeedbackStatus.COMPLETED: "Done",
        FeedbackStatus.REJECTED: "Stuck",
    }

    def _auth_headers(self, config: IntegrationSettings) -> dict[str, str]:
        return {"Authorization": config.token or "", "API-Version": API_VERSION}

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        column_values: dict[str, Any] = {}
        if config.votes_field:
            column_values[config.votes_field] = draft.vote_count

        data = await self._graphql(
            config,
            CREATE_ITEM,
            {
                "boardId": config.container_id,
                "groupId": config.group_id,
                "name": draft.title,
                "columnValues": json.dumps(column_values),
            },
        )
        item = data.get("create_item") or {}
        if "id" not in item:
            raise ProviderError(self.provider.display_name, f"Unexpected item response: {data}")

        item_id = str(item["id"])
        ref = WorkItemRef(url=item.get("url") or "", external_id=item_id)
        # The item exists now; a failed body update must not orphan it
        try:
            await self._graphql(config, CREATE_UPDATE, {"itemId": item_id, "body": draft.body})
        except ProviderError as e:
            logger.warning("Monday item {} created without its body update: {}", item_id, e)
        return ref

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        await self._graphql(config, CREATE_UPDATE, {"itemId": external_id, "body": text})
        return True

    async def update_numeric_field(
        self,
        config: IntegrationSettings,
        external_id: str,
        field_id: str | None,
        value: int,
    ) -> bool:
        if not field_id:
            return self._skip("no votes column configured")
        await self._graphql(
            config,
            CHANGE_SIMPLE_VALUE,
            {
                "boardId": config.container_id,
                "itemId": external_id,
                "columnId": field_id,
                "value": str(value),
            },
        )
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        if not config.status_field:
            return self._skip("no status column configured")
        native = self.map_status(status)
        if native is None:
            return self._skip("no status mapping for {}", status.value)
        await self._graphql(
            config,
            CHANGE_VALUE,
            {
                "boardId": config.container_id,
                "itemId": external_id,
                "columnId": config.status_field,
                "value": json.dumps({"label": native}),
            },
        )
        return True
