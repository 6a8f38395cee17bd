"""Linear GraphQL adapter."""

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

TEAM_LABELS = """
query ($teamId: String!) {
  team(id: $teamId) {
    labels(first: 250) { nodes { id name } }
  }
}
"""

TEAM_STATES = """
query ($teamId: String!) {
  team(id: $teamId) {
    states { nodes { id name type position } }
  }
}
"""

ISSUE_CREATE = """
mutation ($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { id identifier url }
  }
}
"""

COMMENT_CREATE = """
mutation ($input: CommentCreateInput!) {
  commentCreate(input: $input) { success }
}
"""

ISSUE_UPDATE = """
mutation ($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) { success }
}
"""


class LinearAdapter(GraphQLProviderAdapter):
    """Issues in a Linear team.

    ``container_id`` is the team id and ``group_id`` an optional project id.
    Status maps to a workflow state *type*; the team's first state of that
    type (by position) is used.
    """

    provider = Provider.LINEAR
    base_url = "https://api.linear.app"
    graphql_path = "/graphql"
    native_labels = True

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "backlog",
        FeedbackStatus.APPROVED: "unstarted",
        FeedbackStatus.IN_PROGRESS: "started",
        FeedbackStatus.TESTFLIGHT: "started",
        FeedbackStatus.COMPLETED: "completed",
        FeedbackStatus.REJECTED: "canceled",
    }

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        issue_input: dict[str, Any] = {
            "teamId": config.container_id,
            "title": draft.title,
            "description": draft.body,
        }
        if config.group_id:
            issue_input["projectId"] = config.group_id
        label_ids = await self._resolve_label_ids(config, draft.labels)
        if label_ids:
            issue_input["labelIds"] = label_ids

        data = await self._graphql(config, ISSUE_CREATE, {"input": issue_input})
        result = data.get("issueCreate") or {}
        issue = result.get("issue")
        if not result.get("success") or not issue:
            raise ProviderError(self.provider.display_name, "Issue creation was not successful")
        return WorkItemRef(
            url=issue["url"],
            external_id=str(issue["id"]),
            identifier=issue.get("identifier"),
        )

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        await self._graphql(
            config,
            COMMENT_CREATE,
            {"input": {"issueId": external_id, "body": text}},
        )
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        state_type = self.map_status(status)
        if state_type is None:
            return self._skip("no status mapping for {}", status.value)

        data = await self._graphql(config, TEAM_STATES, {"teamId": config.container_id})
        states = ((data.get("team") or {}).get("states") or {}).get("nodes") or []
        candidates = sorted(
            (s for s in states if s.get("type") == state_type),
            key=lambda s: s.get("position", 0),
        )
        if not candidates:
            return self._skip("no workflow state of type {}", state_type)

        await self._graphql(
            config,
            ISSUE_UPDATE,
            {"id": external_id, "input": {"stateId": candidates[0]["id"]}},
        )
        return True

    async def _resolve_label_ids(
        self,
        config: IntegrationSettings,
        labels: list[str],
    ) -> list[str]:
        """Map label names (case-insensitive) or ids to team label ids."""
        if not labels:
            return []

        data = await self._graphql(config, TEAM_LABELS, {"teamId": config.container_id})
        nodes = ((data.get("team") or {}).get("labels") or {}).get("nodes") or []
        known_ids = {node["id"] for node in nodes}
        by_name = {node["name"].lower(): node["id"] for node in nodes}

        resolved: list[str] = []
        for label in labels:
            label_id = label if label in known_ids else by_name.get(label.lower())
            if label_id is None:
                logger.debug("Linear: dropping unknown label {!r}", label)
                continue
            if label_id not in resolved:
                resolved.append(label_id)
        return resolved
