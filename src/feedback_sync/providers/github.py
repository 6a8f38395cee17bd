"""GitHub Issues adapter using githubkit."""

from __future__ import annotations

from typing import Any, ClassVar

from githubkit import GitHub
from githubkit.exception import GitHubException, RequestFailed

from feedback_sync.config import HttpConfig, get_settings
from feedback_sync.logging import get_logger
from feedback_sync.schemas import (
    FeedbackStatus,
    IntegrationSettings,
    Provider,
    WorkItemDraft,
    WorkItemRef,
)

from .base import ProviderAdapter
from .exceptions import ProviderError

logger = get_logger(__name__)

# Closing reasons GitHub accepts for terminal statuses
_CLOSE_REASONS: dict[FeedbackStatus, str] = {
    FeedbackStatus.COMPLETED: "completed",
    FeedbackStatus.REJECTED: "not_planned",
}


class GitHubAdapter(ProviderAdapter):
    """Issues in a GitHub repository.

    ``owner`` is the user or org, ``container_id`` the repository name.
    Issues only have open/closed state: terminal statuses close the issue
    with a matching reason, everything else keeps it open.

    Usage:
        adapter = GitHubAdapter()
        ref = await adapter.create_work_item(config, draft)
        await adapter.aclose()
    """

    provider = Provider.GITHUB
    required_fields = ("token", "owner", "container_id")
    native_labels = True

    status_map: ClassVar[dict[FeedbackStatus, str]] = {
        FeedbackStatus.PENDING: "open",
        FeedbackStatus.APPROVED: "open",
        FeedbackStatus.IN_PROGRESS: "open",
        FeedbackStatus.TESTFLIGHT: "open",
        FeedbackStatus.COMPLETED: "closed",
        FeedbackStatus.REJECTED: "closed",
    }

    def __init__(self, http_config: HttpConfig | None = None) -> None:
        self._http_config = http_config or get_settings().http

    def _github(self, config: IntegrationSettings) -> GitHub[Any]:
        """githubkit client for one call with the project's token.

        Outside ``async with`` githubkit opens and closes its HTTP client per
        request, so nothing is cached and ``aclose`` has nothing to release.
        """
        return GitHub(
            config.token or "",
            timeout=self._http_config.timeout_seconds,
            user_agent=self._http_config.user_agent,
        )

    async def create_work_item(
        self,
        config: IntegrationSettings,
        draft: WorkItemDraft,
    ) -> WorkItemRef:
        try:
            resp = await self._github(config).rest.issues.async_create(
                owner=config.owner or "",
                repo=config.container_id or "",
                title=draft.title,
                body=draft.body,
                labels=draft.labels,
            )
        except GitHubException as e:
            raise self._handle_error(e) from e

        issue = resp.parsed_data
        return WorkItemRef(url=issue.html_url, external_id=str(issue.number))

    async def create_comment(
        self,
        config: IntegrationSettings,
        external_id: str,
        text: str,
    ) -> bool:
        try:
            await self._github(config).rest.issues.async_create_comment(
                owner=config.owner or "",
                repo=config.container_id or "",
                issue_number=int(external_id),
                body=text,
            )
        except GitHubException as e:
            raise self._handle_error(e) from e
        return True

    async def update_status(
        self,
        config: IntegrationSettings,
        external_id: str,
        status: FeedbackStatus,
    ) -> bool:
        state = self.map_status(status)
        if state is None:
            return self._skip("no status mapping for {}", status.value)

        update: dict[str, Any] = {"state": state}
        if status in _CLOSE_REASONS:
            update["state_reason"] = _CLOSE_REASONS[status]

        try:
            await self._github(config).rest.issues.async_update(
                owner=config.owner or "",
                repo=config.container_id or "",
                issue_number=int(external_id),
                **update,
            )
        except GitHubException as e:
            raise self._handle_error(e) from e
        return True

    def _handle_error(self, error: GitHubException) -> ProviderError:
        """Convert githubkit exceptions to ProviderError."""
        name = self.provider.display_name
        if not isinstance(error, RequestFailed):
            return ProviderError(name, f"Request failed: {error}")

        status = error.response.status_code
        if status == 401:
            message = "Invalid GitHub token"
        elif status == 403:
            message = f"Access forbidden: {error}"
        elif status == 404:
            message = "Repository not found or token lacks access"
        elif status == 410:
            message = "Issues are disabled for this repository"
        else:
            message = f"GitHub API error: {error}"
        logger.debug("GitHub request failed with HTTP {}", status)
        return ProviderError(name, message, http_status=status)
