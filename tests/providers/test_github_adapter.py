"""Tests for GitHubAdapter."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from githubkit.exception import GitHubException, RequestFailed
from tests.factories import make_draft, make_settings_snapshot

from feedback_sync.providers import GitHubAdapter, ProviderError
from feedback_sync.schemas import FeedbackStatus, Provider


def _request_failed(status_code: int) -> RequestFailed:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    return RequestFailed(mock_response)


@pytest.fixture
def github_api():
    """githubkit client double with async issue endpoints."""
    issue = SimpleNamespace(html_url="https://github.com/acme/app/issues/12", number=12)
    client = MagicMock()
    client.rest.issues.async_create = AsyncMock(return_value=MagicMock(parsed_data=issue))
    client.rest.issues.async_create_comment = AsyncMock()
    client.rest.issues.async_update = AsyncMock()
    return client


@pytest.fixture
def adapter(http_config, github_api):
    with patch("feedback_sync.providers.github.GitHub", return_value=github_api):
        yield GitHubAdapter(http_config=http_config)


class TestClientConstruction:
    """Tests for per-call githubkit clients."""

    def test_client_uses_project_token(self, http_config):
        with patch("feedback_sync.providers.github.GitHub") as mock_github:
            adapter = GitHubAdapter(http_config=http_config)

            adapter._github(make_settings_snapshot(Provider.GITHUB))
            adapter._github(make_settings_snapshot(Provider.GITHUB, token="ghp_other"))

        assert mock_github.call_count == 2
        mock_github.assert_any_call(
            "ghp_test", timeout=5.0, user_agent="feedback-sync-tests"
        )
        mock_github.assert_any_call(
            "ghp_other", timeout=5.0, user_agent="feedback-sync-tests"
        )

    async def test_new_client_per_call(self, http_config, github_api):
        config = make_settings_snapshot(Provider.GITHUB)
        with patch("feedback_sync.providers.github.GitHub", return_value=github_api) as mock_github:
            adapter = GitHubAdapter(http_config=http_config)
            await adapter.create_work_item(config, make_draft())
            await adapter.create_comment(config, "12", "Hi")

        assert mock_github.call_count == 2


class TestCreateIssue:
    """Tests for issue creation."""

    async def test_creates_issue_with_labels(self, adapter, github_api):
        ref = await adapter.create_work_item(
            make_settings_snapshot(Provider.GITHUB),
            make_draft(labels=["core", "x", "bug_report"]),
        )

        assert ref.url == "https://github.com/acme/app/issues/12"
        assert ref.external_id == "12"
        github_api.rest.issues.async_create.assert_awaited_once()
        kwargs = github_api.rest.issues.async_create.call_args.kwargs
        assert kwargs["owner"] == "acme"
        assert kwargs["repo"] == "app"
        assert kwargs["title"] == "Dark mode"
        assert kwargs["labels"] == ["core", "x", "bug_report"]

    @pytest.mark.parametrize(
        ("status_code", "message"),
        [
            (401, "Invalid GitHub token"),
            (404, "Repository not found"),
            (410, "Issues are disabled"),
        ],
    )
    async def test_request_failed_mapped(self, adapter, github_api, status_code, message):
        github_api.rest.issues.async_create.side_effect = _request_failed(status_code)

        with pytest.raises(ProviderError, match=message) as exc_info:
            await adapter.create_work_item(make_settings_snapshot(Provider.GITHUB), make_draft())

        assert exc_info.value.http_status == status_code

    async def test_transport_failure_mapped(self, adapter, github_api):
        github_api.rest.issues.async_create.side_effect = GitHubException("connection reset")

        with pytest.raises(ProviderError, match="Request failed") as exc_info:
            await adapter.create_work_item(make_settings_snapshot(Provider.GITHUB), make_draft())

        assert exc_info.value.http_status is None


class TestIssueUpdates:
    """Tests for comments and open/closed state."""

    async def test_comment(self, adapter, github_api):
        result = await adapter.create_comment(make_settings_snapshot(Provider.GITHUB), "12", "Hi")

        assert result is True
        kwargs = github_api.rest.issues.async_create_comment.call_args.kwargs
        assert kwargs["issue_number"] == 12
        assert kwargs["body"] == "Hi"

    async def test_completed_closes_as_completed(self, adapter, github_api):
        await adapter.update_status(
            make_settings_snapshot(Provider.GITHUB), "12", FeedbackStatus.COMPLETED
        )

        kwargs = github_api.rest.issues.async_update.call_args.kwargs
        assert kwargs["state"] == "closed"
        assert kwargs["state_reason"] == "completed"

    async def test_rejected_closes_as_not_planned(self, adapter, github_api):
        await adapter.update_status(
            make_settings_snapshot(Provider.GITHUB), "12", FeedbackStatus.REJECTED
        )

        kwargs = github_api.rest.issues.async_update.call_args.kwargs
        assert kwargs["state_reason"] == "not_planned"

    async def test_in_progress_keeps_issue_open(self, adapter, github_api):
        await adapter.update_status(
            make_settings_snapshot(Provider.GITHUB), "12", FeedbackStatus.IN_PROGRESS
        )

        kwargs = github_api.rest.issues.async_update.call_args.kwargs
        assert kwargs["state"] == "open"
        assert "state_reason" not in kwargs

    async def test_comment_error_mapped(self, adapter, github_api):
        github_api.rest.issues.async_create_comment.side_effect = _request_failed(404)

        with pytest.raises(ProviderError):
            await adapter.create_comment(make_settings_snapshot(Provider.GITHUB), "12", "Hi")
