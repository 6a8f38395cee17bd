"""Tests for push CLI commands with the dispatcher mocked out."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from feedback_sync import __version__
from feedback_sync.cli.app import app
from feedback_sync.schemas import Provider
from feedback_sync.sync import BulkResult, NotActiveError, PushResult

runner = CliRunner()


@pytest.fixture
def mock_dispatcher():
    """A dispatcher whose push calls return canned results."""
    dispatcher = MagicMock()
    dispatcher.push_one = AsyncMock(
        return_value=PushResult(
            feedback_id=42,
            provider=Provider.LINEAR,
            url="https://linear.app/acme/issue/ENG-7",
            external_id="issue-uuid",
            identifier="ENG-7",
        )
    )
    bulk = BulkResult()
    bulk.created.append(
        PushResult(
            feedback_id=40,
            provider=Provider.TRELLO,
            url="https://trello.com/c/a",
            external_id="a",
        )
    )
    bulk.add_failure(41, "Feedback already has a Trello card")
    dispatcher.push_many = AsyncMock(return_value=bulk)
    return dispatcher


@pytest.fixture
def patched_dispatcher(mock_dispatcher):
    """Route the push commands to mock_dispatcher."""

    async def run(work):
        return await work(mock_dispatcher)

    with patch("feedback_sync.cli.push._with_dispatcher", side_effect=run):
        yield mock_dispatcher


class TestGlobalFlags:
    """Tests for global CLI flags."""

    def test_help_lists_command_groups(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for group in ("push", "integrations", "failures", "db"):
            assert group in result.stdout
        assert "--verbose" in result.stdout
        assert "--quiet" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestPushOneCommand:
    """Tests for 'push one'."""

    def test_text_output(self, patched_dispatcher):
        result = runner.invoke(app, ["push", "one", "linear", "1", "42", "-l", "triage"])

        assert result.exit_code == 0, result.output
        assert "Created Linear issue (ENG-7) for feedback #42" in result.stdout
        patched_dispatcher.push_one.assert_awaited_once_with(Provider.LINEAR, 1, 42, ["triage"])

    def test_json_output(self, patched_dispatcher):
        result = runner.invoke(app, ["push", "one", "linear", "1", "42", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["identifier"] == "ENG-7"
        assert data["provider"] == "linear"

    def test_provider_is_case_insensitive(self, patched_dispatcher):
        result = runner.invoke(app, ["push", "one", "LINEAR", "1", "42"])

        assert result.exit_code == 0, result.output

    def test_unknown_provider(self):
        result = runner.invoke(app, ["push", "one", "jira", "1", "42"])

        assert result.exit_code != 0

    def test_sync_error_exits_1(self, patched_dispatcher):
        patched_dispatcher.push_one.side_effect = NotActiveError(
            "ClickUp integration is not active", provider="clickup"
        )

        result = runner.invoke(app, ["push", "one", "clickup", "1", "42"])

        assert result.exit_code == 1
        assert "ClickUp integration is not active" in result.stdout

    def test_unexpected_error_exits_1(self, patched_dispatcher):
        patched_dispatcher.push_one.side_effect = RuntimeError("boom")

        result = runner.invoke(app, ["push", "one", "clickup", "1", "42"])

        assert result.exit_code == 1
        assert "Push failed" in result.stdout


class TestPushManyCommand:
    """Tests for 'push many'."""

    def test_text_output(self, patched_dispatcher):
        result = runner.invoke(app, ["push", "many", "trello", "1", "40", "41"])

        assert result.exit_code == 0, result.output
        assert "Created: 1" in result.stdout
        assert "Failed:  1" in result.stdout
        assert "#41: Feedback already has a Trello card" in result.stdout
        patched_dispatcher.push_many.assert_awaited_once_with(Provider.TRELLO, 1, [40, 41], None)

    def test_json_output(self, patched_dispatcher):
        result = runner.invoke(app, ["push", "many", "trello", "1", "40", "41", "-f", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [item["feedback_id"] for item in data["created"]] == [40]
        assert data["failed"] == [41]
        assert data["errors"] == {"41": "Feedback already has a Trello card"}

    def test_requires_ids(self):
        result = runner.invoke(app, ["push", "many", "trello", "1"])

        assert result.exit_code != 0
