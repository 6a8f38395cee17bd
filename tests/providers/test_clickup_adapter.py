"""Tests for ClickUpAdapter."""

import httpx
import pytest
from tests.factories import make_draft, make_settings_snapshot
from tests.fakes import FakeApi

from feedback_sync.providers import ClickUpAdapter, ProviderError
from feedback_sync.schemas import FeedbackStatus, Provider


@pytest.fixture
def config():
    return make_settings_snapshot(Provider.CLICKUP, votes_field="vf1")


@pytest.fixture
async def make_adapter(http_config):
    adapters: list[ClickUpAdapter] = []

    def _make(api: FakeApi) -> ClickUpAdapter:
        adapter = ClickUpAdapter(http_config=http_config, transport=api.transport)
        adapters.append(adapter)
        return adapter

    yield _make
    for adapter in adapters:
        await adapter.aclose()


class TestCreateTask:
    """Tests for task creation."""

    async def test_creates_task_in_list(self, make_adapter, config):
        api = FakeApi({"id": "86abc", "url": "https://app.clickup.com/t/86abc"})
        adapter = make_adapter(api)

        ref = await adapter.create_work_item(
            config, make_draft(labels=["core", "x", "bug_report"])
        )

        assert ref.url == "https://app.clickup.com/t/86abc"
        assert ref.external_id == "86abc"
        assert api.last.method == "POST"
        assert api.last.url.path == "/api/v2/list/list-1/task"
        assert api.last.headers["Authorization"] == "pk_test"
        body = api.body()
        assert body["name"] == "Dark mode"
        assert body["tags"] == ["core", "x", "bug_report"]
        assert body["markdown_description"].startswith("## Feature Request")
        assert body["notify_all"] is False

    async def test_unexpected_response(self, make_adapter, config):
        adapter = make_adapter(FakeApi({"status": "ok"}))

        with pytest.raises(ProviderError, match="Unexpected task response"):
            await adapter.create_work_item(config, make_draft())

    async def test_validation_error_propagates(self, make_adapter, config):
        api = FakeApi(httpx.Response(400, json={"err": "Task name invalid", "ECODE": "INPUT_005"}))
        adapter = make_adapter(api)

        with pytest.raises(ProviderError) as exc_info:
            await adapter.create_work_item(config, make_draft())
        assert exc_info.value.http_status == 400


class TestTaskUpdates:
    """Tests for comment, vote field and status calls."""

    async def test_comment(self, make_adapter, config):
        api = FakeApi({"id": 1})
        adapter = make_adapter(api)

        assert await adapter.create_comment(config, "86abc", "**[User] Comment:**") is True
        assert api.last.url.path == "/api/v2/task/86abc/comment"
        assert api.body() == {"comment_text": "**[User] Comment:**", "notify_all": False}

    async def test_vote_field(self, make_adapter, config):
        api = FakeApi({})
        adapter = make_adapter(api)

        assert await adapter.update_numeric_field(config, "86abc", "vf1", 3) is True
        assert api.last.url.path == "/api/v2/task/86abc/field/vf1"
        assert api.body() == {"value": 3}

    async def test_vote_field_missing_is_skip(self, make_adapter, config):
        api = FakeApi()
        adapter = make_adapter(api)

        assert await adapter.update_numeric_field(config, "86abc", None, 3) is False
        assert api.requests == []

    @pytest.mark.parametrize(
        ("status", "native"),
        [
            (FeedbackStatus.PENDING, "to do"),
            (FeedbackStatus.IN_PROGRESS, "in progress"),
            (FeedbackStatus.COMPLETED, "complete"),
            (FeedbackStatus.REJECTED, "closed"),
        ],
    )
    async def test_status(self, make_adapter, config, status, native):
        api = FakeApi({})
        adapter = make_adapter(api)

        assert await adapter.update_status(config, "86abc", status) is True
        assert api.last.method == "PUT"
        assert api.last.url.path == "/api/v2/task/86abc"
        assert api.body() == {"status": native}
