"""Tests for TrelloAdapter."""

import pytest
from tests.factories import make_draft, make_settings_snapshot
from tests.fakes import FakeApi

from feedback_sync.providers import ProviderNotConfiguredError, TrelloAdapter
from feedback_sync.schemas import FeedbackStatus, Provider

CARD = {"id": "card-1", "url": "https://trello.com/c/AbC123/1-dark-mode"}
LISTS = [
    {"id": "list-todo", "name": "To Do"},
    {"id": "list-done", "name": "done"},
]


@pytest.fixture
async def make_adapter(http_config):
    adapters: list[TrelloAdapter] = []

    def _make(api: FakeApi, api_key: str = "trello-app-key") -> TrelloAdapter:
        adapter = TrelloAdapter(api_key=api_key, http_config=http_config, transport=api.transport)
        adapters.append(adapter)
        return adapter

    yield _make
    for adapter in adapters:
        await adapter.aclose()


class TestCreateCard:
    """Tests for card creation."""

    async def test_creates_card_with_query_auth(self, make_adapter):
        api = FakeApi(CARD)
        adapter = make_adapter(api)

        ref = await adapter.create_work_item(make_settings_snapshot(Provider.TRELLO), make_draft())

        assert ref.external_id == "card-1"
        assert ref.url == CARD["url"]
        assert api.last.method == "POST"
        assert api.last.url.path == "/1/cards"
        params = api.last.url.params
        assert params["key"] == "trello-app-key"
        assert params["token"] == "trello-user-token"
        assert params["idList"] == "list-1"
        assert params["name"] == "Dark mode"
        assert params["pos"] == "bottom"
        assert "Authorization" not in api.last.headers

    def test_configured_requires_app_key(self, make_adapter):
        config = make_settings_snapshot(Provider.TRELLO)

        assert make_adapter(FakeApi()).is_active(config)
        assert not make_adapter(FakeApi(), api_key="").is_configured(config)
        assert not make_adapter(FakeApi(), api_key="").is_active(config)

    async def test_missing_app_key(self, make_adapter):
        api = FakeApi(CARD)
        adapter = make_adapter(api, api_key="")

        with pytest.raises(ProviderNotConfiguredError, match="TRELLO_API_KEY"):
            await adapter.create_work_item(make_settings_snapshot(Provider.TRELLO), make_draft())
        assert api.requests == []


class TestCardUpdates:
    """Tests for comments and list moves."""

    async def test_comment(self, make_adapter):
        api = FakeApi({"id": "action-1"})
        adapter = make_adapter(api)

        assert await adapter.create_comment(make_settings_snapshot(Provider.TRELLO), "card-1", "Hi")
        assert api.last.url.path == "/1/cards/card-1/actions/comments"
        assert api.last.url.params["text"] == "Hi"

    async def test_status_moves_card_to_matching_list(self, make_adapter):
        api = FakeApi(LISTS, {"id": "card-1"})
        adapter = make_adapter(api)
        config = make_settings_snapshot(Provider.TRELLO, group_id="board-1")

        assert await adapter.update_status(config, "card-1", FeedbackStatus.COMPLETED) is True

        lookup, move = api.requests
        assert lookup.url.path == "/1/boards/board-1/lists"
        assert lookup.url.params["filter"] == "open"
        assert move.method == "PUT"
        assert move.url.path == "/1/cards/card-1"
        assert move.url.params["idList"] == "list-done"

    async def test_status_without_board_is_skip(self, make_adapter):
        api = FakeApi()
        adapter = make_adapter(api)

        result = await adapter.update_status(
            make_settings_snapshot(Provider.TRELLO), "card-1", FeedbackStatus.COMPLETED
        )

        assert result is False
        assert api.requests == []

    async def test_status_without_matching_list_is_skip(self, make_adapter):
        api = FakeApi(LISTS)
        adapter = make_adapter(api)
        config = make_settings_snapshot(Provider.TRELLO, group_id="board-1")

        assert await adapter.update_status(config, "card-1", FeedbackStatus.IN_PROGRESS) is False
        assert len(api.requests) == 1
