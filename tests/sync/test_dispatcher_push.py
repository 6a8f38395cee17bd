"""Tests for SyncDispatcher.push_one()."""

from unittest.mock import AsyncMock

import pytest
from tests.factories import (
    make_feedback,
    make_integration,
    make_project,
    make_sdk_user,
    make_vote,
)

from feedback_sync.providers import ProviderError
from feedback_sync.schemas import FeedbackCategory, Provider
from feedback_sync.sync import (
    AlreadyLinkedError,
    FeedbackNotFoundError,
    NotActiveError,
    NotConfiguredError,
    PushResult,
)


@pytest.fixture
async def project(db_session):
    project = make_project(db_session, name="Acme App")
    await db_session.flush()
    return project


class TestPushOne:
    """Tests for the blocking create flow."""

    async def test_creates_and_links_work_item(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.TRELLO)
        item = make_feedback(db_session, project)
        await db_session.flush()

        result = await dispatcher.push_one(Provider.TRELLO, project.id, item.id)

        assert isinstance(result, PushResult)
        assert result.feedback_id == item.id
        assert result.provider is Provider.TRELLO
        assert result.external_id == f"trello-{item.id}"
        await db_session.refresh(item)
        assert item.get_link(Provider.TRELLO) == (result.url, result.external_id)
        assert len(adapters[Provider.TRELLO].created) == 1

    async def test_labels_are_defaults_extras_and_category(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(db_session, project, Provider.GITHUB, default_labels=["core"])
        item = make_feedback(db_session, project, category=FeedbackCategory.BUG_REPORT)
        await db_session.flush()

        await dispatcher.push_one(Provider.GITHUB, project.id, item.id, ["x"])

        draft = adapters[Provider.GITHUB].created[0]
        assert set(draft.labels) == {"core", "x", "bug_report"}
        assert "**Tags:**" not in draft.body

    async def test_non_native_labels_rendered_in_body(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(db_session, project, Provider.TRELLO, default_labels=["core"])
        item = make_feedback(db_session, project)
        await db_session.flush()

        await dispatcher.push_one(Provider.TRELLO, project.id, item.id)

        draft = adapters[Provider.TRELLO].created[0]
        assert "**Tags:** core, feature_request" in draft.body

    async def test_body_describes_feedback(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.GITHUB)
        item = make_feedback(
            db_session,
            project,
            title="Export to CSV",
            description="Need CSV export for reports.",
            vote_count=2,
            user_email="jane@example.com",
        )
        await db_session.flush()

        await dispatcher.push_one(Provider.GITHUB, project.id, item.id)

        draft = adapters[Provider.GITHUB].created[0]
        assert draft.title == "Export to CSV"
        assert draft.vote_count == 2
        assert "Need CSV export for reports." in draft.body
        assert "**Project:** Acme App" in draft.body
        assert "**Submitted by:** jane@example.com" in draft.body
        assert "*Synced from Feedback Kit*" in draft.body

    async def test_revenue_from_author_and_voters(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(db_session, project, Provider.GITHUB)
        item = make_feedback(db_session, project, user_id="author")
        make_vote(db_session, item, "voter")
        make_sdk_user(db_session, project, "author", mrr=40.0)
        make_sdk_user(db_session, project, "voter", mrr=9.5)
        await db_session.flush()

        await dispatcher.push_one(Provider.GITHUB, project.id, item.id)

        assert "**MRR:** $49.50" in adapters[Provider.GITHUB].created[0].body

    async def test_zero_revenue_is_left_out(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.GITHUB)
        item = make_feedback(db_session, project, user_id="author")
        make_sdk_user(db_session, project, "author", mrr=0.0)
        await db_session.flush()

        await dispatcher.push_one(Provider.GITHUB, project.id, item.id)

        assert "MRR" not in adapters[Provider.GITHUB].created[0].body

    async def test_seeds_vote_field_in_background(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(
            db_session, project, Provider.CLICKUP, default_labels=["core"], votes_field="vf1"
        )
        item = make_feedback(db_session, project, vote_count=3)
        await db_session.flush()

        result = await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)
        await dispatcher.drain()

        assert adapters[Provider.CLICKUP].numeric_updates == [(result.external_id, "vf1", 3)]

        with pytest.raises(AlreadyLinkedError):
            await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)

    async def test_no_vote_seed_without_field(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.CLICKUP)
        item = make_feedback(db_session, project, vote_count=3)
        await db_session.flush()

        await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)
        await dispatcher.drain()

        assert adapters[Provider.CLICKUP].numeric_updates == []


class TestPushOneRefusals:
    """Tests for pre-flight refusals and provider failures."""

    async def test_already_linked(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.TRELLO)
        item = make_feedback(
            db_session,
            project,
            trello_card_url="https://trello.com/c/existing",
            trello_card_id="existing",
        )
        await db_session.flush()

        with pytest.raises(AlreadyLinkedError) as exc_info:
            await dispatcher.push_one(Provider.TRELLO, project.id, item.id)

        assert exc_info.value.url == "https://trello.com/c/existing"
        assert str(exc_info.value) == "Feedback already has a Trello card"
        assert adapters[Provider.TRELLO].call_count == 0

    async def test_not_configured(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.NOTION, configured=False)
        item = make_feedback(db_session, project)
        await db_session.flush()

        with pytest.raises(NotConfiguredError, match="Notion integration not configured"):
            await dispatcher.push_one(Provider.NOTION, project.id, item.id)
        assert adapters[Provider.NOTION].call_count == 0

    async def test_missing_row_is_not_configured(self, db_session, dispatcher, project):
        item = make_feedback(db_session, project)
        await db_session.flush()

        with pytest.raises(NotConfiguredError):
            await dispatcher.push_one(Provider.GITHUB, project.id, item.id)

    async def test_inactive_never_calls_provider(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(db_session, project, Provider.CLICKUP, is_active=False)
        item = make_feedback(db_session, project)
        await db_session.flush()

        with pytest.raises(NotActiveError, match="ClickUp integration is not active"):
            await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)
        assert adapters[Provider.CLICKUP].call_count == 0

    async def test_feedback_in_other_project(self, db_session, dispatcher, project):
        other = make_project(db_session, name="Other")
        make_integration(db_session, project, Provider.GITHUB)
        item = make_feedback(db_session, other)
        await db_session.flush()

        with pytest.raises(FeedbackNotFoundError):
            await dispatcher.push_one(Provider.GITHUB, project.id, item.id)

    async def test_provider_error_persists_nothing(
        self, db_session, dispatcher, adapters, project
    ):
        make_integration(db_session, project, Provider.CLICKUP)
        item = make_feedback(db_session, project)
        await db_session.flush()
        adapters[Provider.CLICKUP].fail_all = True

        with pytest.raises(ProviderError):
            await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)

        await db_session.refresh(item)
        assert item.get_link(Provider.CLICKUP) is None

    async def test_lost_link_race(self, db_session, dispatcher, adapters, project):
        make_integration(db_session, project, Provider.CLICKUP)
        item = make_feedback(db_session, project)
        await db_session.flush()
        dispatcher._feedback.set_link = AsyncMock(return_value=False)

        with pytest.raises(AlreadyLinkedError):
            await dispatcher.push_one(Provider.CLICKUP, project.id, item.id)

        assert len(adapters[Provider.CLICKUP].created) == 1
