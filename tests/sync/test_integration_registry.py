"""Tests for IntegrationRegistry and revenue aggregation."""

import pytest
from tests.factories import make_feedback, make_integration, make_project, make_sdk_user

from feedback_sync.db.repositories import IntegrationConfigRepository, SDKUserRepository
from feedback_sync.schemas import SLACK, Provider
from feedback_sync.sync import IntegrationRegistry, SubscriberRevenueAggregator

WEBHOOK = "https://hooks.slack.com/services/T/B/x"


@pytest.fixture
def registry(db_session, adapters) -> IntegrationRegistry:
    return IntegrationRegistry(IntegrationConfigRepository(db_session), adapters)


class TestResolve:
    """Tests for configured/active resolution."""

    async def test_configured_and_active(self, db_session, registry):
        project = make_project(db_session)
        make_integration(db_session, project, Provider.CLICKUP, votes_field="vf1")
        await db_session.flush()

        integration = await registry.resolve(project.id, Provider.CLICKUP)

        assert integration.configured is True
        assert integration.active is True
        assert integration.settings.votes_field == "vf1"

    async def test_inactive(self, db_session, registry):
        project = make_project(db_session)
        make_integration(db_session, project, Provider.CLICKUP, is_active=False)
        await db_session.flush()

        integration = await registry.resolve(project.id, Provider.CLICKUP)

        assert integration.configured is True
        assert integration.active is False

    async def test_missing_row_is_unconfigured(self, db_session, registry):
        project = make_project(db_session)
        await db_session.flush()

        integration = await registry.resolve(project.id, Provider.NOTION)

        assert integration.configured is False
        assert integration.active is False
        assert integration.settings.provider == "notion"

    async def test_unregistered_adapter(self, registry):
        with pytest.raises(ValueError, match="No adapter registered for linear"):
            await registry.resolve(1, Provider.LINEAR)

    async def test_resolve_all_only_registered(self, db_session, registry, adapters):
        project = make_project(db_session)
        await db_session.flush()

        resolved = await registry.resolve_all(project.id)

        assert {r.provider for r in resolved} == set(adapters)

    async def test_link_target_requires_active_and_link(self, db_session, registry):
        project = make_project(db_session)
        make_integration(db_session, project, Provider.TRELLO, is_active=False)
        make_integration(db_session, project, Provider.CLICKUP)
        await db_session.flush()

        trello = await registry.resolve(project.id, Provider.TRELLO)
        clickup = await registry.resolve(project.id, Provider.CLICKUP)

        assert trello.link_target(("https://trello.com/c/1", "1")) is None
        assert clickup.link_target(None) is None
        assert clickup.link_target(("https://app.clickup.com/t/a", "a")) == "a"


class TestNotifier:
    """Tests for Slack notifier resolution."""

    async def test_configured_notifier(self, db_session, registry):
        project = make_project(db_session)
        make_integration(db_session, project, SLACK, webhook_url=WEBHOOK)
        await db_session.flush()

        notifier = await registry.notifier(project.id)

        assert notifier is not None
        assert notifier.webhook_url == WEBHOOK

    async def test_inactive_or_missing_webhook(self, db_session, registry):
        project = make_project(db_session)
        other = make_project(db_session, name="Other")
        make_integration(db_session, project, SLACK, webhook_url=WEBHOOK, is_active=False)
        make_integration(db_session, other, SLACK)
        await db_session.flush()

        assert await registry.notifier(project.id) is None
        assert await registry.notifier(other.id) is None


class TestSubscriberRevenue:
    """Tests for author ∪ voters revenue."""

    async def test_author_counted_once(self, db_session):
        project = make_project(db_session)
        make_feedback(db_session, project, user_id="author")
        await db_session.flush()
        make_sdk_user(db_session, project, "author", mrr=20.0)
        make_sdk_user(db_session, project, "voter", mrr=5.0)
        await db_session.flush()

        aggregator = SubscriberRevenueAggregator(SDKUserRepository(db_session))
        total = await aggregator.total_revenue(project.id, "author", ["author", "voter"])

        assert total == 25.0
