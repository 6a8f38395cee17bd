"""Sync Dispatcher - push feedback to work trackers and fan out changes.

Two flows share this service:

Create (blocking):
    push_one() / push_many() resolve the provider integration, load the
    feedback item, refuse items that are already linked, build the
    canonical body and create the work item. The returned link is written
    back onto the feedback item before the call returns.

Fan-out (best effort):
    on_comment_created(), on_vote_changed(), on_status_changed() and
    on_feedback_created() read what they need from the database, then
    schedule detached provider/notifier calls on BackgroundTasks. They
    never raise, never block on a provider and never roll anything back.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Coroutine, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from feedback_sync.config import Settings, get_settings
from feedback_sync.db.models import FeedbackItem
from feedback_sync.db.repositories import (
    FeedbackRepository,
    IntegrationConfigRepository,
    ProjectRepository,
    SDKUserRepository,
)
from feedback_sync.logging import bind_sync, get_logger
from feedback_sync.notifications import EMAIL, EmailClient, SlackNotifier
from feedback_sync.providers import AdapterMap
from feedback_sync.schemas import (
    SLACK,
    FeedbackStatus,
    Provider,
    SyncOperation,
    WorkItemDraft,
    WorkItemRef,
)

from .background import BackgroundTasks
from .body import build_comment_text, build_work_item_body, compose_labels
from .exceptions import (
    AlreadyLinkedError,
    FeedbackNotFoundError,
    NotActiveError,
    NotConfiguredError,
)
from .registry import IntegrationRegistry, ResolvedIntegration
from .results import BulkResult, PushResult
from .revenue import RevenueAggregator, SubscriberRevenueAggregator

logger = get_logger(__name__)


@dataclass
class _PreparedPush:
    """A feedback item that passed the pre-flight checks."""

    feedback_id: int
    draft: WorkItemDraft


class SyncDispatcher:
    """Orchestrates work item creation and outward change sync.

    Usage:
        async with get_session() as session:
            dispatcher = SyncDispatcher(session, default_adapters())
            result = await dispatcher.push_one(Provider.CLICKUP, project_id, feedback_id)

            await dispatcher.on_vote_changed(feedback_id, new_count=4)
            await dispatcher.drain()

    The dispatcher never commits; the caller owns the transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        adapters: AdapterMap,
        *,
        revenue: RevenueAggregator | None = None,
        background: BackgroundTasks | None = None,
        slack: SlackNotifier | None = None,
        email: EmailClient | None = None,
        settings: Settings | None = None,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            session: Async SQLAlchemy session (caller manages lifecycle)
            adapters: Provider adapters keyed by provider
            revenue: Revenue aggregator (defaults to SDK user MRR)
            background: Task set for detached calls (defaults to a fresh one)
            slack: Slack notifier; Slack notifications are skipped without one
            email: Email client; emails are skipped without one
            settings: Application settings (defaults to get_settings())
            write_lock: Optional lock shared by the repositories
        """
        self._settings = settings or get_settings()
        self._feedback = FeedbackRepository(session, write_lock)
        self._projects = ProjectRepository(session, write_lock)
        self._registry = IntegrationRegistry(
            IntegrationConfigRepository(session, write_lock),
            adapters,
        )
        self._revenue = revenue or SubscriberRevenueAggregator(SDKUserRepository(session))
        self._background = background or BackgroundTasks()
        self._slack = slack
        self._email = email

    @property
    def background(self) -> BackgroundTasks:
        return self._background

    @property
    def registry(self) -> IntegrationRegistry:
        return self._registry

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled background calls to finish."""
        await self._background.drain(timeout)

    # -------------------------------------------------------------------------
    # Create flow
    # -------------------------------------------------------------------------

    async def push_one(
        self,
        provider: Provider,
        project_id: int,
        feedback_id: int,
        extra_labels: Sequence[str] | None = None,
    ) -> PushResult:
        """Create a work item for one feedback item.

        Args:
            provider: Target provider
            project_id: Project owning the feedback item
            feedback_id: Feedback item to push
            extra_labels: Labels added to the project defaults and category

        Returns:
            PushResult with the created link

        Raises:
            NotConfiguredError: Integration lacks required fields
            NotActiveError: Integration is switched off
            FeedbackNotFoundError: No such item in the project
            AlreadyLinkedError: Item already has a work item in this provider
            ProviderError: The provider call failed (nothing is persisted)
        """
        log = bind_sync(provider.value, project_id=project_id, feedback_id=feedback_id)
        integration = await self._resolve_usable(project_id, provider)
        project_name = await self._project_name(project_id)

        prepared = await self._prepare(integration, project_id, feedback_id, project_name, extra_labels)
        ref = await integration.adapter.create_work_item(integration.settings, prepared.draft)
        result = await self._persist_link(integration, prepared, ref)
        log.info("Created {} {} {}", provider.display_name, provider.work_item_noun, ref.url)

        field_id = integration.adapter.vote_field_id(integration.settings)
        if field_id:
            self._background.submit(
                integration.adapter.update_numeric_field(
                    integration.settings,
                    ref.external_id,
                    field_id,
                    prepared.draft.vote_count,
                ),
                provider=provider.value,
                operation=SyncOperation.VOTES,
                project_id=project_id,
                feedback_id=feedback_id,
            )
        return result

    async def push_many(
        self,
        provider: Provider,
        project_id: int,
        feedback_ids: Sequence[int],
        extra_labels: Sequence[str] | None = None,
    ) -> BulkResult:
        """Create work items for many feedback items.

        The integration check runs once up front and raises like push_one().
        After that, each id is isolated: any failure puts the id in
        ``failed`` and processing continues with the next id.

        With ``sync.bulk_concurrency`` above 1 the provider round-trips
        run concurrently under a semaphore; database reads and link writes
        stay sequential.

        Returns:
            BulkResult where every input id is in created or failed
        """
        log = bind_sync(provider.value, project_id=project_id)
        integration = await self._resolve_usable(project_id, provider)
        project_name = await self._project_name(project_id)
        concurrency = self._settings.sync.bulk_concurrency

        log.info(
            "Bulk push of {} items to {} (concurrency={})",
            len(feedback_ids),
            provider.display_name,
            concurrency,
        )

        result = BulkResult()
        seen: set[int] = set()
        prepared_items: list[_PreparedPush] = []

        for feedback_id in feedback_ids:
            if feedback_id in seen:
                result.add_failure(feedback_id, "Duplicate id in request")
                continue
            seen.add(feedback_id)

            try:
                prepared = await self._prepare(
                    integration, project_id, feedback_id, project_name, extra_labels
                )
                if concurrency > 1:
                    prepared_items.append(prepared)
                    continue
                ref = await integration.adapter.create_work_item(
                    integration.settings, prepared.draft
                )
                result.created.append(await self._persist_link(integration, prepared, ref))
            except Exception as e:
                log.bind(feedback=feedback_id).warning("Bulk push item failed: {}", e)
                result.add_failure(feedback_id, e)

        if prepared_items:
            await self._create_concurrently(integration, prepared_items, concurrency, result)

        log.info(
            "Bulk push to {} finished: {} created, {} failed",
            provider.display_name,
            len(result.created),
            len(result.failed),
        )
        return result

    async def _create_concurrently(
        self,
        integration: ResolvedIntegration,
        prepared_items: list[_PreparedPush],
        concurrency: int,
        result: BulkResult,
    ) -> None:
        semaphore = asyncio.Semaphore(concurrency)

        async def create(prepared: _PreparedPush) -> WorkItemRef:
            async with semaphore:
                return await integration.adapter.create_work_item(
                    integration.settings, prepared.draft
                )

        outcomes = await asyncio.gather(
            *(create(prepared) for prepared in prepared_items),
            return_exceptions=True,
        )

        log = bind_sync(integration.provider.value, project_id=integration.settings.project_id)
        for prepared, outcome in zip(prepared_items, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                log.bind(feedback=prepared.feedback_id).warning("Bulk push item failed: {}", outcome)
                result.add_failure(prepared.feedback_id, outcome)
                continue
            try:
                result.created.append(await self._persist_link(integration, prepared, outcome))
            except Exception as e:
                log.bind(feedback=prepared.feedback_id).warning("Bulk push item failed: {}", e)
                result.add_failure(prepared.feedback_id, e)

    async def _resolve_usable(self, project_id: int, provider: Provider) -> ResolvedIntegration:
        integration = await self._registry.resolve(project_id, provider)
        if not integration.configured:
            raise NotConfiguredError(
                f"{provider.display_name} integration not configured",
                provider=provider.value,
            )
        if not integration.active:
            raise NotActiveError(
                f"{provider.display_name} integration is not active",
                provider=provider.value,
            )
        return integration

    async def _project_name(self, project_id: int) -> str:
        project = await self._projects.get_by_id(project_id)
        return project.name if project is not None else f"Project {project_id}"

    async def _prepare(
        self,
        integration: ResolvedIntegration,
        project_id: int,
        feedback_id: int,
        project_name: str,
        extra_labels: Sequence[str] | None,
    ) -> _PreparedPush:
        """Run the per-item checks and build the work item draft."""
        provider = integration.provider
        item = await self._feedback.get_in_project(project_id, feedback_id)
        if item is None:
            raise FeedbackNotFoundError(project_id, feedback_id)

        link = item.get_link(provider)
        if link is not None:
            raise AlreadyLinkedError(
                feedback_id, provider.display_name, provider.work_item_noun, url=link[0]
            )

        labels = compose_labels(integration.settings.default_labels, extra_labels, item.category)

        voter_ids = await self._feedback.get_voter_ids(feedback_id)
        revenue = await self._revenue.total_revenue(project_id, item.user_id, voter_ids)

        body = build_work_item_body(
            description=item.description,
            category=item.category,
            status=item.status,
            vote_count=item.vote_count,
            project_name=project_name,
            source_name=self._settings.sync.source_name,
            # zero means "no revenue data" and is left out of the body
            revenue=revenue if revenue > 0 else None,
            author_email=item.user_email,
            tags=None if integration.adapter.native_labels else labels,
        )
        draft = WorkItemDraft(
            feedback_id=feedback_id,
            title=item.title,
            body=body,
            labels=labels,
            category=item.category,
            status=item.status,
            vote_count=item.vote_count,
        )
        return _PreparedPush(feedback_id=feedback_id, draft=draft)

    async def _persist_link(
        self,
        integration: ResolvedIntegration,
        prepared: _PreparedPush,
        ref: WorkItemRef,
    ) -> PushResult:
        provider = integration.provider
        written = await self._feedback.set_link(prepared.feedback_id, provider, ref)
        if not written:
            bind_sync(provider.value, feedback_id=prepared.feedback_id).warning(
                "Item was linked concurrently; created {} {} is orphaned",
                provider.work_item_noun,
                ref.url,
            )
            raise AlreadyLinkedError(
                prepared.feedback_id, provider.display_name, provider.work_item_noun
            )
        return PushResult.from_ref(prepared.feedback_id, provider, ref)

    # -------------------------------------------------------------------------
    # Fan-out triggers
    # -------------------------------------------------------------------------

    async def on_comment_created(self, feedback_id: int, text: str, *, is_admin: bool) -> None:
        """Mirror a new comment and notify members. Never raises."""
        await self._guard("comment", feedback_id, self._fan_out_comment(feedback_id, text, is_admin))

    async def on_vote_changed(self, feedback_id: int, new_count: int) -> None:
        """Mirror the post-mutation vote count. Never raises."""
        await self._guard("vote", feedback_id, self._fan_out_votes(feedback_id, new_count))

    async def on_status_changed(
        self,
        feedback_id: int,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
    ) -> None:
        """Mirror a status change and notify the submitter. Never raises."""
        await self._guard(
            "status", feedback_id, self._fan_out_status(feedback_id, old_status, new_status)
        )

    async def on_feedback_created(self, feedback_id: int) -> None:
        """Notify members about new feedback. Never raises."""
        await self._guard("feedback", feedback_id, self._fan_out_new_feedback(feedback_id))

    async def _guard(self, event: str, feedback_id: int, work: Awaitable[None]) -> None:
        try:
            await work
        except Exception as e:
            logger.bind(feedback=feedback_id).warning("Could not schedule {} fan-out: {}", event, e)

    async def _load_for_fan_out(self, feedback_id: int) -> FeedbackItem | None:
        item = await self._feedback.get_by_id(feedback_id)
        if item is None:
            logger.bind(feedback=feedback_id).debug("Feedback not found, nothing to fan out")
        return item

    def _submit(
        self,
        call: Coroutine[Any, Any, Any],
        provider: str,
        operation: SyncOperation,
        item: FeedbackItem,
    ) -> None:
        self._background.submit(
            call,
            provider=provider,
            operation=operation,
            project_id=item.project_id,
            feedback_id=item.id,
        )

    async def _fan_out_comment(self, feedback_id: int, text: str, is_admin: bool) -> None:
        item = await self._load_for_fan_out(feedback_id)
        if item is None:
            return

        comment = build_comment_text(
            text, is_admin=is_admin, source_name=self._settings.sync.source_name
        )
        for integration in await self._registry.resolve_all(item.project_id):
            external_id = integration.link_target(item.get_link(integration.provider))
            if external_id is None or not integration.settings.sync_comments_enabled:
                continue
            self._submit(
                integration.adapter.create_comment(integration.settings, external_id, comment),
                integration.provider.value,
                SyncOperation.COMMENT,
                item,
            )

        project_name = await self._project_name(item.project_id)
        notifier = await self._registry.notifier(item.project_id)
        if self._slack is not None and notifier is not None and notifier.notify_new_comments:
            self._submit(
                self._slack.notify_new_comment(
                    notifier.webhook_url or "",
                    project_name=project_name,
                    feedback_title=item.title,
                    comment=text,
                    is_admin=is_admin,
                ),
                SLACK,
                SyncOperation.NOTIFY,
                item,
            )

        if self._email is not None:
            recipients = await self._projects.get_notification_recipients(
                item.project_id,
                "comments",
                min_tier=self._settings.sync.comment_notification_tier,
            )
            if recipients:
                self._submit(
                    self._email.send_new_comment(
                        recipients,
                        project_name=project_name,
                        feedback_title=item.title,
                        comment=text,
                        is_admin=is_admin,
                    ),
                    EMAIL,
                    SyncOperation.EMAIL,
                    item,
                )

    async def _fan_out_votes(self, feedback_id: int, new_count: int) -> None:
        item = await self._load_for_fan_out(feedback_id)
        if item is None:
            return

        for integration in await self._registry.resolve_all(item.project_id):
            external_id = integration.link_target(item.get_link(integration.provider))
            field_id = integration.adapter.vote_field_id(integration.settings)
            if external_id is None or field_id is None:
                continue
            self._submit(
                integration.adapter.update_numeric_field(
                    integration.settings, external_id, field_id, new_count
                ),
                integration.provider.value,
                SyncOperation.VOTES,
                item,
            )

    async def _fan_out_status(
        self,
        feedback_id: int,
        old_status: FeedbackStatus,
        new_status: FeedbackStatus,
    ) -> None:
        item = await self._load_for_fan_out(feedback_id)
        if item is None:
            return

        for integration in await self._registry.resolve_all(item.project_id):
            external_id = integration.link_target(item.get_link(integration.provider))
            if external_id is None or not integration.settings.sync_status_enabled:
                continue
            self._submit(
                integration.adapter.update_status(integration.settings, external_id, new_status),
                integration.provider.value,
                SyncOperation.STATUS,
                item,
            )

        project_name = await self._project_name(item.project_id)
        notifier = await self._registry.notifier(item.project_id)
        if self._slack is not None and notifier is not None and notifier.notify_status_changes:
            self._submit(
                self._slack.notify_status_change(
                    notifier.webhook_url or "",
                    project_name=project_name,
                    feedback_title=item.title,
                    old_status=old_status,
                    new_status=new_status,
                ),
                SLACK,
                SyncOperation.NOTIFY,
                item,
            )

        if self._email is not None and item.user_email:
            self._submit(
                self._email.send_status_change(
                    [item.user_email],
                    project_name=project_name,
                    feedback_title=item.title,
                    old_status=old_status,
                    new_status=new_status,
                ),
                EMAIL,
                SyncOperation.EMAIL,
                item,
            )

    async def _fan_out_new_feedback(self, feedback_id: int) -> None:
        item = await self._load_for_fan_out(feedback_id)
        if item is None:
            return

        project_name = await self._project_name(item.project_id)
        notifier = await self._registry.notifier(item.project_id)
        if self._slack is not None and notifier is not None and notifier.notify_new_feedback:
            self._submit(
                self._slack.notify_new_feedback(
                    notifier.webhook_url or "",
                    project_name=project_name,
                    title=item.title,
                    description=item.description,
                    category=item.category,
                    author_email=item.user_email,
                ),
                SLACK,
                SyncOperation.NOTIFY,
                item,
            )

        if self._email is not None:
            recipients = await self._projects.get_notification_recipients(
                item.project_id, "feedback"
            )
            if recipients:
                self._submit(
                    self._email.send_new_feedback(
                        recipients,
                        project_name=project_name,
                        title=item.title,
                        description=item.description,
                        category=item.category,
                    ),
                    EMAIL,
                    SyncOperation.EMAIL,
                    item,
                )
