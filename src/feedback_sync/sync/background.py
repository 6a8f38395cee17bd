"""Detached best-effort execution of outward sync calls.

Every fan-out call goes through best_effort(): failures are logged and
recorded, never raised. BackgroundTasks holds strong references to the
detached tasks so they are not garbage collected mid-flight, and lets
shutdown code and tests wait for them with drain().
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from feedback_sync.db.repositories import SyncFailureRepository
from feedback_sync.logging import bind_sync, get_logger
from feedback_sync.schemas import SyncOperation

logger = get_logger(__name__)

FailureRecorder = Callable[
    [str, SyncOperation, Exception, int | None, int | None],
    Awaitable[None],
]


async def best_effort(
    call: Awaitable[Any],
    *,
    provider: str,
    operation: SyncOperation,
    project_id: int | None = None,
    feedback_id: int | None = None,
    on_failure: FailureRecorder | None = None,
) -> bool:
    """Await one outward call, swallowing and recording any failure.

    Args:
        call: Awaitable performing the provider/notifier call
        provider: Provider value, "slack" or "email"
        operation: What the call does
        project_id: Project context for logs and failure records
        feedback_id: Feedback context for logs and failure records
        on_failure: Optional recorder invoked with the swallowed error

    Returns:
        True if the call completed, False if it failed
    """
    log = bind_sync(provider, project_id=project_id, feedback_id=feedback_id)
    try:
        await call
    except asyncio.CancelledError:
        raise
    except Exception as e:
        log.warning("{} {} failed: {}", provider, operation.value, e)
        if on_failure is not None:
            try:
                await on_failure(provider, operation, e, project_id, feedback_id)
            except Exception as record_error:
                log.error("Could not record {} failure: {}", operation.value, record_error)
        return False
    log.debug("{} {} done", provider, operation.value)
    return True


class SyncFailureRecorder:
    """Persists swallowed failures in a fresh session.

    Background tasks outlive the request that scheduled them, so they never
    reuse the caller's session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def __call__(
        self,
        provider: str,
        operation: SyncOperation,
        error: Exception,
        project_id: int | None,
        feedback_id: int | None,
    ) -> None:
        async with self._session_factory() as session:
            await SyncFailureRepository(session).record_failure(
                provider,
                operation.value,
                error,
                project_id=project_id,
                feedback_id=feedback_id,
            )
            await session.commit()


class BackgroundTasks:
    """Fire-and-forget task set for outward sync.

    Usage:
        tasks = BackgroundTasks(on_failure=SyncFailureRecorder(factory))
        tasks.submit(adapter.create_comment(cfg, "abc", text),
                     provider="clickup", operation=SyncOperation.COMMENT)
        ...
        await tasks.drain()
    """

    def __init__(self, on_failure: FailureRecorder | None = None) -> None:
        self._on_failure = on_failure
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(
        self,
        call: Coroutine[Any, Any, Any],
        *,
        provider: str,
        operation: SyncOperation,
        project_id: int | None = None,
        feedback_id: int | None = None,
    ) -> asyncio.Task[bool]:
        """Schedule a call without awaiting it."""
        task = asyncio.create_task(
            best_effort(
                call,
                provider=provider,
                operation=operation,
                project_id=project_id,
                feedback_id=feedback_id,
                on_failure=self._on_failure,
            ),
            name=f"sync-{provider}-{operation.value}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for scheduled tasks, including ones scheduled while waiting.

        Args:
            timeout: Give up after this many seconds (tasks keep running)
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while True:
            waiting = {task for task in self._tasks if not task.done()}
            if not waiting:
                return
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                logger.warning("Background drain timed out with {} tasks pending", len(waiting))
                return
            await asyncio.wait(waiting, timeout=remaining)
