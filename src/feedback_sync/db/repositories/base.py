"""Shared plumbing for the async repositories."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.base import Executable

from feedback_sync.db.models import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Session, model class and an optional write lock.

    One AsyncSession may be shared by several coroutines (a bulk push with
    concurrent provider calls, fan-out scheduling next to a push). Every
    write goes through ``_writing()``; hand the same ``write_lock`` to all
    repositories on that session to serialize flushes and UPDATE/DELETE
    statements.

    Usage:
        class SDKUserRepository(BaseRepository[SDKUser]):
            def __init__(self, session, write_lock=None) -> None:
                super().__init__(session, SDKUser, write_lock)
    """

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[ModelT],
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._session = session
        self._model_class = model_class
        self._write_lock = write_lock

    @property
    def session(self) -> AsyncSession:
        return self._session

    @asynccontextmanager
    async def _writing(self) -> AsyncIterator[None]:
        if self._write_lock is None:
            yield
            return
        async with self._write_lock:
            yield

    async def get_by_id(self, id: int) -> ModelT | None:
        return await self._session.get(self._model_class, id)

    async def get_all(self, limit: int | None = None) -> list[ModelT]:
        stmt = select(self._model_class).order_by(self._model_class.id)  # type: ignore[attr-defined]
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self._session.scalars(stmt)).all())

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self._model_class)
        return (await self._session.scalar(stmt)) or 0

    def add(self, entity: ModelT) -> ModelT:
        """Add to the session without flushing."""
        self._session.add(entity)
        return entity

    async def flush(self) -> None:
        async with self._writing():
            await self._session.flush()

    async def execute_write(self, stmt: Executable) -> int:
        """Run a bulk UPDATE/DELETE under the write lock.

        Returns:
            Number of rows the statement matched
        """
        async with self._writing():
            result = await self._session.execute(stmt)
        row_count: int = getattr(result, "rowcount", 0) or 0
        return row_count
