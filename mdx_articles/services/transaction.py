"""
Transaction boundary for multi-step article writes.

The relational work is committed or rolled back through the session.
Side effects that live outside the database are attached as hooks:
``on_rollback`` compensations undo work that already happened (files moved
into permanent storage), ``after_commit`` actions run only once the rows
are durable (cache writes, removal of deleted files).
"""
import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

Hook = Callable[[], Awaitable[None] | None]


class Transaction:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self._compensations: list[Hook] = []
        self._after_commit: list[Hook] = []

    def on_rollback(self, hook: Hook) -> None:
        self._compensations.append(hook)

    def after_commit(self, hook: Hook) -> None:
        self._after_commit.append(hook)

    async def __aenter__(self) -> "Transaction":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            try:
                await self.db.commit()
            except Exception:
                await self._rollback()
                raise
            await self._run(self._after_commit, "after-commit")
        else:
            await self._rollback()
        return False

    async def _rollback(self) -> None:
        await self.db.rollback()
        # Undo in reverse order of registration.
        await self._run(list(reversed(self._compensations)), "compensation")

    @staticmethod
    async def _run(hooks: list[Hook], kind: str) -> None:
        for hook in hooks:
            try:
                result = hook()
                if result is not None:
                    await result
            except Exception as exc:
                logger.warning("%s hook %r failed: %s", kind, hook, exc)
