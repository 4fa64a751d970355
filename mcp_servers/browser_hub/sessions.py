"""Per-caller session registry.

One Session per caller id, each owning one automation handle and the index of
its active page. Handles are expensive to build, so construction is lazy and
deduplicated: concurrent first calls for the same id share one pending task.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from .engine import AutomationHandle, HandleFactory
from .errors import InitializationFailure, ToolError

logger = logging.getLogger("mcp.hub.sessions")


@dataclass(eq=False)
class Session:
    id: str
    handle: AutomationHandle
    active_page_index: int = 0
    # Serializes page-set mutations for this session only.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    last_used: float = 0.0
    active_calls: int = 0

    def page_count(self) -> int:
        return len(self.handle.pages())

    @property
    def busy(self) -> bool:
        return self.active_calls > 0 or self.lock.locked()


class SessionRegistry:
    """Owns the id -> Session map for the whole process."""

    def __init__(
        self,
        factory: HandleFactory,
        *,
        idle_ttl: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._idle_ttl = max(0.0, float(idle_ttl))
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._pending: dict[str, asyncio.Task[Session]] = {}

    def ids(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def get_or_create(self, session_id: str) -> Session:
        """Return the session for `session_id`, constructing its handle on first use."""
        await self.evict_idle()
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_used = self._clock()
            return session

        task = self._pending.get(session_id)
        if task is None:
            task = asyncio.ensure_future(self._construct(session_id))
            self._pending[session_id] = task
        # A cancelled waiter must not abort construction for the others.
        return await asyncio.shield(task)

    @asynccontextmanager
    async def acquire(self, session_id: str) -> AsyncIterator[Session]:
        """Get-or-create and mark the session in use for the duration of a call."""
        session = await self.get_or_create(session_id)
        session.active_calls += 1
        try:
            yield session
        finally:
            session.active_calls -= 1
            session.last_used = self._clock()

    async def _construct(self, session_id: str) -> Session:
        try:
            try:
                handle = await self._factory(session_id)
            except ToolError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.error("session_init_failed session=%s error=%s", session_id, exc)
                raise InitializationFailure(
                    f"Failed to initialize automation handle: {exc}",
                    suggestion="Check engine configuration and model credentials, then retry",
                    details={"sessionId": session_id},
                ) from exc
            session = Session(id=session_id, handle=handle, last_used=self._clock())
            self._sessions[session_id] = session
            logger.info("session_created session=%s total=%d", session_id, len(self._sessions))
            return session
        finally:
            self._pending.pop(session_id, None)

    async def close(self, session_id: str) -> bool:
        """Close one session's handle and forget it. False when unknown."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        async with session.lock:
            await self._close_handle(session)
        logger.info("session_closed session=%s total=%d", session_id, len(self._sessions))
        return True

    async def evict_idle(self) -> list[str]:
        """Close sessions idle longer than the TTL. No-op when the TTL is 0."""
        if self._idle_ttl <= 0:
            return []
        cutoff = self._clock() - self._idle_ttl
        stale = [s for s in self._sessions.values() if s.last_used < cutoff and not s.busy]
        for session in stale:
            self._sessions.pop(session.id, None)
            logger.info("session_expired session=%s idle_ttl=%.0fs", session.id, self._idle_ttl)
            await self._close_handle(session)
        return [s.id for s in stale]

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            await self._close_handle(session)

    async def _close_handle(self, session: Session) -> None:
        try:
            await session.handle.close()
        except Exception as exc:  # noqa: BLE001
            logger.warning("session_close_failed session=%s error=%s", session.id, exc)


__all__ = ["Session", "SessionRegistry"]
