from __future__ import annotations

import asyncio
import logging

from airlink.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Background task that evicts idle sessions from the registry."""

    def __init__(self, registry: SessionRegistry, *, interval_seconds: float = 60.0) -> None:
        self._registry = registry
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="airlink-session-sweeper")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def sweep_once(self) -> list[str]:
        return self._registry.purge_expired()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self.sweep_once()
            except Exception:  # pragma: no cover - keep sweeping on unexpected errors
                logger.exception("Session sweep failed")
