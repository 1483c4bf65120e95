"""Broadcast groups: which live connection belongs to which session.

A connection is in at most one group. Joining another session moves it, and
disconnecting removes it, so a group never keeps stale entries. Group
snapshots are taken under the lock; delivery happens after releasing it.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Iterable

from airlink.schemas.events import system_message
from airlink.services.connection import Connection
from airlink.services.session_registry import SessionRecord, SessionRegistry

logger = logging.getLogger(__name__)


class MembershipManager:
    """Tracks session groups and delivers group-wide frames."""

    def __init__(self, registry: SessionRegistry, *, announce_departures: bool = True) -> None:
        self._registry = registry
        self._announce_departures = announce_departures
        self._lock = asyncio.Lock()
        self._groups: dict[str, set[Connection]] = defaultdict(set)
        self._evictions: set[asyncio.Task[Any]] = set()

    async def join(
        self, connection: Connection, code: str, password: str | None = None
    ) -> SessionRecord:
        """Validate and move ``connection`` into the group of ``code``.

        Raises ``SessionNotFound`` or ``WrongPassword``; membership is left
        untouched on rejection.
        """
        record = self._registry.validate_join(code, password)

        async with self._lock:
            previous = connection.session_code
            if previous == code:
                targets: list[Connection] = []
                departed_from = None
            else:
                departed_from = self._remove_locked(connection)
                self._groups[code].add(connection)
                connection.session_code = code
                self._registry.attach_member(code)
                targets = list(self._groups[code])
            remaining = list(self._groups.get(departed_from, ())) if departed_from else []

        if previous == code:
            self.deliver([connection], system_message(f"Already in session {code}.", code=code))
            return record

        logger.info("Connection %s joined session %s", connection.identity, code)
        if departed_from:
            logger.info("Connection %s left session %s to join %s", connection.identity, departed_from, code)
            self._announce_departure(departed_from, remaining)
        # The joiner is notified too; this doubles as its join confirmation.
        self.deliver(targets, system_message(f"A device joined session {code}.", code=code))
        return record

    async def leave(self, connection: Connection, *, announce: bool = True) -> str | None:
        """Remove ``connection`` from its group. Returns the code it left, if any."""
        async with self._lock:
            code = self._remove_locked(connection)
            remaining = list(self._groups.get(code, ())) if code else []
        if code is None:
            return None
        logger.info("Connection %s left session %s", connection.identity, code)
        if announce:
            self._announce_departure(code, remaining)
        return code

    def _remove_locked(self, connection: Connection) -> str | None:
        code = connection.session_code
        if code is None:
            return None
        group = self._groups.get(code)
        if group is not None:
            group.discard(connection)
            if not group:
                self._groups.pop(code, None)
        connection.session_code = None
        self._registry.detach_member(code)
        return code

    def _announce_departure(self, code: str, remaining: list[Connection]) -> None:
        if self._announce_departures and remaining:
            self.deliver(remaining, system_message(f"A device left session {code}.", code=code))

    async def members_of(self, code: str) -> list[Connection]:
        async with self._lock:
            return list(self._groups.get(code, ()))

    async def member_ids(self, code: str) -> set[str]:
        return {conn.identity for conn in await self.members_of(code)}

    async def connection_count(self) -> int:
        async with self._lock:
            return sum(len(group) for group in self._groups.values())

    def session_of(self, connection: Connection) -> str | None:
        return connection.session_code

    def deliver(self, targets: Iterable[Connection], payload: dict[str, Any]) -> int:
        """Enqueue ``payload`` for each target; drop any target that cannot keep up.

        Returns the number of connections the frame was queued for.
        """
        delivered = 0
        lagging: list[Connection] = []
        for conn in targets:
            if conn.send(payload):
                delivered += 1
            elif not conn.dropped:
                lagging.append(conn)
        for conn in lagging:
            conn.drop(reason="outbox full")
            task = asyncio.get_running_loop().create_task(self.leave(conn, announce=False))
            self._evictions.add(task)
            task.add_done_callback(self._evictions.discard)
        return delivered

    async def broadcast(
        self, code: str, payload: dict[str, Any], *, exclude: Connection | None = None
    ) -> int:
        targets = [conn for conn in await self.members_of(code) if conn is not exclude]
        return self.deliver(targets, payload)


__all__ = ["MembershipManager"]
