"""Relay engine: validates client events and fans them out to a session group.

| event           | session effect                   | fan-out                        |
|-----------------|----------------------------------|--------------------------------|
| join-session    | membership change                | system-message to the group    |
| send-message    | none                             | group, stamped with from/time  |
| file-meta       | capacity check + file_count += 1 | group incl. sender, stamped    |
| file-chunk      | none                             | group incl. sender, unchanged  |
| file-complete   | none                             | group incl. sender, stamped    |

Errors are answered to the originating connection only. Chunks and completion
markers for an unknown session (or one the sender is not in) are dropped
without a reply, since nobody could receive them.
"""

from __future__ import annotations

import logging
from typing import Any

from airlink.core.exceptions import (
    AirlinkException,
    MalformedEvent,
    NotSessionMember,
    SessionNotFound,
)
from airlink.schemas import events as ev
from airlink.services.capacity_policy import CapacityPolicy
from airlink.services.connection import Connection
from airlink.services.membership import MembershipManager
from airlink.services.session_registry import SessionRegistry

logger = logging.getLogger(__name__)

_FILE_EVENT_TYPES = {ev.FILE_META, ev.FILE_CHUNK, ev.FILE_COMPLETE}


class RelayEngine:
    def __init__(
        self,
        registry: SessionRegistry,
        membership: MembershipManager,
        policy: CapacityPolicy,
    ) -> None:
        self.registry = registry
        self.membership = membership
        self.policy = policy

    async def handle_frame(self, connection: Connection, raw: str | bytes | dict[str, Any]) -> None:
        """Parse and dispatch one inbound frame; never raises domain errors."""
        try:
            event = ev.parse_client_event(raw)
        except MalformedEvent as exc:
            self._reject_malformed(connection, exc)
            return
        await self.handle(connection, event)

    async def handle(self, connection: Connection, event: ev.ClientEvent) -> None:
        if isinstance(event, ev.JoinSessionEvent):
            await self._on_join(connection, event)
        elif isinstance(event, ev.SendMessageEvent):
            await self._on_message(connection, event)
        elif isinstance(event, ev.FileMetaEvent):
            await self._on_file_meta(connection, event)
        elif isinstance(event, ev.FileChunkEvent):
            await self._on_file_chunk(connection, event)
        elif isinstance(event, ev.FileCompleteEvent):
            await self._on_file_complete(connection, event)
        else:  # pragma: no cover - the union is closed
            raise TypeError(f"Unsupported event {type(event).__name__}")

    # -------- handlers --------
    async def _on_join(self, connection: Connection, event: ev.JoinSessionEvent) -> None:
        try:
            await self.membership.join(connection, event.code, event.password)
        except AirlinkException as exc:
            logger.info(
                "Join of %s to session %s rejected: %s", connection.identity, event.code, exc.code
            )
            self._reply(connection, ev.system_message(_join_error_text(exc), code=event.code, error=exc.code))

    async def _on_message(self, connection: Connection, event: ev.SendMessageEvent) -> None:
        try:
            self._require_member(connection, event.code)
        except AirlinkException as exc:
            self._reply(connection, ev.system_message(exc.message, code=event.code, error=exc.code))
            return
        await self.membership.broadcast(
            event.code, ev.chat_message(event, sender=connection.identity)
        )

    async def _on_file_meta(self, connection: Connection, event: ev.FileMetaEvent) -> None:
        try:
            self._require_member(connection, event.code)
            record = self.registry.admit_file(event.code, event.file_size, self.policy)
        except AirlinkException as exc:
            logger.info(
                "File %s from %s in session %s rejected: %s",
                event.file_id,
                connection.identity,
                event.code,
                exc.code,
            )
            self._reply(
                connection,
                ev.file_error(exc.code or "error", exc.message, file_id=event.file_id, code=event.code),
            )
            return

        logger.info(
            "File %s (%d bytes) admitted in session %s (%d/%d)",
            event.file_id,
            event.file_size,
            event.code,
            record.file_count,
            self.policy.max_files_per_session,
        )
        await self.membership.broadcast(event.code, ev.annotated(event, sender=connection.identity))

    async def _on_file_chunk(self, connection: Connection, event: ev.FileChunkEvent) -> None:
        if not self._is_member(connection, event.code):
            logger.debug(
                "Dropping chunk %s/%d for session %s from non-member %s",
                event.file_id,
                event.chunk_index,
                event.code,
                connection.identity,
            )
            return
        await self.membership.broadcast(event.code, event.wire())

    async def _on_file_complete(self, connection: Connection, event: ev.FileCompleteEvent) -> None:
        if not self._is_member(connection, event.code):
            logger.debug(
                "Dropping completion of %s for session %s from non-member %s",
                event.file_id,
                event.code,
                connection.identity,
            )
            return
        await self.membership.broadcast(event.code, ev.annotated(event, sender=connection.identity))

    # -------- helpers --------
    def _require_member(self, connection: Connection, code: str) -> None:
        if not self.registry.is_valid(code):
            raise SessionNotFound(code)
        if connection.session_code != code:
            raise NotSessionMember(code)

    def _is_member(self, connection: Connection, code: str) -> bool:
        return connection.session_code == code and self.registry.is_valid(code)

    def _reject_malformed(self, connection: Connection, exc: MalformedEvent) -> None:
        details = exc.details or {}
        event_type = details.get("type")
        logger.info("Malformed %s event from %s", event_type or "untyped", connection.identity)
        if event_type in _FILE_EVENT_TYPES:
            self._reply(
                connection, ev.file_error(exc.code or "malformed_event", exc.message, file_id=details.get("fileId"))
            )
        else:
            self._reply(connection, ev.system_message(exc.message, error=exc.code))

    def _reply(self, connection: Connection, payload: dict[str, Any]) -> None:
        self.membership.deliver([connection], payload)


def _join_error_text(exc: AirlinkException) -> str:
    if isinstance(exc, SessionNotFound):
        return "Session not found."
    return f"{exc.message}."


__all__ = ["RelayEngine"]
