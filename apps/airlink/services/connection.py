"""One live WebSocket endpoint and its outbound queue.

Fan-out never awaits a recipient's socket. It enqueues onto the recipient's
bounded outbox, and a per-connection writer task drains that queue in FIFO
order. A full outbox means the recipient cannot keep up, so it is dropped
instead of slowing the sender or the rest of the group.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from typing import Any, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)

# Close code for a recipient that fell behind (RFC 6455 "try again later").
CLOSE_SLOW_CONSUMER = 1013

_CLOSE = object()


def new_identity() -> str:
    return secrets.token_urlsafe(12)


class Connection:
    """A connected client, the session it joined (if any) and its outbox."""

    def __init__(
        self,
        websocket: WebSocket,
        *,
        max_pending: int = 256,
        identity: str | None = None,
    ) -> None:
        self.websocket = websocket
        self.identity = identity or new_identity()
        self.session_code: Optional[str] = None
        self._outbox: asyncio.Queue[Any] = asyncio.Queue(maxsize=max_pending)
        self._writer: asyncio.Task[None] | None = None
        self._dropped = False

    def __repr__(self) -> str:
        return f"Connection(id={self.identity!r}, session={self.session_code!r})"

    @property
    def dropped(self) -> bool:
        return self._dropped

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._pump(), name=f"airlink-writer-{self.identity}")

    def send(self, payload: dict[str, Any]) -> bool:
        """Queue a frame without blocking. False when the connection is gone or full."""
        if self._dropped:
            return False
        try:
            self._outbox.put_nowait(payload)
        except asyncio.QueueFull:
            return False
        return True

    def drop(self, code: int = CLOSE_SLOW_CONSUMER, reason: str = "") -> None:
        """Discard pending frames and close the socket from the writer task."""
        if self._dropped:
            return
        self._dropped = True
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._outbox.put_nowait((_CLOSE, code, reason))
        logger.info("Dropping connection %s (code=%s, %s)", self.identity, code, reason or "-")

    async def close(self) -> None:
        """Stop the writer once the handler is done with this connection."""
        self._dropped = True
        writer, self._writer = self._writer, None
        if writer is None:
            return
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass

    async def _pump(self) -> None:
        while True:
            item = await self._outbox.get()
            if isinstance(item, tuple) and item and item[0] is _CLOSE:
                _, code, reason = item
                if self.websocket.application_state == WebSocketState.CONNECTED:
                    try:
                        await self.websocket.close(code=code, reason=reason)
                    except Exception as exc:  # pragma: no cover - socket already gone
                        logger.debug("Close of %s failed: %s", self.identity, exc)
                return
            try:
                await self.websocket.send_json(item)
            except Exception as exc:
                logger.info("Send to %s failed, stopping writer: %s", self.identity, exc)
                self._dropped = True
                return


__all__ = ["CLOSE_SLOW_CONSUMER", "Connection", "new_identity"]
