"""In-memory table of active transfer sessions.

One registry is owned by each application instance (see
``airlink.main.create_app``) and handed to routes through FastAPI
dependencies. A single ``threading.Lock`` guards the table and every
per-session counter, because sync routes run in the threadpool while the
WebSocket handlers run on the event loop. No critical section awaits or does
I/O.

Sessions live until they have had no members for ``idle_ttl_seconds``; the
sweeper task calls ``purge_expired`` periodically. Nothing survives a restart.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from threading import Lock
from typing import Callable, Optional

from airlink.core.exceptions import SessionNotFound, WrongPassword
from airlink.core.utils import utcnow
from airlink.services.capacity_policy import CapacityPolicy

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    code: str
    created_at: datetime
    password: Optional[str] = field(default=None, repr=False)
    file_count: int = 0
    member_count: int = 0
    # Monotonic time the session last became empty; None while it has members.
    idle_since: Optional[float] = None

    @property
    def has_password(self) -> bool:
        return bool(self.password)


class SessionRegistry:
    """Creates, validates and expires sessions keyed by a short numeric code."""

    def __init__(
        self,
        *,
        code_digits: int = 4,
        max_attempts: int = 32,
        idle_ttl_seconds: float = 30 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = Lock()
        self._sessions: dict[str, SessionRecord] = {}
        self._code_digits = code_digits
        self._max_attempts = max_attempts
        self._idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock

    # -------- lifecycle --------
    def create_session(self, password: str | None = None) -> SessionRecord:
        with self._lock:
            code = self._generate_code_locked()
            record = SessionRecord(
                code=code,
                created_at=utcnow(),
                password=password or None,
                idle_since=self._clock(),
            )
            self._sessions[code] = record
            total = len(self._sessions)
        logger.info(
            "Session %s created (password=%s, active=%d)", code, record.has_password, total
        )
        return replace(record)

    def _generate_code_locked(self) -> str:
        digits = self._code_digits
        while True:
            # Leading zeros are avoided so codes survive clients that send them as numbers.
            low = 10 ** (digits - 1) if digits > 1 else 0
            span = 10**digits - low
            for _ in range(self._max_attempts):
                code = str(low + secrets.randbelow(span))
                if code not in self._sessions:
                    return code
            logger.warning(
                "Session code space with %d digits is crowded (%d active); widening",
                digits,
                len(self._sessions),
            )
            digits += 1

    def purge_expired(self, now: float | None = None) -> list[str]:
        """Evict sessions that have been empty for longer than the idle TTL."""
        if self._idle_ttl_seconds <= 0:
            return []
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                code
                for code, record in self._sessions.items()
                if record.member_count == 0
                and record.idle_since is not None
                and now - record.idle_since >= self._idle_ttl_seconds
            ]
            for code in expired:
                del self._sessions[code]
        if expired:
            logger.info("Expired %d idle session(s): %s", len(expired), ", ".join(expired))
        return expired

    # -------- lookups --------
    def validate_join(self, code: str, password: str | None = None) -> SessionRecord:
        with self._lock:
            record = self._sessions.get(code)
            if record is None:
                raise SessionNotFound(code)
            if record.password and not hmac.compare_digest(
                record.password.encode("utf-8"), (password or "").encode("utf-8")
            ):
                raise WrongPassword(code)
            return replace(record)

    def is_valid(self, code: str) -> bool:
        with self._lock:
            return code in self._sessions

    def get(self, code: str) -> SessionRecord | None:
        with self._lock:
            record = self._sessions.get(code)
            return replace(record) if record is not None else None

    def codes(self) -> list[str]:
        with self._lock:
            return list(self._sessions.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # -------- counters --------
    def admit_file(self, code: str, declared_size: int, policy: CapacityPolicy) -> SessionRecord:
        """Check the capacity policy and count the file in one critical section."""
        with self._lock:
            record = self._sessions.get(code)
            if record is None:
                raise SessionNotFound(code)
            policy.enforce(record.file_count, declared_size)
            record.file_count += 1
            return replace(record)

    def attach_member(self, code: str) -> None:
        with self._lock:
            record = self._sessions.get(code)
            if record is None:
                return
            record.member_count += 1
            record.idle_since = None

    def detach_member(self, code: str) -> None:
        with self._lock:
            record = self._sessions.get(code)
            if record is None:
                return
            record.member_count = max(0, record.member_count - 1)
            if record.member_count == 0:
                record.idle_since = self._clock()


__all__ = ["SessionRecord", "SessionRegistry"]
