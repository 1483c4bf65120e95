from __future__ import annotations

import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""

    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    """Milliseconds since the epoch; the timestamp format used on the wire."""

    return int(time.time() * 1000)


__all__ = ["epoch_millis", "utcnow"]
