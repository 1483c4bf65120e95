import logging
import os
import sys

_LEVEL_NAMES = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

# Per-request/per-frame chatter from the ASGI stack; only shown when debugging.
_NOISY_LOGGERS = ("uvicorn.access", "websockets.protocol", "websockets.server")


def resolve_level(raw: str | int | None) -> int:
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        name = raw.strip().upper()
        if name.isdigit():
            return int(name)
        return _LEVEL_NAMES.get(name, logging.INFO)
    return logging.INFO


def setup_logging(level: str | int | None = None) -> None:
    """Initialize root logger once with stream handler and level.

    Level is resolved by precedence:
      1) explicit `level` arg
      2) env `AIRLINK_LOG_LEVEL` or `LOG_LEVEL`
      3) default INFO

    Chunk relays are logged at DEBUG, so running at INFO keeps one line per
    connect/join/admission instead of one per frame.
    """
    raw = level if level is not None else (os.getenv("AIRLINK_LOG_LEVEL") or os.getenv("LOG_LEVEL"))
    desired_level = resolve_level(raw)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        handler.setFormatter(fmt)
        root.addHandler(handler)
        logging.captureWarnings(True)
    root.setLevel(desired_level)

    noisy_level = logging.DEBUG if desired_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
