"""Pydantic schemas shared across the app."""

from .events import (
    ClientEvent,
    FileChunkEvent,
    FileCompleteEvent,
    FileMetaEvent,
    JoinSessionEvent,
    SendMessageEvent,
    parse_client_event,
)
from .sessions import (
    InviteRequest,
    InviteResult,
    SessionCreate,
    SessionCreated,
    SessionInfo,
    SessionJoin,
    SessionJoined,
    SessionValidity,
)

__all__ = [
    "ClientEvent",
    "FileChunkEvent",
    "FileCompleteEvent",
    "FileMetaEvent",
    "InviteRequest",
    "InviteResult",
    "JoinSessionEvent",
    "SendMessageEvent",
    "SessionCreate",
    "SessionCreated",
    "SessionInfo",
    "SessionJoin",
    "SessionJoined",
    "SessionValidity",
    "parse_client_event",
]
