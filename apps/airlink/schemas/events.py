"""Realtime channel events.

Client frames are JSON objects tagged by ``type``. They are validated here, at
the boundary, into one of five models; anything else becomes a
``MalformedEvent``. Server frames are plain dicts built by the helpers at the
bottom of this module.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from airlink.core.exceptions import MalformedEvent
from airlink.core.utils import epoch_millis

JOIN_SESSION = "join-session"
SEND_MESSAGE = "send-message"
FILE_META = "file-meta"
FILE_CHUNK = "file-chunk"
FILE_COMPLETE = "file-complete"

# Server -> client
WELCOME = "welcome"
SYSTEM_MESSAGE = "system-message"
MESSAGE = "message"
FILE_ERROR = "file-error"


def _coerce_code(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        return value.strip()
    return value


class _SessionEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = Field(min_length=1, max_length=32)

    @field_validator("code", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> Any:
        return _coerce_code(value)

    def wire(self) -> dict[str, Any]:
        """The event as it is relayed: client field names, extras kept."""
        return self.model_dump(by_alias=True, exclude_none=True)


class JoinSessionEvent(_SessionEvent):
    type: Literal["join-session"]
    password: Optional[str] = None


class SendMessageEvent(_SessionEvent):
    type: Literal["send-message"]
    text: str = Field(min_length=1)


class FileMetaEvent(_SessionEvent):
    # Clients attach display fields (name, type, preview...) that are relayed as-is.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Literal["file-meta"]
    file_id: str = Field(alias="fileId", min_length=1, max_length=128)
    file_size: int = Field(alias="fileSize", ge=0)
    file_name: Optional[str] = Field(default=None, alias="fileName", max_length=1024)
    mime_type: Optional[str] = Field(default=None, alias="mimeType", max_length=256)


class FileChunkEvent(_SessionEvent):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Literal["file-chunk"]
    file_id: str = Field(alias="fileId", min_length=1, max_length=128)
    chunk_index: int = Field(alias="chunkIndex", ge=0, strict=True)
    data: Any

    # The frame as the client sent it; chunks are relayed without re-encoding.
    _frame: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @field_validator("data")
    @classmethod
    def _require_data(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("data is required")
        return value

    def wire(self) -> dict[str, Any]:
        if self._frame is not None:
            return dict(self._frame)
        return self.model_dump(by_alias=True)


class FileCompleteEvent(_SessionEvent):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Literal["file-complete"]
    file_id: str = Field(alias="fileId", min_length=1, max_length=128)


ClientEvent = Annotated[
    Union[JoinSessionEvent, SendMessageEvent, FileMetaEvent, FileChunkEvent, FileCompleteEvent],
    Field(discriminator="type"),
]

_client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def _error_summary(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": ".".join(str(part) for part in err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]


def parse_client_event(raw: str | bytes | dict[str, Any]) -> ClientEvent:
    """Validate one inbound frame.

    Raises ``MalformedEvent`` for invalid JSON, unknown ``type`` or a missing
    required field. ``details`` carries the offending ``type`` and ``fileId``
    when they could be read, so the caller can pick the right error channel.
    """
    if isinstance(raw, dict):
        obj: Any = raw
    else:
        try:
            obj = json.loads(raw)
        except RecursionError as exc:
            raise MalformedEvent("Event is nested too deeply") from exc
        except (TypeError, ValueError) as exc:
            raise MalformedEvent("Event is not valid JSON") from exc

    if not isinstance(obj, dict):
        raise MalformedEvent("Event must be a JSON object")

    event_type = obj.get("type")
    file_id = obj.get("fileId")
    details: dict[str, Any] = {
        "type": event_type if isinstance(event_type, str) else None,
        "fileId": file_id if isinstance(file_id, str) else None,
    }
    try:
        event = _client_event_adapter.validate_python(obj)
    except ValidationError as exc:
        details["errors"] = _error_summary(exc)
        raise MalformedEvent(f"Invalid {event_type or 'untyped'} event", details=details) from exc
    except RecursionError as exc:
        details["errors"] = []
        raise MalformedEvent("Event is nested too deeply", details=details) from exc

    if isinstance(event, FileChunkEvent):
        event._frame = dict(obj)
    return event


# ---------------------------------------------------------------------------
# Server -> client frames
# ---------------------------------------------------------------------------


def welcome(identity: str) -> dict[str, Any]:
    return {"type": WELCOME, "id": identity}


def system_message(text: str, *, code: str | None = None, error: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": SYSTEM_MESSAGE, "text": text}
    if code is not None:
        payload["code"] = code
    if error is not None:
        payload["error"] = error
    return payload


def chat_message(event: SendMessageEvent, *, sender: str) -> dict[str, Any]:
    return {
        "type": MESSAGE,
        "code": event.code,
        "text": event.text,
        "from": sender,
        "timestamp": epoch_millis(),
    }


def annotated(event: _SessionEvent, *, sender: str) -> dict[str, Any]:
    """Relay payload stamped with the authoritative sender and server time."""
    payload = event.wire()
    payload["from"] = sender
    payload["timestamp"] = epoch_millis()
    return payload


def file_error(
    reason: str, message: str, *, file_id: str | None = None, code: str | None = None
) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": FILE_ERROR, "reason": reason, "message": message}
    if file_id is not None:
        payload["fileId"] = file_id
    if code is not None:
        payload["code"] = code
    return payload
