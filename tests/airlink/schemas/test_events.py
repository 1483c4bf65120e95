import json

import pytest

from airlink.core.exceptions import MalformedEvent
from airlink.schemas.events import (
    FileChunkEvent,
    FileMetaEvent,
    JoinSessionEvent,
    SendMessageEvent,
    annotated,
    parse_client_event,
)


def test_parses_each_event_kind() -> None:
    assert isinstance(parse_client_event('{"type": "join-session", "code": "1234"}'), JoinSessionEvent)
    assert isinstance(
        parse_client_event({"type": "send-message", "code": "1234", "text": "hi"}), SendMessageEvent
    )
    meta = parse_client_event(
        {"type": "file-meta", "code": "1234", "fileId": "f1", "fileSize": 10, "fileName": "a.txt"}
    )
    assert isinstance(meta, FileMetaEvent)
    assert meta.file_size == 10 and meta.file_name == "a.txt"
    chunk = parse_client_event(
        b'{"type": "file-chunk", "code": "1234", "fileId": "f1", "chunkIndex": 0, "data": "AAEC"}'
    )
    assert isinstance(chunk, FileChunkEvent)


def test_numeric_code_is_normalized() -> None:
    event = parse_client_event({"type": "join-session", "code": 4321})

    assert event.code == "4321"


def test_file_meta_keeps_client_fields_on_the_wire() -> None:
    event = parse_client_event(
        {
            "type": "file-meta",
            "code": "1234",
            "fileId": "f1",
            "fileSize": 3,
            "mimeType": "image/png",
            "totalChunks": 1,
        }
    )

    payload = annotated(event, sender="abc")

    assert payload["fileId"] == "f1"
    assert payload["mimeType"] == "image/png"
    assert payload["totalChunks"] == 1
    assert payload["from"] == "abc"
    assert isinstance(payload["timestamp"], int)


def test_chunk_data_is_relayed_unchanged() -> None:
    data = [0, 1, 2, 255]
    event = parse_client_event(
        {"type": "file-chunk", "code": "1234", "fileId": "f1", "chunkIndex": 7, "data": data}
    )

    wire = event.wire()

    assert wire["data"] == data
    assert wire["chunkIndex"] == 7
    assert "from" not in wire


@pytest.mark.parametrize(
    "frame",
    [
        "not json",
        "[1, 2]",
        '{"type": "unknown", "code": "1"}',
        '{"type": "send-message", "code": "1234"}',
        '{"type": "send-message", "code": "1234", "text": ""}',
        '{"type": "send-message", "code": "", "text": "hi"}',
        '{"type": "file-chunk", "code": "1234", "fileId": "f1", "chunkIndex": 0}',
        '{"type": "file-meta", "code": "1234", "fileId": "f1", "fileSize": -1}',
    ],
)
def test_invalid_frames_raise_malformed_event(frame: str) -> None:
    with pytest.raises(MalformedEvent) as exc:
        parse_client_event(frame)
    assert exc.value.code == "malformed_event"


def test_malformed_details_name_the_event() -> None:
    with pytest.raises(MalformedEvent) as exc:
        parse_client_event(json.dumps({"type": "file-meta", "code": "1234", "fileId": "f9"}))

    assert exc.value.details["type"] == "file-meta"
    assert exc.value.details["fileId"] == "f9"
    assert any(err["loc"].endswith("fileSize") for err in exc.value.details["errors"])


def test_chunk_frame_is_relayed_as_sent() -> None:
    frame = {
        "type": "file-chunk",
        "code": "1234",
        "fileId": "f1",
        "chunkIndex": 3,
        "data": "AAEC",
        "checksum": None,
        "last": False,
    }

    wire = parse_client_event(json.dumps(frame)).wire()

    assert wire == frame


def test_chunk_index_must_be_an_integer() -> None:
    with pytest.raises(MalformedEvent) as exc:
        parse_client_event(
            {"type": "file-chunk", "code": "1234", "fileId": "f1", "chunkIndex": "3", "data": "x"}
        )
    assert exc.value.details["fileId"] == "f1"


@pytest.mark.parametrize(
    "frame",
    [
        "[" * 100_000 + "]" * 100_000,
        '{"type": "send-message", "code": "1234", "text": "hi", "deep": '
        + "[" * 100_000
        + "]" * 100_000
        + "}",
    ],
)
def test_deeply_nested_frames_are_malformed(frame: str) -> None:
    with pytest.raises(MalformedEvent) as exc:
        parse_client_event(frame)
    assert exc.value.code == "malformed_event"
