"""Summary: Tests for the Hoppie wire codec.

Importance: Ensures requests encode correctly and loose responses decode safely.
Alternatives: Validate the protocol only against the live Hoppie service.
"""

from __future__ import annotations

import urllib.parse
from datetime import datetime

import pytest

from acarsdispatch.codec import (
    decode_received,
    decode_send_result,
    domain_type,
    encode_receive,
    encode_send,
    parse_line,
    wire_type,
)
from acarsdispatch.errors import (
    ErrorKind,
    MalformedLineError,
    MissingCredentialError,
    ProtocolRejectedError,
)
from acarsdispatch.models import MessageStatus, MessageType, OutboundRequest


def _request(**overrides: str) -> OutboundRequest:
    values = {
        "from_station": "JALV",
        "to_station": "JAL123",
        "type": MessageType.TELEX,
        "packet": "REQUEST WEATHER",
        "logon_code": "secret",
    }
    values.update(overrides)
    return OutboundRequest(**values)


def test_encode_send_builds_query_parameters() -> None:
    """Summary: Verify send requests carry all Hoppie parameters.

    Importance: The server identifies sender and credential from the query string.
    Alternatives: Compare full URL strings instead of parsed parameters.
    """

    spec = encode_send(_request(), base_url="http://hoppie.test/connect.html")
    parsed = urllib.parse.urlsplit(spec.full_url())
    query = urllib.parse.parse_qs(parsed.query)
    assert parsed.path == "/connect.html"
    assert query == {
        "logon": ["secret"],
        "from": ["JALV"],
        "to": ["JAL123"],
        "type": ["telex"],
        "packet": ["REQUEST WEATHER"],
    }


def test_encode_send_percent_encodes_packet() -> None:
    spec = encode_send(_request(packet="LINE 1\nFL:350 & UP"))
    url = spec.full_url()
    assert "packet=LINE%201%0AFL%3A350%20%26%20UP" in url
    assert "\n" not in url


def test_encode_send_requires_logon_code() -> None:
    """Summary: Verify a missing logon code fails before any network access.

    Importance: Prevents anonymous requests against the Hoppie server.
    Alternatives: Let the server reject requests without credentials.
    """

    with pytest.raises(MissingCredentialError) as excinfo:
        encode_send(_request(logon_code=""))
    assert excinfo.value.kind is ErrorKind.MISSING_CREDENTIAL


def test_encode_send_requires_stations() -> None:
    with pytest.raises(ValueError):
        encode_send(_request(to_station=" "))


def test_pdc_is_sent_as_telex() -> None:
    spec = encode_send(_request(type=MessageType.PDC))
    assert spec.params["type"] == "telex"
    assert wire_type(MessageType.LOADSHEET) == "telex"


def test_encode_receive_uses_read_packet() -> None:
    spec = encode_receive("JALV", "secret")
    assert spec.params["from"] == "JALV"
    assert spec.params["to"] == "JALV"
    assert spec.params["type"] == "telex"
    assert spec.params["packet"] == "read"


def test_encode_receive_requires_logon_code() -> None:
    with pytest.raises(MissingCredentialError):
        encode_receive("JALV", "")


def test_decode_send_result_accepts_ok_anywhere() -> None:
    assert decode_send_result("ok").body == "ok"
    assert decode_send_result("  ok {JAL123}\n").body.strip() == "ok {JAL123}"


def test_decode_send_result_rejects_other_bodies() -> None:
    """Summary: Verify bodies without "ok" become rejections.

    Importance: Failed sends must not be recorded as sent messages.
    Alternatives: Treat any 200 response as success.
    """

    with pytest.raises(ProtocolRejectedError) as excinfo:
        decode_send_result("error {illegal logon code}")
    assert excinfo.value.kind is ErrorKind.REJECTED
    assert excinfo.value.body == "error {illegal logon code}"


def test_decode_received_skips_garbage_lines() -> None:
    """Summary: Verify padding and garbage lines are skipped.

    Importance: One malformed line must never hide the valid messages.
    Alternatives: Fail the whole poll on the first malformed line.
    """

    messages = decode_received("\n\ngarbage\nJAL123:JALV:telex:HELLO\n")
    assert len(messages) == 1
    assert messages[0].from_station == "JAL123"
    assert messages[0].to_station == "JALV"
    assert messages[0].content == "HELLO"
    assert messages[0].status is MessageStatus.DELIVERED


def test_decode_received_keeps_colons_in_content() -> None:
    messages = decode_received("JAL123:JALV:telex:ETA 12:45 GATE 21:B")
    assert messages[0].content == "ETA 12:45 GATE 21:B"


def test_decode_received_recovers_encoded_content() -> None:
    """Summary: Verify content with newlines and colons survives the wire.

    Importance: Multi-line clearances must arrive exactly as written.
    Alternatives: Forbid newlines in message content.
    """

    content = "CLR TO RJTT\nVIA Y20:FL350\n100% LOAD"
    line = "JAL123:JALV:telex:" + urllib.parse.quote(content, safe="")
    messages = decode_received(line)
    assert [message.content for message in messages] == [content]


def test_decode_received_assigns_unique_ids_and_one_timestamp() -> None:
    now = datetime(2026, 3, 1, 12, 0, 0)
    body = "\r\n".join(f"JAL{n}:JALV:telex:MSG {n}" for n in range(50))
    messages = decode_received(body, now=now)
    assert len(messages) == 50
    assert len({message.id for message in messages}) == 50
    assert {message.timestamp for message in messages} == {now}


def test_decode_received_classifies_kinds() -> None:
    messages = decode_received("JAL1:JALV:loadsheet:LS\nJAL2:JALV:cpdlc:X")
    assert [message.type for message in messages] == [MessageType.LOADSHEET, MessageType.TELEX]
    assert domain_type(" REPORT ") is MessageType.REPORT


def test_parse_line_rejects_short_lines() -> None:
    with pytest.raises(MalformedLineError) as excinfo:
        parse_line("JAL123:JALV:telex")
    assert excinfo.value.kind is ErrorKind.MALFORMED
