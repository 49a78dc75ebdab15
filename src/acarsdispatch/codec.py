"""Summary: Encoding and decoding of the Hoppie ACARS wire protocol.

Importance: Isolates the loosely specified text protocol behind one boundary.
Alternatives: Build URLs and parse responses inline inside the sync loop.
"""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass
from datetime import datetime

from acarsdispatch.errors import MalformedLineError, MissingCredentialError, ProtocolRejectedError
from acarsdispatch.models import (
    ACARSMessage,
    MessageStatus,
    MessageType,
    OutboundRequest,
    Priority,
    generate_message_id,
)


logger = logging.getLogger(__name__)

DEFAULT_HOPPIE_URL = "http://www.hoppie.nl/acars/system/connect.html"
READ_PACKET = "read"
WIRE_TELEX = "telex"

_WIRE_TYPES = {
    MessageType.TELEX: WIRE_TELEX,
    MessageType.LOADSHEET: WIRE_TELEX,
    MessageType.REPORT: WIRE_TELEX,
    MessageType.NOTIFICATION: WIRE_TELEX,
    MessageType.PDC: WIRE_TELEX,
}


@dataclass(frozen=True)
class RequestSpec:
    """Summary: Describes a GET request against the Hoppie endpoint.

    Importance: Lets the transport stay ignorant of protocol parameters.
    Alternatives: Pass fully formatted URL strings around.
    """

    url: str
    params: dict[str, str]

    def full_url(self) -> str:
        """Summary: Render the URL with percent-encoded query parameters.

        Importance: Newlines, colons, and spaces in packets must survive the trip.
        Alternatives: Use form encoding where spaces become plus signs.
        """

        query = urllib.parse.urlencode(self.params, quote_via=urllib.parse.quote)
        return f"{self.url}?{query}"


@dataclass(frozen=True)
class Ack:
    """Successful send acknowledgement with the raw response body."""

    body: str


def wire_type(message_type: MessageType) -> str:
    """Summary: Map a local message type to the type sent on the wire.

    Importance: Keeps the wire format's limited typing out of store logic.
    Alternatives: Send local type names directly and rely on server leniency.
    """

    return _WIRE_TYPES[MessageType(message_type)]


def domain_type(kind: str) -> MessageType:
    """Classify a received wire kind into a local message type."""

    normalized = kind.strip().lower()
    if normalized in (MessageType.LOADSHEET.value, MessageType.REPORT.value):
        return MessageType(normalized)
    return MessageType.TELEX


def encode_send(request: OutboundRequest, base_url: str = DEFAULT_HOPPIE_URL) -> RequestSpec:
    """Summary: Build the request that sends one message.

    Importance: Fails fast on missing credentials before any network access.
    Alternatives: Let the server reject requests without a logon code.
    """

    _ensure_logon(request.logon_code)
    if not request.from_station.strip() or not request.to_station.strip():
        raise ValueError("Both from and to stations are required")
    return RequestSpec(
        url=base_url,
        params={
            "logon": request.logon_code,
            "from": request.from_station,
            "to": request.to_station,
            "type": wire_type(request.type),
            "packet": request.packet,
        },
    )


def decode_send_result(body: str) -> Ack:
    """Summary: Interpret the body returned for a send request.

    Importance: The service has no structured status, only an "ok" somewhere in the body.
    Alternatives: Require the body to start with "ok" and reject everything else.
    """

    if "ok" in body:
        return Ack(body=body)
    raise ProtocolRejectedError(body)


def encode_receive(station: str, logon_code: str, base_url: str = DEFAULT_HOPPIE_URL) -> RequestSpec:
    """Summary: Build the request that drains a station's mailbox.

    Importance: Polling uses the Hoppie "read" convention on the station itself.
    Alternatives: Use the peek type and acknowledge messages separately.
    """

    _ensure_logon(logon_code)
    if not station.strip():
        raise ValueError("Station is required to receive messages")
    return RequestSpec(
        url=base_url,
        params={
            "logon": logon_code,
            "from": station,
            "to": station,
            "type": WIRE_TELEX,
            "packet": READ_PACKET,
        },
    )


def decode_received(body: str, now: datetime | None = None) -> list[ACARSMessage]:
    """Summary: Parse a receive body into delivered messages.

    Importance: Tolerates padding and garbage lines without losing valid ones.
    Alternatives: Reject the whole body when any line is malformed.
    """

    received_at = now or datetime.now()
    messages: list[ACARSMessage] = []
    for raw_line in body.splitlines():
        line = raw_line.rstrip("\r")
        if not line.strip():
            continue
        try:
            from_station, to_station, kind, content = parse_line(line)
        except MalformedLineError as exc:
            logger.debug("Skipped receive line: %s", exc)
            continue
        messages.append(
            ACARSMessage(
                id=generate_message_id(),
                timestamp=received_at,
                from_station=from_station,
                to_station=to_station,
                type=domain_type(kind),
                content=decode_content(content),
                status=MessageStatus.DELIVERED,
                priority=Priority.NORMAL,
            )
        )
    return messages


def parse_line(line: str) -> tuple[str, str, str, str]:
    """Summary: Split one line into from, to, kind, and content.

    Importance: Only the first three colons are structural; the rest belong to content.
    Alternatives: Use a regular expression per line.
    """

    parts = line.split(":", 3)
    if len(parts) < 4 or not parts[0].strip() or not parts[1].strip():
        raise MalformedLineError(line)
    from_station, to_station, kind, content = parts
    return from_station.strip(), to_station.strip(), kind, content


def decode_content(packet: str) -> str:
    """Undo percent-encoding of a content field; plain text passes through."""

    return urllib.parse.unquote(packet)


def _ensure_logon(logon_code: str) -> None:
    if not logon_code:
        raise MissingCredentialError()
