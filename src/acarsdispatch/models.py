"""Summary: Domain model dataclasses for the ACARS dispatch client.

Importance: Defines the message record shared by the codec, store, and sync loop.
Alternatives: Use Pydantic models or plain dictionaries throughout.
"""

from __future__ import annotations

import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MessageType(str, Enum):
    """Summary: Local classification of a message.

    Importance: Keeps richer dispatch typing separate from the generic wire type.
    Alternatives: Store the raw wire type string on each message.
    """

    TELEX = "telex"
    LOADSHEET = "loadsheet"
    REPORT = "report"
    NOTIFICATION = "notification"
    PDC = "pdc"


class MessageStatus(str, Enum):
    """Summary: Delivery or acknowledgement state of a message.

    Importance: Drives the status transitions enforced by the message store.
    Alternatives: Track delivery with separate boolean flags.
    """

    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Priority(str, Enum):
    """Local priority; never carried on the wire."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass(frozen=True)
class ACARSMessage:
    """Summary: Represents one ACARS message held by the dispatch client.

    Importance: Core unit for sending, receiving, persistence, and display.
    Alternatives: Keep separate inbound and outbound record types.
    """

    id: str
    timestamp: datetime
    from_station: str
    to_station: str
    type: MessageType
    content: str
    status: MessageStatus
    priority: Priority = Priority.NORMAL

    def to_record(self) -> dict[str, str]:
        """Summary: Serialize the message into a JSON-friendly record.

        Importance: Provides the persisted shape with ISO-8601 timestamps.
        Alternatives: Pickle dataclasses directly into storage.
        """

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "from": self.from_station,
            "to": self.to_station,
            "type": self.type.value,
            "content": self.content,
            "status": self.status.value,
            "priority": self.priority.value,
        }

    @staticmethod
    def from_record(record: dict[str, str]) -> "ACARSMessage":
        """Summary: Build a message from a persisted record.

        Importance: Restores timestamps and enums so stored data round-trips.
        Alternatives: Keep persisted records as raw dictionaries.
        """

        message_id = record["id"]
        if not message_id:
            raise ValueError("Message record has an empty id")
        return ACARSMessage(
            id=message_id,
            timestamp=datetime.fromisoformat(record["timestamp"]),
            from_station=record["from"],
            to_station=record["to"],
            type=MessageType(record["type"]),
            content=record["content"],
            status=MessageStatus(record["status"]),
            priority=Priority(record.get("priority", Priority.NORMAL.value)),
        )


@dataclass(frozen=True)
class OutboundRequest:
    """Summary: Pre-wire representation of a send request.

    Importance: Carries the logon code to the codec without ever storing it.
    Alternatives: Pass the logon code separately to every send call.
    """

    from_station: str
    to_station: str
    type: MessageType
    packet: str
    logon_code: str = field(repr=False)


_CALLSIGN_PATTERN = re.compile(r"^[A-Z]{2,3}[0-9]{1,4}[A-Z]?$")


def generate_message_id() -> str:
    """Summary: Create a message id unique even for same-millisecond receives.

    Importance: Received messages have no server id, so the client must mint one.
    Alternatives: Use a monotonically increasing counter persisted with the store.
    """

    return f"MSG{int(time.time() * 1000)}-{secrets.token_hex(6)}"


def normalize_station(callsign: str) -> str:
    """Summary: Normalize a station identifier to an uppercase token.

    Importance: Hoppie station ids are case-insensitive alphanumeric tokens.
    Alternatives: Accept identifiers as typed by the operator.
    """

    station = callsign.strip().upper()
    if not station or not station.isalnum():
        raise ValueError(f"Invalid station identifier: {callsign!r}")
    return station


def validate_callsign(callsign: str) -> bool:
    """Check that a callsign looks like an airline flight number, e.g. JAL123."""

    return bool(_CALLSIGN_PATTERN.match(callsign))


def format_acars_time(timestamp: datetime) -> str:
    """Summary: Format a timestamp the way ACARS printouts show it.

    Importance: Gives API clients a display string without timezone guesswork.
    Alternatives: Let each client format ISO timestamps itself.
    """

    # Naive values are local wall-clock time.
    return timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S") + "Z"
