"""Summary: Tests for domain model helpers.

Importance: Ensures records serialize and identifiers normalize consistently.
Alternatives: Cover helpers only through store tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from acarsdispatch.models import (
    ACARSMessage,
    MessageStatus,
    MessageType,
    Priority,
    format_acars_time,
    generate_message_id,
    normalize_station,
    validate_callsign,
)


def test_message_record_round_trip() -> None:
    message = ACARSMessage(
        id="MSG1",
        timestamp=datetime(2026, 1, 15, 10, 30, 5, 123000),
        from_station="JALV",
        to_station="JAL123",
        type=MessageType.PDC,
        content="CLEARED TO RJAA\nSQUAWK 2341",
        status=MessageStatus.PENDING,
        priority=Priority.HIGH,
    )
    record = message.to_record()
    assert record["timestamp"] == "2026-01-15T10:30:05.123000"
    assert ACARSMessage.from_record(record) == message


def test_from_record_rejects_empty_id() -> None:
    with pytest.raises(ValueError):
        ACARSMessage.from_record(
            {
                "id": "",
                "timestamp": "2026-01-15T10:30:05",
                "from": "JALV",
                "to": "JAL1",
                "type": "telex",
                "content": "X",
                "status": "sent",
            }
        )


def test_generate_message_id_is_unique() -> None:
    ids = {generate_message_id() for _ in range(1000)}
    assert len(ids) == 1000


def test_normalize_station() -> None:
    assert normalize_station(" jal123 ") == "JAL123"
    with pytest.raises(ValueError):
        normalize_station("JAL 123")
    with pytest.raises(ValueError):
        normalize_station("")


def test_validate_callsign() -> None:
    assert validate_callsign("JAL123")
    assert validate_callsign("JL5A")
    assert not validate_callsign("JALV")


def test_format_acars_time_uses_utc() -> None:
    tokyo = timezone(timedelta(hours=9))
    assert format_acars_time(datetime(2026, 1, 15, 9, 0, 0, tzinfo=tokyo)) == "2026-01-15 00:00:00Z"



def test_format_acars_time_treats_naive_values_as_local_time() -> None:
    instant = datetime(2026, 1, 15, 0, 0, 0, tzinfo=timezone.utc)
    local_wall_clock = instant.astimezone().replace(tzinfo=None)
    assert format_acars_time(local_wall_clock) == "2026-01-15 00:00:00Z"
