"""Summary: In-memory message store backed by the persistence port.

Importance: Single source of truth for sent and received ACARS messages.
Alternatives: Query the database directly for every read.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import replace
from datetime import date, timedelta

from acarsdispatch.errors import MessageNotFoundError, StatusTransitionError
from acarsdispatch.models import ACARSMessage, MessageStatus
from acarsdispatch.storage.sqlite_store import SqliteStore


logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[MessageStatus, frozenset[MessageStatus]] = {
    MessageStatus.PENDING: frozenset({MessageStatus.ACCEPTED, MessageStatus.REJECTED}),
    MessageStatus.SENT: frozenset({MessageStatus.DELIVERED, MessageStatus.FAILED}),
}


class MessageStore:
    """Summary: Thread-safe collection of ACARS messages with durable writes.

    Importance: Owns merge, dedup, status transitions, and persistence.
    Alternatives: Keep messages in UI state and persist on a debounce.
    """

    def __init__(self, persistence: SqliteStore, dedup_window_seconds: float = 0) -> None:
        """Summary: Initialize the store and load the persisted log.

        Importance: Restores the previous session's messages on startup.
        Alternatives: Start empty and lazily load on first read.
        """

        self._persistence = persistence
        self._dedup_window = timedelta(seconds=dedup_window_seconds)
        self._lock = threading.RLock()
        self._disposed = False
        self._messages: list[ACARSMessage] = self.load()

    def messages(self) -> list[ACARSMessage]:
        """Return a snapshot in insertion order, most recent operation first."""

        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def get(self, message_id: str) -> ACARSMessage:
        with self._lock:
            return self._messages[self._index_of(message_id)]

    def list_messages(self) -> list[ACARSMessage]:
        """Summary: List messages newest first by timestamp.

        Importance: Insertion order breaks ties so same-instant operations keep their order.
        Alternatives: Sort by id or by insertion order alone.
        """

        return sorted(self.messages(), key=lambda message: message.timestamp, reverse=True)

    def group_by_day(self) -> dict[date, list[ACARSMessage]]:
        """Summary: Group listed messages by calendar day.

        Importance: Supports day headers in message history views.
        Alternatives: Let each client bucket timestamps itself.
        """

        groups: dict[date, list[ACARSMessage]] = {}
        for message in self.list_messages():
            groups.setdefault(message.timestamp.date(), []).append(message)
        return groups

    def append(self, message: ACARSMessage) -> None:
        """Summary: Insert a locally originated message at the head.

        Importance: Local sends appear immediately without waiting for a poll.
        Alternatives: Refresh from the server after each send.
        """

        with self._lock:
            if any(existing.id == message.id for existing in self._messages):
                raise ValueError(f"Message id already exists: {message.id}")
            self._messages.insert(0, message)
            self._persist()

    def merge(self, incoming: list[ACARSMessage]) -> int:
        """Summary: Merge a received batch and return how many were inserted.

        Importance: Merging the same batch twice leaves the store unchanged.
        Alternatives: Replace the store with the server's view on every poll.
        """

        with self._lock:
            if self._disposed:
                logger.info("Ignored receive batch for disposed store.")
                return 0
            known_ids = {message.id for message in self._messages}
            batch_keys: set[tuple[str, str, str, object]] = set()
            accepted: list[ACARSMessage] = []
            for message in incoming:
                key = (message.from_station, message.to_station, message.content, message.timestamp)
                if message.id in known_ids or key in batch_keys:
                    continue
                if self._dedup_window and self._seen_recently(message):
                    logger.info("Dropped repeated message from %s.", message.from_station)
                    continue
                known_ids.add(message.id)
                batch_keys.add(key)
                accepted.append(message)
            if accepted:
                self._messages[:0] = accepted
                self._persist()
            return len(accepted)

    def update_status(self, message_id: str, status: MessageStatus) -> ACARSMessage:
        """Summary: Apply a status transition to one message.

        Importance: Rejects illegal transitions without touching stored state.
        Alternatives: Allow any status overwrite from the caller.
        """

        status = MessageStatus(status)
        with self._lock:
            index = self._index_of(message_id)
            current = self._messages[index]
            if status not in ALLOWED_TRANSITIONS.get(current.status, frozenset()):
                raise StatusTransitionError(
                    f"Cannot change message {message_id} from {current.status.value} to {status.value}"
                )
            updated = replace(current, status=status)
            self._messages[index] = updated
            self._persist()
        logger.info("Updated message %s to %s.", message_id, status.value)
        return updated

    def delete(self, message_id: str) -> bool:
        """Summary: Delete one message and persist before returning.

        Importance: A crash right after deletion must not resurrect the message.
        Alternatives: Mark messages deleted and purge later.
        """

        with self._lock:
            remaining = [message for message in self._messages if message.id != message_id]
            if len(remaining) == len(self._messages):
                return False
            self._messages = remaining
            self._persist()
        return True

    def clear(self) -> None:
        """Remove every message, in memory and on disk."""

        with self._lock:
            self._messages = []
            self._persist()
        logger.info("Cleared message log.")

    def load(self) -> list[ACARSMessage]:
        """Summary: Load messages from the persistence port.

        Importance: Drops duplicate ids so the uniqueness invariant holds after restart.
        Alternatives: Trust persisted data without validation.
        """

        loaded: list[ACARSMessage] = []
        seen: set[str] = set()
        for message in self._persistence.load_messages():
            if message.id in seen:
                logger.warning("Discarded duplicate persisted message %s.", message.id)
                continue
            seen.add(message.id)
            loaded.append(message)
        return loaded

    def save(self, messages: list[ACARSMessage]) -> None:
        """Summary: Replace the store contents and persist them.

        Importance: Supports imports and restores from another session.
        Alternatives: Merge the given messages into the current list.
        """

        ids = [message.id for message in messages]
        if len(set(ids)) != len(ids):
            raise ValueError("Cannot save messages with duplicate ids")
        with self._lock:
            self._messages = list(messages)
            self._persist()

    def dispose(self) -> None:
        """Summary: Mark the store as torn down.

        Importance: Results of in-flight polls are not applied after teardown.
        Alternatives: Cancel in-flight requests at the transport level.
        """

        with self._lock:
            self._disposed = True

    def _seen_recently(self, message: ACARSMessage) -> bool:
        fingerprint = _fingerprint(message)
        for existing in self._messages:
            if abs(existing.timestamp - message.timestamp) > self._dedup_window:
                continue
            if _fingerprint(existing) == fingerprint:
                return True
        return False

    def _index_of(self, message_id: str) -> int:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                return index
        raise MessageNotFoundError(message_id)

    def _persist(self) -> None:
        self._persistence.save_messages(self._messages)


def _fingerprint(message: ACARSMessage) -> str:
    raw = f"{message.from_station}\n{message.to_station}\n{message.content}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
