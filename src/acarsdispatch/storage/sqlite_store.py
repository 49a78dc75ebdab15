"""Summary: SQLite key-value persistence for the ACARS message log.

Importance: Keeps the message log durable across process restarts on one host.
Alternatives: Write a JSON file or use an embedded document store.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from acarsdispatch.models import ACARSMessage


logger = logging.getLogger(__name__)

MESSAGES_NAMESPACE = "messages"


class SqliteStore:
    """Summary: SQLite-backed key-value store for structured payloads.

    Importance: Provides the persistence port with minimal dependencies.
    Alternatives: Use a relational table per message field.
    """

    def __init__(self, db_path: str) -> None:
        """Summary: Initialize the storage with a database path.

        Importance: Allows configurable database location per environment.
        Alternatives: Hardcode a default path in the class.
        """

        self._db_path = Path(db_path)

    def initialize(self) -> None:
        """Summary: Create the key-value table if it does not exist.

        Importance: Ensures the database is ready before the first load.
        Alternatives: Run migrations using a dedicated migration tool.
        """

        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    namespace TEXT PRIMARY KEY,
                    payload TEXT NOT NULL
                )
                """
            )
            connection.commit()

    def get(self, namespace: str) -> Any | None:
        """Summary: Read and decode the payload stored under a namespace.

        Importance: Returns None when nothing was saved or the payload is unreadable.
        Alternatives: Raise when the namespace is missing.
        """

        with self._connection() as connection:
            row = connection.execute(
                "SELECT payload FROM kv_store WHERE namespace = ?", (namespace,)
            ).fetchone()
        if not row:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError:
            logger.warning("Discarded unreadable payload for namespace %s.", namespace)
            return None

    def put(self, namespace: str, value: Any) -> None:
        """Summary: Encode and store a payload under a namespace.

        Importance: Replaces the whole value in one committed statement.
        Alternatives: Append incremental changes and compact later.
        """

        payload = json.dumps(value)
        with self._connection() as connection:
            connection.execute(
                """
                INSERT INTO kv_store (namespace, payload) VALUES (?, ?)
                ON CONFLICT(namespace) DO UPDATE SET payload = excluded.payload
                """,
                (namespace, payload),
            )
            connection.commit()

    def load_messages(self) -> list[ACARSMessage]:
        """Summary: Load the persisted message log.

        Importance: Skips records that no longer deserialize instead of failing the load.
        Alternatives: Abort startup when any record is invalid.
        """

        records = self.get(MESSAGES_NAMESPACE)
        if not isinstance(records, list):
            return []
        messages: list[ACARSMessage] = []
        for record in records:
            try:
                messages.append(ACARSMessage.from_record(record))
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                logger.warning("Discarded invalid message record: %s", exc)
        return messages

    def save_messages(self, messages: list[ACARSMessage]) -> None:
        """Summary: Persist the full message log.

        Importance: Writes the whole list so the stored copy matches memory exactly.
        Alternatives: Persist only the changed records.
        """

        self.put(MESSAGES_NAMESPACE, [message.to_record() for message in messages])

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Summary: Context manager for SQLite connections.

        Importance: Ensures connections are closed cleanly after use.
        Alternatives: Keep a single long-lived connection.
        """

        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
        finally:
            connection.close()


def default_store_path() -> str:
    """Summary: Provide the default database path.

    Importance: Centralizes the default storage location.
    Alternatives: Compute the path based on OS user directories.
    """

    return "acars.db"
