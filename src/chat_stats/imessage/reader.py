"""Read-only access to macOS Messages chat.db."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from chat_stats.config import CHAT_DB_PATH
from chat_stats.exceptions import DataAccessError
from chat_stats.imessage.models import Message

logger = logging.getLogger(__name__)

# Apple's Core Data epoch offset (2001-01-01 vs 1970-01-01)
APPLE_EPOCH_OFFSET = 978307200

# chat.guid of a one-to-one iMessage conversation is this prefix + identifier
CHAT_GUID_PREFIX = "iMessage;-;"

_MESSAGES_FOR_GUID = """
    SELECT text, is_from_me, date, cache_has_attachments
    FROM message
    WHERE handle_id = (
        SELECT handle_id FROM chat_handle_join WHERE chat_id = (
            SELECT ROWID FROM chat WHERE guid = ?
        )
    )
    ORDER BY date ASC, ROWID ASC
"""


class ChatDBReader:
    """Read-only connection to the macOS Messages database.

    The connection is opened once here and shared by every query. Queries
    may be issued from worker threads (see the ``a*`` wrappers); a lock
    keeps them from interleaving on the shared connection.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or CHAT_DB_PATH
        self._lock = threading.Lock()
        self._nanoseconds: bool | None = None
        self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        """Open a read-only connection to chat.db."""
        if not self.db_path.exists():
            raise DataAccessError(
                f"Messages database not found at {self.db_path}. "
                "Make sure you're running on macOS with Messages configured."
            )
        try:
            uri = f"file:{self.db_path}?mode=ro"
            conn = sqlite3.connect(uri, uri=True, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            return conn
        except (sqlite3.OperationalError, sqlite3.DatabaseError) as e:
            err = str(e).lower()
            if "unable to open" in err or "authorization denied" in err:
                raise DataAccessError(
                    "Cannot open chat.db - Full Disk Access is required. "
                    "Go to System Settings > Privacy & Security > Full Disk Access "
                    "and enable it for your terminal application."
                ) from e
            raise DataAccessError(f"Failed to open chat.db: {e}") from e

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> ChatDBReader:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        """Run a query and return all rows, wrapping sqlite errors."""
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DataAccessError(f"Query against chat.db failed: {e}") from e

    def _detect_timestamp_format(self) -> bool:
        """Detect if timestamps are in nanoseconds (newer macOS) or seconds."""
        if self._nanoseconds is not None:
            return self._nanoseconds
        rows = self._query("SELECT MAX(ABS(date)) FROM message")
        max_date = rows[0][0] if rows and rows[0][0] else 0
        self._nanoseconds = max_date > 1e12
        return self._nanoseconds

    def _convert_timestamp(self, apple_ts: int | None) -> datetime | None:
        """Convert an Apple timestamp to a local datetime."""
        if apple_ts is None or apple_ts == 0:
            return None
        ts = apple_ts
        if self._detect_timestamp_format():
            ts = ts / 1e9
        try:
            return datetime.fromtimestamp(ts + APPLE_EPOCH_OFFSET)
        except (OSError, ValueError, OverflowError):
            return None

    def list_chat_identifiers(self) -> list[str]:
        """Return the chat_identifier of every conversation, in store order."""
        rows = self._query("SELECT chat_identifier FROM chat")
        return [row["chat_identifier"] or "" for row in rows]

    def fetch_messages(self, identifier: str) -> list[Message]:
        """Fetch every message exchanged with ``identifier``.

        An identifier with no matching conversation yields an empty list.
        """
        rows = self._query(_MESSAGES_FOR_GUID, (CHAT_GUID_PREFIX + identifier,))
        logger.debug(f"Fetched {len(rows)} messages for {identifier}")
        return [
            Message(
                text=row["text"],
                is_from_me=row["is_from_me"] == 1,
                date=self._convert_timestamp(row["date"]),
                has_attachments=row["cache_has_attachments"] == 1,
            )
            for row in rows
        ]

    # ---- Async wrappers (asyncio.to_thread) ----

    async def alist_chat_identifiers(self) -> list[str]:
        """Async version of list_chat_identifiers."""
        return await asyncio.to_thread(self.list_chat_identifiers)

    async def afetch_messages(self, identifier: str) -> list[Message]:
        """Async version of fetch_messages."""
        return await asyncio.to_thread(self.fetch_messages, identifier)
