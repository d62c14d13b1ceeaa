"""Tests for iMessage reader."""

import asyncio
import sqlite3
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import pytest

from chat_stats.imessage.reader import ChatDBReader, APPLE_EPOCH_OFFSET
from chat_stats.exceptions import DataAccessError

# 2023-03-15 in seconds since 2001-01-01
APPLE_TS = 700_000_000


@pytest.fixture
def chat_db(tmp_path):
    """Create a minimal chat.db for testing."""
    db_path = tmp_path / "chat.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("""
        CREATE TABLE chat (
            ROWID INTEGER PRIMARY KEY,
            guid TEXT,
            chat_identifier TEXT
        )
    """)
    conn.execute("""
        CREATE TABLE chat_handle_join (
            chat_id INTEGER,
            handle_id INTEGER
        )
    """)
    conn.execute("""
        CREATE TABLE message (
            ROWID INTEGER PRIMARY KEY,
            text TEXT,
            is_from_me INTEGER DEFAULT 0,
            date INTEGER,
            cache_has_attachments INTEGER DEFAULT 0,
            handle_id INTEGER
        )
    """)

    conn.execute("INSERT INTO chat VALUES (1, 'iMessage;-;friend@example.com', 'friend@example.com')")
    conn.execute("INSERT INTO chat VALUES (2, 'iMessage;-;+15551234567', '+15551234567')")
    conn.execute("INSERT INTO chat_handle_join VALUES (1, 10)")
    conn.execute("INSERT INTO chat_handle_join VALUES (2, 20)")
    conn.execute("INSERT INTO message VALUES (1, 'Hello world', 0, ?, 0, 10)", (APPLE_TS,))
    conn.execute("INSERT INTO message VALUES (2, NULL, 1, ?, 1, 10)", (APPLE_TS + 60,))
    conn.execute("INSERT INTO message VALUES (3, 'Hey', 1, 0, 0, 20)")
    conn.commit()
    conn.close()
    return db_path


def test_list_chat_identifiers(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    assert reader.list_chat_identifiers() == ["friend@example.com", "+15551234567"]


def test_fetch_messages(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    messages = reader.fetch_messages("friend@example.com")
    assert len(messages) == 2

    first, second = messages
    assert first.text == "Hello world"
    assert first.is_from_me is False
    assert first.has_attachments is False
    assert first.date == datetime.fromtimestamp(APPLE_TS + APPLE_EPOCH_OFFSET)

    assert second.text is None
    assert second.is_from_me is True
    assert second.has_attachments is True


def test_fetch_messages_zero_date(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    messages = reader.fetch_messages("+15551234567")
    assert len(messages) == 1
    assert messages[0].date is None


def test_fetch_messages_unknown_identifier(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    assert reader.fetch_messages("nobody@example.com") == []


def test_identifier_is_not_interpolated(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    assert reader.fetch_messages("x' OR '1'='1") == []


def test_nanosecond_timestamps(tmp_path):
    db_path = tmp_path / "chat.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute("CREATE TABLE chat (ROWID INTEGER PRIMARY KEY, guid TEXT, chat_identifier TEXT)")
    conn.execute("CREATE TABLE chat_handle_join (chat_id INTEGER, handle_id INTEGER)")
    conn.execute(
        "CREATE TABLE message (ROWID INTEGER PRIMARY KEY, text TEXT, is_from_me INTEGER, "
        "date INTEGER, cache_has_attachments INTEGER, handle_id INTEGER)"
    )
    conn.execute("INSERT INTO chat VALUES (1, 'iMessage;-;a@b.com', 'a@b.com')")
    conn.execute("INSERT INTO chat_handle_join VALUES (1, 1)")
    conn.execute("INSERT INTO message VALUES (1, 'hi', 0, ?, 0, 1)", (APPLE_TS * 10**9,))
    conn.commit()
    conn.close()

    reader = ChatDBReader(db_path=db_path)
    [message] = reader.fetch_messages("a@b.com")
    assert message.date == datetime.fromtimestamp(APPLE_TS + APPLE_EPOCH_OFFSET)


def test_missing_db():
    with pytest.raises(DataAccessError, match="not found"):
        ChatDBReader(db_path=Path("/nonexistent/chat.db"))


def test_query_failure_wraps_sqlite_error(tmp_path):
    db_path = tmp_path / "empty.db"
    sqlite3.connect(str(db_path)).close()
    reader = ChatDBReader(db_path=db_path)
    with pytest.raises(DataAccessError, match="no such table") as exc_info:
        reader.list_chat_identifiers()
    assert isinstance(exc_info.value.__cause__, sqlite3.Error)


def test_connection_is_read_only(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    with pytest.raises(DataAccessError):
        reader._query("DELETE FROM message")


def test_async_wrappers(chat_db):
    reader = ChatDBReader(db_path=chat_db)
    identifiers = asyncio.run(reader.alist_chat_identifiers())
    assert identifiers == ["friend@example.com", "+15551234567"]
    messages = asyncio.run(reader.afetch_messages("friend@example.com"))
    assert [m.text for m in messages] == ["Hello world", None]


def test_context_manager_closes(chat_db):
    with ChatDBReader(db_path=chat_db) as reader:
        reader.list_chat_identifiers()
    with pytest.raises(DataAccessError):
        reader.list_chat_identifiers()


def test_null_chat_identifier(chat_db):
    conn = sqlite3.connect(str(chat_db))
    conn.execute("INSERT INTO chat VALUES (3, 'iMessage;-;chat42', NULL)")
    conn.commit()
    conn.close()

    reader = ChatDBReader(db_path=chat_db)
    identifiers = reader.list_chat_identifiers()
    assert identifiers == ["friend@example.com", "+15551234567", ""]
    assert reader.fetch_messages(identifiers[-1]) == []


@patch("chat_stats.imessage.reader.sqlite3.connect")
def test_full_disk_access_hint(mock_connect, chat_db):
    mock_connect.side_effect = sqlite3.OperationalError("unable to open database file")
    with pytest.raises(DataAccessError, match="Full Disk Access") as exc_info:
        ChatDBReader(db_path=chat_db)
    assert isinstance(exc_info.value.__cause__, sqlite3.OperationalError)


@patch("chat_stats.imessage.reader.sqlite3.connect")
def test_open_failure(mock_connect, chat_db):
    mock_connect.side_effect = sqlite3.DatabaseError("file is not a database")
    with pytest.raises(DataAccessError, match="Failed to open chat.db"):
        ChatDBReader(db_path=chat_db)
