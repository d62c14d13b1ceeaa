"""Data models for the iMessage module."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Message:
    """A single message row from chat.db."""

    text: str | None
    is_from_me: bool
    date: datetime | None
    has_attachments: bool


@dataclass
class WordFrequency:
    """How often a word appears across a conversation."""

    word: str  # lowercased, punctuation stripped
    count: int


@dataclass
class LongMessage:
    text: str | None
    is_from_me: bool


@dataclass
class SentimentScore:
    """Mean sentiment of one conversation."""

    identifier: str  # chat.chat_identifier
    score: float  # nan when the conversation has no messages
