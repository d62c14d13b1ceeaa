"""iMessage conversation statistics (macOS chat.db)."""

from chat_stats.imessage.reader import ChatDBReader
from chat_stats.imessage.stats import ConversationStats
from chat_stats.imessage.models import Message, WordFrequency, LongMessage, SentimentScore

__all__ = [
    "ChatDBReader",
    "ConversationStats",
    "Message",
    "WordFrequency",
    "LongMessage",
    "SentimentScore",
]
