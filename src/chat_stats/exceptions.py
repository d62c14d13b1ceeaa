"""Unified exception hierarchy for chat-stats."""


class ChatStatsError(Exception):
    """Base exception for all chat-stats errors."""


class DataAccessError(ChatStatsError):
    """Failed to open or query the Messages database."""


class ConfigError(ChatStatsError):
    """Invalid or incomplete configuration."""


class SentimentError(ChatStatsError):
    """Sentiment scoring backend failure."""
