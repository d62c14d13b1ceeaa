"""Sentiment scorers with abstract base."""

from chat_stats.sentiment.base import BaseSentimentScorer
from chat_stats.sentiment.vader import VaderScorer

__all__ = [
    "BaseSentimentScorer",
    "VaderScorer",
]
