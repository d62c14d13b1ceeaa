"""VADER sentiment backend."""

from __future__ import annotations

import logging

from chat_stats.exceptions import SentimentError
from chat_stats.sentiment.base import BaseSentimentScorer

logger = logging.getLogger(__name__)


class VaderScorer(BaseSentimentScorer):
    """Scores text with VADER's compound polarity (-1.0 to 1.0)."""

    def __init__(self):
        try:
            from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer
        except ImportError:
            raise ImportError(
                "vaderSentiment is required for VaderScorer. "
                "Install with: pip install vaderSentiment"
            )
        self._analyzer = SentimentIntensityAnalyzer()

    def score(self, text: str) -> float:
        try:
            return self._analyzer.polarity_scores(text)["compound"]
        except Exception as e:
            raise SentimentError(f"VADER scoring failed: {e}") from e
