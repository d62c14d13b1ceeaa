"""Abstract base class for sentiment scorers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseSentimentScorer(ABC):
    """Abstract text -> score interface. Higher scores are more positive."""

    @abstractmethod
    def score(self, text: str) -> float:
        """Score a single message text."""
        ...
