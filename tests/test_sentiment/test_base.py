"""Tests for sentiment scorer base class."""

import pytest

from chat_stats.sentiment.base import BaseSentimentScorer


def test_base_scorer_is_abstract():
    with pytest.raises(TypeError):
        BaseSentimentScorer()
