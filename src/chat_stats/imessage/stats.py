"""Aggregate views over iMessage conversations."""

from __future__ import annotations

import asyncio
import logging
import math
import re
from collections import Counter

from chat_stats.config import AnalyticsConfig
from chat_stats.imessage.models import LongMessage, Message, SentimentScore, WordFrequency
from chat_stats.imessage.reader import ChatDBReader
from chat_stats.sentiment.base import BaseSentimentScorer
from chat_stats.sentiment.vader import VaderScorer

logger = logging.getLogger(__name__)

PUNCTUATION_RE = re.compile(r"[.,\-/#!$%^&*;:{}=_`~()]")


def count_words(messages: list[Message]) -> list[WordFrequency]:
    """Count lowercased, punctuation-stripped words in non-attachment messages.

    Sorted by count descending, then alphabetically.
    """
    counts: Counter[str] = Counter()
    for msg in messages:
        if msg.has_attachments or not msg.text:
            continue
        clean_text = PUNCTUATION_RE.sub("", msg.text)
        counts.update(word.lower() for word in clean_text.split())

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [WordFrequency(word=word, count=count) for word, count in ranked]


def rank_by_length(messages: list[Message]) -> list[LongMessage]:
    """Non-attachment messages, longest first. Null text counts as length 0."""
    candidates = [msg for msg in messages if not msg.has_attachments]
    candidates.sort(key=lambda msg: len(msg.text or ""), reverse=True)
    return [LongMessage(text=msg.text, is_from_me=msg.is_from_me) for msg in candidates]


def _score_sort_key(entry: SentimentScore) -> tuple[bool, float]:
    # nan (empty conversation) sorts after every real score
    if math.isnan(entry.score):
        return (True, 0.0)
    return (False, -entry.score)


class ConversationStats:
    """Word, length and sentiment statistics for iMessage conversations.

    Args:
        config: Settings for this run; decides which database is opened
            and whether sentiment skips attachment messages.
        scorer: Sentiment backend. Defaults to VaderScorer.
        reader: Pre-built reader. Defaults to one opened on
            ``config.resolved_db_path()``.
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        scorer: BaseSentimentScorer | None = None,
        reader: ChatDBReader | None = None,
    ):
        self.config = config
        self.reader = reader or ChatDBReader(config.resolved_db_path())
        self.scorer = scorer or VaderScorer()

    def _mean_score(self, messages: list[Message]) -> float:
        if self.config.sentiment_skip_attachments:
            messages = [msg for msg in messages if not msg.has_attachments]
        if not messages:
            return math.nan
        scores = [0.0 if msg.text is None else self.scorer.score(msg.text) for msg in messages]
        return sum(scores) / len(scores)

    # ---- Sync methods ----

    def list_chat_identifiers(self) -> list[str]:
        return self.reader.list_chat_identifiers()

    def fetch_messages(self, identifier: str) -> list[Message]:
        return self.reader.fetch_messages(identifier)

    def word_frequencies(self, identifier: str) -> list[WordFrequency]:
        """Word counts for one conversation, most frequent first."""
        return count_words(self.reader.fetch_messages(identifier))

    def longest_messages(self, identifier: str) -> list[LongMessage]:
        """Messages of one conversation, longest text first."""
        return rank_by_length(self.reader.fetch_messages(identifier))

    def mean_sentiment(self, identifier: str) -> float:
        """Mean sentiment of one conversation; nan if it has no messages."""
        return self._mean_score(self.reader.fetch_messages(identifier))

    def conversation_mean_sentiment_scores(self) -> list[SentimentScore]:
        """Mean sentiment of every conversation, most positive first.

        Must not be called from inside a running event loop; use
        ``aconversation_mean_sentiment_scores`` there.
        """
        return asyncio.run(self.aconversation_mean_sentiment_scores())

    # ---- Async methods ----

    async def aword_frequencies(self, identifier: str) -> list[WordFrequency]:
        """Async version of word_frequencies."""
        return count_words(await self.reader.afetch_messages(identifier))

    async def alongest_messages(self, identifier: str) -> list[LongMessage]:
        """Async version of longest_messages."""
        return rank_by_length(await self.reader.afetch_messages(identifier))

    async def amean_sentiment(self, identifier: str) -> float:
        """Async version of mean_sentiment."""
        # fetch and scoring both run in the worker thread
        return await asyncio.to_thread(self.mean_sentiment, identifier)

    async def aconversation_mean_sentiment_scores(self) -> list[SentimentScore]:
        """Fan out one mean_sentiment per conversation and join the results.

        The first failing conversation fails the whole call; no partial
        results are returned.
        """
        identifiers = await self.reader.alist_chat_identifiers()
        logger.debug(f"Scoring sentiment for {len(identifiers)} conversations")
        scores = await asyncio.gather(*(self.amean_sentiment(i) for i in identifiers))

        results = [
            SentimentScore(identifier=identifier, score=score)
            for identifier, score in zip(identifiers, scores)
        ]
        results.sort(key=_score_sort_key)
        return results
