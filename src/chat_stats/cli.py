"""One-shot command-line entry point."""

from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path

from chat_stats.config import AnalyticsConfig, load_config
from chat_stats.exceptions import ChatStatsError, ConfigError
from chat_stats.imessage.stats import ConversationStats

logger = logging.getLogger(__name__)

COMMANDS = ("identifiers", "messages", "words", "longest", "sentiment", "all-sentiment")

# Commands that operate on a single conversation
_NEEDS_IDENTIFIER = {"messages", "words", "longest", "sentiment"}


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chat-stats",
        description="Word, length and sentiment statistics for iMessage conversations",
    )
    parser.add_argument("command", nargs="?", default="words", choices=COMMANDS)
    parser.add_argument("--config", "-c", type=Path, help="JSON config file (default: ./config.json)")
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Read the database given by --db-path instead of ~/Library/Messages/chat.db",
    )
    parser.add_argument("--db-path", "-d", dest="db_path", help="Database path used in debug mode")
    parser.add_argument(
        "--identifier",
        "-i",
        dest="debug_email",
        help="Conversation recipient (email or phone handle)",
    )
    parser.add_argument(
        "--skip-attachments",
        dest="sentiment_skip_attachments",
        action="store_true",
        default=None,
        help="Leave attachment messages out of sentiment means",
    )
    parser.add_argument("--top", "-n", type=_non_negative_int, help="Only print the first N rows")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def _format_score(score: float) -> str:
    return "n/a" if math.isnan(score) else f"{score:.4f}"


def run_command(command: str, stats: ConversationStats, config: AnalyticsConfig) -> list[str]:
    """Run one operation and render its result as output lines."""
    identifier = config.debug_email
    if command in _NEEDS_IDENTIFIER and not identifier:
        raise ConfigError(f"'{command}' needs an identifier (--identifier or debugEmail)")

    if command == "identifiers":
        return stats.list_chat_identifiers()
    if command == "messages":
        return [
            f"{msg.date.isoformat() if msg.date else '-'}\t"
            f"{'me' if msg.is_from_me else 'them'}\t"
            f"{'[attachment] ' if msg.has_attachments else ''}{msg.text or ''}"
            for msg in stats.fetch_messages(identifier)
        ]
    if command == "words":
        return [f"{entry.count}\t{entry.word}" for entry in stats.word_frequencies(identifier)]
    if command == "longest":
        return [
            f"{len(msg.text or '')}\t{'me' if msg.is_from_me else 'them'}\t{msg.text or ''}"
            for msg in stats.longest_messages(identifier)
        ]
    if command == "sentiment":
        return [_format_score(stats.mean_sentiment(identifier))]
    return [
        f"{_format_score(entry.score)}\t{entry.identifier}"
        for entry in stats.conversation_mean_sentiment_scores()
    ]


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args=args, config_file=args.config)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose or config.debug else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        stats = ConversationStats(config)
        lines = run_command(args.command, stats, config)
    except ChatStatsError as e:
        print(f"Error: {e}")
        return 1

    if args.top is not None:
        lines = lines[: args.top]
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
