#!/usr/bin/env python3
"""CLI entry point for Claude Session Search.

Scan the local Claude Code session store, rank sessions against a query,
and print results or a single session's conversation.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from .config import DEFAULT_CONFIG_PATH, ConfigManager, SearchConfig
from .formatter import format_results, format_session, results_to_json
from .ranking import rank_with_scores
from .scanner import Corpus, scan

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {number}")
    return number


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _load_config(args: argparse.Namespace) -> SearchConfig:
    """Load the config file and apply command-line overrides.

    Raises:
        yaml.YAMLError: If the config file is not valid YAML.
        ValueError: If a config value is invalid.
    """
    config = ConfigManager(args.config).load()
    if args.projects_dir is not None:
        config = replace(config, projects_dir=args.projects_dir.expanduser())
    if args.include_thinking is not None:
        config = replace(config, include_thinking=args.include_thinking)
    return config


def _scan(args: argparse.Namespace, config: SearchConfig) -> Corpus:
    current_dir = args.cwd or os.getcwd()
    logger.debug("Scanning %s from %s", config.projects_dir, current_dir)
    return scan(config.projects_dir, current_dir, config)


# ---------------------------------------------------------------------------
# Command Implementations
# ---------------------------------------------------------------------------


def _search(args: argparse.Namespace, config: SearchConfig) -> int:
    """Rank sessions against the query and print them."""
    query = " ".join(args.query)
    corpus = _scan(args, config)
    if not corpus:
        print(f"No Claude sessions found in {config.projects_dir}")
        return 0

    results = rank_with_scores(corpus, query)
    limit = args.limit if args.limit is not None else config.result_limit
    if args.json:
        print(results_to_json(results, query, limit))
    else:
        print(format_results(results, limit))
    return 0


def _show(args: argparse.Namespace, config: SearchConfig) -> int:
    """Print one session's conversation."""
    corpus = _scan(args, config)
    session = corpus.find(args.session_id)
    if session is None:
        print(f"Error: Session not found: {args.session_id}", file=sys.stderr)
        return 1
    print(format_session(session))
    return 0


def _config(args: argparse.Namespace, config: SearchConfig) -> int:
    """Print or write the configuration file."""
    manager = ConfigManager(args.config)
    if args.config_command == "init":
        if manager.exists() and not args.force:
            print(
                f"Error: Config already exists: {manager.config_path} (use --force)",
                file=sys.stderr,
            )
            return 1
        manager.save(config)
        print(f"Wrote {manager.config_path}")
        return 0

    print(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False), end="")
    return 0


# ---------------------------------------------------------------------------
# CLI Argument Parsing
# ---------------------------------------------------------------------------


def _create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to config.yaml (default: {DEFAULT_CONFIG_PATH})",
    )
    common.add_argument(
        "--projects-dir",
        type=Path,
        default=None,
        help="Session store to scan (default: ~/.claude/projects)",
    )
    common.add_argument(
        "--cwd",
        type=str,
        default=None,
        help="Directory to measure proximity from (default: current directory)",
    )
    common.add_argument(
        "--include-thinking",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Search thinking blocks as message text",
    )
    common.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )

    parser = argparse.ArgumentParser(
        prog="claude-session-search",
        description="Search local Claude Code sessions by text, location and recency.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    search_parser = subparsers.add_parser(
        "search",
        parents=[common],
        help="Rank sessions against a query (all sessions if empty)",
    )
    search_parser.add_argument("query", nargs="*", help="Search query")
    search_parser.add_argument(
        "-n",
        "--limit",
        type=_positive_int,
        default=None,
        help="Max results to print (default: result_limit from config)",
    )
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    show_parser = subparsers.add_parser(
        "show",
        parents=[common],
        help="Print a session's conversation",
    )
    show_parser.add_argument("session_id", help="Session ID or unique prefix")

    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show or initialize the config file",
    )
    config_parser.add_argument(
        "config_command",
        nargs="?",
        choices=["show", "init"],
        default="show",
        help="show (default) or init",
    )
    config_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file on init",
    )

    return parser


_COMMANDS = {
    "search": _search,
    "show": _show,
    "config": _config,
}


# ---------------------------------------------------------------------------
# Main Entry Point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run the Claude Session Search CLI.

    Usage:
        claude-session-search search [QUERY...]   # Ranked results
        claude-session-search show <session-id>   # Conversation of one session
        claude-session-search config [show|init]  # Configuration file
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    _configure_logging(args.log_level)

    try:
        config = _load_config(args)
    except (yaml.YAMLError, ValueError) as e:
        print(f"Error loading config {args.config}: {e}", file=sys.stderr)
        return 1

    return _COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main())
