"""Session building: first-message selection, noise filtering, file loading.

This module provides:
- Session: One recorded conversation, backed by one JSONL file
- build_session: Turns a file's lines into a Session or a Rejected outcome
- decode_project_dir: Best-effort decoding of a storage directory name
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from .parser import (
    Entry,
    EntryKind,
    display_text,
    extract_text,
    has_content,
    parse_entries,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

SESSION_FILE_SUFFIX = ".jsonl"

MIN_FIRST_MESSAGE_CHARS = 3

_SENTINEL_MESSAGES = frozenset({"warmup", "claim"})

_COMMAND_MARKERS = (
    "<command-message>",
    "<command-name>",
    "<local-command-stdout>",
)


# ---------------------------------------------------------------------------
# Directory decoding
# ---------------------------------------------------------------------------


def decode_project_dir(encoded: str) -> str:
    """Decode a storage directory name into a display directory.

    Claude Code encodes a project path by turning every ``/`` into ``-``, so
    a hyphen in the result may be a separator or a literal hyphen
    (``infrastructure-as-ruby``). Only the leading marker is stripped; the
    rest of the name is kept as is.

    Examples:
        -Users-me-work-app → Users-me-work-app
        scratch → scratch
    """
    if encoded.startswith("-"):
        return encoded[1:]
    return encoded


# ---------------------------------------------------------------------------
# Noise filtering
# ---------------------------------------------------------------------------


class RejectReason(Enum):
    """Why a candidate first message (or a whole session) was not accepted."""

    NO_USER_MESSAGE = "no_user_message"
    EMPTY = "empty"
    TOO_SHORT = "too_short"
    SENTINEL = "sentinel"
    COMMAND = "command"
    HOOKS_CONFIG = "hooks_config"


def rejection_reason(text: str) -> RejectReason | None:
    """Return why ``text`` cannot be a session's first message, or None."""
    trimmed = text.strip()
    if not trimmed:
        return RejectReason.EMPTY
    if len(trimmed) < MIN_FIRST_MESSAGE_CHARS:
        return RejectReason.TOO_SHORT
    if trimmed.casefold() in _SENTINEL_MESSAGES:
        return RejectReason.SENTINEL
    if trimmed.startswith(_COMMAND_MARKERS):
        return RejectReason.COMMAND
    if trimmed.startswith("{") and '"hooks"' in trimmed:
        return RejectReason.HOOKS_CONFIG
    return None


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass
class Session:
    """One conversation, read from ``<project>/<session-id>.jsonl``."""

    id: str
    directory: str
    file_path: Path
    first_message: str
    entries: tuple[Entry, ...]
    timestamp: datetime = EPOCH
    cwd: str | None = None
    project: str = ""
    display_thinking: bool = field(default=False, repr=False)
    include_thinking: bool = field(default=True, repr=False)

    # Set once by the scanner against the caller's directory
    distance: int = field(default=0, compare=False)

    def entry_text(self, entry: Entry) -> str:
        """Display text of one entry."""
        return display_text(entry.content, include_thinking=self.display_thinking)

    @property
    def conversation(self) -> list[Entry]:
        """User and assistant entries that have something to display."""
        return [
            entry
            for entry in self.entries
            if entry.kind in (EntryKind.USER, EntryKind.ASSISTANT)
            and self.entry_text(entry)
        ]

    @property
    def message_count(self) -> int:
        return len(self.conversation)

    def search_text(self) -> str:
        """Extracted text of every entry, one per line."""
        texts = (
            extract_text(entry.content, include_thinking=self.include_thinking)
            for entry in self.entries
        )
        return "\n".join(text for text in texts if text)


@dataclass(frozen=True)
class Rejected:
    """A session file that was read but filtered out of the corpus."""

    file_path: Path
    reason: RejectReason


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def _first_message(
    entries: list[Entry], include_thinking: bool
) -> tuple[Entry, str] | RejectReason:
    """Find the first user entry whose text passes the noise filter."""
    first_reason: RejectReason | None = None
    for entry in entries:
        if entry.kind is not EntryKind.USER or not has_content(entry.payload):
            continue
        candidate = extract_text(entry.content, include_thinking=include_thinking)
        reason = rejection_reason(candidate)
        if reason is None:
            return entry, candidate.strip()
        if first_reason is None:
            first_reason = reason
    return first_reason or RejectReason.NO_USER_MESSAGE


def build_session(
    file_path: Path,
    lines: Iterable[str],
    *,
    project: str | None = None,
    include_thinking: bool = True,
    display_thinking: bool = False,
) -> Session | Rejected:
    """Build a Session from the lines of one session file.

    Args:
        file_path: Path of the session file; its stem is the session ID.
        lines: Raw JSONL lines. Malformed lines are dropped.
        project: Encoded storage directory name. Defaults to the file's parent.
        include_thinking: Count thinking blocks as message text.
        display_thinking: Count thinking blocks as displayable text.

    Returns:
        The Session, or Rejected if no user entry qualifies as first message.
    """
    file_path = Path(file_path)
    entries = parse_entries(lines)

    found = _first_message(entries, include_thinking)
    if isinstance(found, RejectReason):
        return Rejected(file_path=file_path, reason=found)
    qualifying, first_message = found

    project = project if project is not None else file_path.parent.name
    directory = qualifying.cwd or decode_project_dir(project)

    return Session(
        id=file_path.stem,
        directory=directory,
        file_path=file_path,
        first_message=first_message,
        entries=tuple(entries),
        timestamp=qualifying.timestamp or EPOCH,
        cwd=qualifying.cwd,
        project=project,
        display_thinking=display_thinking,
        include_thinking=include_thinking,
    )


def load_session(
    file_path: Path,
    *,
    project: str | None = None,
    include_thinking: bool = True,
    display_thinking: bool = False,
) -> Session | Rejected:
    """Read a session file and build its Session.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    with open(file_path, encoding="utf-8") as f:
        lines = f.read().splitlines()
    return build_session(
        Path(file_path),
        lines,
        project=project,
        include_thinking=include_thinking,
        display_thinking=display_thinking,
    )
