"""JSONL session record parsing and text extraction."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Union

logger = logging.getLogger(__name__)


class ParseFailure(ValueError):
    """Raised when a line is not a JSON object record."""


# ---------------------------------------------------------------------------
# Entry kinds
# ---------------------------------------------------------------------------


class EntryKind(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    OTHER = "other"


class BlockKind(Enum):
    TEXT = "text"
    THINKING = "thinking"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Content variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContentBlock:
    """One typed block of a message body."""

    kind: BlockKind
    text: str | None = None


@dataclass(frozen=True)
class PlainText:
    """A message body given as a single string."""

    text: str


@dataclass(frozen=True)
class Blocks:
    """A message body given as an ordered list of typed blocks."""

    blocks: tuple[ContentBlock, ...]


Content = Union[PlainText, Blocks]


@dataclass(frozen=True)
class Payload:
    """The ``message`` object of a record."""

    role: str | None
    content: Content | None


@dataclass(frozen=True)
class Entry:
    """One parsed line of a session log."""

    kind: EntryKind
    record_type: str
    payload: Payload | None = None
    uuid: str | None = None
    timestamp: datetime | None = None
    cwd: str | None = None
    session_id: str | None = None

    @property
    def role(self) -> str | None:
        if self.payload is None:
            return None
        return self.payload.role

    @property
    def content(self) -> Content | None:
        if self.payload is None:
            return None
        return self.payload.content


# ---------------------------------------------------------------------------
# Field parsing helpers
# ---------------------------------------------------------------------------

_ENTRY_KINDS: dict[str, EntryKind] = {
    "user": EntryKind.USER,
    "assistant": EntryKind.ASSISTANT,
}

_BLOCK_TEXT_KEYS: dict[str, tuple[BlockKind, str]] = {
    "text": (BlockKind.TEXT, "text"),
    "thinking": (BlockKind.THINKING, "thinking"),
}


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``.

    Naive timestamps are assumed to be UTC.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _parse_block(block: dict) -> ContentBlock:
    block_type = block.get("type")
    mapped = _BLOCK_TEXT_KEYS.get(block_type) if isinstance(block_type, str) else None
    if mapped is None:
        return ContentBlock(kind=BlockKind.OTHER)
    kind, key = mapped
    text = block.get(key)
    return ContentBlock(kind=kind, text=text if isinstance(text, str) else None)


def parse_content(raw: object) -> Content | None:
    """Convert a raw ``message.content`` value into a content variant."""
    if isinstance(raw, str):
        return PlainText(raw)
    if isinstance(raw, list):
        return Blocks(tuple(_parse_block(b) for b in raw if isinstance(b, dict)))
    return None


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


# ---------------------------------------------------------------------------
# Line parsing
# ---------------------------------------------------------------------------


def parse_entry(line: str) -> Entry:
    """Parse one JSONL line into an Entry.

    Raises:
        ParseFailure: If the line is not valid JSON or not a JSON object.
    """
    try:
        obj = json.loads(line)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise ParseFailure(f"invalid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ParseFailure(f"expected object, got {type(obj).__name__}")

    record_type = obj.get("type")
    record_type = record_type if isinstance(record_type, str) else ""

    payload = None
    message = obj.get("message")
    if isinstance(message, dict):
        role = message.get("role")
        payload = Payload(
            role=role if isinstance(role, str) else None,
            content=parse_content(message.get("content")),
        )

    return Entry(
        kind=_ENTRY_KINDS.get(record_type, EntryKind.OTHER),
        record_type=record_type,
        payload=payload,
        uuid=_optional_str(obj.get("uuid")),
        timestamp=parse_timestamp(obj.get("timestamp")),
        cwd=_optional_str(obj.get("cwd")),
        session_id=_optional_str(obj.get("sessionId")),
    )


def parse_entries(lines: Iterable[str]) -> list[Entry]:
    """Parse every line, dropping blank and malformed ones."""
    entries: list[Entry] = []
    for line_num, raw_line in enumerate(lines, start=1):
        stripped = raw_line.strip()
        if not stripped:
            continue
        try:
            entries.append(parse_entry(stripped))
        except ParseFailure as exc:
            logger.debug("Line %d skipped: %s", line_num, exc)
    return entries


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------


def _selected_texts(blocks: Blocks, include_thinking: bool) -> list[str]:
    texts: list[str] = []
    for block in blocks.blocks:
        if not block.text:
            continue
        if block.kind is BlockKind.TEXT:
            texts.append(block.text)
        elif block.kind is BlockKind.THINKING and include_thinking:
            texts.append(block.text)
    return texts


def extract_text(content: Content | None, include_thinking: bool = True) -> str:
    """Return the searchable text of a message body.

    Text blocks (and thinking blocks when enabled) are joined with a single
    space; tool calls, tool results and other block kinds are ignored.
    """
    if isinstance(content, PlainText):
        return content.text
    if isinstance(content, Blocks):
        return " ".join(_selected_texts(content, include_thinking))
    return ""


def display_text(content: Content | None, include_thinking: bool = False) -> str:
    """Return the text shown for a message, paragraphs separated by blank lines."""
    if isinstance(content, PlainText):
        return content.text.strip()
    if isinstance(content, Blocks):
        return "\n\n".join(_selected_texts(content, include_thinking)).strip()
    return ""


def has_content(payload: Payload | None) -> bool:
    """True if the payload carries a non-empty string or at least one block."""
    if payload is None:
        return False
    content = payload.content
    if isinstance(content, PlainText):
        return bool(content.text)
    if isinstance(content, Blocks):
        return bool(content.blocks)
    return False
