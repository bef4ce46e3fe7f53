"""Plain-text formatting of search results and conversations."""

from __future__ import annotations

import json
from datetime import datetime

from .parser import EntryKind
from .ranking import RankedResult
from .sessions import EPOCH, Session

PREVIEW_CHARS = 80


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """First ``limit`` characters on one line, with an ellipsis if cut."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit] + "..."


def format_timestamp(dt: datetime) -> str:
    if dt == EPOCH:
        return "unknown"
    return dt.astimezone().strftime("%Y-%m-%d %H:%M")


def _indent_message(prefix: str, text: str) -> str:
    """Prefix the first line, indent the rest to line up under it."""
    lines = text.split("\n")
    result_lines = [f"{prefix} {lines[0]}"]
    for line in lines[1:]:
        result_lines.append(f"  {line}" if line else "")
    return "\n".join(result_lines)


def format_result(index: int, result: RankedResult) -> str:
    """Two-line summary of one result."""
    session = result.session
    header = f"{index}. {preview(session.first_message)}"
    details = f"   {session.directory} • {format_timestamp(session.timestamp)}"
    details += f" • {session.message_count} messages"
    if result.score is not None:
        details += f" • score {result.score:.3f}"
    return f"{header}\n{details}"


def format_results(results: list[RankedResult], limit: int) -> str:
    """Result count followed by the first ``limit`` results."""
    count = len(results)
    parts = [f"{count} session{'s' if count != 1 else ''} found"]
    for i, result in enumerate(results[:limit], 1):
        parts.append(format_result(i, result))
    return "\n\n".join(parts)


def results_to_json(results: list[RankedResult], query: str, limit: int) -> str:
    """Machine-readable results."""
    output = {
        "query": query,
        "total_results": len(results),
        "results": [
            {
                "rank": i + 1,
                "score": round(r.score, 6) if r.score is not None else None,
                "session_id": r.session.id,
                "directory": r.session.directory,
                "file_path": str(r.session.file_path),
                "timestamp": r.session.timestamp.isoformat(),
                "distance": r.session.distance,
                "message_count": r.session.message_count,
                "first_message": r.session.first_message,
            }
            for i, r in enumerate(results[:limit])
        ],
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


def format_session(session: Session) -> str:
    """Session header followed by its conversation."""
    header = [
        f"Session: {session.id}",
        f"Directory: {session.directory}",
        f"Date: {format_timestamp(session.timestamp)}",
        f"Messages: {session.message_count}",
        f"File: {session.file_path}",
    ]
    parts = ["\n".join(header)]
    for entry in session.conversation:
        prefix = "❯" if entry.kind is EntryKind.USER else "●"
        parts.append(_indent_message(prefix, session.entry_text(entry)))
    return "\n\n".join(parts)
