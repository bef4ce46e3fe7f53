"""Shared test fixtures for Claude Session Search."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# JSONL record builders
# ---------------------------------------------------------------------------


def user_record(
    content: object,
    *,
    timestamp: str | None = "2026-01-10T12:00:00.000Z",
    cwd: str | None = None,
    uuid: str = "u-1",
) -> dict:
    record: dict = {
        "type": "user",
        "uuid": uuid,
        "sessionId": "sess-001",
        "message": {"role": "user", "content": content},
    }
    if timestamp is not None:
        record["timestamp"] = timestamp
    if cwd is not None:
        record["cwd"] = cwd
    return record


def assistant_record(content: object, *, uuid: str = "a-1") -> dict:
    return {
        "type": "assistant",
        "uuid": uuid,
        "sessionId": "sess-001",
        "timestamp": "2026-01-10T12:00:05.000Z",
        "message": {"role": "assistant", "content": content},
    }


def to_lines(*records: dict | str) -> list[str]:
    """Serialize records to JSONL lines; strings are passed through verbatim."""
    return [r if isinstance(r, str) else json.dumps(r) for r in records]


@pytest.fixture
def user_text_line() -> dict:
    return user_record("fix the login bug", cwd="/home/me/work/app")


@pytest.fixture
def assistant_blocks_line() -> dict:
    return assistant_record(
        [
            {"type": "thinking", "thinking": "the session cookie expires early"},
            {"type": "text", "text": "Looking at the auth module."},
            {"type": "tool_use", "id": "toolu_001", "name": "Read", "input": {}},
            {"type": "text", "text": "Found it."},
        ]
    )


@pytest.fixture
def summary_line() -> dict:
    return {"type": "summary", "summary": "Login bug", "leafUuid": "a-1"}


# ---------------------------------------------------------------------------
# Session store on disk
# ---------------------------------------------------------------------------


@pytest.fixture
def projects_dir(tmp_path: Path) -> Path:
    root = tmp_path / "projects"
    root.mkdir()
    return root


@pytest.fixture
def write_session(projects_dir: Path) -> Callable[..., Path]:
    """Factory writing ``<projects_dir>/<project>/<session_id>.jsonl``."""

    def _write(project: str, session_id: str, *records: dict | str) -> Path:
        project_dir = projects_dir / project
        project_dir.mkdir(parents=True, exist_ok=True)
        path = project_dir / f"{session_id}.jsonl"
        path.write_text("\n".join(to_lines(*records)) + "\n", encoding="utf-8")
        return path

    return _write
