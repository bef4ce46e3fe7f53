"""Corpus scanning for Claude Code session stores.

This module provides:
- Corpus: Immutable snapshot of every accepted session from one scan
- discover_session_files: Lists ``<root>/<project>/<session-id>.jsonl`` files
- scan / scan_async: Loads all files concurrently and orders the result
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from .config import SearchConfig
from .matching import FuzzyIndex, SearchField
from .proximity import path_distance
from .sessions import SESSION_FILE_SUFFIX, Rejected, Session, load_session

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------------


def sort_key(session: Session) -> tuple[int, float]:
    """Nearest first, then most recent first."""
    return (session.distance, -session.timestamp.timestamp())


@dataclass(frozen=True)
class Corpus:
    """All sessions accepted by one scan, nearest and newest first.

    The corpus is built once per process and passed to the ranking functions
    on every query; nothing in it changes after construction.
    """

    sessions: tuple[Session, ...] = ()
    current_dir: str = ""
    config: SearchConfig = field(default_factory=SearchConfig, compare=False)

    def __len__(self) -> int:
        return len(self.sessions)

    def __iter__(self):
        return iter(self.sessions)

    def __getitem__(self, index: int) -> Session:
        return self.sessions[index]

    @property
    def max_distance(self) -> int:
        return max((s.distance for s in self.sessions), default=0)

    def find(self, session_id: str) -> Session | None:
        """Get a session by ID (or unique ID prefix)."""
        for session in self.sessions:
            if session.id == session_id:
                return session
        matches = [s for s in self.sessions if s.id.startswith(session_id)]
        if session_id and len(matches) == 1:
            return matches[0]
        return None

    @cached_property
    def search_index(self) -> FuzzyIndex:
        """Fuzzy index over each session's text and directories (built on first use)."""
        documents = [
            (
                SearchField.create("content", s.search_text(), self.config.content_weight),
                SearchField.create("directory", s.directory, self.config.directory_weight),
                SearchField.create("cwd", s.cwd, self.config.directory_weight),
            )
            for s in self.sessions
        ]
        return FuzzyIndex(documents, threshold=self.config.match_threshold)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def discover_session_files(root: Path) -> list[tuple[Path, str]]:
    """List session files under ``root``.

    Only immediate project directories are searched, and only files directly
    inside them; nested directories (e.g. subagent logs) are not sessions.

    Returns:
        (file path, encoded project name) pairs in sorted order.
    """
    discovered: list[tuple[Path, str]] = []
    for project_dir in sorted(root.iterdir()):
        if not project_dir.is_dir():
            continue
        try:
            for session_file in sorted(project_dir.glob(f"*{SESSION_FILE_SUFFIX}")):
                if session_file.is_file():
                    discovered.append((session_file, project_dir.name))
        except OSError as e:
            logger.warning("Error scanning %s: %s", project_dir, e)
    return discovered


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


@dataclass
class _ScanStats:
    loaded: int = 0
    rejected: int = 0
    failed: int = 0


def _load(file_path: Path, project: str, config: SearchConfig) -> Session | Rejected | None:
    """Load one file; read failures are logged and reported as None."""
    try:
        return load_session(
            file_path,
            project=project,
            include_thinking=config.include_thinking,
            display_thinking=config.display_thinking,
        )
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read session %s: %s", file_path, e)
        return None
    except Exception as e:
        # One bad file never aborts the scan
        logger.warning("Failed to load session %s: %r", file_path, e)
        return None


async def scan_async(
    root: Path,
    current_dir: str,
    config: SearchConfig | None = None,
) -> Corpus:
    """Scan the session store and build the corpus.

    Files are loaded in worker threads, at most ``config.max_workers`` at a
    time. A missing store yields an empty corpus.

    Args:
        root: Session store (e.g., ~/.claude/projects).
        current_dir: Directory distances are measured from.
        config: Scan and ranking settings. Uses defaults if not provided.

    Returns:
        The Corpus, ordered by (distance asc, timestamp desc).
    """
    config = config or SearchConfig()
    root = Path(root).expanduser()
    current_dir = str(current_dir)

    if not root.is_dir():
        logger.debug("Session store not found: %s", root)
        return Corpus(current_dir=current_dir, config=config)

    start = time.monotonic()
    try:
        files = discover_session_files(root)
    except OSError as e:
        logger.warning("Cannot list session store %s: %s", root, e)
        return Corpus(current_dir=current_dir, config=config)

    semaphore = asyncio.Semaphore(config.max_workers)

    async def load_one(file_path: Path, project: str) -> Session | Rejected | None:
        async with semaphore:
            return await asyncio.to_thread(_load, file_path, project, config)

    results = await asyncio.gather(*(load_one(path, project) for path, project in files))

    stats = _ScanStats()
    sessions: list[Session] = []
    for result in results:
        if result is None:
            stats.failed += 1
        elif isinstance(result, Rejected):
            stats.rejected += 1
            logger.debug("Skipped %s: %s", result.file_path, result.reason.value)
        else:
            stats.loaded += 1
            sessions.append(result)

    for session in sessions:
        session.distance = path_distance(current_dir, session.directory)
    sessions.sort(key=sort_key)

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        "Scanned %s: %d sessions, %d rejected, %d unreadable in %dms",
        root,
        stats.loaded,
        stats.rejected,
        stats.failed,
        elapsed_ms,
    )
    return Corpus(sessions=tuple(sessions), current_dir=current_dir, config=config)


def scan(
    root: Path,
    current_dir: str,
    config: SearchConfig | None = None,
) -> Corpus:
    """Blocking form of scan_async, for callers without an event loop."""
    return asyncio.run(scan_async(root, current_dir, config))
