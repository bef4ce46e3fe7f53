"""Tests for session store discovery and corpus scanning."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from conftest import assistant_record, user_record

from claude_session_search import scanner
from claude_session_search.config import SearchConfig
from claude_session_search.scanner import Corpus, discover_session_files, scan, scan_async
from claude_session_search.sessions import Session


def _make_session(session_id: str, distance: int = 0) -> Session:
    session = Session(
        id=session_id,
        directory="/work",
        file_path=Path(f"/store/-work/{session_id}.jsonl"),
        first_message="hello there",
        entries=(),
    )
    session.distance = distance
    return session


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class TestDiscoverSessionFiles:
    """Tests for discover_session_files."""

    def test_lists_project_sessions(self, projects_dir: Path, write_session) -> None:
        write_session("-b", "s2", user_record("second one"))
        write_session("-a", "s1", user_record("first one"))
        found = discover_session_files(projects_dir)
        assert [(p.name, project) for p, project in found] == [
            ("s1.jsonl", "-a"),
            ("s2.jsonl", "-b"),
        ]

    def test_ignores_other_files(self, projects_dir: Path, write_session) -> None:
        write_session("-a", "s1", user_record("first one"))
        (projects_dir / "-a" / "notes.txt").write_text("x")
        (projects_dir / "stray.jsonl").write_text("{}")
        assert [p.name for p, _ in discover_session_files(projects_dir)] == ["s1.jsonl"]

    def test_ignores_nested_directories(self, projects_dir: Path, write_session) -> None:
        write_session("-a", "s1", user_record("first one"))
        nested = projects_dir / "-a" / "s1" / "subagents"
        nested.mkdir(parents=True)
        (nested / "agent-1.jsonl").write_text("{}")
        assert [p.name for p, _ in discover_session_files(projects_dir)] == ["s1.jsonl"]

    def test_empty_root(self, projects_dir: Path) -> None:
        assert discover_session_files(projects_dir) == []


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class TestScan:
    """Tests for scan and scan_async."""

    def test_missing_root_is_empty(self, tmp_path: Path) -> None:
        corpus = scan(tmp_path / "does-not-exist", "/home/me")
        assert isinstance(corpus, Corpus)
        assert len(corpus) == 0
        assert corpus.current_dir == "/home/me"

    def test_root_is_file(self, tmp_path: Path) -> None:
        path = tmp_path / "projects"
        path.write_text("")
        assert len(scan(path, "/home/me")) == 0

    def test_loads_sessions(self, projects_dir: Path, write_session) -> None:
        write_session(
            "-home-me-app",
            "s1",
            user_record("fix the login bug", cwd="/home/me/app"),
            assistant_record([{"type": "text", "text": "Done."}]),
        )
        corpus = scan(projects_dir, "/home/me/app")
        assert len(corpus) == 1
        session = corpus[0]
        assert session.id == "s1"
        assert session.distance == 0
        assert session.message_count == 2

    def test_rejected_sessions_excluded(self, projects_dir: Path, write_session) -> None:
        write_session("-a", "warm", user_record("Warmup"))
        write_session("-a", "real", user_record("refactor the parser"))
        corpus = scan(projects_dir, "/")
        assert [s.id for s in corpus] == ["real"]

    def test_order_by_distance_then_recency(self, projects_dir: Path, write_session) -> None:
        write_session(
            "-x",
            "far",
            user_record("far away work", cwd="/other/place/deep", timestamp="2026-03-01T00:00:00Z"),
        )
        write_session(
            "-x",
            "near-old",
            user_record("old nearby work", cwd="/home/me/app", timestamp="2026-01-01T00:00:00Z"),
        )
        write_session(
            "-x",
            "near-new",
            user_record("new nearby work", cwd="/home/me/app", timestamp="2026-02-01T00:00:00Z"),
        )
        write_session(
            "-x",
            "parent",
            user_record("parent dir work", cwd="/home/me", timestamp="2026-04-01T00:00:00Z"),
        )
        corpus = scan(projects_dir, "/home/me/app")
        assert [s.id for s in corpus] == ["near-new", "near-old", "parent", "far"]
        assert [s.distance for s in corpus] == [0, 0, 1, 6]

    def test_unknown_timestamp_sorts_last_among_equals(
        self, projects_dir: Path, write_session
    ) -> None:
        write_session("-x", "undated", user_record("no timestamp", cwd="/w", timestamp=None))
        write_session("-x", "dated", user_record("with timestamp", cwd="/w"))
        assert [s.id for s in scan(projects_dir, "/w")] == ["dated", "undated"]

    def test_invalid_utf8_skipped(
        self, projects_dir: Path, write_session, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_session("-a", "good", user_record("this one is fine"))
        bad = projects_dir / "-a" / "bad.jsonl"
        bad.write_bytes(b"\xff\xfe\x00garbage\n")
        with caplog.at_level(logging.WARNING, logger="claude_session_search.scanner"):
            corpus = scan(projects_dir, "/")
        assert [s.id for s in corpus] == ["good"]
        assert "bad.jsonl" in caplog.text

    def test_deeply_nested_line_does_not_abort_scan(
        self, projects_dir: Path, write_session
    ) -> None:
        write_session("-w", "good", user_record("this one is fine", cwd="/w"))
        write_session("-w", "bad", "[" * 100000, user_record("nested junk above", cwd="/w"))
        corpus = scan(projects_dir, "/w")
        assert sorted(s.id for s in corpus) == ["bad", "good"]

    def test_unexpected_load_error_skips_file(
        self,
        projects_dir: Path,
        write_session,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        write_session("-w", "good", user_record("this one is fine"))
        write_session("-w", "broken", user_record("this one explodes"))
        real_load = scanner.load_session

        def flaky_load(file_path: Path, **kwargs):
            if file_path.stem == "broken":
                raise RuntimeError("boom")
            return real_load(file_path, **kwargs)

        monkeypatch.setattr(scanner, "load_session", flaky_load)
        with caplog.at_level(logging.WARNING, logger="claude_session_search.scanner"):
            corpus = scan(projects_dir, "/")
        assert [s.id for s in corpus] == ["good"]
        assert "broken.jsonl" in caplog.text

    def test_config_flags_applied(self, projects_dir: Path, write_session) -> None:
        write_session(
            "-a",
            "s1",
            user_record("plan the release"),
            assistant_record([{"type": "thinking", "thinking": "checklist first"}]),
        )
        config = SearchConfig(include_thinking=False, display_thinking=True)
        session = scan(projects_dir, "/", config)[0]
        assert "checklist" not in session.search_text()
        assert session.message_count == 2

    def test_max_workers_one(self, projects_dir: Path, write_session) -> None:
        for i in range(5):
            write_session("-a", f"s{i}", user_record(f"message number {i}"))
        corpus = scan(projects_dir, "/", SearchConfig(max_workers=1))
        assert len(corpus) == 5

    @pytest.mark.asyncio
    async def test_scan_async(self, projects_dir: Path, write_session) -> None:
        write_session("-a", "s1", user_record("async scanning works", cwd="/a"))
        write_session("-b", "s2", user_record("second project here", cwd="/b/c"))
        corpus = await scan_async(projects_dir, "/a")
        assert [s.id for s in corpus] == ["s1", "s2"]
        assert corpus.max_distance == 3

    @pytest.mark.asyncio
    async def test_scan_async_missing_root(self, tmp_path: Path) -> None:
        corpus = await scan_async(tmp_path / "missing", "/")
        assert len(corpus) == 0


# ---------------------------------------------------------------------------
# Corpus
# ---------------------------------------------------------------------------


class TestCorpus:
    """Tests for Corpus lookups."""

    @pytest.fixture
    def corpus(self) -> Corpus:
        return Corpus(
            sessions=(
                _make_session("0b7c1f2e-aaaa", 0),
                _make_session("0b7c9999-bbbb", 2),
                _make_session("d41d8cd9-cccc", 5),
            ),
            current_dir="/work",
        )

    def test_len_iter_getitem(self, corpus: Corpus) -> None:
        assert len(corpus) == 3
        assert [s.id for s in corpus][0] == "0b7c1f2e-aaaa"
        assert corpus[2].id == "d41d8cd9-cccc"

    def test_max_distance(self, corpus: Corpus) -> None:
        assert corpus.max_distance == 5
        assert Corpus().max_distance == 0

    def test_find_exact(self, corpus: Corpus) -> None:
        found = corpus.find("0b7c9999-bbbb")
        assert found is not None
        assert found.id == "0b7c9999-bbbb"

    def test_find_unique_prefix(self, corpus: Corpus) -> None:
        found = corpus.find("d41d")
        assert found is not None
        assert found.id == "d41d8cd9-cccc"

    def test_find_ambiguous_prefix(self, corpus: Corpus) -> None:
        assert corpus.find("0b7c") is None

    def test_find_missing(self, corpus: Corpus) -> None:
        assert corpus.find("ffff") is None
        assert corpus.find("") is None

    def test_search_index_built_once(self, corpus: Corpus) -> None:
        assert corpus.search_index is corpus.search_index
        assert len(corpus.search_index) == 3
