"""Claude Session Search: rank local Claude Code sessions by text, place and time."""

from claude_session_search.config import ConfigManager, RankingWeights, SearchConfig
from claude_session_search.parser import (
    BlockKind,
    Blocks,
    Content,
    ContentBlock,
    Entry,
    EntryKind,
    ParseFailure,
    Payload,
    PlainText,
    extract_text,
    parse_entry,
)
from claude_session_search.proximity import path_distance
from claude_session_search.ranking import RankedResult, rank, rank_with_scores
from claude_session_search.scanner import Corpus, scan, scan_async
from claude_session_search.sessions import (
    Rejected,
    RejectReason,
    Session,
    build_session,
    load_session,
)

__version__ = "0.1.0"

__all__ = [
    # Config module
    "ConfigManager",
    "RankingWeights",
    "SearchConfig",
    # Parser module
    "BlockKind",
    "Blocks",
    "Content",
    "ContentBlock",
    "Entry",
    "EntryKind",
    "ParseFailure",
    "Payload",
    "PlainText",
    "extract_text",
    "parse_entry",
    # Sessions module
    "Rejected",
    "RejectReason",
    "Session",
    "build_session",
    "load_session",
    # Scanner module
    "Corpus",
    "scan",
    "scan_async",
    # Proximity module
    "path_distance",
    # Ranking module
    "RankedResult",
    "rank",
    "rank_with_scores",
]
