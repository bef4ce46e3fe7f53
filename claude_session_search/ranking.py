"""Ranking of corpus sessions against a free-text query.

The combined score of a session is

    match_weight * match + distance_weight * distance / max_distance
        + age_weight * age / max_age

where ``match`` is the fuzzy score (0.0 best), and both maxima are taken over
the whole corpus so that a session's proximity and recency terms do not
depend on which other sessions the query happened to match. Lower is better.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .matching import Query
from .scanner import Corpus
from .sessions import Session


@dataclass(frozen=True)
class RankedResult:
    """A session with its combined score (None when listed unranked)."""

    session: Session
    score: float | None = None


def _age_seconds(session: Session, now: datetime) -> float:
    return max(0.0, (now - session.timestamp).total_seconds())


def _ratio(value: float, maximum: float) -> float:
    return value / maximum if maximum > 0 else 0.0


def rank_with_scores(
    corpus: Corpus,
    query: str,
    *,
    now: datetime | None = None,
) -> list[RankedResult]:
    """Rank the corpus against ``query``.

    An empty query returns every session in corpus order, unscored. Otherwise
    only sessions with at least one matching field are returned, best first;
    equal scores keep corpus order.

    Args:
        corpus: The scanned corpus.
        query: Free-text query, possibly partial or misspelled.
        now: Reference time for session age. Defaults to UTC now.

    Returns:
        Ranked results, best first.
    """
    parsed = Query.parse(query)
    if not parsed:
        return [RankedResult(session=s) for s in corpus.sessions]
    if not corpus.sessions:
        return []

    if now is None:
        now = datetime.now(timezone.utc)

    weights = corpus.config.weights
    max_distance = corpus.max_distance
    max_age = max(_age_seconds(s, now) for s in corpus.sessions)

    results: list[RankedResult] = []
    for doc, match in corpus.search_index.search(parsed):
        session = corpus.sessions[doc]
        combined = (
            weights.match * match
            + weights.distance * _ratio(session.distance, max_distance)
            + weights.age * _ratio(_age_seconds(session, now), max_age)
        )
        results.append(RankedResult(session=session, score=combined))

    # list.sort is stable and search() yields corpus order
    results.sort(key=lambda r: r.score)
    return results


def rank(
    corpus: Corpus,
    query: str,
    *,
    now: datetime | None = None,
) -> list[Session]:
    """Sessions matching ``query``, best first (the whole corpus if empty)."""
    return [result.session for result in rank_with_scores(corpus, query, now=now)]
