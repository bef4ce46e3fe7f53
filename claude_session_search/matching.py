"""Approximate text matching for session search.

This module provides:
- Query: A normalized query string and its terms
- substring_distance: Fewest edits turning a term into part of a word
- FuzzyIndex: Per-document weighted fields scored against a query

Scores run from 0.0 (perfect) to 1.0 (worst). A field matches only when its
score is within the threshold; a document's score combines the fields that
matched, each raised to its share of the total field weight, so that a
heavier field pulls the score further towards 0.
"""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

_WORD_RE = re.compile(r"\w+")

# Per-field scores for exact matches. A field equal to the query scores 0.0,
# so it always outranks a field that merely contains it.
PHRASE_SCORE = 0.001
ALL_TERMS_SCORE = 0.01

_EPSILON = sys.float_info.epsilon


def normalize(text: str) -> str:
    """Casefold and collapse whitespace."""
    return " ".join(text.casefold().split())


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Query:
    """A normalized query and its distinct terms, in order."""

    text: str
    terms: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> Query:
        text = normalize(raw)
        terms = tuple(dict.fromkeys(text.split()))
        return cls(text=text, terms=terms)

    def __bool__(self) -> bool:
        return bool(self.text)


# ---------------------------------------------------------------------------
# Edit distance
# ---------------------------------------------------------------------------


def max_errors(term: str, threshold: float) -> int:
    """Edits a term may need and still count as a match."""
    return int(len(term) * threshold)


def substring_distance(pattern: str, text: str) -> int:
    """Fewest edits turning ``pattern`` into some substring of ``text``.

    Insertions, deletions, substitutions and adjacent transpositions each
    cost one edit (optimal string alignment). The match may start and end
    anywhere in ``text``.
    """
    m = len(pattern)
    if m == 0:
        return 0
    before_prev: list[int] | None = None
    prev = list(range(m + 1))
    best = prev[m]
    prev_char = ""
    for ch in text:
        cur = [0] * (m + 1)
        for i in range(1, m + 1):
            cost = 0 if pattern[i - 1] == ch else 1
            value = min(prev[i - 1] + cost, prev[i] + 1, cur[i - 1] + 1)
            if (
                before_prev is not None
                and i > 1
                and pattern[i - 1] == prev_char
                and pattern[i - 2] == ch
            ):
                value = min(value, before_prev[i - 2] + 1)
            cur[i] = value
        best = min(best, cur[m])
        before_prev, prev, prev_char = prev, cur, ch
    return best


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SearchField:
    """One weighted, normalized text field of a document."""

    name: str
    text: str
    weight: float
    words: frozenset[str]

    @classmethod
    def create(cls, name: str, raw: str | None, weight: float) -> SearchField:
        text = normalize(raw or "")
        return cls(name=name, text=text, weight=weight, words=frozenset(_WORD_RE.findall(text)))


class FuzzyIndex:
    """Scores queries against a fixed list of documents.

    Each document is a sequence of SearchFields. Term lookups against the
    shared vocabulary are memoized, so repeating or extending a query (as
    when it is typed one character at a time) only pays for new terms.
    """

    def __init__(
        self,
        documents: Sequence[Sequence[SearchField]],
        threshold: float = 0.4,
    ) -> None:
        self.documents = [tuple(fields) for fields in documents]
        self.threshold = threshold
        self._vocabulary: dict[str, frozenset[str]] = {}
        for fields in self.documents:
            for f in fields:
                for word in f.words:
                    if word not in self._vocabulary:
                        self._vocabulary[word] = frozenset(word)
        self._fuzzy_words = lru_cache(maxsize=1024)(self._compute_fuzzy_words)

    def __len__(self) -> int:
        return len(self.documents)

    def _compute_fuzzy_words(self, term: str) -> dict[str, int]:
        """Vocabulary words containing an approximate occurrence of ``term``."""
        limit = max_errors(term, self.threshold)
        if limit == 0:
            return {}
        term_chars = frozenset(term)
        min_length = len(term) - limit
        matches: dict[str, int] = {}
        for word, word_chars in self._vocabulary.items():
            if len(word) < min_length:
                continue
            # Each edit removes at most one distinct character of the term
            if len(term_chars - word_chars) > limit:
                continue
            errors = substring_distance(term, word)
            if errors <= limit:
                matches[word] = errors
        return matches

    def term_score(self, term: str, field: SearchField) -> float:
        """0.0 if the term occurs verbatim, else its best error ratio (1.0 if none)."""
        if term in field.text:
            return 0.0
        best: int | None = None
        for word, errors in self._fuzzy_words(term).items():
            if word in field.words and (best is None or errors < best):
                best = errors
        if best is None:
            return 1.0
        return best / len(term)

    def field_score(self, query: Query, field: SearchField) -> float | None:
        """Score one field, or None if it does not match."""
        if not field.text:
            return None
        if field.text == query.text:
            return 0.0
        if query.text in field.text:
            return PHRASE_SCORE
        scores = [self.term_score(term, field) for term in query.terms]
        score = max(ALL_TERMS_SCORE, sum(scores) / len(scores))
        if score > self.threshold:
            return None
        return score

    def score(self, query: Query, doc: int) -> float | None:
        """Combined score of document ``doc``, or None if no field matches."""
        fields = self.documents[doc]
        total_weight = sum(f.weight for f in fields)
        if not query or total_weight <= 0:
            return None

        result = 1.0
        matched = False
        for f in fields:
            field_score = self.field_score(query, f)
            if field_score is None:
                continue
            matched = True
            result *= max(field_score, _EPSILON) ** (f.weight / total_weight)
        return result if matched else None

    def search(self, query: Query) -> list[tuple[int, float]]:
        """(document index, score) for every matching document, in index order."""
        results: list[tuple[int, float]] = []
        for doc in range(len(self.documents)):
            value = self.score(query, doc)
            if value is not None:
                results.append((doc, value))
        return results
