"""Tokenization and keyword scoring shared by the retrieval engines.

Two scorers live here:

- :func:`keyword_match_score` -- the keyword half of the vector store's
  hybrid search.  A smoothed term-frequency heuristic: for every query
  term, count the document tokens that contain it (or that it contains)
  and accumulate ``log(1 + count)``; the total is divided by the number of
  query terms.  There is no corpus-wide document-frequency factor, which
  is fine for a small curated documentation set.
- :func:`keyword_relevance` -- the keyword-only engine's score over a
  document's curated keyword list (exact = 10, containment = 5,
  singular/plural = 3), normalised by ``sqrt(len(document_keywords))``.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, Sequence

_NON_WORD = re.compile(r"[^\w\s]")
_WORD = re.compile(r"\b\w+\b")

# Tokens of this length or shorter carry no retrieval signal ("a", "to", "id").
MIN_TOKEN_LENGTH = 3

EXACT_MATCH_POINTS = 10.0
PARTIAL_MATCH_POINTS = 5.0
STEM_MATCH_POINTS = 3.0

# SQL noise words that appear in nearly every query and document.
STOP_WORDS = frozenset(
    {
        "select", "from", "where", "and", "or", "not", "in", "is", "as",
        "on", "the", "a", "an", "to", "for", "of", "with", "by", "at",
        "be", "this", "that", "it", "are", "was", "were", "been", "have",
        "has", "had", "do", "does", "did", "will", "would", "should", "could",
        "table", "column", "row", "database", "query", "sql",
    }
)


def tokenize(text: str) -> list[str]:
    """Lower-case *text*, replace punctuation with spaces and drop short tokens."""
    cleaned = _NON_WORD.sub(" ", text.lower())
    return [token for token in cleaned.split() if len(token) >= MIN_TOKEN_LENGTH]


def keyword_match_score(query_terms: Sequence[str], document_terms: Sequence[str]) -> float:
    """Score how well *document_terms* cover *query_terms*.

    Returns ``0.0`` when *query_terms* is empty.
    """
    if not query_terms:
        return 0.0

    total = 0.0
    for term in query_terms:
        frequency = sum(1 for token in document_terms if term in token or token in term)
        if frequency > 0:
            total += math.log1p(frequency)
    return total / len(query_terms)


def extract_keywords(query: str) -> list[str]:
    """Extract unique, order-preserving keywords from a natural-language query.

    Stop words and tokens shorter than :data:`MIN_TOKEN_LENGTH` are removed.
    """
    words = _WORD.findall(query.lower())
    keywords = [w for w in words if len(w) >= MIN_TOKEN_LENGTH and w not in STOP_WORDS]
    return list(dict.fromkeys(keywords))


def _stem(word: str) -> str:
    return word[:-1] if word.endswith("s") else word


def keyword_relevance(document_keywords: Sequence[str], query_keywords: Iterable[str]) -> float:
    """Score a document's keyword list against extracted query keywords.

    Each (query keyword, document keyword) pair contributes the best of an
    exact match, a substring containment in either direction, or a
    trailing-"s" stem match.  The sum is divided by the square root of the
    document keyword count so tightly-scoped documents outrank documents
    with large, diffuse keyword lists.
    """
    normalized = [kw.lower() for kw in document_keywords if kw]
    if not normalized:
        return 0.0

    score = 0.0
    for query_kw in query_keywords:
        for doc_kw in normalized:
            if query_kw == doc_kw:
                score += EXACT_MATCH_POINTS
            elif query_kw in doc_kw or doc_kw in query_kw:
                score += PARTIAL_MATCH_POINTS
            elif _stem(query_kw) == _stem(doc_kw):
                score += STEM_MATCH_POINTS
    return score / math.sqrt(len(normalized))
