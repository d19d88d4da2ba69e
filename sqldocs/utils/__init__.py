"""Utility modules for sqldocs.

- **errors** -- Exception hierarchy rooted at SqlDocsError; store invariant
  violations, provider failures and corpus problems each get a subclass.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **result** -- ``Ok`` / ``Err`` values and :func:`attempt`, used for the
  semantic-to-keyword fallback.
- **similarity** -- numpy cosine similarity, for one pair or a whole
  embedding matrix against a query.
- **text** -- tokenisation, stop words and the two keyword scoring functions.
"""

from sqldocs.utils.errors import (
    ConfigurationError,
    CorpusLoadError,
    DimensionMismatchError,
    EmbeddingError,
    ProviderUnavailableError,
    RateLimitError,
    SnapshotImportError,
    SqlDocsError,
    VectorStoreError,
)
from sqldocs.utils.logging import configure_logging
from sqldocs.utils.result import Err, Ok, Result, attempt
from sqldocs.utils.similarity import cosine_similarities, cosine_similarity
from sqldocs.utils.text import extract_keywords, keyword_match_score, keyword_relevance, tokenize

__all__ = [
    "ConfigurationError",
    "CorpusLoadError",
    "DimensionMismatchError",
    "EmbeddingError",
    "Err",
    "Ok",
    "ProviderUnavailableError",
    "RateLimitError",
    "Result",
    "SnapshotImportError",
    "SqlDocsError",
    "VectorStoreError",
    "attempt",
    "configure_logging",
    "cosine_similarities",
    "cosine_similarity",
    "extract_keywords",
    "keyword_match_score",
    "keyword_relevance",
    "tokenize",
]
