"""Document chunking with boundary-preserving strategies.

Splits long documentation snippets into :class:`~sqldocs.models.chunking.TextChunk`
objects sized for embedding models.  Sizes are measured in characters.

Four strategies are available and chosen by configuration, never by
inspecting the text:

- ``paragraph`` -- blank-line separated paragraphs packed greedily.
- ``sentence`` -- sentences (abbreviation-aware) packed greedily.
- ``fixed`` -- overlapping fixed-width windows whose edges are moved back
  to whitespace so tokens are not cut.
- ``markdown`` -- one chunk per ``#`` section, titled ``"<title> - <header>"``;
  oversized sections are packed by paragraph.

Every strategy works on ``(start, end)`` spans of the original text, so a
chunk's text is always an exact (stripped) slice and ``start_char`` /
``end_char`` point back into the source.

Two rules hold for every strategy:

1. A unit longer than ``max_chunk_size`` is wrapped at whitespace; it is
   cut mid-token only when it contains no whitespace at all.
2. A piece shorter than ``min_chunk_size`` is never emitted on its own and
   never dropped: it is merged into the previous piece (or the next one
   when it is first).
"""

from __future__ import annotations

import re

import structlog

from sqldocs.models.chunking import ChunkingOptions, ChunkingStrategy, TextChunk

logger = structlog.get_logger(logger_name=__name__)

Span = tuple[int, int]

_PARAGRAPH_BREAK = re.compile(r"\n[ \t]*\n\s*")
_SENTENCE_END = re.compile(r"[.!?]+(?=\s|$)")
_MARKDOWN_HEADER = re.compile(r"^#{1,6}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)

# Lower-cased abbreviations whose trailing period does not end a sentence.
_ABBREVIATIONS = frozenset(
    {
        "e.g",
        "i.e",
        "etc",
        "vs",
        "approx",
        "incl",
        "dr",
        "mr",
        "mrs",
        "ms",
        "fig",
        "cf",
    }
)


class DocumentChunker:
    """Splits text into bounded, ordered chunks.

    Parameters
    ----------
    options:
        Default bounds and strategy, used when :meth:`chunk` is called
        without explicit options.
    """

    def __init__(self, options: ChunkingOptions | None = None) -> None:
        self._options = options or ChunkingOptions()

    @property
    def options(self) -> ChunkingOptions:
        return self._options

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(
        self,
        text: str,
        title: str,
        options: ChunkingOptions | None = None,
    ) -> list[TextChunk]:
        """Split *text* into ordered :class:`TextChunk` objects.

        Returns an empty list for empty or whitespace-only text.  A text
        shorter than ``min_chunk_size`` comes back as a single chunk.
        """
        opts = options or self._options
        if not text or not text.strip():
            return []

        if opts.strategy is ChunkingStrategy.MARKDOWN:
            pieces = self._markdown_pieces(text, title, opts)
        else:
            spans = self._pack_strategy(text, (0, len(text)), opts)
            pieces = [(span, title, None) for span in spans]

        chunks = self._build_chunks(text, pieces)
        logger.debug(
            "chunking_complete",
            title=title,
            strategy=opts.strategy.value,
            num_chunks=len(chunks),
            avg_chars=sum(len(c.text) for c in chunks) // len(chunks) if chunks else 0,
        )
        return chunks

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _pack_strategy(self, text: str, bounds: Span, opts: ChunkingOptions) -> list[Span]:
        if opts.strategy is ChunkingStrategy.FIXED:
            spans = self._window(text, bounds, opts.max_chunk_size, opts.overlap)
        elif opts.strategy is ChunkingStrategy.SENTENCE:
            spans = self._pack(text, self._sentence_spans(text, bounds), opts.max_chunk_size)
        else:
            spans = self._pack(text, self._paragraph_spans(text, bounds), opts.max_chunk_size)
        return self._merge_small(text, spans, opts.min_chunk_size)

    def _markdown_pieces(
        self, text: str, title: str, opts: ChunkingOptions
    ) -> list[tuple[Span, str, str | None]]:
        """Split at headers; pack oversized sections by paragraph."""
        headers = list(_MARKDOWN_HEADER.finditer(text))
        sections: list[tuple[Span, str | None]] = []
        if not headers or headers[0].start() > 0:
            sections.append(((0, headers[0].start() if headers else len(text)), None))
        for i, match in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
            sections.append(((match.start(), end), match.group(1).strip()))

        paragraph_opts = opts.model_copy(update={"strategy": ChunkingStrategy.PARAGRAPH})
        pieces: list[tuple[Span, str, str | None]] = []
        for bounds, header in sections:
            stripped = _strip_span(text, bounds)
            if stripped is None:
                continue
            section_title = f"{title} - {header}" if header else title
            if stripped[1] - stripped[0] > opts.max_chunk_size:
                spans = self._pack_strategy(text, stripped, paragraph_opts)
            else:
                spans = [stripped]
            pieces.extend((span, section_title, header) for span in spans)

        # Small sections are folded into their neighbour, keeping the
        # neighbour's title.
        merged: list[tuple[Span, str, str | None]] = []
        for span, piece_title, header in pieces:
            if merged and span[1] - span[0] < opts.min_chunk_size:
                (prev_start, _), prev_title, prev_header = merged[-1]
                merged[-1] = ((prev_start, span[1]), prev_title, prev_header)
            else:
                merged.append((span, piece_title, header))
        if len(merged) > 1 and merged[0][0][1] - merged[0][0][0] < opts.min_chunk_size:
            (first_start, _), _, _ = merged.pop(0)
            (_, next_end), next_title, next_header = merged[0]
            merged[0] = ((first_start, next_end), next_title, next_header)
        return merged

    # ------------------------------------------------------------------
    # Unit splitting
    # ------------------------------------------------------------------

    @staticmethod
    def _paragraph_spans(text: str, bounds: Span) -> list[Span]:
        start, end = bounds
        spans: list[Span] = []
        cursor = start
        for match in _PARAGRAPH_BREAK.finditer(text, start, end):
            spans.append((cursor, match.start()))
            cursor = match.end()
        spans.append((cursor, end))
        return [s for s in (_strip_span(text, span) for span in spans) if s is not None]

    @staticmethod
    def _sentence_spans(text: str, bounds: Span) -> list[Span]:
        start, end = bounds
        spans: list[Span] = []
        cursor = start
        for match in _SENTENCE_END.finditer(text, start, end):
            if _ends_with_abbreviation(text, cursor, match.start()):
                continue
            spans.append((cursor, match.end()))
            cursor = match.end()
        spans.append((cursor, end))
        return [s for s in (_strip_span(text, span) for span in spans) if s is not None]

    # ------------------------------------------------------------------
    # Packing
    # ------------------------------------------------------------------

    def _pack(self, text: str, units: list[Span], max_size: int) -> list[Span]:
        """Greedily pack consecutive *units* into spans of at most *max_size*."""
        packed: list[Span] = []
        current: Span | None = None
        for unit in units:
            if unit[1] - unit[0] > max_size:
                if current is not None:
                    packed.append(current)
                    current = None
                packed.extend(self._window(text, unit, max_size, overlap=0))
                continue
            if current is not None and unit[1] - current[0] > max_size:
                packed.append(current)
                current = None
            current = unit if current is None else (current[0], unit[1])
        if current is not None:
            packed.append(current)
        return packed

    @staticmethod
    def _window(text: str, bounds: Span, size: int, overlap: int) -> list[Span]:
        """Cut *bounds* into windows of at most *size* chars on whitespace.

        Consecutive windows share up to *overlap* characters, with the
        shared region starting on a token boundary.  Undersized tails are
        left for :meth:`_merge_small`.
        """
        start, stop = bounds
        spans: list[Span] = []
        while start < stop:
            while start < stop and text[start].isspace():
                start += 1
            if start >= stop:
                break
            end = min(start + size, stop)
            if end < stop and not text[end].isspace():
                cut = _last_whitespace(text, start + 1, end)
                if cut is not None:
                    end = cut
            spans.append((start, end))
            if end >= stop:
                break
            next_start = max(end - overlap, start + 1)
            if next_start < end and not text[next_start - 1].isspace():
                # Move forward to the next token boundary inside the window.
                boundary = _next_whitespace(text, next_start, end)
                next_start = boundary if boundary is not None else end
            start = next_start
        return [s for s in (_strip_span(text, span) for span in spans) if s is not None]

    @staticmethod
    def _merge_small(text: str, spans: list[Span], min_size: int) -> list[Span]:
        """Fold spans shorter than *min_size* into a neighbour."""
        merged: list[Span] = []
        for span in spans:
            if merged and span[1] - span[0] < min_size:
                merged[-1] = (merged[-1][0], max(merged[-1][1], span[1]))
            else:
                merged.append(span)
        if len(merged) > 1 and merged[0][1] - merged[0][0] < min_size:
            first = merged.pop(0)
            merged[0] = (first[0], merged[0][1])
        return merged

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_chunks(text: str, pieces: list[tuple[Span, str, str | None]]) -> list[TextChunk]:
        total = len(pieces)
        return [
            TextChunk(
                text=text[start:end].strip(),
                title=piece_title,
                chunk_index=index,
                total_chunks=total,
                start_char=start,
                end_char=end,
                header=header,
            )
            for index, ((start, end), piece_title, header) in enumerate(pieces)
        ]


def _strip_span(text: str, span: Span) -> Span | None:
    """Shrink *span* to exclude surrounding whitespace; ``None`` if blank."""
    start, end = span
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return (start, end) if start < end else None


def _last_whitespace(text: str, lo: int, hi: int) -> int | None:
    for i in range(hi - 1, lo - 1, -1):
        if text[i].isspace():
            return i
    return None


def _next_whitespace(text: str, lo: int, hi: int) -> int | None:
    for i in range(lo, hi):
        if text[i].isspace():
            return i
    return None


def _ends_with_abbreviation(text: str, sentence_start: int, period_index: int) -> bool:
    if text[period_index] != ".":
        return False
    words = text[sentence_start:period_index].split()
    if not words:
        return False
    return words[-1].lower().strip("(\"'") in _ABBREVIATIONS
