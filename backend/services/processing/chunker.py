"""
Text chunking service for cutting long documents into request-sized pieces.

Every chunk is a slice of the source text (chunk.text == text[start:end]),
so positions are exact and re-reading the slices in order covers the whole
document apart from whitespace between chunks and configured overlaps.
"""
import re
from enum import Enum
from typing import List, Optional, Tuple

from core.config import ChunkStrategy
from models.text_models import Chunk

# Sentence-like unit terminator. Latin punctuation must be followed by
# whitespace or end of text so "3.14" does not end a unit.
_UNIT_END = re.compile(
    r"(?:[.!?]+[\"'”’)\]]*(?=\s|$)|[。！？]+[\"'”’)\]]*)"
)

Span = Tuple[int, int]


class SplitStrategy(str, Enum):
    BOUNDARY = "boundary"
    FORCE = "force"
    OVERLAP = "overlap"


class TextChunker:
    """Stateless chunker with configurable size policy."""

    def __init__(self, max_chunk_size: int, min_chunk_size: int = 0, overlap_size: int = 0):
        """Initialize chunker with parameters."""
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        self.max_chunk_size = max_chunk_size
        self.min_chunk_size = max(0, min(min_chunk_size, max_chunk_size))
        self.overlap_size = max(0, overlap_size)

    @classmethod
    def from_strategy(cls, strategy: ChunkStrategy) -> "TextChunker":
        return cls(strategy.max_chunk_size, strategy.min_chunk_size, strategy.overlap_size)

    def chunk(self, text: str, strategy: SplitStrategy = SplitStrategy.BOUNDARY) -> List[Chunk]:
        """
        Split text into ordered chunks.

        Algorithm:
            boundary: accumulate whole sentence-like units up to max size,
                flushing only chunks of at least min size
            force: cut at max size, backing off to the last whitespace
            overlap: boundary, seeding each new chunk with the tail of the
                previous one (trimmed to a sentence or word start)
        """
        strategy = SplitStrategy(strategy)
        if not text or not text.strip():
            return []

        if strategy == SplitStrategy.FORCE:
            spans = self._force_spans(text, 0, len(text))
        else:
            overlap = self.overlap_size if strategy == SplitStrategy.OVERLAP else 0
            spans = self._accumulate(text, overlap)

        return [Chunk(text=text[s:e], start_index=s, end_index=e) for s, e in spans]

    def boundary_chunks(self, text: str) -> List[Chunk]:
        return self.chunk(text, SplitStrategy.BOUNDARY)

    def force_chunks(self, text: str) -> List[Chunk]:
        return self.chunk(text, SplitStrategy.FORCE)

    def overlap_chunks(self, text: str) -> List[Chunk]:
        return self.chunk(text, SplitStrategy.OVERLAP)

    def _accumulate(self, text: str, overlap: int) -> List[Span]:
        spans: List[Span] = []
        current: Optional[Span] = None

        for unit_start, unit_end in _unit_spans(text):
            if current is None:
                current = (unit_start, unit_end)
            elif unit_end - current[0] <= self.max_chunk_size:
                current = (current[0], unit_end)
            elif current[1] - current[0] >= self.min_chunk_size:
                spans.append(current)
                seed = _overlap_start(text, current, overlap) if overlap else None
                if seed is not None and unit_end - seed <= self.max_chunk_size:
                    current = (seed, unit_end)
                else:
                    current = (unit_start, unit_end)
            else:
                # Too short to flush on its own
                current = (current[0], unit_end)

            if current[1] - current[0] > self.max_chunk_size:
                pieces = self._force_spans(text, current[0], current[1])
                spans.extend(pieces[:-1])
                current = pieces[-1]

        if current is not None:
            # The final remainder may be shorter than min_chunk_size
            spans.append(current)

        return spans

    def _force_spans(self, text: str, start: int, end: int) -> List[Span]:
        spans: List[Span] = []
        pos = start

        while end - pos > self.max_chunk_size:
            limit = pos + self.max_chunk_size
            cut = _last_whitespace(text, pos + 1, limit + 1)
            if cut is None or cut - pos < self.min_chunk_size:
                cut = limit

            piece = _strip_span(text, pos, cut)
            if piece is not None:
                spans.append(piece)

            pos = cut
            while pos < end and text[pos].isspace():
                pos += 1

        piece = _strip_span(text, pos, end)
        if piece is not None:
            spans.append(piece)
        return spans


def split_text(
    text: str,
    max_length: int,
    min_length: int = 0,
    overlap_size: int = 0,
    strategy: SplitStrategy = SplitStrategy.BOUNDARY,
) -> List[Chunk]:
    """Split text with a throwaway TextChunker."""
    return TextChunker(max_length, min_length, overlap_size).chunk(text, strategy)


def _unit_spans(text: str) -> List[Span]:
    """Whitespace-trimmed spans of sentence-like units."""
    raw: List[Span] = []
    start = 0
    for match in _UNIT_END.finditer(text):
        raw.append((start, match.end()))
        start = match.end()
    if start < len(text):
        raw.append((start, len(text)))

    spans = []
    for s, e in raw:
        span = _strip_span(text, s, e)
        if span is not None:
            spans.append(span)
    return spans


def _strip_span(text: str, start: int, end: int) -> Optional[Span]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return (start, end) if start < end else None


def _last_whitespace(text: str, lo: int, hi: int) -> Optional[int]:
    cut = max(text.rfind(" ", lo, hi), text.rfind("\n", lo, hi), text.rfind("\t", lo, hi))
    return cut if cut >= lo else None


def _overlap_start(text: str, span: Span, overlap: int) -> Optional[int]:
    """Start of the carried-over tail of span, or None if there is none."""
    start, end = span
    window = max(start, end - overlap)

    # Prefer the start of the first full sentence inside the window
    match = _UNIT_END.search(text, window, end)
    seed = match.end() if match else None
    if seed is None or seed >= end:
        # Fall back to the first word start
        space = text.find(" ", window, end)
        seed = space if space != -1 else None
    if seed is None:
        return None

    while seed < end and text[seed].isspace():
        seed += 1
    if seed <= start or seed >= end:
        return None
    return seed
