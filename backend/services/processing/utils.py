"""
Shared utilities for processing pipeline.
"""
import asyncio
import re
from dataclasses import replace
from typing import Iterable, List, Sequence, TypeVar

from models.text_models import Sentence, VocabularyEntry

S = TypeVar("S", bound=Sentence)


def renumber_sentences(sentences: Iterable[S]) -> List[S]:
    """Copy sentences with ids 1..N in iteration order."""
    return [replace(sentence, id=i + 1) for i, sentence in enumerate(sentences)]


def dedupe_vocabulary(entries: Iterable[VocabularyEntry], limit: int) -> List[VocabularyEntry]:
    """Keep the first entry per term (case-sensitive), at most `limit` entries."""
    seen = set()
    unique = []
    for entry in entries:
        if entry.term in seen:
            continue
        seen.add(entry.term)
        unique.append(entry)
        if len(unique) >= limit:
            break
    return unique


def drop_overlap_sentences(current: Sequence[Sentence], overlap_text: str) -> List[Sentence]:
    """
    Drop leading sentences of `current` that re-read `overlap_text`.

    `overlap_text` is the span a chunk shares with the previous one. Only
    sentences that consume it in order are dropped, so a line that merely
    repeats (a chorus, a refrain) past the overlap is kept. An empty overlap
    drops nothing.
    """
    remaining = " ".join(overlap_text.split())
    start = 0
    while start < len(current) and remaining:
        sentence_text = " ".join(current[start].text.split())
        if not sentence_text or not remaining.startswith(sentence_text):
            break
        remaining = remaining[len(sentence_text):].lstrip()
        start += 1
    return list(current[start:])


def snap_to_whitespace(text: str, index: int) -> int:
    """Move index back to the nearest newline or whitespace, if there is one."""
    newline = text.rfind("\n", 0, index + 1)
    space = text.rfind(" ", 0, index + 1)
    cut = max(newline, space)
    return cut if cut > 0 else index


async def sleep_ms(milliseconds: float) -> None:
    if milliseconds > 0:
        await asyncio.sleep(milliseconds / 1000.0)


def clean_text(text: str, strip_speaker_labels: bool = False) -> str:
    """
    Normalize text.

    Operations:
        - Remove extra whitespace
        - Fix encoding issues
        - Remove sound cues such as [MUSIC]
        - Optionally remove speaker labels (subtitles only)
    """
    if strip_speaker_labels:
        text = re.sub(r'^[\w ]{1,30}:\s+', '', text, flags=re.MULTILINE)
    text = re.sub(r'\[[A-Z ]+\]', '', text)  # Remove [MUSIC], [LAUGHTER], etc.

    # Fix common encoding issues
    text = text.replace('\u2019', "'")  # Right single quotation mark
    text = text.replace('\u201c', '"')  # Left double quotation mark
    text = text.replace('\u201d', '"')  # Right double quotation mark
    text = text.replace('\u00a0', ' ')  # Non-breaking space

    # Normalize whitespace
    text = re.sub(r'\s+', ' ', text)
    return text.strip()
