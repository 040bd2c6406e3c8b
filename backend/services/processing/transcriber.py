"""
Source text extraction and normalization service.
"""
import re
from typing import List

from bs4 import BeautifulSoup

from core.exceptions import EmptyInputError
from services.processing.utils import clean_text

SUPPORTED_SOURCE_TYPES = ("txt", "srt", "vtt", "html")

_SRT_TIMESTAMP = re.compile(r"^\d{2}:\d{2}:\d{2},\d{3}\s*-->\s*\d{2}:\d{2}:\d{2},\d{3}")
_VTT_TIMESTAMP = re.compile(r"^(?:\d{2}:)?\d{2}:\d{2}\.\d{3}\s*-->\s*(?:\d{2}:)?\d{2}:\d{2}\.\d{3}")


def extract_text(content: str, source_type: str = "txt") -> str:
    """
    Turn uploaded content into plain text for sentence splitting.

    Args:
        content: Raw file content
        source_type: One of SUPPORTED_SOURCE_TYPES

    Raises:
        EmptyInputError: If no text remains after extraction
        ValueError: If source_type is not supported
    """
    source_type = source_type.lower().lstrip(".")
    if source_type == "srt":
        return extract_srt_text(content)
    if source_type == "vtt":
        return extract_vtt_text(content)
    if source_type == "html":
        return extract_html_text(content)
    if source_type == "txt":
        return normalize_plain_text(content)
    raise ValueError(
        f"Unsupported source type: {source_type}. Expected one of {', '.join(SUPPORTED_SOURCE_TYPES)}"
    )


def extract_srt_text(srt_content: str) -> str:
    """
    Extract subtitle text from SRT content.

    Processing:
        1. Drop cue numbers and timestamp lines
        2. Join cue text with spaces
        3. Clean text
    """
    lines = _unify_newlines(srt_content).split("\n")
    text_lines: List[str] = []

    for line in lines:
        line = line.strip()
        if not line or line.isdigit() or _SRT_TIMESTAMP.match(line) or "-->" in line:
            continue
        text_lines.append(line)

    return _require_text(clean_text(" ".join(text_lines), strip_speaker_labels=True), "SRT")


def extract_vtt_text(vtt_content: str) -> str:
    """Extract cue text from WebVTT content."""
    lines = [line.strip() for line in _unify_newlines(vtt_content).split("\n")]
    text_lines: List[str] = []
    in_note = False

    for index, line in enumerate(lines):
        next_line = lines[index + 1] if index + 1 < len(lines) else ""

        # Skip headers, notes and empty lines
        if not line:
            in_note = False
            continue
        if line.startswith("WEBVTT") or line.startswith("NOTE"):
            in_note = line.startswith("NOTE")
            continue
        # Cue identifiers sit on the line before the timing line
        if in_note or _VTT_TIMESTAMP.match(line) or _VTT_TIMESTAMP.match(next_line):
            continue
        text_lines.append(re.sub(r"<[^>]+>", "", line))  # Inline cue tags

    return _require_text(clean_text(" ".join(text_lines), strip_speaker_labels=True), "VTT")


def extract_html_text(raw_html: str) -> str:
    """Extract readable paragraph text from an HTML page."""
    soup = BeautifulSoup(raw_html, "html.parser")

    # Remove unwanted elements
    for element in soup(["script", "style", "nav", "header", "footer", "aside"]):
        element.decompose()

    content_elem = soup.find("article") or soup.find("main") or soup.find("body") or soup
    paragraphs = [p.get_text(" ", strip=True) for p in content_elem.find_all("p")]
    text = " ".join(p for p in paragraphs if p) or content_elem.get_text(" ", strip=True)

    return _require_text(clean_text(text), "HTML")


def normalize_plain_text(content: str) -> str:
    """Unify newlines, collapse whitespace and trim plain text."""
    return _require_text(clean_text(_unify_newlines(content)), "Text")


def _unify_newlines(content: str) -> str:
    return (content or "").replace("\r\n", "\n").replace("\r", "\n")


def _require_text(text: str, label: str) -> str:
    if not text:
        raise EmptyInputError(f"{label} content contains no text")
    return text
