"""
Validation and repair of structured (JSON) replies from the completion service.
"""
import json
import logging
import re
from typing import Any, List, Pattern, Tuple

from core.exceptions import MalformedResponseError

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*|\s*```")

# Applied in order; each is a (pattern, replacement) pair
_REPAIRS: List[Tuple[Pattern, str]] = [
    # Trailing comma before a closing bracket
    (re.compile(r",(\s*[}\]])"), r"\1"),
    # Missing comma between strings on separate lines
    (re.compile(r'"\s*\n\s*"'), '",\n  "'),
    # Bare property names
    (re.compile(r"([{,]\s*)([a-zA-Z_][a-zA-Z0-9_]*)\s*:"), r'\1"\2":'),
    # Blank lines
    (re.compile(r"\n\s*\n"), "\n"),
    # Missing comma between adjacent objects
    (re.compile(r"}\s*\n\s*{"), "},\n  {"),
    # Missing comma before a bare property on a new line
    (re.compile(r'"\s*\n\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:'), r'",\n  "\1":'),
    # Stray comma line between a string and the next object
    (re.compile(r'"\s*\n\s*,\s*\n\s*{'), '",\n  {'),
]

_BRACKETS = {
    "array": ("[", "]", list),
    "object": ("{", "}", dict),
}


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text).strip()


def extract_json_span(text: str, expected_type: str = "array") -> str:
    """Keep only the outermost bracketed span, dropping surrounding prose."""
    opening, closing, _ = _BRACKETS[expected_type]
    start = text.find(opening)
    end = text.rfind(closing)
    if start != -1 and end > start:
        return text[start:end + 1]
    return text


def fix_common_json_issues(json_string: str) -> str:
    """Apply the textual repair battery."""
    fixed = json_string
    for pattern, replacement in _REPAIRS:
        fixed = pattern.sub(replacement, fixed)

    if fixed != json_string:
        logger.debug(f"JSON repair changed reply ({len(json_string)} -> {len(fixed)} chars)")
    return fixed


def validate_and_clean_json(raw_response: str, expected_type: str = "array") -> Any:
    """
    Parse a model reply into a JSON value of the expected type.

    Steps:
        1. Strip markdown code fences
        2. Keep the span from the first opening to the last closing bracket
        3. Parse; on failure apply fix_common_json_issues and parse again
        4. Check the value is a list ("array") or dict ("object")

    Raises:
        MalformedResponseError: If no parseable value of the expected type results
    """
    if expected_type not in _BRACKETS:
        raise ValueError(f"Unsupported expected_type: {expected_type}")
    if not raw_response or not raw_response.strip():
        raise MalformedResponseError("Empty reply", raw_response=raw_response or "")

    _, _, python_type = _BRACKETS[expected_type]
    candidate = extract_json_span(strip_code_fences(raw_response), expected_type)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        repaired = fix_common_json_issues(candidate)
        try:
            parsed = json.loads(repaired)
        except json.JSONDecodeError as e:
            logger.error(
                f"JSON validation failed: {e}. Reply preview: {raw_response[:200]!r}"
            )
            raise MalformedResponseError(
                f"JSON_VALIDATION_FAILED: {e}", raw_response=raw_response
            ) from e

    if not isinstance(parsed, python_type):
        raise MalformedResponseError(
            f"JSON_VALIDATION_FAILED: expected {expected_type} but got {type(parsed).__name__}",
            raw_response=raw_response,
        )

    logger.debug(f"JSON validated: {expected_type} with {len(parsed)} items")
    return parsed
