"""
Shared fixtures: a scripted completion client and a zero-delay configuration.
"""
import json
import re
from typing import Callable, List, Optional, Tuple, Union

import pytest

from core.config import (
    ChunkStrategy,
    CompletionConfig,
    OrchestratorConfig,
    ProcessingConfig,
    RetryConfig,
    TimeoutConfig,
)
from core.request_invoker import RequestInvoker

Reply = Union[str, BaseException]

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_NUMBERED_PROMPT_LINE = re.compile(r'^\d+\. "(.*)"$', re.MULTILINE)
_LONG_WORD = re.compile(r"[A-Za-z]{7,}")


class ScriptedClient:
    """Completion client whose replies come from a responder function or a queue."""

    def __init__(
        self,
        responder: Optional[Callable[[str, str], Reply]] = None,
        replies: Optional[List[Reply]] = None,
    ):
        self.responder = responder
        self.replies = list(replies or [])
        self.calls: List[Tuple[str, str]] = []
        self.timeouts: List[float] = []

    async def complete(self, system_prompt: str, user_text: str, timeout_seconds: float) -> str:
        self.calls.append((system_prompt, user_text))
        self.timeouts.append(timeout_seconds)
        if self.responder is not None:
            reply = self.responder(system_prompt, user_text)
        else:
            reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def split_into_sentences(text: str) -> List[str]:
    return [part.strip() for part in _SENTENCE_BOUNDARY.split(text) if part.strip()]


def fake_model(system_prompt: str, user_text: str) -> str:
    """Deterministic stand-in for the completion service, keyed on the prompt."""
    if "sentence segmentation" in system_prompt:
        return "\n".join(split_into_sentences(user_text))

    numbered = _NUMBERED_PROMPT_LINE.findall(system_prompt)
    if "group sentences into meaningful paragraphs" in system_prompt:
        return json.dumps([{
            "title": "Reading Section",
            "objective": "Students will learn to read",
            "focus": "vocabulary",
            "relevance": "core content",
            "sentences": numbered,
        }])
    if "Explain these" in system_prompt:
        return json.dumps([f"Explanation of: {sentence}" for sentence in numbered])
    if "key vocabulary" in system_prompt:
        analyzed = system_prompt.split("Text to analyze:", 1)[1].split("CRITICAL:", 1)[0]
        terms = list(dict.fromkeys(_LONG_WORD.findall(analyzed)))[:6]
        return json.dumps([
            {
                "term": term,
                "explanation": f"meaning of {term}",
                "usage": "noun",
                "examples": [f"An example with {term}."],
            }
            for term in terms
        ])
    raise AssertionError(f"Unexpected prompt: {system_prompt[:80]!r}")


@pytest.fixture
def fast_config() -> OrchestratorConfig:
    """Default thresholds with every delay set to zero."""
    return OrchestratorConfig(
        completion=CompletionConfig(api_key="test-key"),
        timeout=TimeoutConfig(),
        retry=RetryConfig(max_attempts=3, smart_retry=False, base_delay_ms=0, max_backoff_ms=0),
        processing=ProcessingConfig(
            part_delay_ms=0,
            batch_delay_ms=0,
            chunk_strategies={
                "split": ChunkStrategy(3000, 500, 100, 0),
                "explain": ChunkStrategy(2000, 300, 50, 0),
                "vocabulary": ChunkStrategy(8000, 1000, 500, 0),
            },
        ),
    )


@pytest.fixture
def make_invoker(fast_config) -> Callable[[ScriptedClient], RequestInvoker]:
    def factory(client: ScriptedClient) -> RequestInvoker:
        return RequestInvoker(client, fast_config.timeout, fast_config.retry)
    return factory
