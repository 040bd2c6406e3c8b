"""
Remote call execution with dynamic timeouts and classified retries.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional, Protocol

from core.config import RetryConfig, TimeoutConfig
from core.error_classifier import classify
from core.exceptions import RemoteCallFailedError

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Transport used by the invoker."""

    async def complete(self, system_prompt: str, user_text: str, timeout_seconds: float) -> str:
        ...


@dataclass
class RetryContext:
    """State of one invoke() call."""
    attempt: int
    max_attempts: int
    computed_timeout_ms: int


def calculate_timeout_ms(input_text: str, config: TimeoutConfig) -> int:
    """Timeout for a request carrying input_text."""
    if not config.dynamic_enabled:
        return config.fixed_timeout_ms

    timeout = config.base_timeout_ms + config.per_character_ms * len(input_text)
    return int(min(max(timeout, config.min_timeout_ms), config.max_timeout_ms))


def calculate_retry_delay_ms(attempt: int, config: RetryConfig, rng: Optional[random.Random] = None) -> int:
    """
    Backoff before the next attempt.

    Args:
        attempt: 0-based index of the attempt that just failed
        config: Retry configuration
        rng: Random source for jitter (module random if None)
    """
    delay = min(config.base_delay_ms * (2 ** attempt), config.max_backoff_ms)
    if not config.smart_retry:
        return int(delay)

    uniform = (rng or random).uniform
    jitter = delay * config.jitter_ratio * uniform(-1.0, 1.0)
    return max(0, int(delay + jitter))


class RequestInvoker:
    """The only component that talks to the completion service."""

    def __init__(
        self,
        client: CompletionClient,
        timeout_config: Optional[TimeoutConfig] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self.client = client
        self.timeout_config = timeout_config or TimeoutConfig()
        self.retry_config = retry_config or RetryConfig()

    async def invoke(self, prompt: str, input_text: str = "", max_attempts: Optional[int] = None) -> str:
        """
        Run one completion with retries.

        The dynamic timeout is sized on prompt plus input_text, not input_text
        alone: the JSON operations embed the source text in the prompt and send
        an empty user message.

        Args:
            prompt: System prompt
            input_text: User message content
            max_attempts: Overrides the configured retry budget

        Returns:
            Reply text

        Raises:
            RemoteCallFailedError: non-retryable failure or retries exhausted
        """
        attempts = max_attempts or self.retry_config.max_attempts
        timeout_ms = calculate_timeout_ms(prompt + input_text, self.timeout_config)

        for index in range(attempts):
            context = RetryContext(attempt=index + 1, max_attempts=attempts, computed_timeout_ms=timeout_ms)
            logger.info(
                f"Completion call attempt {context.attempt}/{context.max_attempts} "
                f"(input {len(input_text)} chars, prompt {len(prompt)} chars, timeout {timeout_ms}ms)"
            )

            try:
                result = await self.client.complete(prompt, input_text, timeout_ms / 1000.0)
            except Exception as e:
                classification = classify(e, context.attempt, context.max_attempts)
                logger.error(
                    f"Completion call failed (attempt {context.attempt}/{context.max_attempts}): "
                    f"{classification.error_type.value} - {e}"
                )

                is_last = context.attempt >= context.max_attempts
                if not classification.should_retry or is_last:
                    raise RemoteCallFailedError(
                        classification,
                        details={
                            "error": str(e),
                            "attempts": context.attempt,
                            "max_attempts": context.max_attempts,
                            "timeout_ms": timeout_ms,
                            "suggestion": classification.suggestion,
                            "action": classification.action,
                        },
                    ) from e

                delay_ms = calculate_retry_delay_ms(index, self.retry_config)
                logger.warning(
                    f"Retrying in {delay_ms}ms after {classification.error_type.value}: "
                    f"{classification.suggestion}"
                )
                await asyncio.sleep(delay_ms / 1000.0)
                continue

            logger.debug(f"Completion call succeeded on attempt {context.attempt} ({len(result)} chars)")
            return result

        raise AssertionError("unreachable: loop always returns or raises")
