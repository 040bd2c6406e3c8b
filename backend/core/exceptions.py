"""
Error taxonomy for the orchestration layer.
"""
from typing import Any, Dict, Optional


class OrchestrationError(Exception):
    """Base class for failures surfaced by the orchestration layer."""

    error_type: Optional[str] = None


class EmptyInputError(OrchestrationError):
    """Raised when the text to process is empty after trimming."""
    error_type = "EMPTY_INPUT"


class TextTooLongError(OrchestrationError):
    """Raised when recursive splitting exceeds its depth bound."""
    error_type = "TEXT_TOO_LONG"

    def __init__(self, message: str, depth: int, max_depth: int):
        super().__init__(message)
        self.depth = depth
        self.max_depth = max_depth


class PromptTooLargeError(OrchestrationError):
    """Raised when an outgoing prompt stays oversized even after shrinking."""
    error_type = "PROMPT_TOO_LARGE"

    def __init__(self, message: str, prompt_length: int, limit: int, remaining_sentences: int):
        super().__init__(message)
        self.prompt_length = prompt_length
        self.limit = limit
        self.remaining_sentences = remaining_sentences


class MalformedResponseError(OrchestrationError):
    """Raised when a reply cannot be repaired into the expected shape."""
    error_type = "MALFORMED_RESPONSE"

    def __init__(self, message: str, raw_response: str = ""):
        super().__init__(message)
        self.raw_response = raw_response


class RemoteCallFailedError(OrchestrationError):
    """
    Raised by the request invoker once retries are exhausted or the
    failure is classified as non-retryable.
    """

    def __init__(self, classification: Any, details: Optional[Dict[str, Any]] = None):
        self.classification = classification
        self.details = details or {}
        self.error_type = classification.error_type.value
        original = self.details.get("error", "")
        super().__init__(f"AI_API_FAILED: {self.error_type}: {original}")

    @property
    def should_retry(self) -> bool:
        return self.classification.should_retry


class ChunkProcessingError(OrchestrationError):
    """Raised when a chunk of a split/explain large-file run fails."""

    def __init__(self, operation: str, chunk_index: int, total_chunks: int, cause: Exception):
        self.operation = operation
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        self.cause = cause
        self.error_type = getattr(cause, "error_type", None)
        super().__init__(
            f"{operation} failed on chunk {chunk_index + 1}/{total_chunks}: {cause}"
        )

    @property
    def classification(self) -> Any:
        return getattr(self.cause, "classification", None)
