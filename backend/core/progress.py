"""
Optional progress reporting for long-running operations.
"""
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Anything that accepts fire-and-forget progress messages."""

    def log_progress(self, client_id: Optional[str], level: str, message: str) -> None:
        ...


class ProgressReporter:
    """Forwards progress to a sink if one was supplied; never affects results."""

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink

    def report(self, client_id: Optional[str], level: str, message: str) -> None:
        if self.sink is None:
            return
        try:
            self.sink.log_progress(client_id, level, message)
        except Exception as e:
            logger.warning(f"Progress sink rejected message for {client_id}: {e}")
