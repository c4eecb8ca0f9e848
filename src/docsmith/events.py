"""Progress events for orchestration and indexing runs.

This module provides:
- ProgressEvent: an immutable (status, percent, log_line) record
- ProgressStream: an append-only, subscribable history of progress events
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
import time

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """A progress notification delivered while a build runs."""
    status: str
    percent: int  # 0-100, non-decreasing within one session
    log_line: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if not 0 <= self.percent <= 100:
            raise ValueError(f"percent must be within 0-100, got {self.percent}")


class ProgressStream:
    """Ordered, append-only progress history with subscribers.

    UIs, loggers and tests subscribe here without coupling to how the
    orchestrator is invoked. Events are delivered in append order.
    """

    def __init__(self):
        self.events: List[ProgressEvent] = []
        self._subscribers: List[Callable[[ProgressEvent], None]] = []

    def append(self, event: ProgressEvent) -> None:
        """Add an event to the history and notify subscribers.

        Args:
            event: ProgressEvent to add
        """
        self.events.append(event)
        self._notify_subscribers(event)

    def get_history(self) -> List[ProgressEvent]:
        """Get a copy of the event history, oldest first."""
        return self.events.copy()

    @property
    def latest_percent(self) -> int:
        return self.events[-1].percent if self.events else 0

    def subscribe(self, callback: Callable[[ProgressEvent], None]) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[ProgressEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _notify_subscribers(self, event: ProgressEvent) -> None:
        for callback in self._subscribers:
            try:
                callback(event)
            except Exception as e:
                logger.warning("Progress subscriber failed: %s", e)
