"""
Token accounting for a single run.

Transports report usage to one process-wide ``RunTokenSink``; the sink
forwards it to the ``TokenTracker`` bound to the run whose task made the
call, so overlapping runs sharing an oracle keep separate totals.
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from autonomate.core.interfaces import TokenSink
from autonomate.core.types import TokenUsage


class TokenTracker(TokenSink):
    """Accumulates token usage reported by model calls during one run."""

    def __init__(self) -> None:
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self.calls = 0

    def add_usage(self, usage: TokenUsage) -> None:
        self._prompt_tokens += usage.prompt_tokens
        self._completion_tokens += usage.completion_tokens
        self.calls += 1

    def total(self) -> TokenUsage:
        """Return the usage accumulated since the last reset."""
        return TokenUsage(
            prompt_tokens=self._prompt_tokens,
            completion_tokens=self._completion_tokens,
        )

    def reset(self) -> None:
        self._prompt_tokens = 0
        self._completion_tokens = 0
        self.calls = 0


_active_tracker: ContextVar[Optional[TokenTracker]] = ContextVar(
    "autonomate_token_tracker", default=None
)


@contextmanager
def track_run_tokens(tracker: TokenTracker) -> Iterator[TokenTracker]:
    """Route usage reported inside the block to ``tracker``."""
    token = _active_tracker.set(tracker)
    try:
        yield tracker
    finally:
        _active_tracker.reset(token)


class RunTokenSink(TokenSink):
    """Forwards usage to the tracker of the current run; dropped outside a run."""

    def add_usage(self, usage: TokenUsage) -> None:
        tracker = _active_tracker.get()
        if tracker is not None:
            tracker.add_usage(usage)
