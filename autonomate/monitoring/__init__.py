"""
Monitoring module exports.
"""

from autonomate.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    RunContextFilter,
    SanitizingHandler,
    bind_run,
    get_logger,
    log_performance_metric,
    setup_logging,
)
from autonomate.monitoring.reasoning_log import ReasoningLog
from autonomate.monitoring.usage import RunTokenSink, TokenTracker, track_run_tokens

__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "log_performance_metric",
    "JSONFormatter",
    "SanitizingHandler",
    "ContextLogAdapter",
    "RunContextFilter",
    "bind_run",

    # Run audit
    "ReasoningLog",
    "TokenTracker",
    "RunTokenSink",
    "track_run_tokens",
]
