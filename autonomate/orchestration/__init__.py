"""
Run orchestration: step classification, run lifecycle and run stores.
"""

from autonomate.orchestration.run_lifecycle import RunLifecycle, safe_url_for_log
from autonomate.orchestration.run_store import InMemoryRunStore, JsonFileRunStore
from autonomate.orchestration.step_classifier import (
    classify,
    classify_step,
    is_structural_line,
    iter_steps,
)

__all__ = [
    "InMemoryRunStore",
    "JsonFileRunStore",
    "RunLifecycle",
    "classify",
    "classify_step",
    "is_structural_line",
    "iter_steps",
    "safe_url_for_log",
]
