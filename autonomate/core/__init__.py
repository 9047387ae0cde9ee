"""
Core module exports.
"""

from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.core.interfaces import (
    DecisionOracle,
    ModelTransport,
    RunRecordStore,
    TestDataSource,
    TokenSink,
)
from autonomate.core.types import (
    ActionDecision,
    ActionKind,
    ClassifiedStep,
    DecisionFailure,
    DecisionResult,
    ExecutionOutcome,
    ExecutionResult,
    ModelCapability,
    ModelRequest,
    ModelResponse,
    RunRecord,
    RunStatus,
    SelectorKind,
    StepKind,
    TokenUsage,
    VerificationDecision,
)

__all__ = [
    # Cancellation
    "CancellationToken",
    "check_cancelled",
    # Interfaces
    "DecisionOracle",
    "ModelTransport",
    "RunRecordStore",
    "TestDataSource",
    "TokenSink",
    # Types
    "ActionDecision",
    "ActionKind",
    "ClassifiedStep",
    "DecisionFailure",
    "DecisionResult",
    "ExecutionOutcome",
    "ExecutionResult",
    "ModelCapability",
    "ModelRequest",
    "ModelResponse",
    "RunRecord",
    "RunStatus",
    "SelectorKind",
    "StepKind",
    "TokenUsage",
    "VerificationDecision",
]
