"""
Error types for AutonomateQA.

This module provides the exception hierarchy shared by the model transports,
the decision oracle, the browser executor and the run lifecycle.
"""

from .exceptions import (
    AutonomateError,
    RetryableError,
    NonRetryableError,
    ConfigurationError,
    RateLimitedError,
    TransportError,
    ModelsExhaustedError,
    MalformedResponseError,
    DecisionError,
    ActionExecutionError,
    VerificationFailedError,
    InvalidTransitionError,
)

__all__ = [
    "AutonomateError",
    "RetryableError",
    "NonRetryableError",
    "ConfigurationError",
    "RateLimitedError",
    "TransportError",
    "ModelsExhaustedError",
    "MalformedResponseError",
    "DecisionError",
    "ActionExecutionError",
    "VerificationFailedError",
    "InvalidTransitionError",
]
