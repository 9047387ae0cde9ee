"""
Custom exception hierarchy for AutonomateQA error handling.

Separates transient model failures (rate limiting) from decision failures,
browser execution failures and run lifecycle violations so the step loop can
decide what to retry, what to fall back from and what to report.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class AutonomateError(Exception):
    """Base exception for all AutonomateQA errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


class RetryableError(AutonomateError):
    """Base class for errors that can be retried against the same target."""


class NonRetryableError(AutonomateError):
    """Base class for errors that should not be retried."""


class ConfigurationError(NonRetryableError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str, setting: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.setting = setting
        self.details.update({"setting": setting})


class RateLimitedError(RetryableError):
    """A model endpoint answered with HTTP 429."""

    def __init__(
        self,
        message: str,
        model: str,
        retry_after: Optional[float] = None,
        body: str = "",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.model = model
        self.retry_after = retry_after
        self.body = body
        self.details.update({"model": model, "retry_after": retry_after})


class TransportError(NonRetryableError):
    """A model request failed for any reason other than rate limiting."""

    def __init__(
        self,
        message: str,
        model: str,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.model = model
        self.status_code = status_code
        self.details.update({"model": model, "status_code": status_code})


class ModelsExhaustedError(NonRetryableError):
    """Every configured model failed for a single decision."""

    def __init__(self, provider: str, errors: List[str], **kwargs):
        message = f"All {provider} models failed. Errors: {'; '.join(errors)}"
        super().__init__(message, **kwargs)
        self.provider = provider
        self.errors = list(errors)
        self.details.update({"provider": provider, "errors": self.errors})


class MalformedResponseError(NonRetryableError):
    """A model returned text that could not be parsed into a decision."""

    def __init__(self, message: str, raw_response: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.raw_response = raw_response
        self.details.update({"raw_response": raw_response[:200]})


class DecisionError(NonRetryableError):
    """The oracle could not produce a decision for a step."""

    def __init__(self, message: str, step: str, **kwargs):
        super().__init__(message, **kwargs)
        self.step = step
        self.details.update({"step": step})


class ActionExecutionError(AutonomateError):
    """A browser action failed while executing a decision."""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        selector: Optional[str] = None,
        screenshot_path: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.action = action
        self.selector = selector
        self.screenshot_path = screenshot_path
        self.details.update(
            {
                "action": action,
                "selector": selector,
                "screenshot_path": screenshot_path,
            }
        )


class VerificationFailedError(NonRetryableError):
    """A verification step did not pass within its attempt budget."""

    def __init__(self, step: str, reasoning: str, attempts: int, **kwargs):
        message = f"AI Verification Failed for step: {step}. Reason: {reasoning}"
        super().__init__(message, **kwargs)
        self.step = step
        self.reasoning = reasoning
        self.attempts = attempts
        self.details.update({"step": step, "attempts": attempts})


class InvalidTransitionError(NonRetryableError):
    """A run record was asked to move to a status it cannot reach."""

    def __init__(self, current: str, requested: str, **kwargs):
        super().__init__(
            f"Cannot transition run from '{current}' to '{requested}'", **kwargs
        )
        self.current = current
        self.requested = requested
        self.details.update({"current": current, "requested": requested})

