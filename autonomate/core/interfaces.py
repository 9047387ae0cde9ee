"""
Core interfaces and abstract base classes for the AutonomateQA step runner.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from autonomate.core.types import (
    ActionDecision,
    DecisionResult,
    ModelRequest,
    ModelResponse,
    RunRecord,
    TokenUsage,
    VerificationDecision,
)


class DecisionOracle(ABC):
    """Model-backed service turning a step and a snapshot into a decision."""

    @abstractmethod
    async def resolve_action(
        self, step: str, snapshot: str
    ) -> DecisionResult[ActionDecision]:
        """
        Decide which element to act on and how.

        Args:
            step: Masked step text
            snapshot: Sanitized accessibility snapshot of the page

        Returns:
            Action decision or a typed failure
        """
        pass

    @abstractmethod
    async def verify(
        self, step: str, snapshot: str
    ) -> DecisionResult[VerificationDecision]:
        """
        Judge whether the page satisfies an assertion step.

        Args:
            step: Masked step text
            snapshot: Sanitized accessibility snapshot of the page

        Returns:
            Pass/fail judgment or a typed failure
        """
        pass

    @abstractmethod
    async def synthesize_step(
        self,
        action_kind: str,
        selector_hint: str,
        value: Optional[str],
        snapshot: str,
    ) -> str:
        """
        Write a single Gherkin step describing a raw browser event.

        Args:
            action_kind: Recorded event type (click, fill, ...)
            selector_hint: Recorded target element description
            value: Recorded input value, if any
            snapshot: Sanitized accessibility snapshot for context

        Returns:
            Gherkin step text
        """
        pass


class ModelTransport(ABC):
    """Sends one request to one model."""

    provider_name: str = "model"

    @abstractmethod
    async def send(self, request: ModelRequest) -> ModelResponse:
        """
        Send a request and return the text answer.

        Raises:
            RateLimitedError: The endpoint answered 429
            TransportError: Any other failure
        """
        pass


class TokenSink(ABC):
    """Receives token usage reported by model calls."""

    @abstractmethod
    def add_usage(self, usage: TokenUsage) -> None:
        """Accumulate usage from one model call."""
        pass


class TestDataSource(ABC):
    """Loads per-run key/value test data."""

    __test__ = False

    @abstractmethod
    def load(self, reference: str) -> Optional[Dict[str, str]]:
        """
        Load test data for a run.

        Returns:
            Key/value pairs, an empty dict when the source is empty, or None
            when the source does not exist
        """
        pass


class RunRecordStore(ABC):
    """Persistence boundary for run records."""

    @abstractmethod
    async def get(self, run_id: str) -> Optional[RunRecord]:
        """Fetch a run record by id."""
        pass

    @abstractmethod
    async def save(self, record: RunRecord) -> None:
        """Persist the current state of a run record."""
        pass

    async def create(
        self,
        url: str,
        script: Optional[str] = None,
        test_data_ref: Optional[str] = None,
    ) -> RunRecord:
        """Create and persist a new pending run record."""
        record = RunRecord(url=url, script=script, test_data_ref=test_data_ref)
        await self.save(record)
        return record

