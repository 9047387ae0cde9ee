"""
Tests for the verification engine.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from autonomate.agents.verifier import VerificationEngine
from autonomate.core.cancellation import CancellationToken
from autonomate.core.types import DecisionResult, VerificationDecision
from autonomate.error_handling.exceptions import VerificationFailedError
from autonomate.monitoring.reasoning_log import ReasoningLog


def _judgment(passed, reasoning=""):
    return DecisionResult.success(VerificationDecision(passed=passed, reasoning=reasoning))


@pytest.fixture
def oracle():
    oracle = MagicMock()
    oracle.verify = AsyncMock()
    return oracle


@pytest.fixture
def snapshots():
    snapshots = MagicMock()
    snapshots.capture = AsyncMock(return_value="- heading \"Dashboard\"")
    return snapshots


@pytest.fixture
def sleep():
    return AsyncMock()


@pytest.fixture
def engine(oracle, snapshots, settings, sleep):
    settings.verify_max_attempts = 3
    settings.verify_retry_delay_seconds = 2.0
    return VerificationEngine(oracle, snapshots, ReasoningLog(), settings, sleep=sleep)


class TestVerifyStep:
    """Attempt bound and logging."""

    @pytest.mark.asyncio
    async def test_first_attempt_passes(self, engine, oracle, snapshots, sleep):
        oracle.verify.return_value = _judgment(True, "Dashboard heading visible")

        decision = await engine.verify_step(MagicMock(), "Then I see the dashboard")

        assert decision.passed
        sleep.assert_not_awaited()
        snapshots.capture.assert_awaited_once()
        assert snapshots.capture.await_args.kwargs["for_verification"] is True
        assert "Result: True (Attempt 1)" in engine.reasoning_log.entries[0]

    @pytest.mark.asyncio
    async def test_passes_on_retry_with_fresh_snapshot(self, engine, oracle, snapshots, sleep):
        oracle.verify.side_effect = [_judgment(False, "loading"), _judgment(True, "shown")]

        await engine.verify_step(MagicMock(), "Then I see the dashboard")

        assert snapshots.capture.await_count == 2
        sleep.assert_awaited_once_with(2.0)
        assert "(Attempt 2)" in engine.reasoning_log.entries[-1]

    @pytest.mark.asyncio
    async def test_fails_after_max_attempts(self, engine, oracle, sleep):
        oracle.verify.return_value = _judgment(False, "No dashboard heading")

        with pytest.raises(VerificationFailedError) as exc_info:
            await engine.verify_step(MagicMock(), "Then I see the dashboard")

        assert oracle.verify.await_count == 3
        assert sleep.await_count == 2
        assert exc_info.value.attempts == 3
        assert str(exc_info.value) == (
            "AI Verification Failed for step: Then I see the dashboard. "
            "Reason: No dashboard heading"
        )
        assert "Failed after 3 attempts" in engine.reasoning_log.entries[-1]

    @pytest.mark.asyncio
    async def test_oracle_failure_counts_as_attempt(self, engine, oracle):
        oracle.verify.side_effect = [
            DecisionResult.failed("All OpenAI models failed. Errors: x"),
            _judgment(True, "ok"),
        ]

        decision = await engine.verify_step(MagicMock(), "Then it is visible")

        assert decision.passed
        assert oracle.verify.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_reason_from_oracle_failure(self, engine, oracle):
        oracle.verify.return_value = DecisionResult.failed("All OpenAI models failed. Errors: x")

        with pytest.raises(VerificationFailedError) as exc_info:
            await engine.verify_step(MagicMock(), "Then it is visible")

        assert exc_info.value.reasoning == "All OpenAI models failed. Errors: x"

    @pytest.mark.asyncio
    async def test_cancelled_before_attempt(self, engine, oracle):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(asyncio.CancelledError):
            await engine.verify_step(MagicMock(), "Then it is visible", cancel_token=token)
        oracle.verify.assert_not_awaited()
