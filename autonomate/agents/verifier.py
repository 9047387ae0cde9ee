"""
Bounded-retry verification of assertion steps.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from playwright.async_api import Page

from autonomate.browser.snapshot import SnapshotProvider
from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.core.interfaces import DecisionOracle
from autonomate.core.types import VerificationDecision
from autonomate.error_handling.exceptions import VerificationFailedError
from autonomate.monitoring.logger import get_logger
from autonomate.monitoring.reasoning_log import ReasoningLog


class VerificationEngine:
    """Asks the oracle to judge a step against fresh snapshots, a bounded number of times."""

    def __init__(
        self,
        oracle: DecisionOracle,
        snapshots: SnapshotProvider,
        reasoning_log: ReasoningLog,
        settings: Optional[Settings] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        settings = settings or get_settings()
        self.oracle = oracle
        self.snapshots = snapshots
        self.reasoning_log = reasoning_log
        self.max_attempts = settings.verify_max_attempts
        self.retry_delay_seconds = settings.verify_retry_delay_seconds
        self._sleep = sleep or asyncio.sleep
        self.logger = get_logger("agents.verifier")

    async def verify_step(
        self,
        page: Page,
        step: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> VerificationDecision:
        """
        Verify ``step`` against the page.

        Each attempt takes a fresh verification snapshot. A failed oracle
        result counts as a failed attempt.

        Args:
            page: Page to verify
            step: Masked step text
            cancel_token: Checked before each attempt

        Returns:
            The first passing judgment

        Raises:
            VerificationFailedError: No attempt passed
        """
        last_reasoning = ""

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self.logger.info(
                    f"Verification attempt {attempt - 1} failed, retrying in "
                    f"{self.retry_delay_seconds}s"
                )
                await self._sleep(self.retry_delay_seconds)

            check_cancelled(cancel_token)
            snapshot = await self.snapshots.capture(
                page, for_verification=True, cancel_token=cancel_token
            )
            result = await self.oracle.verify(step, snapshot)

            if not result.ok:
                last_reasoning = result.failure.reason
                continue

            last_reasoning = result.value.reasoning
            if result.value.passed:
                self.reasoning_log.verification_passed(step, attempt, last_reasoning)
                return result.value

        self.reasoning_log.verification_failed(step, self.max_attempts, last_reasoning)
        raise VerificationFailedError(step, last_reasoning, self.max_attempts)
