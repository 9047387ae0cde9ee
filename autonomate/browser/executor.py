"""
Execution of action decisions against the live page.
"""

import asyncio
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from playwright.async_api import Locator, Page

from autonomate.browser.locator import LocatorResolver
from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.core.types import ActionDecision, ActionKind, ExecutionOutcome, ExecutionResult
from autonomate.monitoring.logger import get_logger, log_performance_metric
from autonomate.security.secrets import SecretStore

# Upper bound for the network-idle wait while settling.
NETWORK_IDLE_CAP_MS = 3000


class ActionExecutor:
    """
    Scrolls to, highlights and operates on the element a decision names.

    Execution is never retried. On failure a screenshot is saved and a failed
    ``ExecutionResult`` carrying its path is returned. Cancellation is raised.
    """

    def __init__(
        self,
        secrets: SecretStore,
        settings: Optional[Settings] = None,
        resolver: Optional[LocatorResolver] = None,
    ) -> None:
        settings = settings or get_settings()
        self.secrets = secrets
        self.resolver = resolver or LocatorResolver()
        self.interaction_timeout_ms = settings.interaction_timeout_ms
        self.scroll_timeout_ms = settings.scroll_timeout_ms
        self.settle_timeout_ms = settings.wait_for_load_state_after_click_ms
        self.post_action_delay_ms = settings.post_action_delay_ms
        self.screenshots_dir = Path(settings.screenshots_dir)
        self.logger = get_logger("browser.executor")

    async def execute(
        self,
        page: Page,
        decision: ActionDecision,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionResult:
        """
        Execute one action decision.

        Args:
            page: Page to act on
            decision: Decision from the oracle
            cancel_token: Checked before each browser operation

        Returns:
            Success with the action kind, target description and elapsed time,
            or a failure with the error text and screenshot path

        Raises:
            asyncio.CancelledError: Cancellation was requested
        """
        start_time = time.perf_counter()
        target = (
            decision.selector_value
            if decision.action_kind == ActionKind.NAVIGATE
            else self.resolver.describe(decision)
        )

        try:
            await self._dispatch(page, decision, cancel_token)
            if self.post_action_delay_ms > 0:
                await asyncio.sleep(self.post_action_delay_ms / 1000)
        except Exception as e:
            screenshot_path = await self._capture_failure_screenshot(page)
            self.logger.error(
                f"Action execution failed. Screenshot saved to: {screenshot_path}",
                exc_info=True,
                extra={"action_kind": decision.action_kind.value},
            )
            return ExecutionResult.failed(
                f"{decision.action_kind.value} on {target} failed: {e}",
                screenshot_path=screenshot_path,
            )

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log_performance_metric(
            "action_execution",
            elapsed_ms,
            context={"action_kind": decision.action_kind.value},
        )
        return ExecutionResult.success(
            ExecutionOutcome(
                action_kind=decision.action_kind,
                target=target,
                execution_time_ms=elapsed_ms,
            )
        )

    async def _dispatch(
        self,
        page: Page,
        decision: ActionDecision,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        kind = decision.action_kind

        if kind == ActionKind.NAVIGATE:
            check_cancelled(cancel_token)
            await page.goto(decision.selector_value)
            await self.settle(page)
            return

        locator = self.resolver.resolve(page, decision)

        check_cancelled(cancel_token)
        await self._scroll_into_view(locator)

        check_cancelled(cancel_token)
        await self._highlight(locator)

        check_cancelled(cancel_token)
        if kind == ActionKind.FILL:
            value = self.secrets.replace_placeholders(decision.input_data or "")
            await locator.fill(value, timeout=self.interaction_timeout_ms)
        elif kind == ActionKind.CHECK:
            await locator.check(timeout=self.interaction_timeout_ms)
        elif kind == ActionKind.UNCHECK:
            await locator.uncheck(timeout=self.interaction_timeout_ms)
        elif kind == ActionKind.HOVER:
            await locator.hover(timeout=self.interaction_timeout_ms)
        elif kind == ActionKind.UNRECOGNIZED:
            self.logger.info(
                f"Unrecognized action '{decision.raw_action}', clicking instead"
            )
            await self._click(page, locator)
        else:
            await self._click(page, locator)

    async def _click(self, page: Page, locator: Locator) -> None:
        await locator.click(force=True, timeout=self.interaction_timeout_ms)
        await self.settle(page)

    async def settle(self, page: Page) -> None:
        """Best-effort wait for DOM-ready and then network idle."""
        if self.settle_timeout_ms <= 0:
            return

        try:
            await page.wait_for_load_state(
                "domcontentloaded", timeout=self.settle_timeout_ms
            )
        except Exception as e:
            self.logger.debug(f"DOMContentLoaded wait did not complete (continuing): {e}")

        try:
            await page.wait_for_load_state(
                "networkidle",
                timeout=min(NETWORK_IDLE_CAP_MS, self.settle_timeout_ms),
            )
        except Exception as e:
            self.logger.debug(f"Network idle wait did not complete (continuing): {e}")

    async def _scroll_into_view(self, locator: Locator) -> None:
        try:
            await locator.scroll_into_view_if_needed(timeout=self.scroll_timeout_ms)
        except Exception as e:
            self.logger.debug(f"Scroll into view failed (continuing): {e}")

    async def _highlight(self, locator: Locator) -> None:
        try:
            await locator.highlight()
        except Exception as e:
            self.logger.debug(f"Highlight failed (continuing): {e}")

    async def _capture_failure_screenshot(self, page: Page) -> Optional[str]:
        path = self.screenshots_dir / f"error_action_{datetime.now():%Y%m%d%H%M%S%f}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await page.screenshot(path=str(path))
        except Exception as e:
            self.logger.warning(f"Failed to capture failure screenshot: {e}")
            return None
        return str(path)
