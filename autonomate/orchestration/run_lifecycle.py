"""
Run lifecycle: browser acquisition, navigation, the step loop, finalization
and guaranteed cleanup for one scenario run.
"""

import asyncio
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlsplit

from playwright.async_api import Page

from autonomate.agents.verifier import VerificationEngine
from autonomate.browser.driver import BrowserSession
from autonomate.browser.executor import ActionExecutor
from autonomate.browser.snapshot import SnapshotProvider
from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.core.interfaces import DecisionOracle, RunRecordStore, TestDataSource
from autonomate.core.types import ClassifiedStep, RunRecord, RunStatus
from autonomate.error_handling.exceptions import ActionExecutionError, DecisionError
from autonomate.monitoring.logger import bind_run, get_logger, log_performance_metric, set_step
from autonomate.monitoring.reasoning_log import ReasoningLog
from autonomate.monitoring.usage import TokenTracker, track_run_tokens
from autonomate.orchestration.step_classifier import iter_steps
from autonomate.security.data_source import CsvTestDataSource
from autonomate.security.secrets import SecretStore

SessionFactory = Callable[[bool], BrowserSession]


def safe_url_for_log(url: str) -> str:
    """Return only scheme and host so query strings and tokens stay out of logs."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "(invalid url)"
    if not parts.scheme or not parts.hostname:
        return "(invalid url)"
    return f"{parts.scheme}://{parts.hostname}"


class _RunContext:
    """State and collaborators owned by a single run."""

    def __init__(
        self,
        record: RunRecord,
        secrets: SecretStore,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        self.record = record
        self.secrets = secrets
        self.cancel_token = cancel_token
        self.reasoning_log = ReasoningLog(mask=secrets.mask_literals)
        self.tokens = TokenTracker()
        self.current_step = "Initializing"
        self.page: Optional[Page] = None
        self.executor: Optional[ActionExecutor] = None
        self.verifier: Optional[VerificationEngine] = None


class RunLifecycle:
    """
    Executes scenarios against a URL and keeps their run records current.

    One instance may serve overlapping runs: everything a run mutates lives
    in its own ``_RunContext``. Status moves pending → running → passed |
    failed and the record is saved on each transition. Whatever happens
    during the run, the reasoning log is flushed once, token totals are
    captured, the recording is relocated, browser resources are released and
    the record is saved with its duration. Cancellation marks the run failed
    and cancelled, then re-raises ``asyncio.CancelledError``.
    """

    def __init__(
        self,
        store: RunRecordStore,
        oracle: DecisionOracle,
        secrets: SecretStore,
        settings: Optional[Settings] = None,
        data_source: Optional[TestDataSource] = None,
        snapshots: Optional[SnapshotProvider] = None,
        session_factory: Optional[SessionFactory] = None,
    ) -> None:
        """
        Initialize the lifecycle.

        Args:
            store: Run record persistence
            oracle: Decision oracle shared by all runs; its transport must
                report usage to a ``RunTokenSink``
            secrets: Process-wide secret store; each run gets its own scope
            settings: Settings instance (defaults to cached settings)
            data_source: Source for per-run test data (defaults to CSV files)
            snapshots: Snapshot provider (built from settings by default)
            session_factory: Builds a browser session for the headed flag
        """
        self.settings = settings or get_settings()
        self.store = store
        self.oracle = oracle
        self.secrets = secrets
        self.data_source = data_source or CsvTestDataSource()
        self.snapshots = snapshots or SnapshotProvider(self.settings)
        self._session_factory = session_factory or (
            lambda headed: BrowserSession(self.settings, headed=headed)
        )
        self.screenshots_dir = Path(self.settings.screenshots_dir)
        self.videos_dir = Path(self.settings.videos_dir)
        self.logger = get_logger("orchestration.run_lifecycle")

    async def execute(
        self,
        run_id: str,
        url: str,
        headed: bool = False,
        script: Optional[str] = None,
        test_data_ref: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[RunRecord]:
        """
        Execute the scenario for an existing pending run record.

        Args:
            run_id: Id of the run record to execute
            url: Page to open before the first step
            headed: Show the browser window
            script: Scenario text; without one the run only navigates
            test_data_ref: Reference to per-run test data
            cancel_token: Cooperative cancellation flag

        Returns:
            The finalized run record, or None when the record does not exist

        Raises:
            asyncio.CancelledError: The run was cancelled (after finalization)
        """
        record = await self.store.get(run_id)
        if record is None:
            self.logger.error(f"Run record {run_id} not found")
            return None

        run_secrets = self.secrets.for_run()
        if test_data_ref:
            run_secrets.load_scoped(self.data_source, test_data_ref)

        context = _RunContext(record, run_secrets, cancel_token)
        with bind_run(run_id), track_run_tokens(context.tokens):
            return await self._execute_record(context, url, headed, script)

    async def _execute_record(
        self,
        context: _RunContext,
        url: str,
        headed: bool,
        script: Optional[str],
    ) -> RunRecord:
        record = context.record
        reasoning_log = context.reasoning_log
        record.transition_to(RunStatus.RUNNING)
        await self.store.save(record)

        start_time = time.perf_counter()
        session = self._session_factory(headed)
        cancellation: Optional[asyncio.CancelledError] = None

        try:
            check_cancelled(context.cancel_token)
            context.page = await session.start(context.cancel_token)
            await self._navigate(context, url)

            context.executor = ActionExecutor(context.secrets, self.settings)
            context.verifier = VerificationEngine(
                self.oracle, self.snapshots, reasoning_log, self.settings
            )
            await self._run_steps(context, script)

            await self._capture_final_screenshot(context.page, record)
            record.transition_to(RunStatus.PASSED)
            await self.store.save(record)
            self.logger.info("Run passed")

        except asyncio.CancelledError as e:
            self.logger.warning(f"Run cancelled at step: {context.current_step}")
            record.transition_to(RunStatus.FAILED)
            record.cancelled = True
            record.error_message = f"Cancelled at step '{context.current_step}'"
            reasoning_log.cancelled(f"Run cancelled at step '{context.current_step}'")
            cancellation = e
            await self.store.save(record)

        except Exception as e:
            self.logger.error(f"Test failed at step: {context.current_step}", exc_info=True)
            record.transition_to(RunStatus.FAILED)
            record.error_message = context.secrets.mask_literals(
                f"Failed at step '{context.current_step}': {e}"
            )
            reasoning_log.error(str(e))
            if isinstance(e, ActionExecutionError) and e.screenshot_path:
                record.screenshot_path = e.screenshot_path
            await self.store.save(record)

        finally:
            record.reasoning_log = reasoning_log.flush()
            record.record_usage(context.tokens.total())

            video_path = await session.video_path()
            await session.close()
            record.video_path = await self._relocate_video(video_path, record.run_id)

            record.duration_seconds = time.perf_counter() - start_time
            context.secrets.clear_scoped()
            await self.store.save(record)
            log_performance_metric(
                "run_duration",
                record.duration_seconds,
                unit="s",
                context={"status": record.status.value},
            )

        if cancellation is not None:
            raise cancellation
        return record

    async def _navigate(self, context: _RunContext, url: str) -> None:
        context.current_step = "Navigating"
        check_cancelled(context.cancel_token)
        self.logger.info(f"Navigating to {safe_url_for_log(url)}...")
        await context.page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.settings.navigation_timeout_ms,
        )

    async def _run_steps(self, context: _RunContext, script: Optional[str]) -> None:
        for step in iter_steps(script, context.secrets):
            check_cancelled(context.cancel_token)
            context.current_step = f"Executing Step: {step.text}"
            set_step(step.number)
            self.logger.info(
                context.current_step,
                extra={"step_number": step.number},
            )
            if step.is_verification:
                await context.verifier.verify_step(
                    context.page, step.text, context.cancel_token
                )
            else:
                await self._run_action(context, step)

    async def _run_action(self, context: _RunContext, step: ClassifiedStep) -> None:
        snapshot = await self.snapshots.capture(
            context.page, for_verification=False, cancel_token=context.cancel_token
        )
        result = await self.oracle.resolve_action(step.text, snapshot)
        if not result.ok:
            raise DecisionError(
                f"AI decision failed for step: {step.text}. Reason: {result.failure.reason}",
                step=step.text,
            )

        decision = result.value
        context.reasoning_log.action(step.text, decision)
        execution = await context.executor.execute(
            context.page, decision, context.cancel_token
        )
        if not execution.ok:
            raise ActionExecutionError(
                execution.error,
                action=decision.action_kind.value,
                selector=decision.selector_value,
                screenshot_path=execution.screenshot_path,
            )

    async def _capture_final_screenshot(self, page: Page, record: RunRecord) -> None:
        title = await page.title()
        path = self.screenshots_dir / f"screenshot_{record.run_id}_{datetime.now():%Y%m%d%H%M%S%f}.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        await page.screenshot(path=str(path))
        record.screenshot_path = str(path)
        record.error_message = f"Completed. Page Title: {title}"

    async def _relocate_video(self, video_path: Optional[str], run_id: str) -> Optional[str]:
        """Move the recording to ``videos_dir`` under a run-specific name."""
        if not video_path or not Path(video_path).is_file():
            return None

        destination = self.videos_dir / f"video_{run_id}_{datetime.now():%Y%m%d%H%M%S%f}.webm"
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(shutil.move, video_path, destination)
        except OSError as e:
            self.logger.warning(f"Failed to move video file: {e}")
            return None
        return str(destination)
