"""
Tests for the action executor.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from autonomate.browser.executor import ActionExecutor
from autonomate.core.cancellation import CancellationToken
from autonomate.core.types import ActionDecision, ActionKind
from autonomate.security.secrets import SecretStore


def _decision(action, selector_kind="button", selector_value="Go", input_data=None):
    payload = {
        "ActionKind": action,
        "SelectorKind": selector_kind,
        "SelectorValue": selector_value,
    }
    if input_data is not None:
        payload["InputData"] = input_data
    return ActionDecision.from_wire(payload)


@pytest.fixture
def page(mock_page, mock_locator):
    mock_page.get_by_role = MagicMock(return_value=mock_locator)
    mock_page.get_by_label = MagicMock(return_value=mock_locator)
    return mock_page


@pytest.fixture
def executor(settings):
    secrets = SecretStore({"Password": "s3cret!"})
    return ActionExecutor(secrets, settings)


class TestExecute:
    """Dispatch per action kind."""

    @pytest.mark.asyncio
    async def test_click_forced_with_timeout(self, executor, page, mock_locator):
        result = await executor.execute(page, _decision("click"))

        mock_locator.click.assert_awaited_once_with(force=True, timeout=10000)
        mock_locator.scroll_into_view_if_needed.assert_awaited_once()
        mock_locator.highlight.assert_awaited_once()
        assert result.ok
        assert result.outcome.action_kind == ActionKind.CLICK
        assert result.outcome.target == "button 'Go'"

    @pytest.mark.asyncio
    async def test_fill_substitutes_placeholders(self, executor, page, mock_locator):
        decision = _decision("fill", "label", "Password", input_data="{{Password}}")

        await executor.execute(page, decision)

        mock_locator.fill.assert_awaited_once_with("s3cret!", timeout=10000)

    @pytest.mark.asyncio
    async def test_type_alias_fills(self, executor, page, mock_locator):
        await executor.execute(page, _decision("type", "label", "Name", input_data="Bob"))
        mock_locator.fill.assert_awaited_once_with("Bob", timeout=10000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["check", "uncheck", "hover"])
    async def test_simple_actions(self, executor, page, mock_locator, action):
        await executor.execute(page, _decision(action, "checkbox", "Remember me"))
        getattr(mock_locator, action).assert_awaited_once_with(timeout=10000)

    @pytest.mark.asyncio
    async def test_unrecognized_action_clicks(self, executor, page, mock_locator):
        await executor.execute(page, _decision("doubleclick"))
        mock_locator.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigate_uses_selector_value_as_url(self, executor, page):
        decision = _decision("navigate", "css", "https://example.com/account")

        result = await executor.execute(page, decision)

        page.goto.assert_awaited_once_with("https://example.com/account")
        page.get_by_role.assert_not_called()
        assert result.outcome.target == "https://example.com/account"

    @pytest.mark.asyncio
    async def test_scroll_failure_is_not_fatal(self, executor, page, mock_locator):
        mock_locator.scroll_into_view_if_needed = AsyncMock(side_effect=RuntimeError("hidden"))

        await executor.execute(page, _decision("click"))

        mock_locator.click.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_settle_waits_when_enabled(self, settings, page):
        settings.wait_for_load_state_after_click_ms = 5000
        executor = ActionExecutor(SecretStore(), settings)

        await executor.execute(page, _decision("click"))

        page.wait_for_load_state.assert_any_await("domcontentloaded", timeout=5000)
        page.wait_for_load_state.assert_any_await("networkidle", timeout=3000)


class TestFailures:
    """Failure screenshots and cancellation."""

    @pytest.mark.asyncio
    async def test_failure_returns_result_with_screenshot(
        self, executor, page, mock_locator, settings
    ):
        mock_locator.click = AsyncMock(side_effect=TimeoutError("element not visible"))

        result = await executor.execute(page, _decision("click"))

        assert not result.ok
        assert "element not visible" in result.error
        assert Path(result.screenshot_path).name.startswith("error_action_")
        assert Path(result.screenshot_path).parent == Path(settings.screenshots_dir)
        page.screenshot.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_screenshot_error_tolerated(self, executor, page, mock_locator):
        mock_locator.click = AsyncMock(side_effect=RuntimeError("boom"))
        page.screenshot = AsyncMock(side_effect=RuntimeError("page closed"))

        result = await executor.execute(page, _decision("click"))

        assert not result.ok
        assert result.screenshot_path is None

    @pytest.mark.asyncio
    async def test_cancelled_before_operation(self, executor, page, mock_locator):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(asyncio.CancelledError):
            await executor.execute(page, _decision("click"), cancel_token=token)

        mock_locator.click.assert_not_awaited()
        page.screenshot.assert_not_awaited()
