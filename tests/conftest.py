"""
Shared fixtures for AutonomateQA tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from autonomate.config.settings import Settings


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment with zero delays."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test-key-0000000000000000",
        action_models=["model-a", "model-b"],
        verify_models=["verify-a"],
        step_synthesis_models=["synth-a"],
        post_action_delay_ms=0,
        wait_for_load_state_after_click_ms=0,
        verify_retry_delay_seconds=0,
        test_secrets_file=tmp_path / "missing_secrets.json",
        data_dir=tmp_path / "data",
        screenshots_dir=tmp_path / "data" / "screenshots",
        videos_dir=tmp_path / "data" / "videos",
        runs_dir=tmp_path / "data" / "runs",
    )


@pytest.fixture
def mock_page():
    """Mock Playwright page with the calls the runner makes."""
    page = MagicMock()
    page.url = "https://example.com/login"
    page.goto = AsyncMock()
    page.title = AsyncMock(return_value="Example Domain")
    page.screenshot = AsyncMock(return_value=b"png")
    page.wait_for_load_state = AsyncMock()
    page.evaluate = AsyncMock(return_value=[])

    body = MagicMock()
    body.aria_snapshot = AsyncMock(return_value='- heading "Login" [level=1]')
    page.locator = MagicMock(return_value=body)
    return page


@pytest.fixture
def mock_locator():
    """Mock Playwright locator."""
    locator = MagicMock()
    locator.click = AsyncMock()
    locator.fill = AsyncMock()
    locator.check = AsyncMock()
    locator.uncheck = AsyncMock()
    locator.hover = AsyncMock()
    locator.highlight = AsyncMock()
    locator.scroll_into_view_if_needed = AsyncMock()
    locator.first = locator
    return locator
