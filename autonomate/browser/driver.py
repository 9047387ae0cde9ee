"""
Playwright browser session with video recording.
"""

from pathlib import Path
from typing import Any, Callable, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from autonomate.config.settings import Settings, get_settings
from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.monitoring.logger import get_logger

LAUNCH_ARGS = ["--ignore-certificate-errors", "--no-sandbox"]


class BrowserSession:
    """
    Owns one playwright handle, browser, context and page for a single run.

    Resources are acquired in order and released in reverse. Each release is
    attempted independently; a failure is logged and the remaining resources
    are still released.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        headed: bool = False,
        playwright_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            settings: Settings instance (defaults to cached settings)
            headed: Show the browser window and apply slow motion
            playwright_factory: Returns an object with an async ``start()``;
                defaults to ``async_playwright``
        """
        settings = settings or get_settings()
        self.headed = headed
        self.channel = settings.browser_channel
        self.slow_mo_ms = settings.slow_mo_ms
        self.ignore_https_errors = settings.ignore_https_errors
        self.video_dir = Path(settings.videos_dir)
        self.video_size = {"width": settings.video_width, "height": settings.video_height}
        self._playwright_factory = playwright_factory or async_playwright
        self.logger = get_logger("browser.driver")

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Optional[Page]:
        return self._page

    async def start(self, cancel_token: Optional[CancellationToken] = None) -> Page:
        """Launch the browser and open a recording page."""
        check_cancelled(cancel_token)
        self._playwright = await self._playwright_factory().start()

        check_cancelled(cancel_token)
        self.logger.info(
            "Starting browser",
            extra={"headed": self.headed, "channel": self.channel},
        )
        self._browser = await self._playwright.chromium.launch(
            headless=not self.headed,
            channel=self.channel,
            slow_mo=self.slow_mo_ms if self.headed else 0,
            args=LAUNCH_ARGS,
        )

        check_cancelled(cancel_token)
        self.video_dir.mkdir(parents=True, exist_ok=True)
        self._context = await self._browser.new_context(
            ignore_https_errors=self.ignore_https_errors,
            record_video_dir=str(self.video_dir),
            record_video_size=self.video_size,
        )

        check_cancelled(cancel_token)
        self._page = await self._context.new_page()
        return self._page

    async def video_path(self) -> Optional[str]:
        """Return the path of the page's recording, if any."""
        if self._page is None or self._page.video is None:
            return None
        try:
            return str(await self._page.video.path())
        except Exception as e:
            self.logger.warning(f"Failed to get video path: {e}")
            return None

    async def close(self) -> None:
        """Release page, context, browser and playwright, in that order."""
        if self._page is not None:
            try:
                await self._page.close()
            except Exception as e:
                self.logger.warning(f"Failed to close page: {e}")
            self._page = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                self.logger.warning(f"Failed to close browser context: {e}")
            self._context = None

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                self.logger.warning(f"Failed to close browser: {e}")
            self._browser = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.warning(f"Failed to stop playwright: {e}")
            self._playwright = None

        self.logger.info("Browser stopped")

    async def __aenter__(self) -> "BrowserSession":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
