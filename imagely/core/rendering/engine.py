"""
Headless Engine
===============

Playwright-driven Chromium instance owned by a single render pass.
Wraps page loading, viewport and background configuration, and capture
to PNG, JPEG, GIF or PDF.
"""

from typing import Optional, Any
from pathlib import Path
import io

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)
from PIL import Image  # type: ignore

from imagely.config.logging import get_logger
from imagely.config.settings import get_settings
from imagely.core.exceptions import EngineError, LoadError
from imagely.models.schemas import OutputFormat

logger = get_logger(__name__)


BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
]

SET_BACKGROUND_SCRIPT = "(color) => { document.body.bgColor = color; }"


class HeadlessEngine:
    """A single headless browser process with one page."""

    def __init__(self, scale: float = 1.0):
        self.scale = scale
        self.settings = get_settings()
        self.logger: Any = logger.bind(component="headless_engine")  # structlog.BoundLoggerBase
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.closed = False

    @property
    def page(self) -> Page:
        if self._page is None:
            raise EngineError("Headless engine not started")
        return self._page

    async def start(self) -> None:
        """Launch the browser and open a blank page."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=BROWSER_ARGS,
            )
            self._context = await self._browser.new_context(device_scale_factor=self.scale)
            self._page = await self._context.new_page()
            # 0 disables Playwright's own timeouts
            self._page.set_default_timeout(self.settings.playwright_timeout or 0)
        except PlaywrightError as e:
            self.logger.error("Failed to start headless engine", error=str(e))
            raise EngineError(f"Headless engine failed to start: {e}") from e

        self.logger.debug("Headless engine started", scale=self.scale)

    async def close(self) -> None:
        """
        Tear down the page, browser and Playwright driver. Safe to call once per start.

        Teardown failures (e.g. after a browser crash) are logged and do not
        raise; every remaining resource is still released.
        """
        if self.closed:
            return
        self.closed = True

        for name, resource in (("context", self._context), ("browser", self._browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                self.logger.warning("Failed to close headless engine resource", resource=name, error=str(e))

        if self._playwright:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                self.logger.warning("Failed to stop Playwright driver", error=str(e))

        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None

        self.logger.debug("Headless engine closed")

    async def open_url(self, url: str) -> None:
        """Navigate to a URL; a failed or non-2xx navigation raises LoadError."""
        try:
            response = await self.page.goto(url, wait_until="load")
        except PlaywrightError as e:
            self.logger.warning("URL navigation failed", url=url, error=str(e))
            raise LoadError(f'Error loading URL "{url}"') from e

        if response is None or not response.ok:
            status = response.status if response is not None else None
            self.logger.warning("URL navigation unsuccessful", url=url, status=status)
            raise LoadError(f'Error loading URL "{url}"')

    async def set_content(self, html: str) -> None:
        """Load already-inlined HTML into the page."""
        try:
            await self.page.set_content(html, wait_until="load")
        except PlaywrightError as e:
            raise EngineError(f"Failed to set page content: {e}") from e

    async def set_viewport(self, width: int, height: int) -> None:
        try:
            await self.page.set_viewport_size({"width": width, "height": height})
        except PlaywrightError as e:
            raise EngineError(f"Failed to set viewport: {e}") from e

    async def set_background(self, color: str) -> None:
        """Set the body background color from within the page context."""
        try:
            await self.page.evaluate(SET_BACKGROUND_SCRIPT, color)
        except PlaywrightError as e:
            raise EngineError(f"Failed to set background color: {e}") from e

    async def render(self, destination: Path, output_format: OutputFormat) -> None:
        """
        Capture the page to the destination path.

        PNG and JPEG are written by the browser directly, GIF is converted
        from a PNG capture with Pillow, and PDF uses the print pipeline.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        full_page = self.settings.full_page

        try:
            if output_format == OutputFormat.PDF:
                await self.page.pdf(path=str(destination), print_background=True)
            elif output_format == OutputFormat.JPEG:
                options: dict = {"type": "jpeg", "full_page": full_page}
                if self.settings.jpeg_quality is not None:
                    options["quality"] = self.settings.jpeg_quality
                await self.page.screenshot(path=str(destination), **options)
            elif output_format == OutputFormat.GIF:
                png_bytes = await self.page.screenshot(type="png", full_page=full_page)
                self._write_gif(png_bytes, destination)
            else:
                await self.page.screenshot(path=str(destination), type="png", full_page=full_page)
        except PlaywrightError as e:
            raise EngineError(f"Failed to capture page: {e}") from e

        self.logger.debug(
            "Page captured", destination=str(destination), format=output_format.value
        )

    def _write_gif(self, png_bytes: bytes, destination: Path) -> None:
        """Convert PNG bytes to a GIF file."""
        try:
            image = Image.open(io.BytesIO(png_bytes))  # type: ignore[attr-defined]
            image.convert("RGB").save(destination, format="GIF")  # type: ignore[attr-defined]
        except (OSError, ValueError) as e:
            raise EngineError(f"Failed to write GIF: {e}") from e
