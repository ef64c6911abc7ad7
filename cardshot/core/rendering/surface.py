"""
Render Surfaces
===============

Scoped Playwright lifecycle. A surface is one headless Chromium instance with
a single page sized to a SurfaceSpec. Surfaces are never shared or reused:
each job acquires its own and releases it exactly once.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from cardshot.config.logging import get_logger
from cardshot.config.settings import Settings, get_settings
from cardshot.core.errors import RenderEngineUnavailable
from cardshot.models.schemas import SurfaceSpec

logger = get_logger(__name__)

# Chromium needs these to run unprivileged inside containers.
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]


class RenderSurface:
    """Exclusively held browser, context and page for one job."""

    def __init__(self, spec: SurfaceSpec, playwright: Playwright):
        self.spec = spec
        self.playwright = playwright
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self.released = False

    @property
    def page(self) -> Page:
        if self._page is None or self.released:
            raise RuntimeError("Render surface is not open")
        return self._page

    @property
    def pixel_size(self) -> tuple[int, int]:
        """Size of a viewport capture in device pixels."""
        scale = self.spec.device_scale_factor
        return round(self.spec.width * scale), round(self.spec.height * scale)


class RenderSurfaceManager:
    """Acquires and releases render surfaces."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="surface_manager")

    async def acquire(self, spec: SurfaceSpec) -> RenderSurface:
        """
        Launch a browser and open a page configured for ``spec``.

        Args:
            spec: Viewport dimensions and device scale factor

        Returns:
            Open render surface, owned by the caller

        Raises:
            RenderEngineUnavailable: If the browser cannot be launched in time
        """
        timeout = self.settings.launch_timeout
        self.logger.info(
            "Starting browser",
            width=spec.width,
            height=spec.height,
            device_scale_factor=spec.device_scale_factor,
        )
        try:
            surface = await asyncio.wait_for(self._launch(spec), timeout=timeout)
        except asyncio.TimeoutError as e:
            self.logger.error("Browser launch timed out", timeout=timeout)
            raise RenderEngineUnavailable(f"Browser launch timed out after {timeout}s") from e
        except Exception as e:
            self.logger.error("Browser launch failed", error=str(e))
            raise RenderEngineUnavailable(f"Browser launch failed: {e}") from e

        self.logger.info("Browser started")
        return surface

    async def _launch(self, spec: SurfaceSpec) -> RenderSurface:
        playwright = await async_playwright().start()
        surface = RenderSurface(spec, playwright)
        try:
            surface.browser = await playwright.chromium.launch(
                headless=self.settings.playwright_headless,
                args=BROWSER_ARGS,
                timeout=self.settings.launch_timeout * 1000,
            )
            surface.context = await surface.browser.new_context(
                viewport={"width": spec.width, "height": spec.height},
                device_scale_factor=spec.device_scale_factor,
            )
            page = await surface.context.new_page()
            page.set_default_timeout(self.settings.navigation_timeout)
            surface._page = page
        except BaseException:
            await self.release(surface)
            raise
        return surface

    async def release(self, surface: RenderSurface) -> None:
        """
        Tear down the browser and driver behind ``surface``.

        Never raises: teardown errors are logged so they cannot fail a job
        that already produced its output. A second call is a no-op.
        """
        if surface.released:
            self.logger.warning("Render surface already released")
            return
        surface.released = True

        timeout = self.settings.launch_timeout
        if surface.browser is not None:
            try:
                await asyncio.wait_for(surface.browser.close(), timeout=timeout)
            except asyncio.TimeoutError:
                self.logger.error("Timed out closing browser", timeout=timeout)
            except Exception as e:
                self.logger.error("Error closing browser", error=str(e))

        try:
            await asyncio.wait_for(surface.playwright.stop(), timeout=timeout)
        except asyncio.TimeoutError:
            self.logger.error("Timed out stopping playwright", timeout=timeout)
        except Exception as e:
            self.logger.error("Error stopping playwright", error=str(e))

        self.logger.info("Browser closed")

    @asynccontextmanager
    async def session(self, spec: SurfaceSpec) -> AsyncGenerator[RenderSurface, None]:
        """Acquire a surface for the duration of the block."""
        surface = await self.acquire(spec)
        try:
            yield surface
        finally:
            await self.release(surface)
