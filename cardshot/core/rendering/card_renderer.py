"""
Card Renderer
=============

Drive a markup document through a render surface and capture it as PNG.
Also hosts the page inspector used to read a live page's title and heading.
"""

import asyncio
import io
from typing import Any, Optional

from PIL import Image  # type: ignore

from cardshot.config.logging import get_logger
from cardshot.config.settings import Settings, get_settings
from cardshot.core.errors import RenderFailed
from cardshot.core.rendering.surface import RenderSurface
from cardshot.models.schemas import PageSummary, RenderedImage

logger = get_logger(__name__)

FONTS_READY_SCRIPT = "() => document.fonts.ready.then(() => true)"


def measure_png(png_bytes: bytes) -> tuple[int, int]:
    """Read pixel dimensions from a PNG buffer."""
    with Image.open(io.BytesIO(png_bytes)) as image:
        if image.format != "PNG":
            raise ValueError(f"Expected PNG data, got {image.format}")
        return image.size


class CardRenderer:
    """Captures one markup document per call."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="card_renderer")

    async def render(self, surface: RenderSurface, markup: str, name: str) -> RenderedImage:
        """
        Load ``markup`` into the surface and screenshot the viewport.

        Args:
            surface: Open render surface owned by the current job
            markup: Complete HTML document
            name: File name for the resulting image

        Returns:
            RenderedImage at the surface's device pixel size

        Raises:
            RenderFailed: If loading or capture fails
        """
        self.logger.info("Rendering card", name=name, html_length=len(markup))
        try:
            page = surface.page
            await page.set_content(
                markup, wait_until="networkidle", timeout=self.settings.navigation_timeout
            )
            await self._wait_until_stable(page)
            png_bytes = await page.screenshot(type="png", full_page=False)
            width, height = measure_png(png_bytes)
        except Exception as e:
            self.logger.error("Card render failed", name=name, error=str(e))
            raise RenderFailed(f"Render failed for {name}: {e}") from e

        if (width, height) != surface.pixel_size:
            self.logger.warning(
                "Unexpected capture size",
                name=name,
                width=width,
                height=height,
                expected=surface.pixel_size,
            )

        image = RenderedImage(name=name, png_data=png_bytes, width=width, height=height)
        self.logger.info("Card rendered", name=name, file_size=image.file_size)
        return image

    async def _wait_until_stable(self, page: Any) -> None:
        # fonts.ready covers web fonts; the fixed delay covers late layout.
        # evaluate() ignores the page default timeout, so bound it here.
        timeout = self.settings.navigation_timeout / 1000
        try:
            await asyncio.wait_for(page.evaluate(FONTS_READY_SCRIPT), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RenderFailed(f"Font loading timed out after {timeout}s") from e
        if self.settings.settle_delay_ms:
            await asyncio.sleep(self.settings.settle_delay_ms / 1000)


class PageInspector:
    """Reads the title and first heading of a live page."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="page_inspector")

    async def inspect(self, surface: RenderSurface, url: str) -> PageSummary:
        """
        Navigate to ``url`` and extract ``document.title`` and the first ``h1``.

        Raises:
            RenderFailed: If navigation or extraction fails
        """
        self.logger.info("Navigating to website", url=url)
        try:
            page = surface.page
            await page.goto(url, wait_until="networkidle", timeout=self.settings.navigation_timeout)
            title = await page.title()
            heading_el = await page.query_selector("h1")
            heading = await heading_el.text_content() if heading_el is not None else None
        except Exception as e:
            self.logger.error("Page inspection failed", url=url, error=str(e))
            raise RenderFailed(f"Page inspection failed: {e}") from e

        self.logger.info("Page inspected", title=title, heading=heading)
        return PageSummary(title=title, heading=heading)
