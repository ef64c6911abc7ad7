"""
Render Pipeline
===============

Runs render jobs under the single-flight gate. Order of acquisition is
gate -> surface; release runs in reverse on every exit path. For zip output
the open scope moves into the RenderOutcome and is closed once the archive
has been streamed. Deflating runs in the threadpool so the event loop
keeps serving requests while an archive is written.
"""

from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, List, Optional

from starlette.concurrency import iterate_in_threadpool

from cardshot.config.logging import get_logger
from cardshot.config.settings import Settings, get_settings
from cardshot.core.gate import SingleFlightGate
from cardshot.core.packaging import stream_archive
from cardshot.core.rendering.card_renderer import CardRenderer, PageInspector
from cardshot.core.rendering.layouts import build_markup
from cardshot.core.rendering.surface import RenderSurfaceManager
from cardshot.models.schemas import (
    CARD_SURFACE,
    INSPECT_SURFACE,
    OutputMode,
    PageSummary,
    RenderJob,
    RenderedImage,
)

logger = get_logger(__name__)


class RenderOutcome:
    """Images of a finished job, plus the scope still held for delivery."""

    def __init__(
        self,
        images: List[RenderedImage],
        output_mode: OutputMode,
        scope: Optional[AsyncExitStack] = None,
    ):
        self.images = images
        self.output_mode = output_mode
        self._scope = scope

    @property
    def image(self) -> RenderedImage:
        return self.images[0]

    @property
    def open(self) -> bool:
        return self._scope is not None

    async def aclose(self) -> None:
        """Release the surface and gate still held by this outcome."""
        scope, self._scope = self._scope, None
        if scope is not None:
            await scope.aclose()

    async def iter_archive(self) -> AsyncIterator[bytes]:
        """Stream the zip archive, then release the held scope."""
        try:
            async for chunk in iterate_in_threadpool(stream_archive(self.images)):
                yield chunk
        finally:
            await self.aclose()


class RenderPipeline:
    """Composes gate, surfaces, layouts, renderer and packager."""

    def __init__(
        self,
        gate: Optional[SingleFlightGate] = None,
        surfaces: Optional[RenderSurfaceManager] = None,
        renderer: Optional[CardRenderer] = None,
        inspector: Optional[PageInspector] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.gate = gate or SingleFlightGate()
        self.surfaces = surfaces or RenderSurfaceManager(self.settings)
        self.renderer = renderer or CardRenderer(self.settings)
        self.inspector = inspector or PageInspector(self.settings)
        self.logger: Any = logger.bind(component="render_pipeline")

    async def execute(self, job: RenderJob) -> RenderOutcome:
        """
        Render every card of ``job``.

        Returns:
            RenderOutcome. For single_png output it is already closed; for zip
            output the caller must consume ``iter_archive()`` or ``aclose()``.

        Raises:
            AlreadyBusy: If another job holds the gate
            RenderEngineUnavailable: If the browser cannot be launched
            RenderFailed: If templating, loading or capture fails
        """
        async with AsyncExitStack() as stack:
            stack.enter_context(self.gate.admit())
            surface = await stack.enter_async_context(self.surfaces.session(CARD_SURFACE))

            images: List[RenderedImage] = []
            for index, spec in enumerate(job.specs, start=1):
                markup = build_markup(spec)
                images.append(await self.renderer.render(surface, markup, f"card-{index}.png"))

            self.logger.info("Render job completed", cards=len(images), output_mode=job.output_mode)

            if job.output_mode is OutputMode.SINGLE_PNG:
                return RenderOutcome(images, job.output_mode)
            return RenderOutcome(images, job.output_mode, scope=stack.pop_all())

    async def render_html(self, html: str) -> RenderedImage:
        """Capture a caller-supplied HTML document as one card."""
        with self.gate.admit():
            async with self.surfaces.session(CARD_SURFACE) as surface:
                return await self.renderer.render(surface, html, "card.png")

    async def inspect(self) -> PageSummary:
        """Read title and first heading of the configured ``inspect_url``."""
        with self.gate.admit():
            async with self.surfaces.session(INSPECT_SURFACE) as surface:
                return await self.inspector.inspect(surface, self.settings.inspect_url)
