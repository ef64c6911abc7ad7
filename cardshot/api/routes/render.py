"""
Render Routes
=============

FastAPI routes for card rendering. Errors raised by the pipeline are turned
into responses by the application's exception handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from cardshot.config.logging import get_logger
from cardshot.core.errors import InvalidInput
from cardshot.core.pipeline import RenderPipeline
from cardshot.models.schemas import CardRenderRequest, HtmlRenderRequest, TwoCardRenderRequest

logger = get_logger(__name__)

router = APIRouter(tags=["Rendering"])

ARCHIVE_FILENAME = "cards.zip"


def get_pipeline(request: Request) -> RenderPipeline:
    """Dependency returning the application's render pipeline."""
    return request.app.state.pipeline


def png_response(png_data: bytes) -> Response:
    return Response(content=png_data, media_type="image/png")


@router.post("/render", response_class=StreamingResponse)
async def render_cards(
    body: Optional[TwoCardRenderRequest] = None,
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    """
    Render the two-card set and stream it as ``cards.zip``.

    Card 1 uses the chips layout with ``page1`` colors, card 2 the bullets
    layout with ``page2`` colors. Every field is optional.
    """
    job = (body or TwoCardRenderRequest()).to_job()
    logger.info("Two-card render requested", title_length=len(job.specs[0].title))

    outcome = await pipeline.execute(job)
    return StreamingResponse(
        outcome.iter_archive(),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"'},
        background=BackgroundTask(outcome.aclose),
    )


@router.post("/render/card")
async def render_card(
    body: CardRenderRequest,
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> Response:
    """Render one templated card as PNG."""
    logger.info("Single card render requested", variant=int(body.variant))
    outcome = await pipeline.execute(body.to_job())
    return png_response(outcome.image.png_data)


@router.post("/render/html")
async def render_html(
    body: Optional[HtmlRenderRequest] = None,
    pipeline: RenderPipeline = Depends(get_pipeline),
) -> Response:
    """Capture caller-supplied HTML as PNG."""
    html = body.html if body else None
    if not html:
        raise InvalidInput("html is required")

    logger.info("HTML render requested", html_length=len(html))
    image = await pipeline.render_html(html)
    return png_response(image.png_data)
