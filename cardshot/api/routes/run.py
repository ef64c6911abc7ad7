"""
Inspection Routes
=================

POST /run opens the configured page and reports its title and first heading.
"""

from fastapi import APIRouter, Depends

from cardshot.api.routes.render import get_pipeline
from cardshot.config.logging import get_logger
from cardshot.core.pipeline import RenderPipeline
from cardshot.models.schemas import InspectResponse

logger = get_logger(__name__)

router = APIRouter(tags=["Inspection"])


@router.post("/run", response_model=InspectResponse)
async def run_inspection(pipeline: RenderPipeline = Depends(get_pipeline)) -> InspectResponse:
    """Inspect the page named by the ``inspect_url`` setting. Request bodies are ignored."""
    summary = await pipeline.inspect()

    logger.info("Page title", title=summary.title)
    logger.info("Main heading", heading=summary.heading)
    return InspectResponse(title=summary.title, heading=summary.heading)
