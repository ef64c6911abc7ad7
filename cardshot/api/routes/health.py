"""
Health Routes
=============

Liveness check and service info. Neither touches the rendering pipeline.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Basic health check endpoint."""
    return "ok"


@router.get("/", tags=["General"])
async def root(request: Request) -> Dict[str, Any]:
    """Root endpoint with basic API information."""
    settings = request.app.state.settings
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "health_check": "/health",
        "endpoints": {
            "render_cards": "POST /render",
            "render_card": "POST /render/card",
            "render_html": "POST /render/html",
            "inspect_page": "POST /run",
        },
    }
