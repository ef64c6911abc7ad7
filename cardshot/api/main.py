"""
FastAPI Application
==================

Application factory for the card render service. Wires the render pipeline,
request IDs and the error boundary that maps pipeline errors to responses.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import uvicorn

from cardshot.api.routes import health, render, run
from cardshot.config.logging import get_logger
from cardshot.config.settings import Settings, get_settings
from cardshot.core.errors import CardRenderError, ErrorKind
from cardshot.core.pipeline import RenderPipeline
from cardshot.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = app.state.settings
    logger.info("Server listening", host=settings.host, port=settings.port)
    try:
        yield
    finally:
        if app.state.pipeline.gate.busy:
            logger.warning("Shutting down with a render job in flight")
        logger.info("Shutting down FastAPI application")


def error_response(request: Request, kind: ErrorKind, message: str) -> JSONResponse:
    """Build the JSON body shared by every error status."""
    body = ErrorResponse(
        error=message,
        error_code=kind.value,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=kind.status_code, content=body.model_dump(mode="json"))


async def card_render_exception_handler(request: Request, exc: CardRenderError) -> JSONResponse:
    """Handle pipeline errors with the status code of their kind."""
    log = logger.info if exc.kind is ErrorKind.ALREADY_BUSY else logger.error
    log(
        "Render request failed",
        error_code=exc.kind.value,
        error_message=exc.message,
        cause=repr(exc.__cause__) if exc.__cause__ else None,
        request_id=getattr(request.state, "request_id", None),
    )
    return error_response(request, exc.kind, exc.message)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as invalid input."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    logger.info("Invalid request body", details=details)
    return error_response(request, ErrorKind.INVALID_INPUT, f"Invalid request: {details}")


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """General exception handler for unexpected errors."""
    logger.error(
        "Unhandled exception",
        exception=str(exc),
        request_id=getattr(request.state, "request_id", None),
        exc_info=True,
    )
    body = ErrorResponse(
        error="Internal server error",
        error_code="internal_error",
        details={"exception": str(exc)} if request.app.state.settings.debug else None,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


async def add_request_id(request: Request, call_next):  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


def create_app(
    settings: Optional[Settings] = None, pipeline: Optional[RenderPipeline] = None
) -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Args:
        settings: Settings to use; defaults to the environment
        pipeline: Render pipeline to use; defaults to a fresh one with its own gate

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Render title cards to PNG through headless Chromium",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.pipeline = pipeline or RenderPipeline(settings=settings)

    app.middleware("http")(add_request_id)
    app.add_exception_handler(CardRenderError, card_render_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(health.router)
    app.include_router(render.router)
    app.include_router(run.router)

    return app


def run_server() -> None:
    """Run the service with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run_server()
