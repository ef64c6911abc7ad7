"""
Pydantic Models and Schemas
===========================

Card specifications, render jobs, rendered images, and API request/response
models. Defaults for the two card layouts live here so that every entry point
resolves colors the same way.
"""

from typing import Any, Dict, Optional, List, Literal
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Enums
class CardVariant(IntEnum):
    """The two fixed card layouts."""
    CHIPS = 1
    BULLETS = 2


class OutputMode(str, Enum):
    """How a render job delivers its images."""
    SINGLE_PNG = "single_png"
    ZIP = "zip"


class GateState(str, Enum):
    """Single-flight gate states."""
    IDLE = "idle"
    BUSY = "busy"


DEFAULT_BACKGROUNDS = {CardVariant.CHIPS: "#111827", CardVariant.BULLETS: "#0b1220"}
DEFAULT_ACCENTS = {CardVariant.CHIPS: "#a855f7", CardVariant.BULLETS: "#22c55e"}


# Core Models
class CardSpec(BaseModel):
    """Structured description driving one rendered card."""
    title: str = Field("", description="Card heading, free text")
    subtitle: str = Field("", description="Card subheading, free text")
    background_color: Optional[str] = Field(None, description="Background CSS color")
    accent_color: Optional[str] = Field(None, description="Accent CSS color")
    variant: CardVariant = Field(CardVariant.CHIPS, description="Layout variant")

    def resolved_background(self) -> str:
        """Background color with the variant default applied."""
        return self.background_color or DEFAULT_BACKGROUNDS[self.variant]

    def resolved_accent(self) -> str:
        """Accent color with the variant default applied."""
        return self.accent_color or DEFAULT_ACCENTS[self.variant]


class RenderJob(BaseModel):
    """One request's worth of cards."""
    specs: List[CardSpec] = Field(..., min_length=1, max_length=2)
    output_mode: OutputMode = Field(OutputMode.ZIP)

    @model_validator(mode="after")
    def check_single_output(self) -> "RenderJob":
        if self.output_mode is OutputMode.SINGLE_PNG and len(self.specs) != 1:
            raise ValueError("single_png output requires exactly one card")
        return self


class SurfaceSpec(BaseModel):
    """Pixel dimensions and density of a render surface."""
    model_config = ConfigDict(frozen=True)

    width: int = Field(..., gt=0, le=4000)
    height: int = Field(..., gt=0, le=4000)
    device_scale_factor: float = Field(1.0, gt=0, le=3.0)


CARD_SURFACE = SurfaceSpec(width=1080, height=1350, device_scale_factor=2)
INSPECT_SURFACE = SurfaceSpec(width=1280, height=720, device_scale_factor=1)


class RenderedImage(BaseModel):
    """PNG buffer produced by the card renderer."""
    name: str = Field(..., description="File name inside an archive")
    png_data: bytes = Field(..., description="PNG binary data", exclude=True)
    width: int = Field(..., description="Image width in pixels")
    height: int = Field(..., description="Image height in pixels")

    @property
    def file_size(self) -> int:
        return len(self.png_data)


class PageSummary(BaseModel):
    """Title and first heading of an inspected page."""
    title: str
    heading: Optional[str] = None


# Request Models
class CardColors(BaseModel):
    """Per-card color overrides."""
    bg: Optional[str] = Field(None, description="Background CSS color")
    accent: Optional[str] = Field(None, description="Accent CSS color")


class TwoCardRenderRequest(BaseModel):
    """Body of POST /render."""
    title: str = Field("Untitled", description="Heading shared by both cards")
    subtitle: str = Field("", description="Subheading shared by both cards")
    page1: CardColors = Field(default_factory=CardColors)
    page2: CardColors = Field(default_factory=CardColors)

    def to_job(self) -> RenderJob:
        """Expand into a two-card zip job, one card per layout."""
        return RenderJob(
            specs=[
                CardSpec(
                    title=self.title,
                    subtitle=self.subtitle,
                    background_color=self.page1.bg,
                    accent_color=self.page1.accent,
                    variant=CardVariant.CHIPS,
                ),
                CardSpec(
                    title=self.title,
                    subtitle=self.subtitle,
                    background_color=self.page2.bg,
                    accent_color=self.page2.accent,
                    variant=CardVariant.BULLETS,
                ),
            ],
            output_mode=OutputMode.ZIP,
        )


class CardRenderRequest(CardSpec):
    """Body of POST /render/card."""

    def to_job(self) -> RenderJob:
        return RenderJob(specs=[CardSpec(**self.model_dump())], output_mode=OutputMode.SINGLE_PNG)


class HtmlRenderRequest(BaseModel):
    """Body of POST /render/html. ``html`` is checked by the route, not here."""
    html: Optional[str] = Field(None, description="Complete HTML document to capture")


# Response Models
class InspectResponse(BaseModel):
    """Successful POST /run response."""
    ok: Literal[True] = True
    title: str
    heading: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response model."""
    ok: Literal[False] = False
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error kind")
    details: Optional[Dict[str, Any]] = Field(None, description="Debug details")
    request_id: Optional[str] = Field(None, description="Request identifier")
