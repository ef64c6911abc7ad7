"""
Card Layouts
============

Turn a CardSpec into a self-contained HTML document. Layouts are Jinja2
files next to this module; every document has fixed 1080x1350 page
dimensions and inline styles only, so rendering never fetches anything.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

import jinja2
from markupsafe import Markup, escape

from cardshot.core.errors import RenderFailed
from cardshot.models.schemas import CARD_SURFACE, CardSpec, CardVariant

TEMPLATE_DIR = Path(__file__).parent / "templates"

TEMPLATE_NAMES = {
    CardVariant.CHIPS: "card_v1.html",
    CardVariant.BULLETS: "card_v2.html",
}

BADGES = {
    CardVariant.CHIPS: "NEW",
    CardVariant.BULLETS: "GUIDE",
}

CHIP_LABELS: Tuple[str, ...] = ("Design", "Build", "Ship")

BULLET_ROWS: Tuple[str, ...] = (
    "Rendered from plain HTML and CSS",
    "Crisp at double pixel density",
    "Ready to post as-is",
)


def escape_text(value: str) -> Markup:
    """HTML-escape free text: ``&``, ``<``, ``>``, ``"`` and ``'``."""
    return escape(value)


@lru_cache(maxsize=1)
def get_environment() -> jinja2.Environment:
    """Jinja2 environment for card layouts, autoescaping and strict undefined."""
    return jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=jinja2.select_autoescape(["html"]),
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def build_context(spec: CardSpec) -> Dict[str, Any]:
    """
    Template context for a card.

    Title and subtitle are escaped here; autoescaping leaves the resulting
    Markup alone, so text is escaped exactly once. Colors go in as plain
    strings and get autoescaped, which leaves any valid CSS color untouched.
    """
    return {
        "title": escape_text(spec.title),
        "subtitle": escape_text(spec.subtitle),
        "background": spec.resolved_background(),
        "accent": spec.resolved_accent(),
        "badge": BADGES[spec.variant],
        "chips": CHIP_LABELS,
        "bullets": BULLET_ROWS,
        "width": CARD_SURFACE.width,
        "height": CARD_SURFACE.height,
    }


def build_markup(spec: CardSpec) -> str:
    """
    Render the layout selected by ``spec.variant``.

    Args:
        spec: Card specification

    Returns:
        Complete HTML document

    Raises:
        RenderFailed: If the template cannot be loaded or rendered
    """
    try:
        template = get_environment().get_template(TEMPLATE_NAMES[spec.variant])
        return template.render(**build_context(spec))
    except jinja2.TemplateError as e:
        raise RenderFailed(f"Template rendering failed: {e}") from e
