"""Layout matching and placeholder geometry for compiled slides."""

import logging
import re
from dataclasses import dataclass

from md2gslides.schemas.presentation_schema import LayoutMeta, PlaceholderMeta
from md2gslides.schemas.settings import BoxSettings
from md2gslides.schemas.slide_schema import SlideDefinition, SlideLayout
from md2gslides.schemas.text_schema import Box

logger = logging.getLogger(__name__)

_NUMERIC_TITLE = re.compile(r"^\s*[$€£¥+\-~]?\s*\d[\d.,]*\s*[%xX]?\s*[kKmMbB+]?\s*$")

ROLE_TYPES: dict[str, tuple[str, ...]] = {
    "title": ("TITLE", "CENTERED_TITLE"),
    "subtitle": ("SUBTITLE",),
    "body": ("BODY",),
}


@dataclass(frozen=True)
class PlaceholderSpec:
    """Which placeholders a predefined layout offers."""

    title: str | None = None
    subtitle: str | None = None
    bodies: int = 0


LAYOUT_PLACEHOLDERS: dict[str, PlaceholderSpec] = {
    SlideLayout.TITLE.value: PlaceholderSpec(title="CENTERED_TITLE", subtitle="SUBTITLE"),
    SlideLayout.SECTION_HEADER.value: PlaceholderSpec(title="TITLE"),
    SlideLayout.TITLE_AND_BODY.value: PlaceholderSpec(title="TITLE", bodies=1),
    SlideLayout.TITLE_AND_TWO_COLUMNS.value: PlaceholderSpec(title="TITLE", bodies=2),
    SlideLayout.TITLE_ONLY.value: PlaceholderSpec(title="TITLE"),
    SlideLayout.MAIN_POINT.value: PlaceholderSpec(title="TITLE"),
    SlideLayout.BIG_NUMBER.value: PlaceholderSpec(title="TITLE", bodies=1),
    SlideLayout.CAPTION_ONLY.value: PlaceholderSpec(bodies=1),
    SlideLayout.BLANK.value: PlaceholderSpec(),
}

BIG_LAYOUTS = (SlideLayout.MAIN_POINT.value, SlideLayout.BIG_NUMBER.value)


def placeholder_spec(layout_name: str) -> PlaceholderSpec:
    """Placeholders of a predefined layout; custom layouts are assumed title + body."""
    spec = LAYOUT_PLACEHOLDERS.get(layout_name)
    if spec is None:
        logger.debug(f"Unknown layout '{layout_name}', assuming title and body placeholders")
        return PlaceholderSpec(title="TITLE", bodies=1)
    return spec


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------

def _preferred_layout(slide: SlideDefinition) -> str:
    if slide.layout:
        return slide.layout

    has_title = slide.title is not None and not slide.title.is_blank()
    has_subtitle = slide.subtitle is not None and not slide.subtitle.is_blank()
    bodies = slide.text_bodies

    if "big" in slide.classes:
        if has_title and _NUMERIC_TITLE.match(slide.title.raw_text):
            return SlideLayout.BIG_NUMBER.value
        return SlideLayout.MAIN_POINT.value
    if has_title and has_subtitle and not bodies and not slide.has_media:
        return SlideLayout.TITLE.value
    if has_title and not bodies and not slide.has_media:
        return SlideLayout.SECTION_HEADER.value
    if len(bodies) >= 2:
        return SlideLayout.TITLE_AND_TWO_COLUMNS.value
    if bodies:
        return SlideLayout.TITLE_AND_BODY.value
    if slide.has_media:
        return SlideLayout.TITLE_ONLY.value
    return SlideLayout.BLANK.value


def match_layout(slide: SlideDefinition, available: set[str] | None = None) -> str:
    """Choose a predefined layout name for a compiled slide.

    Args:
        slide: The compiled slide.
        available: Layout names the target presentation offers. When given
            and the preferred layout is missing, TITLE_AND_BODY and then
            BLANK are tried.

    Returns:
        The layout name.
    """
    layout = _preferred_layout(slide)
    if available is None or layout in available:
        return layout
    for fallback in (SlideLayout.TITLE_AND_BODY.value, SlideLayout.BLANK.value):
        if fallback in available:
            logger.debug(f"Slide {slide.index}: layout {layout} unavailable, using {fallback}")
            return fallback
    return SlideLayout.BLANK.value


# ---------------------------------------------------------------------------
# Placeholder geometry
# ---------------------------------------------------------------------------

def _left(placeholder: PlaceholderMeta) -> float:
    return (placeholder.transform or {}).get("translateX", 0) or 0


def ordered_placeholders(placeholders: list[PlaceholderMeta], role: str) -> list[PlaceholderMeta]:
    """Placeholders filling a role, bodies sorted left to right."""
    matching = [p for p in placeholders if p.type in ROLE_TYPES[role]]
    if role == "body":
        matching.sort(key=_left)
    return matching


def default_box(layout_name: str, role: str, body_count: int = 1, boxes: BoxSettings | None = None) -> Box:
    """Configured box for a role when the target layout's geometry is unknown."""
    boxes = boxes or BoxSettings()
    if role == "title":
        return boxes.big if layout_name in BIG_LAYOUTS else boxes.title
    if role == "subtitle":
        return boxes.subtitle
    return boxes.column if body_count >= 2 else boxes.body


def placeholder_box(
    layout_name: str,
    role: str,
    index: int = 0,
    layout: LayoutMeta | None = None,
    body_count: int = 1,
    boxes: BoxSettings | None = None,
) -> Box:
    """Box (pt) available to a title, subtitle or the ``index``-th body.

    Uses the target layout's placeholder size when the presentation is
    known, else the configured default boxes.
    """
    if layout is not None:
        candidates = ordered_placeholders(layout.placeholders, role)
        if index < len(candidates) and candidates[index].box is not None:
            return candidates[index].box
    return default_box(layout_name, role, body_count, boxes)
