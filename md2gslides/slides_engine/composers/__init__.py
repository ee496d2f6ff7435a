"""Slide composer registry.

Maps layout names to composer classes. Use get_composer() to build the
right composer for a compiled slide's layout.
"""

import logging
from typing import Callable

from md2gslides.schemas.settings import BoxSettings
from md2gslides.schemas.slide_schema import SlideLayout

from .base import BaseComposer, ComposedSlide
from .blank import BlankComposer
from .placeholder import PlaceholderComposer

logger = logging.getLogger(__name__)

COMPOSERS: dict[str, type[BaseComposer]] = {
    SlideLayout.TITLE.value: PlaceholderComposer,
    SlideLayout.SECTION_HEADER.value: PlaceholderComposer,
    SlideLayout.TITLE_AND_BODY.value: PlaceholderComposer,
    SlideLayout.TITLE_AND_TWO_COLUMNS.value: PlaceholderComposer,
    SlideLayout.TITLE_ONLY.value: PlaceholderComposer,
    SlideLayout.MAIN_POINT.value: PlaceholderComposer,
    SlideLayout.BIG_NUMBER.value: PlaceholderComposer,
    SlideLayout.CAPTION_ONLY.value: PlaceholderComposer,
    SlideLayout.BLANK.value: BlankComposer,
}


def get_composer(
    layout_name: str | None,
    boxes: BoxSettings | None = None,
    id_factory: Callable[[str], str] | None = None,
) -> BaseComposer:
    """Build the composer for a layout.

    Falls back to PlaceholderComposer for custom layouts.
    """
    composer_cls = COMPOSERS.get(layout_name or "")
    if composer_cls is None:
        logger.debug(f"No composer for layout {layout_name}, using PlaceholderComposer")
        composer_cls = PlaceholderComposer
    return composer_cls(boxes=boxes, id_factory=id_factory)


__all__ = [
    "BaseComposer",
    "BlankComposer",
    "ComposedSlide",
    "PlaceholderComposer",
    "get_composer",
    "COMPOSERS",
]
