"""Placeholder-driven composer.

Creates the slide from its layout with placeholder id mappings, then fills
title, subtitle and body placeholders. Content the layout has no
placeholder for goes into free-standing text boxes.
"""

from typing import Any

from md2gslides.schemas.presentation_schema import LayoutMeta
from md2gslides.schemas.slide_schema import SlideDefinition
from md2gslides.slides_engine.composers.base import (
    BODY_TOP_PT,
    GUTTER_PT,
    MARGIN_PT,
    TITLE_TOP_PT,
    BaseComposer,
    ComposedSlide,
)
from md2gslides.slides_engine.layout_registry import PlaceholderSpec, placeholder_spec


class PlaceholderComposer(BaseComposer):
    """Compose a slide whose text lives in layout placeholders."""

    def placeholders(self, layout_name: str) -> PlaceholderSpec:
        return placeholder_spec(layout_name)

    def compose(
        self,
        slide: SlideDefinition,
        layout: LayoutMeta | None = None,
        insertion_index: int | None = None,
    ) -> ComposedSlide:
        layout_name = slide.layout or "TITLE_AND_BODY"
        spec = self.placeholders(layout_name)
        slide_id = self.new_id("slide")
        mappings: list[tuple[str, int, str]] = []
        fills: list[dict[str, Any]] = []
        loose: list[dict[str, Any]] = []

        if slide.title is not None and not slide.title.is_blank():
            if spec.title:
                title_id = self.new_id("title")
                mappings.append((spec.title, 0, title_id))
                fills.extend(self.text_requests(title_id, slide.title))
            else:
                loose.extend(
                    self.text_box_requests(
                        slide_id, slide.title, MARGIN_PT, TITLE_TOP_PT, self.boxes.title
                    )
                )

        if slide.subtitle is not None and not slide.subtitle.is_blank():
            if spec.subtitle:
                subtitle_id = self.new_id("subtitle")
                mappings.append((spec.subtitle, 0, subtitle_id))
                fills.extend(self.text_requests(subtitle_id, slide.subtitle))
            else:
                top = TITLE_TOP_PT + self.boxes.title.height
                loose.extend(
                    self.text_box_requests(
                        slide_id, slide.subtitle, MARGIN_PT, top, self.boxes.subtitle
                    )
                )

        bodies = slide.text_bodies
        column_box = self.boxes.column if len(bodies) >= 2 else self.boxes.body
        for i, body in enumerate(bodies):
            if i < spec.bodies:
                body_id = self.new_id("body")
                mappings.append(("BODY", i, body_id))
                fills.extend(self.text_requests(body_id, body.text, body.lists))
            else:
                left = MARGIN_PT + i * (column_box.width + GUTTER_PT)
                loose.extend(
                    self.text_box_requests(
                        slide_id, body.text, left, BODY_TOP_PT, column_box, body.lists
                    )
                )

        requests = [
            self.create_slide_request(slide_id, layout_name, layout, mappings, insertion_index)
        ]
        requests.extend(fills)
        requests.extend(loose)
        requests.extend(self.media_requests(slide_id, slide.bodies))
        for table in slide.tables:
            requests.extend(self.table_requests(slide_id, table, MARGIN_PT, BODY_TOP_PT))
        if slide.background_image is not None:
            background = self.background_request(slide_id, slide.background_image)
            if background is not None:
                requests.append(background)

        return ComposedSlide(
            object_id=slide_id, index=slide.index, requests=requests, notes=slide.notes
        )
