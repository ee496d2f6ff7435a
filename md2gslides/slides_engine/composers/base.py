"""Base composer providing shared Slides API request builders.

Composers turn one SlideDefinition into ``batchUpdate`` requests. Text is
inserted once per shape, then styled run by run; offsets are converted
from Python string indices to the UTF-16 code units the API counts in.
Geometry on the wire is in points.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

from md2gslides.schemas.presentation_schema import LayoutMeta
from md2gslides.schemas.settings import BoxSettings
from md2gslides.schemas.slide_schema import (
    BodyDefinition,
    ImageDefinition,
    ListMarker,
    SlideDefinition,
    TableDefinition,
    VideoDefinition,
)
from md2gslides.schemas.text_schema import Box, TextBlock, TextStyle

logger = logging.getLogger(__name__)

SLIDE_WIDTH_PT = 720.0
SLIDE_HEIGHT_PT = 405.0
MARGIN_PT = 36.0
GUTTER_PT = 16.0
TITLE_TOP_PT = 20.0
BODY_TOP_PT = 110.0

BULLET_PRESET = "BULLET_DISC_CIRCLE_SQUARE"
NUMBERED_PRESET = "NUMBERED_DIGIT_ALPHA_ROMAN"

_STYLE_FIELDS = {
    "bold": "bold",
    "italic": "italic",
    "underline": "underline",
    "strikethrough": "strikethrough",
    "small_caps": "smallCaps",
    "font_family": "fontFamily",
    "font_size": "fontSize",
    "foreground_color": "foregroundColor",
    "background_color": "backgroundColor",
    "link": "link",
    "baseline_offset": "baselineOffset",
}


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------

def utf16_offset(text: str, index: int) -> int:
    """Convert a Python string index into a UTF-16 code unit offset."""
    return len(text[:index].encode("utf-16-le")) // 2


def _hex_to_rgb_dict(hex_color: str) -> dict[str, float]:
    value = hex_color.lstrip("#")
    return {
        "red": int(value[0:2], 16) / 255.0,
        "green": int(value[2:4], 16) / 255.0,
        "blue": int(value[4:6], 16) / 255.0,
    }


def text_style_to_api(style: TextStyle) -> tuple[dict[str, Any], str]:
    """Translate a TextStyle into an API ``TextStyle`` and its field mask."""
    api: dict[str, Any] = {}
    values = style.model_dump(exclude_none=True, exclude={"start", "end", "is_base"})
    for name, value in values.items():
        key = _STYLE_FIELDS.get(name)
        if key is None:
            continue
        if name in ("foreground_color", "background_color"):
            api[key] = {"opaqueColor": {"rgbColor": _hex_to_rgb_dict(value)}}
        elif name == "font_size":
            api[key] = {"magnitude": round(value["magnitude"], 1), "unit": value["unit"]}
        else:
            api[key] = value
    return api, ",".join(api.keys())


def _size(width: float, height: float) -> dict[str, Any]:
    return {
        "width": {"magnitude": width, "unit": "PT"},
        "height": {"magnitude": height, "unit": "PT"},
    }


def _transform(left: float, top: float) -> dict[str, Any]:
    return {"scaleX": 1, "scaleY": 1, "translateX": left, "translateY": top, "unit": "PT"}


def new_object_id(kind: str) -> str:
    return f"md2gs_{kind}_{uuid.uuid4().hex[:16]}"


@dataclass
class ComposedSlide:
    """Requests for one slide plus what the notes pass needs later."""

    object_id: str
    index: int
    requests: list[dict[str, Any]] = field(default_factory=list)
    notes: str | None = None


# ---------------------------------------------------------------------------
# Composer
# ---------------------------------------------------------------------------

class BaseComposer(ABC):
    """Abstract base for slide composers.

    Subclasses implement compose() for one family of layouts. The base
    class provides builders for text, bullets, text boxes, media, tables
    and speaker notes.
    """

    def __init__(
        self,
        boxes: BoxSettings | None = None,
        id_factory: Callable[[str], str] | None = None,
    ):
        self.boxes = boxes or BoxSettings()
        self.new_id = id_factory or new_object_id

    @abstractmethod
    def compose(
        self,
        slide: SlideDefinition,
        layout: LayoutMeta | None = None,
        insertion_index: int | None = None,
    ) -> ComposedSlide:
        """Build the requests that create and fill one slide.

        Args:
            slide: The compiled slide.
            layout: The target layout when the presentation defines it;
                otherwise the predefined layout named by ``slide.layout``.
            insertion_index: Position for the new slide; appended when None.
        """
        ...

    # ------------------------------------------------------------------
    # Slides
    # ------------------------------------------------------------------

    @staticmethod
    def create_slide_request(
        object_id: str,
        layout_name: str,
        layout: LayoutMeta | None = None,
        placeholder_ids: list[tuple[str, int, str]] | None = None,
        insertion_index: int | None = None,
    ) -> dict[str, Any]:
        """``createSlide`` with placeholder mappings ``(type, index, object_id)``."""
        if layout is not None:
            reference = {"layoutId": layout.object_id}
        else:
            reference = {"predefinedLayout": layout_name}
        request: dict[str, Any] = {"objectId": object_id, "slideLayoutReference": reference}
        if placeholder_ids:
            request["placeholderIdMappings"] = [
                {"layoutPlaceholder": {"type": ptype, "index": pindex}, "objectId": pid}
                for ptype, pindex, pid in placeholder_ids
            ]
        if insertion_index is not None:
            request["insertionIndex"] = insertion_index
        return {"createSlide": request}

    @staticmethod
    def background_request(slide_id: str, image: ImageDefinition) -> dict[str, Any] | None:
        if not image.is_remote:
            logger.warning(f"Background image '{image.url}' is not an http(s) URL; skipped")
            return None
        return {
            "updatePageProperties": {
                "objectId": slide_id,
                "pageProperties": {
                    "pageBackgroundFill": {"stretchedPictureFill": {"contentUrl": image.url}}
                },
                "fields": "pageBackgroundFill",
            }
        }

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    @staticmethod
    def text_requests(
        object_id: str,
        text: TextBlock,
        lists: list[ListMarker] | None = None,
        cell: tuple[int, int] | None = None,
    ) -> list[dict[str, Any]]:
        """Insert text into a shape (or table cell) and style each run.

        Bullets go last and from the end backwards: creating them strips
        the leading tabs used for nesting, which shifts later offsets.
        """
        if not text.raw_text:
            return []
        raw = text.raw_text
        location = {}
        if cell is not None:
            location = {"cellLocation": {"rowIndex": cell[0], "columnIndex": cell[1]}}

        requests: list[dict[str, Any]] = [
            {"insertText": {"objectId": object_id, **location, "text": raw, "insertionIndex": 0}}
        ]
        for run in text.runs:
            if run.start >= run.end:
                continue
            style, fields = text_style_to_api(run)
            if not fields:
                continue
            requests.append(
                {
                    "updateTextStyle": {
                        "objectId": object_id,
                        **location,
                        "textRange": {
                            "type": "FIXED_RANGE",
                            "startIndex": utf16_offset(raw, run.start),
                            "endIndex": utf16_offset(raw, run.end),
                        },
                        "style": style,
                        "fields": fields,
                    }
                }
            )
        for marker in sorted(lists or [], key=lambda m: m.start, reverse=True):
            if marker.end <= marker.start:
                continue
            requests.append(
                {
                    "createParagraphBullets": {
                        "objectId": object_id,
                        "textRange": {
                            "type": "FIXED_RANGE",
                            "startIndex": utf16_offset(raw, marker.start),
                            "endIndex": utf16_offset(raw, marker.end),
                        },
                        "bulletPreset": NUMBERED_PRESET if marker.ordered else BULLET_PRESET,
                    }
                }
            )
        return requests

    def text_box_requests(
        self,
        slide_id: str,
        text: TextBlock,
        left: float,
        top: float,
        box: Box,
        lists: list[ListMarker] | None = None,
    ) -> list[dict[str, Any]]:
        """Create a free-standing text box for content without a placeholder."""
        box_id = self.new_id("text")
        requests = [
            {
                "createShape": {
                    "objectId": box_id,
                    "shapeType": "TEXT_BOX",
                    "elementProperties": {
                        "pageObjectId": slide_id,
                        "size": _size(box.width, box.height),
                        "transform": _transform(left, top),
                    },
                }
            }
        ]
        requests.extend(self.text_requests(box_id, text, lists))
        return requests

    @staticmethod
    def notes_requests(notes_object_id: str, notes: str) -> list[dict[str, Any]]:
        if not notes:
            return []
        return [{"insertText": {"objectId": notes_object_id, "text": notes, "insertionIndex": 0}}]

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def media_requests(self, slide_id: str, bodies: list[BodyDefinition]) -> list[dict[str, Any]]:
        """Lay out every image and video of the slide left to right in the body area."""
        requests: list[dict[str, Any]] = []
        left = MARGIN_PT
        for body in bodies:
            for image in body.images:
                request = self.image_request(slide_id, image, left, BODY_TOP_PT)
                if request is not None:
                    requests.append(request)
                    left += (image.width or self.boxes.column.width) + GUTTER_PT
            for video in body.videos:
                request = self.video_request(slide_id, video, left, BODY_TOP_PT)
                if request is not None:
                    requests.append(request)
                    left += video.width + GUTTER_PT
        return requests

    def image_request(
        self, slide_id: str, image: ImageDefinition, left: float, top: float
    ) -> dict[str, Any] | None:
        if image.generator is not None and not image.url:
            logger.warning(f"Generated image '{image.generator}' has no rendered URL; skipped")
            return None
        if not image.is_remote:
            logger.warning(f"Image '{image.url}' is not an http(s) URL; upload is not supported")
            return None
        width = image.width or self.boxes.column.width
        height = image.height or self.boxes.body.height
        return {
            "createImage": {
                "objectId": self.new_id("image"),
                "url": image.url,
                "elementProperties": {
                    "pageObjectId": slide_id,
                    "size": _size(width, height),
                    "transform": _transform(left, top),
                },
            }
        }

    def video_request(
        self, slide_id: str, video: VideoDefinition, left: float, top: float
    ) -> dict[str, Any] | None:
        if video.service != "youtube":
            logger.warning(f"{video.service} videos cannot be embedded; skipped {video.url}")
            return None
        return {
            "createVideo": {
                "objectId": self.new_id("video"),
                "source": "YOUTUBE",
                "id": video.video_id,
                "elementProperties": {
                    "pageObjectId": slide_id,
                    "size": _size(video.width, video.height),
                    "transform": _transform(left, top),
                },
            }
        }

    def table_requests(
        self, slide_id: str, table: TableDefinition, left: float, top: float
    ) -> list[dict[str, Any]]:
        if not table.rows or not table.columns:
            return []
        table_id = self.new_id("table")
        requests: list[dict[str, Any]] = [
            {
                "createTable": {
                    "objectId": table_id,
                    "elementProperties": {
                        "pageObjectId": slide_id,
                        "size": _size(self.boxes.body.width, self.boxes.body.height),
                        "transform": _transform(left, top),
                    },
                    "rows": table.rows,
                    "columns": table.columns,
                }
            }
        ]
        for row_index, row in enumerate(table.cells):
            for column_index, cell in enumerate(row[: table.columns]):
                requests.extend(self.text_requests(table_id, cell, cell=(row_index, column_index)))
        return requests
