"""Pydantic models describing a remote presentation snapshot.

These are read-only projections of the Slides API ``presentations.get``
payload, assembled by the reconciliation protocol. Sizes and transforms are
kept in the API's native shape (EMU).
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from .text_schema import Box


class PlaceholderMeta(BaseModel):
    """A placeholder shape on a layout or slide."""

    object_id: str
    type: Optional[str] = None
    text: Optional[str] = None
    transform: Optional[dict[str, Any]] = None
    size: Optional[dict[str, Any]] = None

    @property
    def box(self) -> Optional[Box]:
        """Rendered size in points (size scaled by the transform), if known."""
        if not self.size:
            return None
        width = (self.size.get("width") or {}).get("magnitude")
        height = (self.size.get("height") or {}).get("magnitude")
        if width is None or height is None:
            return None
        transform = self.transform or {}
        scale_x = transform.get("scaleX", 1) or 1
        scale_y = transform.get("scaleY", 1) or 1
        return Box.from_emu(width * scale_x, height * scale_y)


class ElementMeta(BaseModel):
    """Any page element on a slide."""

    object_id: str
    element_type: str = Field(
        description="shape, image, video, table, line, sheetsChart, wordArt, group or unknown"
    )
    placeholder_type: Optional[str] = None
    text: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    transform: Optional[dict[str, Any]] = None
    size: Optional[dict[str, Any]] = None


class LayoutMeta(BaseModel):
    """A layout page and its placeholders."""

    object_id: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    placeholders: list[PlaceholderMeta] = Field(default_factory=list)

    def find_placeholder(self, *types: str) -> Optional[PlaceholderMeta]:
        for placeholder in self.placeholders:
            if placeholder.type in types:
                return placeholder
        return None


class SlideMeta(BaseModel):
    """A slide page with its placeholders, elements and marker binding."""

    object_id: str
    layout: Optional[str] = Field(default=None, description="Layout display name")
    layout_name: Optional[str] = Field(default=None, description="Predefined layout name")
    title: Optional[str] = None
    index: int = Field(description="Marker index if marked, else position")
    marker: Optional[int] = Field(default=None, description="Index parsed from the notes marker")
    notes_object_id: Optional[str] = None
    placeholders: list[PlaceholderMeta] = Field(default_factory=list)
    elements: list[ElementMeta] = Field(default_factory=list)

    def placeholders_of_type(self, *types: str) -> list[PlaceholderMeta]:
        return [p for p in self.placeholders if p.type in types]


class PresentationMeta(BaseModel):
    """Snapshot of a presentation; never the system of record."""

    presentation_id: str
    title: Optional[str] = None
    layouts: list[LayoutMeta] = Field(default_factory=list)
    slides: list[SlideMeta] = Field(default_factory=list)

    def find_layout(self, name: str) -> Optional[LayoutMeta]:
        """Find a layout by predefined name or display name."""
        for layout in self.layouts:
            if name in (layout.name, layout.display_name):
                return layout
        return None

    def slide_by_index(self) -> dict[int, SlideMeta]:
        """Slides keyed by index; on a duplicate index the later slide wins."""
        return {slide.index: slide for slide in self.slides}


class ElementUpdate(BaseModel):
    """An in-place edit of one element (text replacement and/or image swap)."""

    element_id: str
    text: Optional[str] = None
    image_url: Optional[str] = None
