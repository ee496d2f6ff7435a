"""Pydantic models for compiled slides and decks."""

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .text_schema import TextBlock


class SlideLayout(str, Enum):
    """Predefined Google Slides layouts the compiler can target."""

    TITLE = "TITLE"
    SECTION_HEADER = "SECTION_HEADER"
    TITLE_AND_BODY = "TITLE_AND_BODY"
    TITLE_AND_TWO_COLUMNS = "TITLE_AND_TWO_COLUMNS"
    TITLE_ONLY = "TITLE_ONLY"
    MAIN_POINT = "MAIN_POINT"
    BIG_NUMBER = "BIG_NUMBER"
    CAPTION_ONLY = "CAPTION_ONLY"
    BLANK = "BLANK"


class ImageDefinition(BaseModel):
    """An image on a slide: either a URL/path or a generated-image fence."""

    url: Optional[str] = None
    alt: str = ""
    width: Optional[float] = Field(default=None, description="Requested width in points")
    height: Optional[float] = Field(default=None, description="Requested height in points")
    generator: Optional[str] = Field(
        default=None,
        description="Info string of a generated-image fence (e.g. 'chart bar')",
    )
    source: Optional[str] = Field(
        default=None, description="Raw content of a generated-image fence"
    )

    @property
    def is_remote(self) -> bool:
        return bool(self.url) and self.url.startswith(("http://", "https://"))


class VideoDefinition(BaseModel):
    """An embedded video (YouTube or Vimeo)."""

    service: Literal["youtube", "vimeo"]
    video_id: str
    url: str = ""
    width: float = 640
    height: float = 390


class ListMarker(BaseModel):
    """Character range of a (top-level) list inside a body TextBlock."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    ordered: bool = False


class BodyDefinition(BaseModel):
    """One body area (column) of a slide."""

    text: Optional[TextBlock] = None
    images: list[ImageDefinition] = Field(default_factory=list)
    videos: list[VideoDefinition] = Field(default_factory=list)
    lists: list[ListMarker] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            (self.text is None or self.text.is_blank())
            and not self.images
            and not self.videos
        )


class TableDefinition(BaseModel):
    """A table as a grid of styled cells."""

    rows: int = 0
    columns: int = 0
    cells: list[list[TextBlock]] = Field(default_factory=list)


class SlideDefinition(BaseModel):
    """A compiled slide, ready to be turned into presentation requests."""

    index: int = Field(ge=0, description="0-based position in the compiled deck")
    layout: Optional[str] = Field(
        default=None, description="Explicit layout override or the matched layout"
    )
    classes: list[str] = Field(default_factory=list)
    title: Optional[TextBlock] = None
    subtitle: Optional[TextBlock] = None
    bodies: list[BodyDefinition] = Field(default_factory=list)
    tables: list[TableDefinition] = Field(default_factory=list)
    notes: Optional[str] = None
    background_image: Optional[ImageDefinition] = None
    template_slide_id: Optional[str] = Field(
        default=None,
        description="Remote slide to duplicate instead of creating from a layout",
    )

    @property
    def has_media(self) -> bool:
        return any(b.images or b.videos for b in self.bodies) or bool(self.tables)

    @property
    def text_bodies(self) -> list[BodyDefinition]:
        return [b for b in self.bodies if b.text is not None and not b.text.is_blank()]


class DeckDefinition(BaseModel):
    """The full output of a compilation run."""

    title: Optional[str] = None
    slides: list[SlideDefinition] = Field(default_factory=list)
