from .text_schema import FontSize, Link, TextStyle, StyleRun, TextBlock, FontMetrics, MeasuredText, Box
from .slide_schema import (
    SlideLayout, ImageDefinition, VideoDefinition, ListMarker, BodyDefinition,
    TableDefinition, SlideDefinition, DeckDefinition,
)
from .presentation_schema import (
    PlaceholderMeta, ElementMeta, LayoutMeta, SlideMeta, PresentationMeta, ElementUpdate,
)
from .settings import (
    FontSettings, AutofitSettings, BoxSettings, HighlightSettings, MarkdownSettings,
    CompilerSettings,
)

__all__ = [
    "FontSize",
    "Link",
    "TextStyle",
    "StyleRun",
    "TextBlock",
    "FontMetrics",
    "MeasuredText",
    "Box",
    "SlideLayout",
    "ImageDefinition",
    "VideoDefinition",
    "ListMarker",
    "BodyDefinition",
    "TableDefinition",
    "SlideDefinition",
    "DeckDefinition",
    "PlaceholderMeta",
    "ElementMeta",
    "LayoutMeta",
    "SlideMeta",
    "PresentationMeta",
    "ElementUpdate",
    "FontSettings",
    "AutofitSettings",
    "BoxSettings",
    "HighlightSettings",
    "MarkdownSettings",
    "CompilerSettings",
]
