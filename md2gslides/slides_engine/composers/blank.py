"""Blank slide composer: every piece of text goes into its own text box."""

from md2gslides.slides_engine.composers.placeholder import PlaceholderComposer
from md2gslides.slides_engine.layout_registry import PlaceholderSpec


class BlankComposer(PlaceholderComposer):
    """Compose a slide on the BLANK layout."""

    def placeholders(self, layout_name: str) -> PlaceholderSpec:
        return PlaceholderSpec()
