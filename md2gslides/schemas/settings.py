"""Pydantic models for compiler configuration.

CompilerSettings captures everything a compilation run can be tuned with:
fonts, auto-fit bounds, default text boxes (used when no target
presentation is known), highlighting style, and Markdown extension options.
All values have defaults, so ``CompilerSettings()`` is a valid config.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from .text_schema import Box


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

class FontSettings(BaseModel):
    """Font families and nominal sizes."""

    default_family: str = "Arial"
    code_family: str = "Courier New"
    code_color: str = Field(default="#C7254E", pattern=r"^#[0-9A-Fa-f]{6}$")
    link_color: str = Field(default="#1A73E8", pattern=r"^#[0-9A-Fa-f]{6}$")
    base_size: float = Field(default=18.0, gt=0, description="Implicit size of unsized text (pt)")
    heading_sizes: dict[int, float] = Field(
        default_factory=lambda: {1: 32.0, 2: 28.0, 3: 24.0, 4: 20.0, 5: 18.0, 6: 18.0},
        description="Sizes for headings that end up inside a body, by level",
    )


class AutofitSettings(BaseModel):
    """Bounds for the auto-fit search, in points."""

    enabled: bool = True
    title_max_pt: float = Field(default=44.0, gt=0)
    subtitle_max_pt: float = Field(default=28.0, gt=0)
    body_max_pt: float = Field(default=28.0, gt=0)
    big_max_pt: float = Field(default=96.0, gt=0, description="Title bound on MAIN_POINT/BIG_NUMBER")
    min_pt: float = Field(default=8.0, gt=0)
    font_scale: float = Field(
        default=1.0,
        gt=0,
        description="Multiplier applied after fitting (one variant used 0.8)",
    )


class BoxSettings(BaseModel):
    """Default placeholder boxes (pt) for a 10in x 5.625in slide."""

    title: Box = Field(default_factory=lambda: Box(width=648.0, height=58.0))
    subtitle: Box = Field(default_factory=lambda: Box(width=648.0, height=44.0))
    body: Box = Field(default_factory=lambda: Box(width=648.0, height=268.0))
    column: Box = Field(default_factory=lambda: Box(width=316.0, height=268.0))
    big: Box = Field(default_factory=lambda: Box(width=648.0, height=180.0))


class HighlightSettings(BaseModel):
    """Code highlighting options."""

    enabled: bool = True
    style: str = Field(default="default", description="Pygments style name")


class MarkdownSettings(BaseModel):
    """Tokenizer extension options."""

    tab_width: int = Field(default=4, ge=1)
    generated_image_marker: str = Field(default="$", min_length=1, max_length=1)
    generated_image_min_markers: int = Field(
        default=1,
        ge=1,
        le=3,
        description="Shortest marker run that opens a generated-image block",
    )
    youtube_width: float = 640
    youtube_height: float = 390
    vimeo_width: float = 500
    vimeo_height: float = 281


# ---------------------------------------------------------------------------
# Complete settings
# ---------------------------------------------------------------------------

class CompilerSettings(BaseModel):
    """Complete configuration for a compilation run."""

    name: str = "default"
    fonts: FontSettings = Field(default_factory=FontSettings)
    autofit: AutofitSettings = Field(default_factory=AutofitSettings)
    boxes: BoxSettings = Field(default_factory=BoxSettings)
    highlight: HighlightSettings = Field(default_factory=HighlightSettings)
    markdown: MarkdownSettings = Field(default_factory=MarkdownSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "CompilerSettings":
        """Load settings from a YAML configuration file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    def to_yaml(self, path: str | Path) -> None:
        """Save settings to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(self.model_dump(), f, default_flow_style=False, sort_keys=False)
