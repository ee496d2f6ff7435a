"""Pydantic models for styled text, font metrics, and measurement results.

A TextBlock is raw text plus an ordered list of StyleRuns. Runs are
target-independent: they are only translated into the Slides API wire
format by the composers. Runs may overlap; a later run layers on top of an
earlier one, and attributes left as ``None`` never clobber what is below.
"""

from typing import Literal, Optional

from pptx.util import Emu
from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Style attributes
# ---------------------------------------------------------------------------

class FontSize(BaseModel):
    """A font size with its unit (the Slides API only uses points)."""

    magnitude: float = Field(ge=0)
    unit: Literal["PT"] = "PT"


class Link(BaseModel):
    """Hyperlink target for a run."""

    url: str


class TextStyle(BaseModel):
    """A set of character attributes. ``None`` means "not set"."""

    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    strikethrough: Optional[bool] = None
    small_caps: Optional[bool] = None
    font_family: Optional[str] = None
    font_size: Optional[FontSize] = None
    foreground_color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex RGB color (e.g., '#1A73E8')",
    )
    background_color: Optional[str] = Field(
        default=None,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Hex RGB highlight color",
    )
    link: Optional[Link] = None
    baseline_offset: Optional[Literal["SUPERSCRIPT", "SUBSCRIPT"]] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)

    def merged(self, other: "TextStyle") -> "TextStyle":
        """Return a copy with every attribute set on ``other`` layered on top."""
        return self.model_copy(update=other.model_dump(exclude_none=True))


class StyleRun(TextStyle):
    """A styled span ``[start, end)`` of the owning TextBlock's raw text."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)
    is_base: bool = Field(
        default=False,
        exclude=True,
        description="Full-span run written by auto-fit; replaced on re-fit",
    )

    @model_validator(mode="after")
    def _check_range(self) -> "StyleRun":
        if self.start > self.end:
            raise ValueError(f"Run start {self.start} is after end {self.end}")
        return self

    @property
    def style(self) -> TextStyle:
        return TextStyle.model_validate(
            self.model_dump(exclude={"start", "end", "is_base"}, exclude_none=True)
        )


class TextBlock(BaseModel):
    """Raw text with ranged style annotations."""

    raw_text: str = ""
    runs: list[StyleRun] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_runs(self) -> "TextBlock":
        length = len(self.raw_text)
        for run in self.runs:
            if run.end > length:
                raise ValueError(
                    f"Run [{run.start}, {run.end}) exceeds text length {length}"
                )
        return self

    @property
    def font_family(self) -> Optional[str]:
        """The first font family set by any run, if any."""
        for run in self.runs:
            if run.font_family:
                return run.font_family
        return None

    def is_blank(self) -> bool:
        return not self.raw_text.strip()


# ---------------------------------------------------------------------------
# Metrics & measurement
# ---------------------------------------------------------------------------

class FontMetrics(BaseModel):
    """Vertical and horizontal metrics of a font family, in font units."""

    model_config = ConfigDict(frozen=True)

    ascent: float
    descent: float
    line_gap: float = 0.0
    units_per_em: float = Field(gt=0)
    average_char_width: float = Field(gt=0)


def emu_to_points(emu: float) -> float:
    """Convert English Metric Units to points (12700 EMU = 1 pt)."""
    return Emu(round(emu)).pt


class MeasuredText(BaseModel):
    """Result of wrapping text into a box."""

    width: float
    height: float
    line_count: int


class Box(BaseModel):
    """A bounding box in points."""

    width: float = Field(ge=0)
    height: float = Field(ge=0)

    @classmethod
    def from_emu(cls, width: float, height: float) -> "Box":
        """Build a box from Slides API sizes (EMU)."""
        return cls(width=emu_to_points(width), height=emu_to_points(height))
