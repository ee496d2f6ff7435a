"""Approximate wrapped-text measurement from average glyph widths.

Not a shaping engine: every character is assumed to be as wide as the
family's average advance. Good enough for a fit/no-fit decision.
"""

from md2gslides.schemas.text_schema import FontMetrics, MeasuredText
from md2gslides.slides_engine.font_metrics import FontMetricsRegistry


def char_width(char_count: int, font_size: float, metrics: FontMetrics) -> float:
    """Width in points of ``char_count`` average characters."""
    return char_count * metrics.average_char_width * (font_size / metrics.units_per_em)


def line_height(font_size: float, metrics: FontMetrics) -> float:
    """Height in points of one line of text."""
    scale = font_size / metrics.units_per_em
    return (metrics.ascent - metrics.descent + metrics.line_gap) * scale


def measure_wrapped_text(
    text: str,
    font_size: float,
    box_width: float,
    font_family: str = "Arial",
    registry: FontMetricsRegistry | None = None,
) -> MeasuredText:
    """Greedily word-wrap text into a box and measure the result.

    Args:
        text: Text to measure; ``\\n`` separates paragraphs.
        font_size: Font size in points.
        box_width: Available width in points.
        font_family: Font family used to look up metrics.
        registry: Metrics registry; a fresh one is created when omitted.

    Returns:
        Widest line, total height and line count.
    """
    registry = registry or FontMetricsRegistry()
    metrics = registry.resolve(font_family)
    lh = line_height(font_size, metrics)
    space = char_width(1, font_size, metrics)

    lines = 0
    max_width = 0.0
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines += 1
            continue
        current = 0.0
        for word in paragraph.split(" "):
            word_width = char_width(len(word), font_size, metrics) + space
            if current > 0 and current + word_width > box_width:
                max_width = max(max_width, current)
                lines += 1
                current = word_width
            else:
                current += word_width
        max_width = max(max_width, current)
        lines += 1

    return MeasuredText(width=max_width, height=lines * lh, line_count=lines)
