"""Text sizing operations: auto-fit search and run-aware font scaling.

Geometry entering the fit search is always in points; Slides API sizes
(EMU) are converted at the boundary with ``emu_to_points``.
"""

import logging
from typing import Any

from md2gslides.schemas.text_schema import Box, FontSize, StyleRun, TextBlock, emu_to_points
from md2gslides.slides_engine.font_metrics import FontMetricsRegistry
from md2gslides.slides_engine.text_measurement import measure_wrapped_text

logger = logging.getLogger(__name__)

FIT_TOLERANCE_PT = 0.5
DEFAULT_BASE_SIZE = 18.0


# ---------------------------------------------------------------------------
# Auto-fit
# ---------------------------------------------------------------------------

def fit_font_size(
    text: str,
    box: Box,
    max_pt: float = 48.0,
    min_pt: float = 8.0,
    font_family: str = "Arial",
    registry: FontMetricsRegistry | None = None,
) -> float:
    """Binary-search the largest font size at which text fits a box.

    The search narrows [min_pt, max_pt] until it is smaller than 0.5pt.
    If even ``min_pt`` does not fit, ``min_pt`` is returned and the caller
    accepts the overflow.

    Args:
        text: The text to fit.
        box: Available area in points.
        max_pt: Largest size to consider.
        min_pt: Smallest size to return.
        font_family: Font family used for metrics.
        registry: Metrics registry; a fresh one is created when omitted.

    Returns:
        Recommended font size in points, within [min_pt, max_pt].
    """
    if max_pt < min_pt:
        return min_pt
    registry = registry or FontMetricsRegistry()

    low, high = min_pt, max_pt
    best = min_pt
    while high - low > FIT_TOLERANCE_PT:
        mid = (low + high) / 2
        measured = measure_wrapped_text(text, mid, box.width, font_family, registry)
        if measured.width <= box.width and measured.height <= box.height:
            best = mid
            low = mid
        else:
            high = mid

    if best == min_pt:
        logger.debug(
            f"Text does not fit {box.width:.0f}x{box.height:.0f}pt above {min_pt}pt: "
            f"{text[:40]!r}"
        )
    return best


def estimate_font_size(
    text: str,
    box: dict[str, Any] | Box,
    max_pt: float = 48.0,
    min_pt: float = 8.0,
    font_family: str = "Arial",
    registry: FontMetricsRegistry | None = None,
) -> float:
    """Auto-fit against a box given in EMU (``{"width": ..., "height": ...}``).

    A ``Box`` instance is taken as already being in points.
    """
    if not isinstance(box, Box):
        box = Box(width=emu_to_points(box["width"]), height=emu_to_points(box["height"]))
    return fit_font_size(text, box, max_pt, min_pt, font_family, registry)


# ---------------------------------------------------------------------------
# Run-aware font scaling
# ---------------------------------------------------------------------------

def _base_run(text: TextBlock) -> StyleRun | None:
    for run in text.runs:
        if run.is_base:
            return run
    return None


def _implicit_base(text: TextBlock, base: float) -> float:
    """Size of text not covered by any explicitly sized run."""
    run = _base_run(text)
    if run is not None and run.font_size is not None:
        return run.font_size.magnitude
    return base


def _covers(runs: list[StyleRun], length: int) -> bool:
    """True if the runs together span [0, length)."""
    reach = 0
    for run in sorted(runs, key=lambda r: r.start):
        if run.start > reach:
            return False
        reach = max(reach, run.end)
    return reach >= length


def max_font_size(text: TextBlock, base: float = DEFAULT_BASE_SIZE) -> float:
    """Largest font size in a TextBlock.

    Explicitly sized runs are scanned; the implicit base size (the base run
    written by a previous fit, else ``base``) counts too whenever the sized
    runs leave some text uncovered.
    """
    sized = [r for r in text.runs if not r.is_base and r.font_size is not None]
    implicit = _implicit_base(text, base)
    if not sized:
        return implicit
    largest = max(r.font_size.magnitude for r in sized)
    if not _covers(sized, len(text.raw_text)):
        largest = max(largest, implicit)
    return largest


def apply_font_size(
    text: TextBlock,
    target_size: float,
    base: float = DEFAULT_BASE_SIZE,
    scale: float = 1.0,
) -> TextBlock:
    """Rescale every run so the dominant size becomes ``target_size * scale``.

    A base run spanning the whole text is written first (replacing the one
    from any earlier call) and every other run keeps its size relative to
    the others. Applying twice is the same as applying the last size once.
    """
    current_max = max_font_size(text, base)
    if current_max <= 0:
        return text.model_copy(deep=True)
    ratio = target_size / current_max * scale
    implicit = _implicit_base(text, base)

    base_run = StyleRun(
        start=0,
        end=len(text.raw_text),
        font_size=FontSize(magnitude=implicit * ratio),
        is_base=True,
    )
    runs = [base_run]
    for run in text.runs:
        if run.is_base:
            continue
        if run.font_size is None:
            # Unsized runs inherit the base run's size.
            runs.append(run.model_copy(deep=True))
            continue
        magnitude = run.font_size.magnitude * ratio
        runs.append(run.model_copy(update={"font_size": FontSize(magnitude=magnitude)}))
    return TextBlock(raw_text=text.raw_text, runs=runs)
