"""Font metrics registry.

Resolves a font family name to FontMetrics through a fallback chain that
never fails:

1. exact match against the well-known families (Arial, Roboto, Montserrat)
2. normalized-name match (case/space/hyphen-insensitive) against the catalog
3. keyword heuristic: sans-serif-looking names use Roboto, the rest Arial
4. if the chosen fallback is missing from the catalog, metrics are
   synthesized by measuring a probe string with Pillow

A registry is owned by one compilation session; resolutions are cached per
instance under the exact input string.
"""

import logging
import re
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont

from md2gslides.schemas.text_schema import FontMetrics
from md2gslides.utils.file_utils import load_yaml

logger = logging.getLogger(__name__)

CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "font_metrics.yaml"

KNOWN_FAMILIES = ("Arial", "Roboto", "Montserrat")
DEFAULT_FAMILY = "Arial"
SANS_SERIF_FAMILY = "Roboto"
SANS_SERIF_HINTS = ("helvetica", "roboto", "montserrat", "open sans", "lato", "sans")

PROBE_TEXT = "The quick brown fox jumps over the lazy dog 0123456789"
PROBE_SIZE = 1000


# ---------------------------------------------------------------------------
# Catalog loading
# ---------------------------------------------------------------------------

@lru_cache(maxsize=None)
def _read_catalog(path: str) -> tuple[tuple[str, FontMetrics], ...]:
    data = load_yaml(path)
    return tuple(
        (name, FontMetrics.model_validate(values)) for name, values in data.items()
    )


def load_metrics_catalog(path: str | Path = CATALOG_PATH) -> dict[str, FontMetrics]:
    """Load the font metrics catalog (family name -> FontMetrics)."""
    return dict(_read_catalog(str(path)))


def normalize_family(name: str) -> str:
    """Collapse case, whitespace, hyphens and underscores."""
    return re.sub(r"[\s_\-]+", "", name).lower()


# ---------------------------------------------------------------------------
# Synthesis (last resort)
# ---------------------------------------------------------------------------

def _load_probe_font(font_family: str):
    try:
        return ImageFont.truetype(font_family, PROBE_SIZE)
    except OSError:
        logger.debug(f"No font file for '{font_family}', sampling Pillow's default font")
    return ImageFont.load_default(size=PROBE_SIZE)


def synthesize_metrics(font_family: str) -> FontMetrics:
    """Approximate metrics by rendering a probe string at a large nominal size."""
    font = _load_probe_font(font_family)
    average = font.getlength(PROBE_TEXT) / len(PROBE_TEXT)
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, descent = font.getmetrics()
        units = float(font.size)
    else:
        # Bitmap fonts have no vertical metrics; split the bbox height 80/20.
        _, top, _, bottom = font.getbbox(PROBE_TEXT)
        units = float(max(bottom - top, 1))
        ascent, descent = units * 0.8, units * 0.2
    return FontMetrics(
        ascent=ascent,
        descent=-abs(descent),
        line_gap=0,
        units_per_em=units,
        average_char_width=max(average, 1.0),
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class FontMetricsRegistry:
    """Per-session font metrics lookup with caching."""

    def __init__(
        self,
        catalog: dict[str, FontMetrics] | None = None,
        default_family: str = DEFAULT_FAMILY,
        sans_serif_family: str = SANS_SERIF_FAMILY,
    ):
        self._catalog = dict(catalog) if catalog is not None else load_metrics_catalog()
        self._known = {n: self._catalog[n] for n in KNOWN_FAMILIES if n in self._catalog}
        self._normalized = {normalize_family(n): m for n, m in self._catalog.items()}
        self._cache: dict[str, FontMetrics] = {}
        self.default_family = default_family
        self.sans_serif_family = sans_serif_family

    def __contains__(self, font_family: str) -> bool:
        return font_family in self._cache

    def resolve(self, font_family: str) -> FontMetrics:
        """Return metrics for a family; never raises."""
        key = font_family or ""
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if not key.strip():
            metrics = self._fallback_metrics(self.default_family)
        else:
            metrics = self._lookup(key)
            if metrics is None:
                fallback = self.select_fallback(key)
                logger.warning(f"Font metrics not found for '{key}', using {fallback}")
                metrics = self._fallback_metrics(fallback)

        # Two concurrent resolutions may both write here; the value is the same.
        self._cache[key] = metrics
        return metrics

    def select_fallback(self, font_family: str) -> str:
        """Pick the fallback family for an unknown font name."""
        lowered = font_family.lower()
        if any(hint in lowered for hint in SANS_SERIF_HINTS):
            return self.sans_serif_family
        return self.default_family

    def _lookup(self, font_family: str) -> FontMetrics | None:
        metrics = self._known.get(font_family)
        if metrics is not None:
            return metrics
        metrics = self._catalog.get(font_family)
        if metrics is not None:
            return metrics
        return self._normalized.get(normalize_family(font_family))

    def _fallback_metrics(self, family: str) -> FontMetrics:
        metrics = self._lookup(family)
        if metrics is None:
            logger.warning(f"Fallback family '{family}' missing from catalog; synthesizing metrics")
            metrics = synthesize_metrics(family)
        return metrics
