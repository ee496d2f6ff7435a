"""Tests for font metrics, text measurement, auto-fit and font scaling."""

import pytest


class TestFontMetricsRegistry:
    def test_known_family(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        metrics = FontMetricsRegistry().resolve("Arial")
        assert metrics.ascent == 1854
        assert metrics.descent == -434
        assert metrics.units_per_em == 2048

    def test_normalized_name_matches_catalog(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert registry.resolve("open-sans") == registry.resolve("Open Sans")
        assert registry.resolve("MONTSERRAT") == registry.resolve("Montserrat")

    def test_unknown_sans_serif_falls_back_to_roboto(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert registry.select_fallback("Fancy Sans Display") == "Roboto"
        assert registry.resolve("Fancy Sans Display") == registry.resolve("Roboto")

    def test_unknown_family_falls_back_to_arial(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert registry.resolve("Garamondish") == registry.resolve("Arial")

    def test_fallback_by_name_hint(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert registry.resolve("UnknownSansSerif").ascent == 1900
        assert registry.resolve("UnknownSerif").ascent == 1854

    def test_empty_name_uses_default(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert registry.resolve("") == registry.resolve("Arial")

    def test_resolutions_are_cached(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry()
        assert "Comic Whatever" not in registry
        first = registry.resolve("Comic Whatever")
        assert "Comic Whatever" in registry
        assert registry.resolve("Comic Whatever") is first

    def test_missing_fallback_is_synthesized(self):
        from md2gslides.slides_engine.font_metrics import FontMetricsRegistry

        registry = FontMetricsRegistry(catalog={})
        metrics = registry.resolve("Nothing Known")
        assert metrics.units_per_em > 0
        assert metrics.average_char_width > 0
        assert metrics.descent <= 0


class TestMeasurement:
    def test_single_line(self):
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text

        measured = measure_wrapped_text("hello world", 10, 1000)
        assert measured.line_count == 1
        # 12 average Arial characters (two words plus their spaces) at 10pt
        assert measured.width == pytest.approx(12 * 904 / 2048 * 10)
        assert measured.height == pytest.approx((1854 + 434 + 67) / 2048 * 10)

    def test_wraps_at_word_boundaries(self):
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text

        measured = measure_wrapped_text("hello world", 10, 30)
        assert measured.line_count == 2
        assert measured.width == pytest.approx(6 * 904 / 2048 * 10)

    def test_overlong_word_gets_its_own_line(self):
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text

        measured = measure_wrapped_text("a supercalifragilistic b", 10, 20)
        assert measured.line_count == 3
        assert measured.width > 20

    def test_blank_paragraph_counts_as_a_line(self):
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text

        assert measure_wrapped_text("a\n\nb", 12, 500).line_count == 3

    def test_height_grows_with_lines(self):
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text

        one = measure_wrapped_text("x", 12, 500)
        three = measure_wrapped_text("x\ny\nz", 12, 500)
        assert three.height == pytest.approx(one.height * 3)


class TestFitFontSize:
    def test_result_stays_in_range_and_fits(self):
        from md2gslides.schemas.text_schema import Box
        from md2gslides.slides_engine.text_measurement import measure_wrapped_text
        from md2gslides.slides_engine.text_operations import fit_font_size

        text = "hello world " * 20
        box = Box(width=393.7, height=157.48)
        size = fit_font_size(text, box, max_pt=48, min_pt=8)
        assert 8 <= size <= 48
        measured = measure_wrapped_text(text, size, box.width)
        assert measured.height <= box.height
        assert measured.width <= box.width

    def test_short_text_approaches_max(self):
        from md2gslides.schemas.text_schema import Box
        from md2gslides.slides_engine.text_operations import fit_font_size

        size = fit_font_size("Hi", Box(width=600, height=300), max_pt=40, min_pt=8)
        assert 39.5 <= size <= 40

    def test_overflow_returns_min(self):
        from md2gslides.schemas.text_schema import Box
        from md2gslides.slides_engine.text_operations import fit_font_size

        size = fit_font_size("word " * 500, Box(width=50, height=20), max_pt=48, min_pt=8)
        assert size == 8

    def test_inverted_range_returns_min(self):
        from md2gslides.schemas.text_schema import Box
        from md2gslides.slides_engine.text_operations import fit_font_size

        assert fit_font_size("x", Box(width=100, height=100), max_pt=6, min_pt=10) == 10

    def test_estimate_converts_emu(self):
        from md2gslides.schemas.text_schema import Box
        from md2gslides.slides_engine.text_operations import estimate_font_size, fit_font_size

        text = "hello world " * 20
        in_emu = estimate_font_size(text, {"width": 5000000, "height": 2000000}, 48, 8)
        in_points = fit_font_size(text, Box(width=5000000 / 12700, height=2000000 / 12700), 48, 8)
        assert in_emu == pytest.approx(in_points, abs=0.5)

    def test_emu_to_points(self):
        from md2gslides.slides_engine.text_operations import emu_to_points

        assert emu_to_points(12700) == pytest.approx(1.0)
        assert emu_to_points(9144000) == pytest.approx(720.0)


class TestApplyFontSize:
    def _block(self):
        from md2gslides.schemas.text_schema import FontSize, StyleRun, TextBlock

        return TextBlock(
            raw_text="Hello world",
            runs=[StyleRun(start=0, end=5, bold=True, font_size=FontSize(magnitude=24))],
        )

    def test_max_font_size_includes_uncovered_base(self):
        from md2gslides.schemas.text_schema import FontSize, StyleRun, TextBlock
        from md2gslides.slides_engine.text_operations import max_font_size

        block = TextBlock(
            raw_text="Hello world",
            runs=[StyleRun(start=0, end=5, font_size=FontSize(magnitude=12))],
        )
        assert max_font_size(block, base=18) == 18
        assert max_font_size(self._block(), base=18) == 24

    def test_max_font_size_covered_ignores_base(self):
        from md2gslides.schemas.text_schema import FontSize, StyleRun, TextBlock
        from md2gslides.slides_engine.text_operations import max_font_size

        block = TextBlock(
            raw_text="Hello",
            runs=[StyleRun(start=0, end=5, font_size=FontSize(magnitude=12))],
        )
        assert max_font_size(block, base=18) == 12

    def test_scales_relative_sizes(self):
        from md2gslides.slides_engine.text_operations import apply_font_size

        result = apply_font_size(self._block(), 12, base=18)
        base_run = result.runs[0]
        assert base_run.is_base
        assert (base_run.start, base_run.end) == (0, 11)
        assert base_run.font_size.magnitude == pytest.approx(9.0)
        bold = result.runs[1]
        assert bold.bold is True
        assert bold.font_size.magnitude == pytest.approx(12.0)

    def test_unsized_runs_stay_unsized(self):
        from md2gslides.schemas.text_schema import StyleRun, TextBlock
        from md2gslides.slides_engine.text_operations import apply_font_size

        block = TextBlock(raw_text="Hello", runs=[StyleRun(start=0, end=5, italic=True)])
        result = apply_font_size(block, 30, base=18)
        assert result.runs[0].font_size.magnitude == pytest.approx(30.0)
        assert result.runs[1].italic is True
        assert result.runs[1].font_size is None

    def test_applying_twice_equals_applying_last(self):
        from md2gslides.slides_engine.text_operations import apply_font_size

        block = self._block()
        twice = apply_font_size(apply_font_size(block, 30, base=18), 12, base=18)
        once = apply_font_size(block, 12, base=18)

        def sizes(text):
            return [(r.start, r.end, r.is_base, r.font_size.magnitude) for r in text.runs]

        assert twice.raw_text == once.raw_text
        assert len(twice.runs) == len(once.runs)
        for (s1, e1, b1, m1), (s2, e2, b2, m2) in zip(sizes(twice), sizes(once)):
            assert (s1, e1, b1) == (s2, e2, b2)
            assert m1 == pytest.approx(m2)

    def test_scale_multiplies_target(self):
        from md2gslides.slides_engine.text_operations import apply_font_size

        result = apply_font_size(self._block(), 20, base=18, scale=0.5)
        assert result.runs[1].font_size.magnitude == pytest.approx(10.0)

    def test_does_not_mutate_input(self):
        from md2gslides.slides_engine.text_operations import apply_font_size

        block = self._block()
        apply_font_size(block, 40, base=18)
        assert len(block.runs) == 1
        assert block.runs[0].font_size.magnitude == 24
