"""Tests for Pydantic schema models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from md2gslides.schemas.presentation_schema import LayoutMeta, PlaceholderMeta, PresentationMeta, SlideMeta
from md2gslides.schemas.settings import AutofitSettings, CompilerSettings, MarkdownSettings
from md2gslides.schemas.slide_schema import (
    BodyDefinition,
    DeckDefinition,
    ImageDefinition,
    SlideDefinition,
    SlideLayout,
)
from md2gslides.schemas.text_schema import Box, FontSize, StyleRun, TextBlock, TextStyle, emu_to_points


class TestTextSchema:
    def test_run_range_validated(self):
        with pytest.raises(ValidationError):
            StyleRun(start=5, end=2)

    def test_run_must_fit_text(self):
        with pytest.raises(ValidationError):
            TextBlock(raw_text="abc", runs=[StyleRun(start=0, end=4, bold=True)])

    def test_color_pattern(self):
        with pytest.raises(ValidationError):
            TextStyle(foreground_color="red")
        assert TextStyle(foreground_color="#1a73e8").foreground_color == "#1a73e8"

    def test_merged_layers_set_attributes(self):
        base = TextStyle(bold=True, foreground_color="#000000")
        merged = base.merged(TextStyle(foreground_color="#FFFFFF", italic=True))
        assert merged.bold is True
        assert merged.italic is True
        assert merged.foreground_color == "#FFFFFF"
        assert base.foreground_color == "#000000"

    def test_run_style_drops_range(self):
        run = StyleRun(start=0, end=3, bold=True, font_size=FontSize(magnitude=12))
        style = run.style
        assert style == TextStyle(bold=True, font_size=FontSize(magnitude=12))

    def test_base_flag_not_serialized(self):
        run = StyleRun(start=0, end=1, is_base=True)
        assert "is_base" not in run.model_dump()

    def test_font_family(self):
        block = TextBlock(
            raw_text="x = 1",
            runs=[StyleRun(start=0, end=1, bold=True), StyleRun(start=0, end=5, font_family="Courier New")],
        )
        assert block.font_family == "Courier New"
        assert TextBlock(raw_text="x").font_family is None

    def test_blank(self):
        assert TextBlock(raw_text=" \n\t").is_blank()
        assert not TextBlock(raw_text="a").is_blank()

    def test_box_from_emu(self):
        box = Box.from_emu(9144000, 5143500)
        assert box.width == pytest.approx(720.0)
        assert box.height == pytest.approx(405.0)

    def test_box_rounds_fractional_emu(self):
        box = Box.from_emu(19050.7, 6349.6)
        assert box.width == pytest.approx(19051 / 12700)
        assert box.height == pytest.approx(6350 / 12700)
        assert (box.width, box.height) == (emu_to_points(19050.7), emu_to_points(6349.6))


class TestSlideSchema:
    def test_layout_enum(self):
        assert SlideLayout.TITLE_AND_BODY == "TITLE_AND_BODY"
        assert SlideLayout("BIG_NUMBER") is SlideLayout.BIG_NUMBER

    def test_slide_minimal(self):
        slide = SlideDefinition(index=0)
        assert slide.title is None
        assert slide.bodies == []
        assert not slide.has_media

    def test_negative_index_rejected(self):
        with pytest.raises(ValidationError):
            SlideDefinition(index=-1)

    def test_text_bodies_skip_blank(self):
        slide = SlideDefinition(
            index=0,
            bodies=[
                BodyDefinition(text=TextBlock(raw_text="  ")),
                BodyDefinition(text=TextBlock(raw_text="real")),
                BodyDefinition(images=[ImageDefinition(url="https://x/y.png")]),
            ],
        )
        assert [b.text.raw_text for b in slide.text_bodies] == ["real"]
        assert slide.has_media

    def test_image_remote(self):
        assert ImageDefinition(url="https://x/y.png").is_remote
        assert not ImageDefinition(url="file.png").is_remote
        assert not ImageDefinition(generator="chart").is_remote

    def test_deck_roundtrip_json(self, tmp_path):
        deck = DeckDefinition(
            title="Deck",
            slides=[SlideDefinition(index=0, title=TextBlock(raw_text="Hi"), notes="n")],
        )
        path = tmp_path / "deck.json"
        path.write_text(deck.model_dump_json(indent=2))
        loaded = DeckDefinition.model_validate_json(path.read_text())
        assert loaded == deck


class TestPresentationSchema:
    def test_placeholder_box(self):
        placeholder = PlaceholderMeta(
            object_id="p",
            type="BODY",
            size={"width": {"magnitude": 3048000}, "height": {"magnitude": 1524000}},
            transform={"scaleX": 2, "scaleY": 0.5},
        )
        box = placeholder.box
        assert box.width == pytest.approx(480.0)
        assert box.height == pytest.approx(60.0)

    def test_placeholder_without_size(self):
        assert PlaceholderMeta(object_id="p").box is None

    def test_find_layout_by_name_or_display_name(self):
        meta = PresentationMeta(
            presentation_id="p",
            layouts=[LayoutMeta(object_id="l1", name="TITLE", display_name="Title slide")],
        )
        assert meta.find_layout("TITLE").object_id == "l1"
        assert meta.find_layout("Title slide").object_id == "l1"
        assert meta.find_layout("BLANK") is None

    def test_slide_by_index(self):
        meta = PresentationMeta(
            presentation_id="p",
            slides=[SlideMeta(object_id="a", index=1), SlideMeta(object_id="b", index=0)],
        )
        assert meta.slide_by_index()[0].object_id == "b"


class TestSettings:
    def test_defaults(self):
        settings = CompilerSettings()
        assert settings.fonts.default_family == "Arial"
        assert settings.autofit.font_scale == 1.0
        assert settings.markdown.tab_width == 4

    def test_bounds_validated(self):
        with pytest.raises(ValidationError):
            AutofitSettings(min_pt=0)
        with pytest.raises(ValidationError):
            MarkdownSettings(generated_image_min_markers=4)

    def test_yaml_roundtrip(self, tmp_path):
        settings = CompilerSettings(name="custom", autofit=AutofitSettings(font_scale=0.8))
        path = tmp_path / "settings.yaml"
        settings.to_yaml(path)
        assert CompilerSettings.from_yaml(path) == settings

    def test_partial_yaml(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text("highlight:\n  style: monokai\n")
        settings = CompilerSettings.from_yaml(path)
        assert settings.highlight.style == "monokai"
        assert settings.fonts.base_size == 18.0

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CompilerSettings.from_yaml(tmp_path / "nope.yaml")

    def test_shipped_config_matches_defaults(self):
        config = Path(__file__).resolve().parent.parent / "config" / "default.yaml"
        assert CompilerSettings.from_yaml(config) == CompilerSettings()
