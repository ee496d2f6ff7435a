"""Tests for marker-based reconciliation against a presentation."""

import pytest


def _set_notes(data, position, text):
    notes_page = data["slides"][position]["slideProperties"]["notesPage"]
    shape = notes_page["pageElements"][0]["shape"]
    shape["text"] = {"textElements": [{"textRun": {"content": text}}]}
    return data


class TestPresentationMeta:
    def test_snapshot(self, presentation_data):
        from md2gslides.slides_engine.slide_operations import build_presentation_meta

        meta = build_presentation_meta(presentation_data, "pres1")
        assert meta.presentation_id == "pres1"
        assert [layout.name for layout in meta.layouts] == [
            "TITLE",
            "TITLE_AND_BODY",
            "TITLE_AND_TWO_COLUMNS",
            "SECTION_HEADER",
            "BLANK",
        ]
        first, second, third = meta.slides
        assert (first.title, first.marker, first.index) == ("Welcome", 0, 0)
        assert (second.title, second.marker, second.index) == ("Agenda", None, 1)
        assert second.layout == "Title and body"
        assert second.layout_name == "TITLE_AND_BODY"
        assert third.notes_object_id == "notes_c"

    def test_elements(self, presentation_data):
        from md2gslides.slides_engine.slide_operations import build_presentation_meta

        slide = build_presentation_meta(presentation_data, "pres1").slides[1]
        image = next(e for e in slide.elements if e.element_type == "image")
        assert image.image_url == "https://example.com/old.png"
        body = next(p for p in slide.placeholders if p.type == "BODY")
        assert body.text == "First\nSecond"

    def test_read_marker(self, presentation_data):
        from md2gslides.slides_engine.slide_operations import read_marker

        slides = presentation_data["slides"]
        assert read_marker(slides[0]) == 0
        assert read_marker(slides[1]) is None
        assert read_marker(slides[2]) is None

    def test_marker_text(self):
        from md2gslides.slides_engine.slide_operations import marker_text

        assert marker_text(7) == "md2gs-slide:7\n"


class TestEnsureMarkers:
    def test_marks_unmarked_slides_by_position(self, fake_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers

        meta = ensure_markers(fake_client, "pres1")
        assert len(fake_client.batches) == 1
        assert len(fake_client.batches[0]) == 2
        assert [s.marker for s in meta.slides] == [0, 1, 2]
        assert fake_client.notes_of("slide_b") == "md2gs-slide:1\nRemember the demo\n"
        assert fake_client.notes_of("slide_c") == "md2gs-slide:2\n"

    def test_second_call_issues_no_updates(self, fake_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers

        ensure_markers(fake_client, "pres1")
        gets = fake_client.get_calls
        meta = ensure_markers(fake_client, "pres1")
        assert len(fake_client.batches) == 1
        assert fake_client.get_calls == gets + 1
        assert [s.index for s in meta.slides] == [0, 1, 2]

    def test_marker_in_later_paragraph_counts(self, presentation_data, make_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers

        data = _set_notes(presentation_data, 1, "Remember the demo\nmd2gs-slide:1\n")
        client = make_client(data)
        meta = ensure_markers(client, "pres1")
        assert client.notes_of("slide_b") == "Remember the demo\nmd2gs-slide:1\n"
        assert [s.marker for s in meta.slides] == [0, 1, 2]
        assert len(client.batches[0]) == 1

    def test_marker_mid_line_is_not_a_marker(self, presentation_data, make_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers, read_marker

        data = _set_notes(presentation_data, 1, "see md2gs-slide:7\n")
        assert read_marker(data["slides"][1]) is None
        meta = ensure_markers(make_client(data), "pres1")
        assert meta.slides[1].marker == 1

    def test_prefix_without_index_is_unmarked(self, presentation_data, make_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers, read_marker

        data = _set_notes(presentation_data, 2, "md2gs-slide:\n")
        assert read_marker(data["slides"][2]) is None
        client = make_client(data)
        meta = ensure_markers(client, "pres1")
        assert meta.slides[2].marker == 2
        assert client.notes_of("slide_c").startswith("md2gs-slide:2\n")

    def test_empty_presentation(self, empty_client):
        from md2gslides.slides_engine.slide_operations import ensure_markers

        meta = ensure_markers(empty_client, "pres1")
        assert meta.slides == []
        assert empty_client.batches == []

    def test_failure_is_wrapped(self, presentation_data, make_client):
        from md2gslides.slides_engine.slide_operations import ReconciliationError, ensure_markers

        boom = RuntimeError("quota exceeded")
        client = make_client(presentation_data, error=boom)
        with pytest.raises(ReconciliationError) as excinfo:
            ensure_markers(client, "pres1")
        assert excinfo.value.operation == "ensure_markers"
        assert excinfo.value.object_ids == ["slide_b", "slide_c"]
        assert excinfo.value.__cause__ is boom


class TestCopySlide:
    def test_returns_new_id(self, make_client):
        from md2gslides.slides_engine.slide_operations import copy_slide

        client = make_client(replies=[{"duplicateObject": {"objectId": "new123"}}])
        assert copy_slide(client, "src123", "slideA") == "new123"
        assert client.batches == [[{"duplicateObject": {"objectId": "slideA"}}]]

    def test_missing_reply_raises(self, make_client):
        from md2gslides.slides_engine.slide_operations import ReconciliationError, copy_slide

        client = make_client(replies=[{}])
        with pytest.raises(ReconciliationError) as excinfo:
            copy_slide(client, "src123", "slideA")
        assert excinfo.value.operation == "copy_slide"
        assert excinfo.value.presentation_id == "src123"

    def test_client_error_raises(self, make_client):
        from md2gslides.slides_engine.slide_operations import ReconciliationError, copy_slide

        client = make_client(error=ConnectionError("offline"))
        with pytest.raises(ReconciliationError, match="offline"):
            copy_slide(client, "src123", "slideA")

    def test_duplicates_in_place(self, fake_client):
        from md2gslides.slides_engine.slide_operations import copy_slide

        new_id = copy_slide(fake_client, "pres1", "slide_a")
        ids = [s["objectId"] for s in fake_client.presentation["slides"]]
        assert ids == ["slide_a", new_id, "slide_b", "slide_c"]


class TestEditSlide:
    def test_single_batch(self, make_client):
        from md2gslides.slides_engine.slide_operations import edit_slide

        client = make_client(replies=[])
        edit_slide(client, "pres1", [{"element_id": "el1", "text": "ok"}])
        assert len(client.batches) == 1
        assert [next(iter(r)) for r in client.batches[0]] == [
            "deleteText",
            "insertText",
            "updateShapeProperties",
        ]
        autofit = client.batches[0][2]["updateShapeProperties"]
        assert autofit["shapeProperties"] == {"autofit": {"autofitType": "TEXT_AUTOFIT"}}

    def test_image_swap(self, fake_client):
        from md2gslides.schemas.presentation_schema import ElementUpdate
        from md2gslides.slides_engine.slide_operations import edit_slide

        edit_slide(
            fake_client,
            "pres1",
            [ElementUpdate(element_id="b_image", image_url="https://example.com/new.png")],
        )
        image = fake_client.slide("slide_b")["pageElements"][2]["image"]
        assert image["sourceUrl"] == "https://example.com/new.png"

    def test_clearing_text(self, fake_client):
        from md2gslides.slides_engine.slide_operations import edit_slide

        edit_slide(fake_client, "pres1", [{"element_id": "b_body", "text": ""}])
        assert [next(iter(r)) for r in fake_client.batches[0]] == [
            "deleteText",
            "updateShapeProperties",
        ]
        assert fake_client.text_of("b_body") == ""

    def test_nothing_to_do(self, make_client):
        from md2gslides.slides_engine.slide_operations import edit_slide

        client = make_client()
        edit_slide(client, "pres1", [])
        edit_slide(client, "pres1", [{"element_id": "el1"}])
        assert client.batches == []


class TestSetMarker:
    def test_replaces_inherited_marker(self, fake_client):
        from md2gslides.slides_engine.slide_operations import copy_slide, set_marker

        new_id = copy_slide(fake_client, "pres1", "slide_a")
        set_marker(fake_client, "pres1", new_id, 5)
        assert fake_client.notes_of(new_id) == "md2gs-slide:5\n"
        assert fake_client.notes_of("slide_a") == "md2gs-slide:0\n"

    def test_keeps_existing_notes(self, fake_client):
        from md2gslides.slides_engine.slide_operations import set_marker

        set_marker(fake_client, "pres1", "slide_b", 3)
        assert fake_client.notes_of("slide_b") == "md2gs-slide:3\nRemember the demo\n"

    def test_moves_marker_from_later_paragraph(self, presentation_data, make_client):
        from md2gslides.slides_engine.slide_operations import set_marker

        data = _set_notes(presentation_data, 1, "Remember the demo\nmd2gs-slide:1\n")
        client = make_client(data)
        set_marker(client, "pres1", "slide_b", 4)
        assert client.notes_of("slide_b") == "md2gs-slide:4\nRemember the demo\n"
        delete = client.batches[0][0]["deleteText"]["textRange"]
        assert (delete["startIndex"], delete["endIndex"]) == (18, 32)

    def test_unknown_slide(self, fake_client):
        from md2gslides.slides_engine.slide_operations import ReconciliationError, set_marker

        with pytest.raises(ReconciliationError, match="not found"):
            set_marker(fake_client, "pres1", "nope", 1)


class TestEraseSlides:
    def test_deletes_all(self, fake_client):
        from md2gslides.slides_engine.slide_operations import erase_slides

        assert erase_slides(fake_client, "pres1") == 3
        assert fake_client.presentation["slides"] == []
        assert len(fake_client.batches) == 1

    def test_empty(self, empty_client):
        from md2gslides.slides_engine.slide_operations import erase_slides

        assert erase_slides(empty_client, "pres1") == 0
        assert empty_client.batches == []


class TestApplyRequests:
    def test_no_requests_no_call(self, make_client):
        from md2gslides.slides_engine.slide_operations import apply_requests

        client = make_client()
        assert apply_requests(client, "pres1", []) == []
        assert client.batches == []
