"""Shared fixtures: an in-memory presentation client and a sample presentation."""

import copy
from pathlib import Path
from typing import Any

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


def _find_element(presentation: dict, object_id: str) -> dict | None:
    for slide in presentation.get("slides", []):
        for element in slide.get("pageElements", []):
            if element.get("objectId") == object_id:
                return element
        notes_page = slide.get("slideProperties", {}).get("notesPage", {})
        for element in notes_page.get("pageElements", []):
            if element.get("objectId") == object_id:
                return element
    return None


def _get_text(element: dict) -> str:
    text = element.get("shape", {}).get("text", {})
    return "".join(te.get("textRun", {}).get("content", "") for te in text.get("textElements", []))


def _set_text(element: dict, value: str) -> None:
    shape = element.setdefault("shape", {})
    shape["text"] = {"textElements": [{"textRun": {"content": value}}] if value else []}


class FakeSlidesClient:
    """PresentationClient that applies the requests it understands to a dict.

    Every batch is recorded in ``batches``. Pass ``replies`` to return canned
    replies without touching the presentation, or ``error`` to make every
    batch fail.
    """

    def __init__(
        self,
        presentation: dict | None = None,
        replies: list[dict] | None = None,
        error: Exception | None = None,
    ):
        self.presentation = copy.deepcopy(presentation or {"presentationId": "pres1", "slides": []})
        self.replies = replies
        self.error = error
        self.get_calls = 0
        self.batches: list[list[dict[str, Any]]] = []
        self._copies = 0

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [r for batch in self.batches for r in batch]

    def get(self, presentation_id: str) -> dict:
        self.get_calls += 1
        return copy.deepcopy(self.presentation)

    def batch_update(self, presentation_id: str, requests: list[dict]) -> list[dict]:
        if self.error is not None:
            raise self.error
        self.batches.append(copy.deepcopy(requests))
        if self.replies is not None:
            return self.replies
        return [self._apply(request) for request in requests]

    # ------------------------------------------------------------------

    def slide(self, object_id: str) -> dict:
        return next(s for s in self.presentation["slides"] if s["objectId"] == object_id)

    def text_of(self, object_id: str) -> str:
        return _get_text(_find_element(self.presentation, object_id))

    def notes_of(self, slide_id: str) -> str:
        notes_id = self.slide(slide_id)["slideProperties"]["notesPage"]["notesProperties"][
            "speakerNotesObjectId"
        ]
        return self.text_of(notes_id)

    def _apply(self, request: dict) -> dict:
        kind, body = next(iter(request.items()))
        handler = getattr(self, f"_{kind}", None)
        if handler is None:
            return {}
        return handler(body) or {}

    def _createSlide(self, body: dict) -> dict:
        slide_id = body["objectId"]
        reference = body.get("slideLayoutReference", {})
        layout_id = reference.get("layoutId")
        if layout_id is None:
            name = reference.get("predefinedLayout")
            layout_id = next(
                (
                    l["objectId"]
                    for l in self.presentation.get("layouts", [])
                    if l.get("layoutProperties", {}).get("name") == name
                ),
                f"predefined_{name}",
            )
        elements = [
            {
                "objectId": mapping["objectId"],
                "shape": {"placeholder": dict(mapping["layoutPlaceholder"]), "text": {"textElements": []}},
            }
            for mapping in body.get("placeholderIdMappings", [])
        ]
        notes_id = f"{slide_id}_notes"
        slide = {
            "objectId": slide_id,
            "pageElements": elements,
            "slideProperties": {
                "layoutObjectId": layout_id,
                "notesPage": {
                    "notesProperties": {"speakerNotesObjectId": notes_id},
                    "pageElements": [{"objectId": notes_id, "shape": {"placeholder": {"type": "BODY"}}}],
                },
            },
        }
        slides = self.presentation.setdefault("slides", [])
        index = body.get("insertionIndex", len(slides))
        slides.insert(index, slide)
        return {"createSlide": {"objectId": slide_id}}

    def _insertText(self, body: dict) -> None:
        if "cellLocation" in body:
            return
        element = _find_element(self.presentation, body["objectId"])
        if element is None:
            raise ValueError(f"Object {body['objectId']} not found")
        text = _get_text(element)
        index = body.get("insertionIndex", 0)
        _set_text(element, text[:index] + body["text"] + text[index:])

    def _deleteText(self, body: dict) -> None:
        if "cellLocation" in body:
            return
        element = _find_element(self.presentation, body["objectId"])
        if element is None:
            raise ValueError(f"Object {body['objectId']} not found")
        text_range = body.get("textRange", {"type": "ALL"})
        if text_range["type"] == "ALL":
            _set_text(element, "")
        else:
            text = _get_text(element)
            _set_text(element, text[: text_range["startIndex"]] + text[text_range["endIndex"] :])

    def _add_element(self, body: dict, element: dict) -> None:
        page_id = body["elementProperties"]["pageObjectId"]
        element["objectId"] = body["objectId"]
        self.slide(page_id)["pageElements"].append(element)

    def _createShape(self, body: dict) -> None:
        self._add_element(body, {"shape": {"shapeType": body["shapeType"]}})

    def _createImage(self, body: dict) -> None:
        self._add_element(body, {"image": {"sourceUrl": body["url"]}})

    def _createVideo(self, body: dict) -> None:
        self._add_element(body, {"video": {"id": body["id"], "source": body["source"]}})

    def _createTable(self, body: dict) -> None:
        self._add_element(body, {"table": {"rows": body["rows"], "columns": body["columns"]}})

    def _replaceImage(self, body: dict) -> None:
        element = _find_element(self.presentation, body["imageObjectId"])
        element["image"]["sourceUrl"] = body["url"]

    def _deleteObject(self, body: dict) -> None:
        self.presentation["slides"] = [
            s for s in self.presentation["slides"] if s["objectId"] != body["objectId"]
        ]

    def _duplicateObject(self, body: dict) -> dict:
        self._copies += 1
        suffix = f"_copy{self._copies}"
        slides = self.presentation["slides"]
        position = next(i for i, s in enumerate(slides) if s["objectId"] == body["objectId"])
        duplicate = copy.deepcopy(slides[position])
        duplicate["objectId"] += suffix
        for element in duplicate.get("pageElements", []):
            element["objectId"] += suffix
        notes_page = duplicate["slideProperties"]["notesPage"]
        notes_page["notesProperties"]["speakerNotesObjectId"] += suffix
        for element in notes_page.get("pageElements", []):
            element["objectId"] += suffix
        slides.insert(position + 1, duplicate)
        return {"duplicateObject": {"objectId": duplicate["objectId"]}}


@pytest.fixture
def presentation_data() -> dict:
    from md2gslides.utils.file_utils import load_json

    return load_json(FIXTURES / "mock_presentation.json")


@pytest.fixture
def fake_client(presentation_data) -> FakeSlidesClient:
    return FakeSlidesClient(presentation_data)


@pytest.fixture
def empty_client(presentation_data) -> FakeSlidesClient:
    data = dict(presentation_data)
    data["slides"] = []
    return FakeSlidesClient(data)


@pytest.fixture
def sequential_ids():
    """Deterministic object id factory for composers."""
    counter = {"n": 0}

    def factory(kind: str) -> str:
        counter["n"] += 1
        return f"{kind}_{counter['n']:03d}"

    return factory


@pytest.fixture
def make_client():
    """Factory for clients with canned replies or injected failures."""
    return FakeSlidesClient
