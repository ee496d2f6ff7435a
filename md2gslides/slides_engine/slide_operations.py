"""Marker-based reconciliation against a remote presentation.

Every slide the tool manages carries a marker ``md2gs-slide:<index>\\n`` at
the start of a paragraph of its speaker notes, normally the first one. The
marker binds the slide's compile-time position to the remote slide object,
so later runs can edit or append without relying on object ids or slide
order.

A slide is Unmarked (no marker yet), Marked, or Stale (its marker no longer
matches the compiled deck). ``ensure_markers`` moves every Unmarked slide to
Marked using its current position; stale slides are left to the caller.
"""

import logging
import re
from typing import Any

from md2gslides.schemas.presentation_schema import (
    ElementMeta,
    ElementUpdate,
    LayoutMeta,
    PlaceholderMeta,
    PresentationMeta,
    SlideMeta,
)
from md2gslides.slides_engine.client import PresentationClient

logger = logging.getLogger(__name__)

MARKER_PREFIX = "md2gs-slide:"
_MARKER_RE = re.compile(r"^" + re.escape(MARKER_PREFIX) + r"(\d+)", re.MULTILINE)

_ELEMENT_KINDS = ("shape", "image", "video", "table", "line", "sheetsChart", "wordArt")


class ReconciliationError(RuntimeError):
    """A reconciliation call failed or returned an unusable reply."""

    def __init__(
        self,
        message: str,
        operation: str,
        presentation_id: str,
        object_ids: list[str] | None = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.presentation_id = presentation_id
        self.object_ids = object_ids or []


def marker_text(index: int) -> str:
    return f"{MARKER_PREFIX}{index}\n"


# ---------------------------------------------------------------------------
# Client calls
# ---------------------------------------------------------------------------

def _fetch(client: PresentationClient, presentation_id: str, operation: str) -> dict[str, Any]:
    try:
        return client.get(presentation_id)
    except ReconciliationError:
        raise
    except Exception as err:
        raise ReconciliationError(
            f"Could not fetch presentation {presentation_id}: {err}",
            operation,
            presentation_id,
        ) from err


def _batch(
    client: PresentationClient,
    presentation_id: str,
    requests: list[dict[str, Any]],
    operation: str,
    object_ids: list[str],
) -> list[dict[str, Any]]:
    try:
        return client.batch_update(presentation_id, requests)
    except ReconciliationError:
        raise
    except Exception as err:
        raise ReconciliationError(
            f"{operation} failed on {presentation_id}: {err}",
            operation,
            presentation_id,
            object_ids,
        ) from err


# ---------------------------------------------------------------------------
# Presentation snapshot
# ---------------------------------------------------------------------------

def _shape_text(element: dict[str, Any]) -> str:
    text = (element.get("shape") or {}).get("text") or {}
    return "".join(
        (te.get("textRun") or {}).get("content", "") for te in text.get("textElements", [])
    )


def _notes(slide: dict[str, Any]) -> tuple[str | None, str]:
    """Speaker-notes object id and its text."""
    notes_page = (slide.get("slideProperties") or {}).get("notesPage") or {}
    notes_id = (notes_page.get("notesProperties") or {}).get("speakerNotesObjectId")
    text = ""
    for element in notes_page.get("pageElements", []):
        if element.get("objectId") == notes_id:
            text = _shape_text(element)
            break
    return notes_id, text


def _find_marker(text: str) -> re.Match | None:
    """First marker that starts a paragraph of the notes text."""
    return _MARKER_RE.search(text)


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def read_marker(slide: dict[str, Any]) -> int | None:
    """Index stored in a slide's notes marker, or None if it has none."""
    _notes_id, text = _notes(slide)
    match = _find_marker(text)
    return int(match.group(1)) if match else None


def _placeholder(element: dict[str, Any]) -> PlaceholderMeta | None:
    placeholder = (element.get("shape") or {}).get("placeholder")
    if not placeholder:
        return None
    return PlaceholderMeta(
        object_id=element.get("objectId", ""),
        type=placeholder.get("type"),
        text=_shape_text(element).strip() or None,
        transform=element.get("transform"),
        size=element.get("size"),
    )


def _element(element: dict[str, Any]) -> ElementMeta:
    kind = next((k for k in _ELEMENT_KINDS if k in element), None)
    if kind is None:
        kind = "group" if "elementGroup" in element else "unknown"
    placeholder = (
        (element.get("shape") or {}).get("placeholder")
        or (element.get("image") or {}).get("placeholder")
        or {}
    )
    image = element.get("image") or {}
    text = _shape_text(element).strip() if "shape" in element else ""
    return ElementMeta(
        object_id=element.get("objectId", ""),
        element_type=kind,
        placeholder_type=placeholder.get("type"),
        text=text or None,
        image_url=image.get("sourceUrl") or image.get("contentUrl"),
        video_url=(element.get("video") or {}).get("url"),
        transform=element.get("transform"),
        size=element.get("size"),
    )


def build_presentation_meta(presentation: dict[str, Any], presentation_id: str) -> PresentationMeta:
    """Project a ``presentations.get`` payload onto PresentationMeta."""
    layouts_by_id: dict[str, dict[str, Any]] = {}
    layouts: list[LayoutMeta] = []
    for layout in presentation.get("layouts", []):
        props = layout.get("layoutProperties") or {}
        layouts_by_id[layout.get("objectId", "")] = props
        layouts.append(
            LayoutMeta(
                object_id=layout.get("objectId", ""),
                name=props.get("name"),
                display_name=props.get("displayName"),
                placeholders=[
                    p for p in map(_placeholder, layout.get("pageElements", [])) if p is not None
                ],
            )
        )

    slides: list[SlideMeta] = []
    for position, slide in enumerate(presentation.get("slides", [])):
        elements = slide.get("pageElements", [])
        placeholders = [p for p in map(_placeholder, elements) if p is not None]
        title = next(
            (p.text for p in placeholders if p.type in ("TITLE", "CENTERED_TITLE") and p.text),
            None,
        )
        layout_props = layouts_by_id.get(
            (slide.get("slideProperties") or {}).get("layoutObjectId", ""), {}
        )
        notes_id, _text = _notes(slide)
        marker = read_marker(slide)
        slides.append(
            SlideMeta(
                object_id=slide.get("objectId", ""),
                layout=layout_props.get("displayName"),
                layout_name=layout_props.get("name"),
                title=title,
                index=marker if marker is not None else position,
                marker=marker,
                notes_object_id=notes_id,
                placeholders=placeholders,
                elements=[_element(e) for e in elements],
            )
        )

    return PresentationMeta(
        presentation_id=presentation.get("presentationId", presentation_id),
        title=presentation.get("title"),
        layouts=layouts,
        slides=slides,
    )


def fetch_presentation(client: PresentationClient, presentation_id: str) -> PresentationMeta:
    """Fetch a fresh snapshot without touching markers."""
    return build_presentation_meta(_fetch(client, presentation_id, "fetch"), presentation_id)


def apply_requests(
    client: PresentationClient,
    presentation_id: str,
    requests: list[dict[str, Any]],
    operation: str = "batch_update",
) -> list[dict[str, Any]]:
    """Send one batch; no call when there is nothing to send."""
    if not requests:
        return []
    return _batch(client, presentation_id, requests, operation, [])


# ---------------------------------------------------------------------------
# Reconciliation operations
# ---------------------------------------------------------------------------

def ensure_markers(client: PresentationClient, presentation_id: str) -> PresentationMeta:
    """Mark every unmarked slide with its position and return a snapshot.

    All missing markers go out in one batch; the presentation is fetched
    again only when that batch was sent. A second call with no remote
    change issues no updates.

    Raises:
        ReconciliationError: If fetching or updating the presentation fails.
    """
    presentation = _fetch(client, presentation_id, "ensure_markers")
    requests: list[dict[str, Any]] = []
    marked: list[str] = []
    for position, slide in enumerate(presentation.get("slides", [])):
        notes_id, text = _notes(slide)
        if not notes_id:
            logger.debug(f"Slide {slide.get('objectId')} has no speaker notes object")
            continue
        if _find_marker(text):
            continue
        requests.append(
            {
                "insertText": {
                    "objectId": notes_id,
                    "text": marker_text(position),
                    "insertionIndex": 0,
                }
            }
        )
        marked.append(slide.get("objectId", ""))

    if requests:
        logger.info(f"Marking {len(requests)} slide(s) in {presentation_id}")
        _batch(client, presentation_id, requests, "ensure_markers", marked)
        presentation = _fetch(client, presentation_id, "ensure_markers")

    return build_presentation_meta(presentation, presentation_id)


def copy_slide(client: PresentationClient, presentation_id: str, slide_id: str) -> str:
    """Duplicate a slide and return the new slide's object id.

    Raises:
        ReconciliationError: If the call fails or the reply carries no
            duplicated object id.
    """
    replies = _batch(
        client,
        presentation_id,
        [{"duplicateObject": {"objectId": slide_id}}],
        "copy_slide",
        [slide_id],
    )
    new_id = ((replies[0] if replies else {}).get("duplicateObject") or {}).get("objectId")
    if not new_id:
        raise ReconciliationError(
            f"No duplicateObject reply when copying {slide_id}",
            "copy_slide",
            presentation_id,
            [slide_id],
        )
    logger.debug(f"Copied slide {slide_id} -> {new_id}")
    return new_id


def edit_requests(updates: list[ElementUpdate]) -> list[dict[str, Any]]:
    """Requests replacing element text and/or images in place."""
    requests: list[dict[str, Any]] = []
    for update in updates:
        if update.text is not None:
            requests.append(
                {"deleteText": {"objectId": update.element_id, "textRange": {"type": "ALL"}}}
            )
            if update.text:
                requests.append(
                    {
                        "insertText": {
                            "objectId": update.element_id,
                            "text": update.text,
                            "insertionIndex": 0,
                        }
                    }
                )
            requests.append(
                {
                    "updateShapeProperties": {
                        "objectId": update.element_id,
                        "shapeProperties": {"autofit": {"autofitType": "TEXT_AUTOFIT"}},
                        "fields": "autofit",
                    }
                }
            )
        if update.image_url:
            requests.append(
                {"replaceImage": {"imageObjectId": update.element_id, "url": update.image_url}}
            )
    return requests


def edit_slide(
    client: PresentationClient,
    presentation_id: str,
    updates: list[ElementUpdate | dict[str, Any]],
) -> None:
    """Apply element updates in a single batch; no call when nothing to do.

    Raises:
        ReconciliationError: If the update fails.
    """
    updates = [u if isinstance(u, ElementUpdate) else ElementUpdate(**u) for u in updates]
    requests = edit_requests(updates)
    if not requests:
        return
    _batch(client, presentation_id, requests, "edit_slide", [u.element_id for u in updates])


def set_marker(client: PresentationClient, presentation_id: str, slide_id: str, index: int) -> None:
    """Point a slide's notes marker at ``index``.

    A duplicated slide inherits the source's notes, marker included; the
    old marker is replaced and the rest of the notes are kept.

    Raises:
        ReconciliationError: If the slide or its notes object is missing, or
            the update fails.
    """
    presentation = _fetch(client, presentation_id, "set_marker")
    slide = next(
        (s for s in presentation.get("slides", []) if s.get("objectId") == slide_id), None
    )
    if slide is None:
        raise ReconciliationError(
            f"Slide {slide_id} not found", "set_marker", presentation_id, [slide_id]
        )
    notes_id, text = _notes(slide)
    if not notes_id:
        raise ReconciliationError(
            f"Slide {slide_id} has no speaker notes object",
            "set_marker",
            presentation_id,
            [slide_id],
        )

    requests: list[dict[str, Any]] = []
    match = _find_marker(text)
    if match:
        end = match.end() + (1 if text[match.end() : match.end() + 1] == "\n" else 0)
        requests.append(
            {
                "deleteText": {
                    "objectId": notes_id,
                    "textRange": {
                        "type": "FIXED_RANGE",
                        "startIndex": _utf16_len(text[: match.start()]),
                        "endIndex": _utf16_len(text[:end]),
                    },
                }
            }
        )
    requests.append(
        {"insertText": {"objectId": notes_id, "text": marker_text(index), "insertionIndex": 0}}
    )
    _batch(client, presentation_id, requests, "set_marker", [slide_id])


def erase_slides(client: PresentationClient, presentation_id: str) -> int:
    """Delete every slide in the presentation; returns how many were deleted."""
    presentation = _fetch(client, presentation_id, "erase_slides")
    slide_ids = [s.get("objectId") for s in presentation.get("slides", []) if s.get("objectId")]
    if not slide_ids:
        return 0
    _batch(
        client,
        presentation_id,
        [{"deleteObject": {"objectId": slide_id}} for slide_id in slide_ids],
        "erase_slides",
        slide_ids,
    )
    logger.info(f"Erased {len(slide_ids)} slide(s) from {presentation_id}")
    return len(slide_ids)
