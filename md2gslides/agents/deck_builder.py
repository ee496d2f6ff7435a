"""Deck Builder Agent: publish and sync compiled decks.

Publishing creates every slide from its layout, then writes speaker notes
and compile-index markers in a second pass (notes objects only exist once
the slides do). Syncing marks what is there, edits slides that already have a
counterpart in place, copies template slides, and appends the rest, so a
second sync of unchanged input issues no edits.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from md2gslides.parsers.syntax_highlight import LINE_SEPARATOR
from md2gslides.schemas.presentation_schema import ElementUpdate, PresentationMeta, SlideMeta
from md2gslides.schemas.settings import BoxSettings
from md2gslides.schemas.slide_schema import DeckDefinition, SlideDefinition
from md2gslides.schemas.text_schema import TextBlock
from md2gslides.slides_engine.client import PresentationClient
from md2gslides.slides_engine.composers import BaseComposer, ComposedSlide, get_composer
from md2gslides.slides_engine.layout_registry import ordered_placeholders
from md2gslides.slides_engine.slide_operations import (
    apply_requests,
    copy_slide,
    edit_slide,
    ensure_markers,
    erase_slides,
    fetch_presentation,
    marker_text,
    set_marker,
)

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """What a sync run changed."""

    edited: int = 0
    copied: int = 0
    created: int = 0


def _normalize(text: str | None) -> str:
    """Text as the remote shape shows it: no bullet tabs, uniform breaks."""
    text = (text or "").replace(LINE_SEPARATOR, "\n")
    return "\n".join(line.strip() for line in text.split("\n")).strip()


class DeckBuilderAgent:
    """Write a DeckDefinition into a Google Slides presentation."""

    def __init__(
        self,
        boxes: BoxSettings | None = None,
        id_factory: Callable[[str], str] | None = None,
    ):
        self.boxes = boxes or BoxSettings()
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def publish(
        self, client: PresentationClient, presentation_id: str, deck: DeckDefinition
    ) -> PresentationMeta:
        """Append every slide of the deck, then its notes and markers.

        Each new slide is marked with its compile index. Slides that were
        already in the presentation and carry no marker are then marked by
        position; where that repeats an index, the appended slide wins.
        """
        snapshot = fetch_presentation(client, presentation_id)
        composed: list[ComposedSlide] = []
        for slide in deck.slides:
            if slide.template_slide_id:
                self._copy_template(client, presentation_id, slide)
            else:
                composed.append(self._compose(slide, snapshot))

        requests = [r for c in composed for r in c.requests]
        apply_requests(client, presentation_id, requests, "publish")
        self._write_notes(client, presentation_id, composed)
        logger.info(f"Published {len(deck.slides)} slides to {presentation_id}")
        return ensure_markers(client, presentation_id)

    def sync(
        self, client: PresentationClient, presentation_id: str, deck: DeckDefinition
    ) -> SyncResult:
        """Bring the presentation in line with the deck without duplicating slides."""
        snapshot = ensure_markers(client, presentation_id)
        by_index = snapshot.slide_by_index()
        result = SyncResult()
        updates: list[ElementUpdate] = []
        pending: list[SlideDefinition] = []

        for slide in deck.slides:
            remote = by_index.get(slide.index)
            if remote is not None:
                slide_updates = self.element_updates(slide, remote)
                if slide_updates:
                    logger.debug(f"Slide {slide.index}: {len(slide_updates)} element(s) changed")
                    result.edited += 1
                updates.extend(slide_updates)
            elif slide.template_slide_id:
                self._copy_template(client, presentation_id, slide)
                result.copied += 1
            else:
                pending.append(slide)

        edit_slide(client, presentation_id, updates)

        if pending:
            composed = [self._compose(slide, snapshot) for slide in pending]
            requests = [r for c in composed for r in c.requests]
            apply_requests(client, presentation_id, requests, "sync")
            self._write_notes(client, presentation_id, composed)
            result.created = len(pending)

        logger.info(
            f"Synced {presentation_id}: {result.edited} edited, "
            f"{result.copied} copied, {result.created} created"
        )
        return result

    def erase(self, client: PresentationClient, presentation_id: str) -> int:
        """Delete every slide of the presentation."""
        return erase_slides(client, presentation_id)

    # ------------------------------------------------------------------
    # Diffing
    # ------------------------------------------------------------------

    @staticmethod
    def element_updates(slide: SlideDefinition, remote: SlideMeta) -> list[ElementUpdate]:
        """Updates for the placeholders and images whose content changed."""
        updates: list[ElementUpdate] = []

        def compare(text: TextBlock | None, placeholders) -> None:
            if text is None or not placeholders:
                return
            placeholder = placeholders[0]
            if _normalize(text.raw_text) != _normalize(placeholder.text):
                updates.append(ElementUpdate(element_id=placeholder.object_id, text=text.raw_text))

        compare(slide.title, ordered_placeholders(remote.placeholders, "title"))
        compare(slide.subtitle, ordered_placeholders(remote.placeholders, "subtitle"))
        bodies = ordered_placeholders(remote.placeholders, "body")
        for i, body in enumerate(slide.text_bodies):
            compare(body.text, bodies[i : i + 1])

        local_images = [img for body in slide.bodies for img in body.images if img.is_remote]
        remote_images = [e for e in remote.elements if e.element_type == "image"]
        for image, element in zip(local_images, remote_images):
            if image.url != element.image_url:
                updates.append(ElementUpdate(element_id=element.object_id, image_url=image.url))
        return updates

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _compose(self, slide: SlideDefinition, snapshot: PresentationMeta) -> ComposedSlide:
        layout = snapshot.find_layout(slide.layout) if slide.layout else None
        composer = get_composer(slide.layout, self.boxes, self.id_factory)
        return composer.compose(slide, layout)

    def _copy_template(self, client: PresentationClient, presentation_id: str, slide: SlideDefinition) -> str:
        new_id = copy_slide(client, presentation_id, slide.template_slide_id)
        set_marker(client, presentation_id, new_id, slide.index)
        snapshot = fetch_presentation(client, presentation_id)
        remote = next((s for s in snapshot.slides if s.object_id == new_id), None)
        if remote is not None:
            edit_slide(client, presentation_id, self.element_updates(slide, remote))
        logger.info(f"Slide {slide.index}: copied from {slide.template_slide_id} as {new_id}")
        return new_id

    def _write_notes(
        self,
        client: PresentationClient,
        presentation_id: str,
        composed: list[ComposedSlide],
    ) -> None:
        if not composed:
            return
        snapshot = fetch_presentation(client, presentation_id)
        notes_ids = {s.object_id: s.notes_object_id for s in snapshot.slides}
        requests = []
        for slide in composed:
            notes_id = notes_ids.get(slide.object_id)
            if not notes_id:
                logger.warning(f"Slide {slide.object_id} has no speaker notes object; notes skipped")
                continue
            text = marker_text(slide.index) + (slide.notes or "")
            requests.extend(BaseComposer.notes_requests(notes_id, text))
        apply_requests(client, presentation_id, requests, "write_notes")
