#!/usr/bin/env python3
"""Compile Markdown into Google Slides.

Usage:
    # Dry run: compile only and write the slide definitions as JSON
    python scripts/build_deck.py talk.md -o workspace/deck.json

    # Publish into an existing presentation (slides are appended)
    python scripts/build_deck.py talk.md --presentation-id PRESENTATION_ID \
        --credentials service_account.json

    # Keep a presentation in sync with its source (edit in place, append new)
    python scripts/build_deck.py talk.md --presentation-id PRESENTATION_ID \
        --credentials service_account.json --append

    # Replace the whole deck
    python scripts/build_deck.py talk.md --presentation-id PRESENTATION_ID \
        --credentials service_account.json --erase
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from md2gslides.agents.deck_builder import DeckBuilderAgent
from md2gslides.agents.deck_compiler import DeckCompiler
from md2gslides.parsers import parse
from md2gslides.schemas.settings import CompilerSettings
from md2gslides.slides_engine.client import GoogleSlidesClient
from md2gslides.slides_engine.slide_operations import ReconciliationError, fetch_presentation
from md2gslides.utils.file_utils import save_model

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Build Google Slides from Markdown")
    parser.add_argument("input", type=Path, help="Markdown file (.md, .markdown, .txt)")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Write the compiled deck as JSON (no API calls without --presentation-id)")
    parser.add_argument("--presentation-id", default=None,
                        help="Target presentation id")
    parser.add_argument("--title", default=None,
                        help="Create a new presentation with this title instead of --presentation-id")
    parser.add_argument("--credentials", type=Path, default=None,
                        help="Service-account key file")
    parser.add_argument("--settings", type=Path, default=Path("config/default.yaml"),
                        help="Compiler settings YAML (default: config/default.yaml)")
    parser.add_argument("--append", action="store_true",
                        help="Sync with existing slides instead of appending a full copy")
    parser.add_argument("--erase", action="store_true",
                        help="Delete all existing slides before publishing")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if not args.input.exists():
        print(f"Error: Input not found: {args.input}", file=sys.stderr)
        sys.exit(1)

    settings = CompilerSettings()
    if args.settings.exists():
        settings = CompilerSettings.from_yaml(args.settings)
    else:
        logger.warning(f"Settings file {args.settings} not found, using defaults")

    markdown = parse(args.input)
    compiler = DeckCompiler(settings)

    remote = bool(args.presentation_id or args.title)
    if not remote:
        deck = compiler.compile(markdown)
        output = args.output or Path("deck.json")
        save_model(deck, output)
        print(f"Compiled {len(deck.slides)} slides -> {output}")
        return

    if args.credentials is None or not args.credentials.exists():
        print("Error: --credentials is required to publish", file=sys.stderr)
        sys.exit(1)

    client = GoogleSlidesClient.from_service_account(str(args.credentials))
    presentation_id = args.presentation_id
    try:
        if presentation_id is None:
            presentation_id = client.create(args.title)
            logger.info(f"Created presentation {presentation_id}")

        builder = DeckBuilderAgent(boxes=settings.boxes)
        if args.erase:
            builder.erase(client, presentation_id)

        deck = compiler.compile(markdown, fetch_presentation(client, presentation_id))
        if args.output:
            save_model(deck, args.output)

        if args.append:
            result = builder.sync(client, presentation_id, deck)
            print(f"Synced: {result.edited} edited, {result.copied} copied, {result.created} created")
        else:
            builder.publish(client, presentation_id, deck)
            print(f"Published {len(deck.slides)} slides")
    except ReconciliationError as err:
        print(f"Error: {err} ({err.operation}, objects: {', '.join(err.object_ids) or '-'})",
              file=sys.stderr)
        sys.exit(1)

    print(f"View at https://docs.google.com/presentation/d/{presentation_id}")


if __name__ == "__main__":
    main()
