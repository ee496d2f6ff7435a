#!/usr/bin/env python3
"""Print the slides, layouts and markers of a Google Slides presentation.

Usage:
    python scripts/inspect_presentation.py PRESENTATION_ID --credentials service_account.json
    python scripts/inspect_presentation.py PRESENTATION_ID --credentials sa.json -o meta.json
    python scripts/inspect_presentation.py PRESENTATION_ID --credentials sa.json --mark
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from md2gslides.slides_engine.client import GoogleSlidesClient
from md2gslides.slides_engine.slide_operations import ensure_markers, fetch_presentation
from md2gslides.utils.file_utils import save_model


def main():
    parser = argparse.ArgumentParser(description="Inspect a Google Slides presentation")
    parser.add_argument("presentation_id", help="Presentation id")
    parser.add_argument("--credentials", type=Path, required=True, help="Service-account key file")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write the snapshot as JSON")
    parser.add_argument("--mark", action="store_true",
                        help="Add slide markers to unmarked slides first")
    args = parser.parse_args()

    if not args.credentials.exists():
        print(f"Error: Credentials not found: {args.credentials}", file=sys.stderr)
        sys.exit(1)

    client = GoogleSlidesClient.from_service_account(str(args.credentials))
    if args.mark:
        meta = ensure_markers(client, args.presentation_id)
    else:
        meta = fetch_presentation(client, args.presentation_id)

    print(f"{meta.title or '(untitled)'} [{meta.presentation_id}]")
    print(f"Layouts ({len(meta.layouts)}):")
    for layout in meta.layouts:
        types = ", ".join(p.type or "?" for p in layout.placeholders)
        print(f"  {layout.name or '-':<24} {layout.display_name or '':<28} {types}")
    print(f"Slides ({len(meta.slides)}):")
    for position, slide in enumerate(meta.slides):
        marker = "unmarked" if slide.marker is None else f"marker {slide.marker}"
        print(f"  {position:>3}  {slide.object_id:<28} {marker:<12} "
              f"{slide.layout_name or '-':<24} {slide.title or ''}")

    if args.output:
        save_model(meta, args.output)
        print(f"Snapshot written to {args.output}")


if __name__ == "__main__":
    main()
