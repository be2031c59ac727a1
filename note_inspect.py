#!/usr/bin/env python3
"""
Structural report for a Supernote .note container:
  - signature, format version and device
  - page size selected for the device
  - per page: layer sequence, layer protocols and bitmap sizes
  - parse warnings for blocks that fall outside the file

Usage:
    python note_inspect.py path/to/file.note [--json manifest.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

from supernote import NoteDocument, NoteError, load_note, load_page_sizes


def summarize(document: NoteDocument) -> Dict[str, Any]:
    pages = []
    for position, page in enumerate(document.pages):
        pages.append(
            {
                "position": position,
                "index": page.index,
                "address": page.address,
                "layer_sequence": list(page.layer_sequence),
                "paint_order": [layer.name for layer in page.paint_order()],
                "layers": [
                    {
                        "name": layer.name,
                        "address": layer.address,
                        "protocol": layer.protocol,
                        "bitmap_bytes": len(layer.bitmap) if layer.bitmap is not None else None,
                    }
                    for layer in page.layers
                ],
            }
        )
    return {
        "signature": document.signature,
        "version": document.version,
        "equipment": document.equipment,
        "page_width": document.page_width,
        "page_height": document.page_height,
        "page_count": document.page_count,
        "pages": pages,
        "warnings": list(document.warnings),
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Summarize the structure of a .note file.")
    parser.add_argument("input", type=Path, help="Path to the .note file")
    parser.add_argument("--json", type=Path, help="Optional path to write JSON summary")
    parser.add_argument("--devices", type=Path, help="JSON file with extra device page sizes")
    args = parser.parse_args(argv)

    try:
        page_sizes = load_page_sizes(args.devices) if args.devices else None
        document = load_note(args.input, page_sizes=page_sizes)
    except (NoteError, OSError, ValueError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    summary = summarize(document)
    print(f"{args.input}:")
    print(f"  signature: {summary['signature']!r} (version {summary['version']})")
    print(f"  device: {summary['equipment']} -> {summary['page_width']}x{summary['page_height']}")
    print(f"  pages: {summary['page_count']}")
    for page in summary["pages"]:
        layers = ", ".join(
            f"{layer['name']}={layer['protocol']}/{layer['bitmap_bytes']}B"
            for layer in page["layers"]
            if layer["bitmap_bytes"] is not None
        )
        print(
            f"  page {page['position'] + 1} (index {page['index']}, 0x{page['address']:X}): "
            f"seq={','.join(page['layer_sequence'])} layers=[{layers or 'none'}]"
        )
    for warning in summary["warnings"]:
        print(f"  warning: {warning}")

    if args.json:
        args.json.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        print(f"  JSON summary written to {args.json}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
