#!/usr/bin/env python3
"""
Render Supernote .note pages to PNG files with Pillow.

Every page is written as ``<stem>_p<NNN>.png`` inside the output folder. A
thumbnail set can be written next to it. Example:

    python note_to_png.py journal.note out/ \
        --pages 1-3 --thumb-size 256 --warnings-log out/warnings.txt
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Sequence

from PIL import Image

from supernote import NoteError, RenderedPage, load_note, load_page_sizes, render_page, write_warning_log
from supernote.reporting import LayerWarning


def parse_page_range(text: str, page_count: int) -> List[int]:
    """Turn ``"1,3-5"`` (1-based, inclusive) into zero-based page indices."""

    indices: List[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            first, last = part.split("-", 1)
            start = int(first) if first else 1
            stop = int(last) if last else page_count
        else:
            start = stop = int(part)
        if start < 1 or stop < start:
            raise ValueError(f"Invalid page range {part!r}")
        for number in range(start, min(stop, page_count) + 1):
            if number - 1 not in indices:
                indices.append(number - 1)
    return indices


def write_thumbnail(rendered: RenderedPage, destination: Path, size_px: int) -> None:
    image = rendered.to_image()
    image.thumbnail((size_px, size_px), Image.LANCZOS)
    destination.parent.mkdir(parents=True, exist_ok=True)
    image.save(destination)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render Supernote .note pages to PNG.")
    parser.add_argument("input", type=Path, help="Source .note file")
    parser.add_argument("output", type=Path, help="Destination folder for the PNG pages")
    parser.add_argument("--pages", help="1-based pages to render, e.g. 1,3-5 (default: all)")
    parser.add_argument("--thumb-size", type=int, help="Also write thumbnails no larger than this (square)")
    parser.add_argument("--devices", type=Path, help="JSON file with extra device page sizes")
    parser.add_argument("--warnings-log", type=Path, help="Write per-layer decode warnings to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        page_sizes = load_page_sizes(args.devices) if args.devices else None
        document = load_note(args.input, page_sizes=page_sizes)
        indices = (
            parse_page_range(args.pages, document.page_count) if args.pages else list(range(document.page_count))
        )
    except (NoteError, OSError, ValueError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    print(
        f"[+] {args.input.name}: v{document.version} {document.equipment} "
        f"{document.page_width}x{document.page_height}, {document.page_count} page(s)"
    )
    args.output.mkdir(parents=True, exist_ok=True)
    stem = args.input.stem
    warnings: List[LayerWarning] = []
    for page_index in indices:
        rendered = render_page(document, page_index)
        if rendered is None:
            continue
        destination = args.output / f"{stem}_p{page_index + 1:03d}.png"
        destination.write_bytes(rendered.to_png())
        print(f"[+] Page {page_index + 1} written to {destination}")
        if args.thumb_size:
            thumb = args.output / "thumbs" / f"{stem}_p{page_index + 1:03d}.png"
            write_thumbnail(rendered, thumb, args.thumb_size)
        warnings.extend(rendered.warnings)

    for warning in warnings:
        print(f"[!] {warning.describe()}", file=sys.stderr)
    if args.warnings_log:
        count = write_warning_log(warnings, args.warnings_log, document.warnings)
        print(f"[+] {count} warning(s) written to {args.warnings_log}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
