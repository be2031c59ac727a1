#!/usr/bin/env python3
"""
Dump the ``<TAG:value>`` fragments of addressed blocks inside a .note file.

Without ``--address`` the footer is dumped, followed by the header and every
page block it references. Repeated tags are shown with all their values.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterator, Sequence, Tuple

from supernote import AddressError, extract_key_values, footer_address, group_nested, read_block
from supernote.keyvalue import Repeated, decode_text, parse_int
from supernote.notebook import DEFAULT_HEADER_ADDRESS


def describe_block(blob: bytes, address: int, *, show_bytes: bool = False) -> Iterator[str]:
    content = read_block(blob, address)
    if content is None:
        yield f"0x{address:08X}: (absent)"
        return
    data = extract_key_values(decode_text(content))
    yield f"0x{address:08X}: {len(content)} bytes, {len(data)} tag(s)"
    for key, entry in data.items():
        if isinstance(entry, Repeated):
            yield f"  {key} = {list(entry.values)!r}"
        else:
            yield f"  {key} = {entry.value!r}"
    if show_bytes and not data and len(content):
        sample = " ".join(f"{b:02X}" for b in content[:16])
        if len(content) > 16:
            sample += " …"
        yield f"  bytes={sample}"


def footer_chain(blob: bytes) -> Iterator[Tuple[str, int]]:
    address = footer_address(blob)
    yield "footer", address
    content = read_block(blob, address)
    if content is None:
        return
    footer = group_nested(extract_key_values(decode_text(content)), "_", ["PAGE"])
    yield "header", parse_int(footer.get("FILE", {}).get("FEATURE"), DEFAULT_HEADER_ADDRESS) or 0
    for idx, value in sorted(footer.get("PAGE", {}).items(), key=lambda item: parse_int(item[0], 0)):
        yield f"page {idx}", parse_int(value, 0) or 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump key-value blocks from a .note file.")
    parser.add_argument("input", type=Path, help="Path to the .note file")
    parser.add_argument(
        "--address",
        type=lambda x: int(x, 0),
        action="append",
        help="Block address to dump (repeatable, accepts 0x prefixes)",
    )
    parser.add_argument("--bytes", action="store_true", help="Hex preview for blocks without text fragments")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    blob = args.input.read_bytes()
    try:
        targets = [(f"block 0x{address:X}", address) for address in args.address] if args.address else list(footer_chain(blob))
    except AddressError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    failures = 0
    for label, address in targets:
        print(f"[{label}]")
        try:
            for line in describe_block(blob, address, show_bytes=args.bytes):
                print(line)
        except AddressError as exc:
            print(f"  unreadable: {exc}")
            failures += 1
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
