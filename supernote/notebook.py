"""
Container parser for Supernote ``.note`` files.

Layout (all integers little endian):

    [0, 24)        ASCII signature ``noteSN_FILE_VER_<8 digits>``
    ...            addressed blocks (uint32 length + content)
    [-4, end)      uint32 address of the footer block

The footer lists ``FILE_*`` metadata and one ``PAGE<n>`` address per page. A
page block names the address of each layer block, and a layer block points
at the raw RLE bitmap through ``LAYERBITMAP``.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .blocks import ADDRESS_SIZE, Buffer, as_readonly, footer_address, read_block
from .entities import LAYER_NAMES, Layer, NoteDocument, Page
from .errors import AddressError, FormatError
from .keyvalue import KeyValueMap, decode_text, extract_key_values, group_nested, parse_int, scalar_value

LOGGER = logging.getLogger(__name__)

SIGNATURE_SIZE = 24
SIGNATURE_PATTERN = re.compile(r"^noteSN_FILE_VER_(\d{8})")
DEFAULT_HEADER_ADDRESS = 24
DEFAULT_EQUIPMENT = "unknown"
DEFAULT_PROTOCOL = "RATTA_RLE"
DEFAULT_LAYER_SEQUENCE = "MAINLAYER"

DEFAULT_PAGE_SIZE: Tuple[int, int] = (1404, 1872)
DEVICE_PAGE_SIZES: Dict[str, Tuple[int, int]] = {
    "N5": (1920, 2560),
}


def page_size_for(equipment: str, page_sizes: Mapping[str, Tuple[int, int]] | None = None) -> Tuple[int, int]:
    table = DEVICE_PAGE_SIZES if page_sizes is None else page_sizes
    return table.get(equipment, DEFAULT_PAGE_SIZE)


def load_page_sizes(path: Path) -> Dict[str, Tuple[int, int]]:
    """
    Read extra ``{"DEVICE": [width, height]}`` entries from JSON and merge
    them over the built-in table.
    """

    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object of device sizes")
    table = dict(DEVICE_PAGE_SIZES)
    for device, size in raw.items():
        if not isinstance(size, (list, tuple)) or len(size) != 2:
            raise ValueError(f"{path}: size for {device!r} must be [width, height]")
        width, height = int(size[0]), int(size[1])
        if width <= 0 or height <= 0:
            raise ValueError(f"{path}: size for {device!r} must be positive")
        table[str(device)] = (width, height)
    return table


class _BlockReader:
    """Reads text blocks, turning out-of-range addresses into warnings."""

    def __init__(self, view: memoryview) -> None:
        self.view = view
        self.warnings: List[str] = []

    def raw(self, address: int, what: str) -> memoryview | None:
        try:
            return read_block(self.view, address)
        except AddressError as exc:
            message = f"{what}: {exc}"
            LOGGER.warning("Skipping unreadable block, %s", message)
            self.warnings.append(message)
            return None

    def key_values(self, address: int, what: str) -> KeyValueMap:
        content = self.raw(address, what)
        if content is None:
            return {}
        return extract_key_values(decode_text(content))


def _parse_signature(view: memoryview) -> Tuple[str, int]:
    if len(view) < SIGNATURE_SIZE + ADDRESS_SIZE:
        raise FormatError(f"Invalid note file: {len(view)} bytes is too short for a container")
    signature = decode_text(view[:SIGNATURE_SIZE])
    match = SIGNATURE_PATTERN.match(signature)
    if match is None:
        raise FormatError("Invalid note file: signature doesn't match")
    return signature, int(match.group(1))


def _sorted_page_indices(page_addresses: Mapping[str, str]) -> List[str]:
    def sort_key(idx: str) -> Tuple[bool, int, str]:
        number = parse_int(idx)
        return number is None, number or 0, idx

    return sorted(page_addresses, key=sort_key)


def _parse_layer(reader: _BlockReader, page_data: KeyValueMap, name: str, page_label: str) -> Layer:
    address = parse_int(scalar_value(page_data, name), 0) or 0
    if address == 0:
        return Layer(name=name, protocol="", bitmap=None)

    layer_data = reader.key_values(address, f"{page_label} {name}")
    bitmap_address = parse_int(scalar_value(layer_data, "LAYERBITMAP"), 0) or 0
    bitmap = reader.raw(bitmap_address, f"{page_label} {name} bitmap")
    return Layer(
        name=name,
        protocol=scalar_value(layer_data, "LAYERPROTOCOL") or DEFAULT_PROTOCOL,
        bitmap=bitmap,
        address=address,
    )


def _parse_page(reader: _BlockReader, idx: str, address_text: str) -> Page:
    address = parse_int(address_text, 0) or 0
    page_label = f"page {idx}"
    page_data = reader.key_values(address, page_label)
    sequence = scalar_value(page_data, "LAYERSEQ") or DEFAULT_LAYER_SEQUENCE
    layers = tuple(_parse_layer(reader, page_data, name, page_label) for name in LAYER_NAMES)
    LOGGER.debug("Parsed %s at 0x%X: sequence=%s", page_label, address, sequence)
    return Page(
        index=parse_int(idx, 0) or 0,
        address=address,
        layer_sequence=tuple(sequence.split(",")),
        layers=layers,
    )


def parse_note(buffer: Buffer, *, page_sizes: Mapping[str, Tuple[int, int]] | None = None) -> NoteDocument:
    """
    Parse a whole container held in memory.

    Raises :class:`FormatError` when the signature is missing. Blocks whose
    address or length falls outside the buffer are treated as absent and
    reported through ``NoteDocument.warnings``.
    """

    view = as_readonly(buffer)
    signature, version = _parse_signature(view)
    reader = _BlockReader(view)

    footer_data = reader.key_values(footer_address(view), "footer")
    footer = group_nested(footer_data, "_", ["PAGE"])

    header_address = parse_int(footer.get("FILE", {}).get("FEATURE"), DEFAULT_HEADER_ADDRESS)
    header_data = reader.key_values(header_address, "header")
    equipment = scalar_value(header_data, "APPLY_EQUIPMENT") or DEFAULT_EQUIPMENT
    width, height = page_size_for(equipment, page_sizes)

    page_addresses = footer.get("PAGE", {})
    pages = tuple(_parse_page(reader, idx, page_addresses[idx]) for idx in _sorted_page_indices(page_addresses))
    LOGGER.debug(
        "Parsed note v%d from %s: %dx%d, %d pages, %d warnings",
        version,
        equipment,
        width,
        height,
        len(pages),
        len(reader.warnings),
    )
    return NoteDocument(
        signature=signature,
        version=version,
        page_width=width,
        page_height=height,
        equipment=equipment,
        pages=pages,
        warnings=tuple(reader.warnings),
    )


def load_note(path: Path, **kwargs) -> NoteDocument:
    return parse_note(Path(path).read_bytes(), **kwargs)
