"""
RATTA_RLE bitmap decoder.

The stream is a sequence of ``(color, length)`` byte pairs:

* ``length == 0xFF``      -> 0x4000 pixels of ``color``
* ``length & 0x80``       -> extended run, held until the next pair is seen
* otherwise               -> ``length + 1`` pixels of ``color``

A held pair followed by a pair of the same color merges into one run of
``1 + length + (((held & 0x7F) + 1) << 7)`` pixels. Followed by any other
color it stands alone as ``((held & 0x7F) + 1) << 7`` pixels and the new pair
is decoded normally. A pair still held when the stream ends is shrunk to the
largest ``((held & 0x7F) + 1) << shift`` that fits in the remaining page.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterator, NamedTuple, Tuple

import numpy as np

from .entities import Layer
from .errors import DecodeError

SPECIAL_LENGTH_MARKER = 0xFF
SPECIAL_LENGTH = 0x4000
HOLDER_FLAG = 0x80
HOLDER_MASK = 0x7F
HOLDER_SHIFT = 7

TRANSPARENT = (0, 0, 0, 0)

ENCODED_COLORS: Dict[int, Tuple[int, int, int, int]] = {
    0x61: (0, 0, 0, 255),  # black
    0x62: (255, 255, 255, 0),  # background
    0x63: (169, 169, 169, 255),  # dark gray
    0x64: (128, 128, 128, 255),  # gray
    0x65: (255, 255, 255, 255),  # white
    0x66: (0, 0, 0, 255),  # marker black
    0x67: (169, 169, 169, 255),  # marker dark gray
    0x68: (128, 128, 128, 255),  # marker gray
    0x9D: (169, 169, 169, 255),  # dark gray x2
    0xC9: (128, 128, 128, 255),  # gray x2
    0x9E: (169, 169, 169, 255),  # marker dark gray x2
    0xCA: (128, 128, 128, 255),  # marker gray x2
}

COLOR_NAMES: Dict[int, str] = {
    0x61: "black",
    0x62: "background",
    0x63: "darkGray",
    0x64: "gray",
    0x65: "white",
    0x66: "markerBlack",
    0x67: "markerDarkGray",
    0x68: "markerGray",
    0x9D: "darkGrayX2",
    0xC9: "grayX2",
    0x9E: "markerDarkGrayX2",
    0xCA: "markerGrayX2",
}


class Run(NamedTuple):
    color: int
    length: int


def _held_length(length_code: int, shift: int = HOLDER_SHIFT) -> int:
    return ((length_code & HOLDER_MASK) + 1) << shift


def iter_runs(encoded: bytes | memoryview, pixel_budget: int) -> Iterator[Run]:
    """
    Yield the runs described by ``encoded`` in output order. Lengths are not
    clipped; ``pixel_budget`` is only used to size a trailing held pair. A
    trailing odd byte is ignored.
    """

    data = bytes(encoded)
    emitted = 0
    holder: Tuple[int, int] | None = None

    for i in range(1, len(data), 2):
        color = data[i - 1]
        length = data[i]

        if holder is not None:
            held_color, held_length = holder
            holder = None
            if color == held_color:
                run = Run(color, 1 + length + _held_length(held_length))
                emitted += run.length
                yield run
                continue
            run = Run(held_color, _held_length(held_length))
            emitted += run.length
            yield run

        if length == SPECIAL_LENGTH_MARKER:
            run = Run(color, SPECIAL_LENGTH)
        elif length & HOLDER_FLAG:
            holder = (color, length)
            continue
        else:
            run = Run(color, length + 1)
        emitted += run.length
        yield run

    if holder is not None:
        color, length = holder
        gap = pixel_budget - emitted
        for shift in range(HOLDER_SHIFT, -1, -1):
            candidate = _held_length(length, shift)
            if candidate <= gap:
                yield Run(color, candidate)
                break


def decode_rle(
    encoded: bytes | memoryview,
    width: int,
    height: int,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """
    Decode a RATTA_RLE stream into an RGBA array of shape ``(height, width, 4)``.

    Pixels the stream does not reach keep their value in ``out`` (zeros when
    no array is passed in). Runs past the end of the page are clipped.
    """

    total = width * height
    if out is None:
        out = np.zeros((height, width, 4), dtype=np.uint8)
    elif out.shape != (height, width, 4) or out.dtype != np.uint8 or not out.flags.c_contiguous:
        raise ValueError(f"out must be a contiguous uint8 array of shape {(height, width, 4)}, got {out.dtype} {out.shape}")

    pixels = out.reshape(total, 4)
    cursor = 0
    for color, length in iter_runs(encoded, total):
        if cursor < total:
            end = min(cursor + length, total)
            pixels[cursor:end] = ENCODED_COLORS.get(color, TRANSPARENT)
        cursor += length
    return out


LayerDecoder = Callable[[memoryview, int, int], np.ndarray]

DECODERS: Dict[str, LayerDecoder] = {
    "RATTA_RLE": decode_rle,
}


def decode_layer(layer: Layer, width: int, height: int) -> np.ndarray:
    decoder = DECODERS.get(layer.protocol)
    if decoder is None:
        raise DecodeError(f"layer {layer.name}: unsupported protocol {layer.protocol!r}")
    if layer.bitmap is None:
        raise DecodeError(f"layer {layer.name}: no bitmap")
    return decoder(layer.bitmap, width, height)
