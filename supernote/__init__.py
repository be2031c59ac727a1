"""
Supernote ``.note`` decoding: container parsing, RLE bitmap decoding and
page compositing.
"""

from .blocks import ADDRESS_SIZE, LENGTH_FIELD_SIZE, footer_address, read_block, read_uint32
from .compositor import RenderedPage, composite_over, iter_rendered_pages, render_all_pages, render_page, to_grayscale
from .entities import LAYER_NAMES, Layer, NoteDocument, Page
from .errors import AddressError, DecodeError, FormatError, NoteError
from .keyvalue import Repeated, Scalar, extract_key_values, group_nested, scalar_value
from .notebook import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_PROTOCOL,
    DEVICE_PAGE_SIZES,
    load_note,
    load_page_sizes,
    page_size_for,
    parse_note,
)
from .reporting import LayerWarning, write_warning_log
from .rle import ENCODED_COLORS, Run, decode_layer, decode_rle, iter_runs

__all__ = [
    "ADDRESS_SIZE",
    "LENGTH_FIELD_SIZE",
    "footer_address",
    "read_block",
    "read_uint32",
    "RenderedPage",
    "composite_over",
    "iter_rendered_pages",
    "render_all_pages",
    "render_page",
    "to_grayscale",
    "LAYER_NAMES",
    "Layer",
    "NoteDocument",
    "Page",
    "AddressError",
    "DecodeError",
    "FormatError",
    "NoteError",
    "Repeated",
    "Scalar",
    "extract_key_values",
    "group_nested",
    "scalar_value",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_PROTOCOL",
    "DEVICE_PAGE_SIZES",
    "load_note",
    "load_page_sizes",
    "page_size_for",
    "parse_note",
    "LayerWarning",
    "write_warning_log",
    "ENCODED_COLORS",
    "Run",
    "decode_layer",
    "decode_rle",
    "iter_runs",
]
