"""
Page compositing: decode every layer of a page, paint them back-to-front
over a white canvas with source-over blending, then reduce to grayscale.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from typing import Iterator, List, Tuple

import numpy as np
from PIL import Image

from .entities import NoteDocument
from .errors import DecodeError
from .reporting import LayerWarning
from .rle import decode_layer

LOGGER = logging.getLogger(__name__)

GRAY_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass(frozen=True)
class RenderedPage:
    index: int
    pixels: np.ndarray
    warnings: Tuple[LayerWarning, ...] = ()

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def to_png(self) -> bytes:
        stream = io.BytesIO()
        self.to_image().save(stream, format="PNG")
        return stream.getvalue()

    def to_data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.to_png()).decode("ascii")


def blank_canvas(width: int, height: int) -> np.ndarray:
    return np.full((height, width, 4), 255, dtype=np.uint8)


def _round_channel(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def composite_over(canvas: np.ndarray, layer: np.ndarray) -> None:
    """Paint ``layer`` onto ``canvas`` in place (source over destination)."""

    src_a = layer[..., 3]

    opaque = src_a == 255
    canvas[opaque, :3] = layer[opaque, :3]
    canvas[opaque, 3] = 255

    partial = (src_a > 0) & ~opaque
    if not partial.any():
        return
    sa = src_a[partial].astype(np.float64)
    da = canvas[partial, 3].astype(np.float64)
    keep = da * (1.0 - sa / 255.0)
    out_a = sa + keep
    valid = out_a > 0
    src_c = layer[partial, :3].astype(np.float64)
    dst_c = canvas[partial, :3].astype(np.float64)
    out_c = np.zeros_like(src_c)
    out_c[valid] = (src_c[valid] * sa[valid, None] + dst_c[valid] * keep[valid, None]) / out_a[valid, None]

    blended = canvas[partial]
    blended[valid, :3] = _round_channel(out_c[valid])
    blended[valid, 3] = _round_channel(out_a[valid])
    canvas[partial] = blended


def to_grayscale(canvas: np.ndarray) -> None:
    """Replace RGB with rounded luma in place; alpha is untouched."""

    rgb = canvas[..., :3].astype(np.float64)
    luma = rgb[..., 0] * GRAY_WEIGHTS[0] + rgb[..., 1] * GRAY_WEIGHTS[1] + rgb[..., 2] * GRAY_WEIGHTS[2]
    gray = _round_channel(luma)
    canvas[..., 0] = gray
    canvas[..., 1] = gray
    canvas[..., 2] = gray


def render_page(document: NoteDocument, page_index: int) -> RenderedPage | None:
    """
    Composite one page. Returns ``None`` when ``page_index`` is out of range.
    Layers that fail to decode are skipped and reported in ``warnings``.
    """

    if page_index < 0 or page_index >= len(document.pages):
        return None

    page = document.pages[page_index]
    width, height = document.page_width, document.page_height
    canvas = blank_canvas(width, height)
    warnings: List[LayerWarning] = []

    for layer in page.paint_order():
        try:
            pixels = decode_layer(layer, width, height)
        except DecodeError as exc:
            LOGGER.warning("Error decoding layer %s on page %d: %s", layer.name, page_index, exc)
            warnings.append(LayerWarning(page=page_index, layer=layer.name, protocol=layer.protocol, message=str(exc)))
            continue
        composite_over(canvas, pixels)

    to_grayscale(canvas)
    return RenderedPage(index=page_index, pixels=canvas, warnings=tuple(warnings))


def iter_rendered_pages(document: NoteDocument, start: int = 0) -> Iterator[RenderedPage]:
    """Render pages lazily in document order; stop iterating to cancel."""

    for page_index in range(max(start, 0), len(document.pages)):
        rendered = render_page(document, page_index)
        if rendered is not None:
            yield rendered


def render_all_pages(document: NoteDocument) -> List[RenderedPage]:
    return list(iter_rendered_pages(document))
