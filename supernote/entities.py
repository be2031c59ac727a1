from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

LAYER_NAMES: Tuple[str, ...] = ("MAINLAYER", "LAYER1", "LAYER2", "LAYER3", "BGLAYER")


@dataclass(frozen=True)
class Layer:
    name: str
    protocol: str
    bitmap: memoryview | None = field(default=None, repr=False, compare=False)
    address: int = 0

    @property
    def has_bitmap(self) -> bool:
        return self.bitmap is not None and len(self.bitmap) > 0


@dataclass(frozen=True)
class Page:
    index: int
    address: int
    layer_sequence: Tuple[str, ...]
    layers: Tuple[Layer, ...]

    def layer(self, name: str) -> Layer | None:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def paint_order(self) -> Tuple[Layer, ...]:
        """Layers with a bitmap, back-to-front (reverse of ``layer_sequence``)."""

        resolved = [self.layer(name) for name in self.layer_sequence]
        return tuple(reversed([layer for layer in resolved if layer is not None and layer.has_bitmap]))


@dataclass(frozen=True)
class NoteDocument:
    signature: str
    version: int
    page_width: int
    page_height: int
    equipment: str
    pages: Tuple[Page, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def page_size(self) -> Tuple[int, int]:
        return self.page_width, self.page_height
