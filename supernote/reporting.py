from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List


@dataclass(frozen=True)
class LayerWarning:
    page: int
    layer: str
    protocol: str
    message: str

    def describe(self) -> str:
        return f"page={self.page} layer={self.layer} protocol={self.protocol or '-'}: {self.message}"


def format_warnings(page_warnings: Iterable[LayerWarning], document_warnings: Iterable[str] = ()) -> List[str]:
    lines: List[str] = []
    for message in document_warnings:
        lines.append(f"parse: {message}")
    for idx, warning in enumerate(page_warnings, start=1):
        lines.append(f"#{idx:04d} {warning.describe()}")
    return lines


def write_warning_log(
    page_warnings: Iterable[LayerWarning],
    destination: Path,
    document_warnings: Iterable[str] = (),
) -> int:
    """Write one line per warning; returns the number of lines written."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    lines = format_warnings(page_warnings, document_warnings)
    destination.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    return len(lines)
