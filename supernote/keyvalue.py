"""
Metadata blocks are UTF-8 text made of ``<TAG:value>`` fragments. A tag may
repeat; its values are then kept in order of appearance.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Sequence, Tuple

FRAGMENT_PATTERN = re.compile(r"<([^:<>]+):([^:<>]+)>", re.MULTILINE)


@dataclass(frozen=True)
class Scalar:
    value: str

    @property
    def first(self) -> str:
        return self.value


@dataclass(frozen=True)
class Repeated:
    values: Tuple[str, ...]

    @property
    def first(self) -> str:
        return self.values[0]


KeyValue = Scalar | Repeated
KeyValueMap = Dict[str, KeyValue]


def decode_text(content: bytes | memoryview) -> str:
    return bytes(content).decode("utf-8", errors="replace")


def iter_fragments(text: str) -> Iterable[Tuple[str, str]]:
    for match in FRAGMENT_PATTERN.finditer(text):
        yield match.group(1), match.group(2)


def extract_key_values(text: str) -> KeyValueMap:
    data: KeyValueMap = {}
    for key, value in iter_fragments(text):
        existing = data.get(key)
        if existing is None:
            data[key] = Scalar(value)
        elif isinstance(existing, Scalar):
            data[key] = Repeated((existing.value, value))
        else:
            data[key] = Repeated(existing.values + (value,))
    return data


def scalar_value(data: Mapping[str, KeyValue], key: str, default: str | None = None) -> str | None:
    """Single string for ``key``; a repeated tag yields its first value."""

    entry = data.get(key)
    if entry is None:
        return default
    return entry.first


def group_nested(
    data: Mapping[str, KeyValue],
    delimiter: str = "_",
    prefixes: Sequence[str] = (),
) -> Dict[str, Dict[str, str]]:
    """
    Regroup a flat map into ``{group: {subkey: value}}``.

    ``FILE_FEATURE`` splits at the first delimiter into ``FILE``/``FEATURE``;
    a key without the delimiter is split after the first matching prefix
    (``PAGE12`` -> ``PAGE``/``12``). Repeated tags, keys matching neither rule
    and keys leaving an empty group or subkey are dropped.
    """

    nested: Dict[str, Dict[str, str]] = {}
    for key, entry in data.items():
        if not isinstance(entry, Scalar):
            continue
        group: str | None = None
        sub: str | None = None
        idx = key.find(delimiter)
        if idx > -1:
            group, sub = key[:idx], key[idx + len(delimiter):]
        else:
            for prefix in prefixes:
                if key.startswith(prefix):
                    group, sub = prefix, key[len(prefix):]
                    break
        if group and sub:
            nested.setdefault(group, {})[sub] = entry.value
    return nested


def parse_int(text: str | None, default: int | None = None) -> int | None:
    """Leading decimal integer of ``text`` (``"123abc"`` -> 123)."""

    if text is None:
        return default
    match = re.match(r"\s*([+-]?\d+)", text)
    if match is None:
        return default
    return int(match.group(1))
