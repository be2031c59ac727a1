"""
Addressed blocks are the only structure the container has: a little-endian
uint32 length followed by that many content bytes. Every other block is
reached through an address stored as text or as the trailing 4 bytes.
"""

from __future__ import annotations

import struct

from .errors import AddressError

ADDRESS_SIZE = 4
LENGTH_FIELD_SIZE = 4

Buffer = bytes | bytearray | memoryview


def as_readonly(buffer: Buffer) -> memoryview:
    view = buffer if isinstance(buffer, memoryview) else memoryview(buffer)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view.toreadonly()


def read_uint32(buffer: Buffer, offset: int) -> int:
    if offset < 0 or offset + 4 > len(buffer):
        raise AddressError(offset, None, len(buffer))
    return struct.unpack_from("<I", buffer, offset)[0]


def read_block(buffer: Buffer, address: int) -> memoryview | None:
    """
    Return the content of the block stored at ``address`` as a read-only
    view, or ``None`` for the reserved address 0. The slice is bounds checked
    before it is taken.
    """

    if address == 0:
        return None
    view = as_readonly(buffer)
    if address < 0:
        raise AddressError(address, None, len(view))
    length = read_uint32(view, address)
    start = address + LENGTH_FIELD_SIZE
    end = start + length
    if end > len(view):
        raise AddressError(address, length, len(view))
    return view[start:end]


def footer_address(buffer: Buffer) -> int:
    return read_uint32(buffer, len(buffer) - ADDRESS_SIZE)
