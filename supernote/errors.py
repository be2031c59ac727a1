from __future__ import annotations


class NoteError(Exception):
    """Base class for every failure raised while reading a .note container."""


class FormatError(NoteError):
    """The buffer is not a note container (bad signature or truncated)."""


class AddressError(NoteError):
    """An addressed block would read outside the buffer."""

    def __init__(self, address: int, length: int | None, buffer_size: int) -> None:
        self.address = address
        self.length = length
        self.buffer_size = buffer_size
        if length is None:
            detail = f"length field at 0x{address:X} runs past end of buffer"
        else:
            detail = f"block at 0x{address:X} with length {length} runs past end of buffer"
        super().__init__(f"{detail} ({buffer_size} bytes)")


class DecodeError(NoteError):
    """A layer bitmap could not be decoded."""
