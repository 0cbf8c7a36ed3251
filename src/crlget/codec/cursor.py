"""
ByteCursor — a position-tracking reader over an immutable byte buffer.

Every parser in the decode chain consumes its input through one of these.
A read either returns exactly the requested bytes and advances, or raises
TruncatedInput and leaves the position untouched.
"""

from __future__ import annotations

import struct

from crlget.domain.errors import TruncatedInput

_U16LE = struct.Struct("<H")
_U32LE = struct.Struct("<I")


class ByteCursor:
    """Sequential little-endian reader. Not shared between threads."""

    __slots__ = ("_buffer", "_position")

    def __init__(self, buffer: bytes, position: int = 0) -> None:
        if not 0 <= position <= len(buffer):
            raise TruncatedInput(0, position, max(0, len(buffer) - max(position, 0)))
        self._buffer = bytes(buffer)
        self._position = position

    @property
    def position(self) -> int:
        return self._position

    def remaining(self) -> int:
        return len(self._buffer) - self._position

    def has_more(self) -> bool:
        return self._position < len(self._buffer)

    def take(self, n: int) -> bytes:
        """Next `n` bytes. Fails for `n < 1` or past the end; never reads partially."""
        if n < 1 or n > self.remaining():
            raise TruncatedInput(n, self._position, self.remaining())
        start = self._position
        self._position += n
        return self._buffer[start : self._position]

    def take_field(self, n: int) -> bytes:
        """Length-prefixed field: a zero length yields b"" instead of failing."""
        if n == 0:
            return b""
        return self.take(n)

    def take_rest(self) -> bytes:
        """Everything from the current position to the end (possibly empty)."""
        rest = self._buffer[self._position :]
        self._position = len(self._buffer)
        return rest

    def take_u8(self) -> int:
        return self.take(1)[0]

    def take_u16le(self) -> int:
        return _U16LE.unpack(self.take(2))[0]

    def take_u32le(self) -> int:
        return _U32LE.unpack(self.take(4))[0]

    def __repr__(self) -> str:
        return f"ByteCursor(position={self._position}, remaining={self.remaining()})"
