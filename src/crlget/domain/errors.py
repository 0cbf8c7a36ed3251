"""
Decode failures — the taxonomy raised by the binary codec.

The codec raises these; the adapter layer catches them at the boundary and
turns them into Result failures that still carry the exception, so callers
can tell an UnsupportedCompression apart from a TruncatedInput.

None of them are retried: any decode failure means the snapshot is unusable.
"""

from __future__ import annotations


class DecodeError(Exception):
    """Base class for every failure of the CRX → ZIP → CRLSet decode chain."""


class TruncatedInput(DecodeError):
    """A read ran past the end of the buffer (corrupt or incomplete download)."""

    def __init__(self, requested: int, position: int, available: int) -> None:
        self.requested = requested
        self.position = position
        self.available = available
        super().__init__(
            f"cannot read {requested} byte(s) at offset {position}: "
            f"{available} byte(s) remaining"
        )


class InvalidMagic(DecodeError):
    """The input does not start with the CRX magic bytes."""

    def __init__(self, found: bytes) -> None:
        self.found = found
        super().__init__(f"expected CRX magic b'Cr24', found {found!r}")


class EntryNotFound(DecodeError):
    """No central-directory record carries the requested entry name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"no ZIP central directory entry named {name!r}")


class UnsupportedCompression(DecodeError):
    """The entry uses a ZIP compression method other than stored, deflate or bzip2."""

    def __init__(self, method: int) -> None:
        self.method = method
        super().__init__(f"unsupported ZIP compression method {method}")


class CorruptEntry(DecodeError):
    """The entry's compressed bytes could not be decompressed."""


class MalformedHeader(DecodeError):
    """The CRLSet JSON header is missing, unreadable, or not a JSON object."""
