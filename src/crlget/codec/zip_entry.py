"""
Single-entry ZIP lookup and decompression.

This is not a general ZIP reader. It scans the archive for central-directory
signatures, reads each 46-byte header plus filename, and when the name
matches, slices the compressed bytes straight out of the same buffer:

    data = local_header_offset + 30 + name_length + extra_length

(the local header is assumed to carry the same name/extra lengths as the
central record). On a name mismatch the search resumes just past the fixed
46-byte header, not past name/extra/comment, so snapshots decoded by earlier
deployments stay byte-for-byte reproducible.

Supported methods: 0 (stored), 8 (raw deflate), 12 (bzip2).
"""

from __future__ import annotations

import bz2
import struct
import zlib
from collections.abc import Iterator

import structlog

from crlget.codec.cursor import ByteCursor
from crlget.domain.errors import CorruptEntry, EntryNotFound, TruncatedInput
from crlget.domain.models import CentralDirectoryHeader, CompressionMethod

log = structlog.get_logger()

CRLSET_ENTRY_NAME = "crl-set"
CENTRAL_DIRECTORY_SIGNATURE = b"PK\x01\x02"

# signature, made-by, needed, flags, method, time, date, crc32, csize, usize,
# name len, extra len, comment len, disk, internal attrs, external attrs, offset
_CENTRAL_HEADER = struct.Struct("<4sHHHHHHIIIHHHHHII")
CENTRAL_HEADER_SIZE = _CENTRAL_HEADER.size  # 46


def read_central_header(payload: bytes, offset: int) -> CentralDirectoryHeader:
    """Unpack the central-directory record starting at `offset`."""
    cursor = ByteCursor(payload, offset)
    (
        signature,
        version_made_by,
        version_needed,
        flags,
        method,
        mod_time,
        mod_date,
        crc32,
        compressed_size,
        uncompressed_size,
        name_length,
        extra_length,
        comment_length,
        disk_number,
        internal_attrs,
        external_attrs,
        local_header_offset,
    ) = _CENTRAL_HEADER.unpack(cursor.take(CENTRAL_HEADER_SIZE))
    name = cursor.take_field(name_length)

    return CentralDirectoryHeader(
        offset=offset,
        signature=signature,
        version_made_by=version_made_by,
        version_needed=version_needed,
        flags=flags,
        method=method,
        mod_time=mod_time,
        mod_date=mod_date,
        crc32=crc32,
        compressed_size=compressed_size,
        uncompressed_size=uncompressed_size,
        name_length=name_length,
        extra_length=extra_length,
        comment_length=comment_length,
        disk_number=disk_number,
        internal_attrs=internal_attrs,
        external_attrs=external_attrs,
        local_header_offset=local_header_offset,
        name=name,
    )


def iter_central_directory(payload: bytes) -> Iterator[CentralDirectoryHeader]:
    """
    Yield every central-directory record the signature scan finds, in order.

    A signature whose fixed header or filename runs past the end of the
    payload is not a record; the scan moves on from `found + 46` exactly as
    it does after a name mismatch.
    """
    offset = 0
    while (found := payload.find(CENTRAL_DIRECTORY_SIGNATURE, offset)) >= 0:
        try:
            header = read_central_header(payload, found)
        except TruncatedInput as e:
            log.debug("zip.candidate_skipped", offset=found, reason=str(e))
        else:
            yield header
        offset = found + CENTRAL_HEADER_SIZE


def find_entry(payload: bytes, name: str = CRLSET_ENTRY_NAME) -> CentralDirectoryHeader:
    """First central-directory record named `name`; EntryNotFound otherwise."""
    target = name.encode("utf-8")
    for header in iter_central_directory(payload):
        if header.name == target:
            log.debug(
                "zip.entry_found",
                name=name,
                offset=header.offset,
                method=header.method,
                compressed_size=header.compressed_size,
                uncompressed_size=header.uncompressed_size,
            )
            return header
        log.debug("zip.entry_skipped", name=header.name.decode("utf-8", "replace"))
    raise EntryNotFound(name)


def decompress(method: int, data: bytes) -> bytes:
    """Inflate `data` according to a ZIP method code."""
    compression = CompressionMethod.from_code(method)
    if compression is CompressionMethod.STORED:
        return data
    try:
        if compression is CompressionMethod.DEFLATE:
            return zlib.decompress(data, -zlib.MAX_WBITS)
        return bz2.decompress(data)
    except (zlib.error, OSError, ValueError) as e:
        raise CorruptEntry(f"cannot decompress {compression.name} entry: {e}") from e


def extract_entry(payload: bytes, name: str = CRLSET_ENTRY_NAME) -> bytes:
    """Locate `name` in the archive and return its decompressed bytes."""
    header = find_entry(payload, name)
    compressed = ByteCursor(payload, header.data_offset).take_field(header.compressed_size)
    return decompress(header.method, compressed)
