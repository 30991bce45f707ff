"""
Capture codec: reads and writes packet capture (.ucap) streams.

Layout: a plain sequence of records, each a little-endian uint32 length
followed by exactly that many payload bytes. There is no file header. A
zero-length record is a valid, empty packet.

Decoding is lazy and restartable by reopening the stream. A truncated
trailing record is a hard error (MalformedCapture), never a silent skip.
"""

from __future__ import annotations

import struct
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional

from ..dto import PacketRecord
from ..errors import MalformedCapture

CAPTURE_SUFFIX = ".ucap"

_LEN = struct.Struct("<I")
_MAX_PACKET = 0xFFFFFFFF


def decode(stream: BinaryIO, source: Optional[str] = None) -> Iterator[PacketRecord]:
    """
    Iterate PacketRecord objects from an open capture stream.

    Parameters
    ----------
    stream : file-like
        Binary readable stream positioned at the first record.
    source : str, optional
        Name used in error messages (usually the file path).

    Raises
    ------
    MalformedCapture
        If a length prefix is cut short or would read past end-of-stream.
    """
    index = 0
    offset = 0
    while True:
        head = stream.read(_LEN.size)
        if not head:
            return
        if len(head) < _LEN.size:
            raise MalformedCapture(
                f"truncated length prefix ({len(head)} of {_LEN.size} bytes)",
                source=source,
                index=index,
                offset=offset,
            )
        (length,) = _LEN.unpack(head)
        payload = stream.read(length) if length else b""
        if len(payload) < length:
            raise MalformedCapture(
                f"length prefix {length} exceeds remaining {len(payload)} bytes",
                source=source,
                index=index,
                offset=offset,
            )
        yield PacketRecord(payload=bytes(payload))
        index += 1
        offset += _LEN.size + length


def encode(records: Iterable[PacketRecord | bytes], stream: BinaryIO) -> int:
    """Write records to `stream` in order. Returns the number written."""
    count = 0
    for rec in records:
        payload = rec.payload if isinstance(rec, PacketRecord) else bytes(rec)
        if len(payload) > _MAX_PACKET:
            raise ValueError(f"packet of {len(payload)} bytes does not fit a uint32 length prefix")
        stream.write(_LEN.pack(len(payload)))
        if payload:
            stream.write(payload)
        count += 1
    return count


# === File helpers ===


def read_capture(path: Path | str) -> List[PacketRecord]:
    """Decode a whole capture file into memory."""
    with open(path, "rb") as f:
        return list(decode(f, source=str(path)))


def write_capture(path: Path | str, records: Iterable[PacketRecord | bytes]) -> int:
    with open(path, "wb") as f:
        return encode(records, f)
