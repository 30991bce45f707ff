"""
Debug dump: converts capture files into the example tool's .bin layout.

The source tree is mirrored under the output directory; `a/b/x.ucap` becomes
`a/b/x.bin`. No dictionary selection or training happens here.

.bin layout (little-endian):
  uint32 packet_count
  packet_count * (uint32 length, byte[length] payload)

Failures are per file: a bad capture is recorded as DumpIOError and the
remaining files are still converted.
"""

from __future__ import annotations

import logging
import struct
from pathlib import Path
from typing import BinaryIO, Sequence

from ..dto import DumpSummary, PacketRecord
from ..errors import DumpIOError, MalformedCapture
from ..intake.capture_codec import read_capture
from ..intake.locator import ALL, Changelist, locate

logger = logging.getLogger(__name__)

DUMP_SUFFIX = ".bin"

_U32 = struct.Struct("<I")


def encode_dump(records: Sequence[PacketRecord], stream: BinaryIO) -> int:
    """Write `records` in the .bin layout. Returns bytes written."""
    written = stream.write(_U32.pack(len(records)))
    for rec in records:
        written += stream.write(_U32.pack(rec.size))
        if rec.payload:
            written += stream.write(rec.payload)
    return written


def dump_file(source: Path, destination: Path) -> int:
    """
    Convert one capture file. Returns the packet count.

    The capture is decoded completely before the output is opened, so a
    malformed capture leaves no output behind.
    """
    records = read_capture(source)
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(destination, "wb") as f:
            encode_dump(records, f)
    except BaseException:
        destination.unlink(missing_ok=True)
        raise
    return len(records)


def dump(
    source_directory: Path | str,
    output_directory: Path | str,
    filename_filter: str = "",
    changelist_filter: Changelist = ALL,
    *,
    pbar=None,
) -> DumpSummary:
    """
    Convert every matching capture under `source_directory`.

    Returns
    -------
    DumpSummary
        Written outputs and per-file failures.
    """
    src_root = Path(source_directory)
    out_root = Path(output_directory)
    summary = DumpSummary()

    files = locate(src_root, filename_filter, changelist_filter)
    logger.info("Debug dump: %d capture files under %s", len(files), src_root)

    for path in files:
        rel = path.relative_to(src_root)
        dest = out_root / rel.with_suffix(DUMP_SUFFIX)
        try:
            count = dump_file(path, dest)
        except (OSError, MalformedCapture) as e:
            err = DumpIOError(path, str(e))
            logger.error("%s", err)
            summary.failures.append(err)
        else:
            logger.debug("Dumped %d packets: %s -> %s", count, path, dest)
            summary.outputs.append(dest)
        if pbar is not None:
            pbar.update(1)

    logger.info("Debug dump finished: %d succeeded, %d failed", summary.succeeded, summary.failed)
    return summary
