"""
Capture merger.

Turns a list of capture paths (or a directory of captures) into an ordered
set of open sources, then concatenates their packet streams. The generator
uses the merged stream in memory; the MergePackets command writes it to a
single output capture.

Ownership: MergeSources owns every handle it opened and closes them all when
its context exits, including on early failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, List, Sequence, Tuple

from ..dto import PacketRecord
from ..errors import CaptureAccessError, InsufficientInputError
from .capture_codec import decode, encode
from .locator import ALL, Changelist, locate

logger = logging.getLogger(__name__)


class MergeSources:
    """
    Open capture handles paired with their paths, in discovery order.

    Iterating yields (path, handle) tuples. Use as a context manager.
    """

    def __init__(self, entries: List[Tuple[Path, BinaryIO]]) -> None:
        self._entries = entries

    @property
    def paths(self) -> List[Path]:
        return [p for p, _ in self._entries]

    def __iter__(self) -> Iterator[Tuple[Path, BinaryIO]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def close(self) -> None:
        for _, handle in self._entries:
            handle.close()

    def __enter__(self) -> "MergeSources":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def resolve_file_list(
    file_list: Sequence[Path | str],
    *,
    filename_filter: str = "",
    changelist_filter: Changelist = ALL,
) -> List[Path]:
    """Expand directory entries via `locate`; plain files are kept as given, in order."""
    out: List[Path] = []
    seen = set()
    for entry in file_list:
        p = Path(entry)
        found = locate(p, filename_filter, changelist_filter) if p.is_dir() else [p]
        for f in found:
            key = str(f)
            if key in seen:
                continue
            seen.add(key)
            out.append(f)
    return out


def build_merge_sources(
    file_list: Sequence[Path | str],
    allow_single_file: bool = False,
    *,
    filename_filter: str = "",
    changelist_filter: Changelist = ALL,
) -> MergeSources:
    """
    Validate and open every capture in `file_list`.

    Raises
    ------
    InsufficientInputError
        No files, or a single file while `allow_single_file` is False.
    CaptureAccessError
        A path cannot be opened. Handles opened so far are closed first.
    """
    paths = resolve_file_list(
        file_list, filename_filter=filename_filter, changelist_filter=changelist_filter
    )
    if not paths:
        raise InsufficientInputError("No capture files found")
    if len(paths) == 1 and not allow_single_file:
        raise InsufficientInputError(
            f"Merging requires at least 2 capture files, found 1 ({paths[0]})"
        )

    entries: List[Tuple[Path, BinaryIO]] = []
    try:
        for p in paths:
            if not p.is_file():
                raise CaptureAccessError(p, "not a file")
            try:
                handle = open(p, "rb")
            except OSError as e:
                raise CaptureAccessError(p, e.strerror or str(e)) from e
            entries.append((p, handle))
    except BaseException:
        for _, handle in entries:
            handle.close()
        raise

    logger.info("Opened %d capture files", len(entries))
    return MergeSources(entries)


def iter_merged(sources: MergeSources) -> Iterator[PacketRecord]:
    """Yield the packets of every source, source by source, in order."""
    for path, handle in sources:
        yield from decode(handle, source=str(path))


def merge_packets(sources: MergeSources, out_stream: BinaryIO) -> int:
    """Write the merged packet stream to `out_stream`. Returns the packet count."""
    return encode(iter_merged(sources), out_stream)


def merge_to_file(
    output_path: Path | str,
    file_list: Sequence[Path | str],
    *,
    filename_filter: str = "",
    changelist_filter: Changelist = ALL,
) -> int:
    """
    Merge captures into one output capture (the MergePackets command).

    The caller must already have confirmed the output path. A partially
    written output is removed if any input turns out to be malformed.
    """
    out = Path(output_path)
    with build_merge_sources(
        file_list, filename_filter=filename_filter, changelist_filter=changelist_filter
    ) as sources:
        if any(_same_file(out, p) for p in sources.paths):
            raise InsufficientInputError(f"Output file {out} is also a merge input")
        out.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(out, "wb") as f:
                count = merge_packets(sources, f)
        except BaseException:
            out.unlink(missing_ok=True)
            raise

    logger.info("Merged %d packets from %d files into %s", count, len(sources), out)
    return count


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False
