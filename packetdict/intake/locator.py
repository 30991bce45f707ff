"""
Filesystem capture locator.

Recursively enumerates capture files under a directory, optionally filtered
by a filename substring and by a changelist token embedded in the filename.
It does NOT open files; decoding and validation happen later.

Results are sorted by path so repeated runs over the same corpus feed the
pipeline in the same order (trial generations depend on it).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from .capture_codec import CAPTURE_SUFFIX

logger = logging.getLogger(__name__)

ALL = "all"

Changelist = Union[str, int, None]


def locate(
    start_directory: Path | str,
    filename_filter: str = "",
    changelist_filter: Changelist = ALL,
    *,
    suffix: Optional[str] = CAPTURE_SUFFIX,
) -> List[Path]:
    """
    Return capture files under `start_directory`, sorted by path.

    Parameters
    ----------
    start_directory : str | os.PathLike
        Top-level directory to search from.
    filename_filter : str
        Substring the filename must contain. "" or "all" matches everything.
    changelist_filter : str | int | None
        Changelist token the filename must contain. "all", "", None or a
        negative number matches everything.
    suffix : str, optional
        Required file suffix (case-insensitive); None accepts any file.
    """
    root = Path(start_directory)
    if not root.is_dir():
        logger.warning("Capture directory not found: %s", root)
        return []

    out: List[Path] = []
    for p in root.rglob("*"):
        if not p.is_file():
            continue
        if suffix is not None and not p.name.lower().endswith(suffix.lower()):
            continue
        if matches_filters(p.name, filename_filter, changelist_filter):
            out.append(p)

    out.sort(key=lambda p: str(p))
    logger.debug("Located %d capture files under %s", len(out), root)
    return out


def matches_filters(name: str, filename_filter: str = "", changelist_filter: Changelist = ALL) -> bool:
    """True if `name` passes both the filename and changelist filters."""
    name_token = _normalize_filename_filter(filename_filter)
    if name_token and name_token not in name:
        return False
    cl_token = normalize_changelist(changelist_filter)
    if cl_token and cl_token not in name:
        return False
    return True


def normalize_changelist(changelist: Changelist) -> str:
    """Return the changelist token to search for, or "" when unfiltered."""
    if changelist is None:
        return ""
    if isinstance(changelist, int):
        return "" if changelist < 0 else str(changelist)
    token = str(changelist).strip()
    if token.lower() == ALL:
        return ""
    if token.lstrip("-").isdigit() and int(token) < 0:
        return ""
    return token


# === Helpers ===


def _normalize_filename_filter(filename_filter: Optional[str]) -> str:
    if not filename_filter:
        return ""
    token = str(filename_filter)
    return "" if token.lower() == ALL else token
