"""
Output path validation.

The core only needs the predicate "this path is safe to write". Asking the
user is the CLI's job, so the prompt is injected as a `confirm` callback.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Confirm = Callable[[Path], bool]


def verify_output_path(path: Path | str, confirm: Optional[Confirm] = None) -> bool:
    """
    Return True if `path` may be written.

    - Missing path: True.
    - Existing directory: False.
    - Existing file: the answer of `confirm(path)`, or False without a confirmer.
    """
    p = Path(path)
    if not p.exists():
        return True
    if p.is_dir():
        logger.error("Output path %s is a directory", p)
        return False
    if confirm is None:
        logger.warning("Output file %s already exists", p)
        return False
    ok = bool(confirm(p))
    if not ok:
        logger.info("Overwrite of %s declined", p)
    return ok
