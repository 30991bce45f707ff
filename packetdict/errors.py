"""
Error kinds raised by the dictionary pipeline.

Every error carries enough context (file path, record index, generation and
trial index where they apply) to reproduce the failure. Library code raises
these; only the CLI turns them into exit codes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PacketDictError(Exception):
    """Base class for all pipeline errors."""


class MalformedCapture(PacketDictError):
    """A capture record is truncated or its length prefix runs past end-of-stream."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        index: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> None:
        self.source = source
        self.index = index
        self.offset = offset
        where = []
        if source is not None:
            where.append(str(source))
        if index is not None:
            where.append(f"record {index}")
        if offset is not None:
            where.append(f"offset {offset}")
        super().__init__(f"{message} ({', '.join(where)})" if where else message)


class InsufficientInputError(PacketDictError):
    """Too few capture files were found for the requested operation."""


class CaptureAccessError(PacketDictError):
    """A capture path could not be opened for reading."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot open capture {path}: {reason}")


class EmptyCaptureError(PacketDictError):
    """No packets were read across all capture sources."""


class TrainingFailedError(PacketDictError):
    """The training primitive rejected its input."""


class SearchExhaustedError(PacketDictError):
    """Every trial of a generation failed to produce a usable dictionary."""

    def __init__(self, generation: int, trials: int, last_error: Optional[BaseException] = None) -> None:
        self.generation = generation
        self.trials = trials
        self.last_error = last_error
        msg = f"All {trials} trials of generation {generation} failed"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)


class DumpIOError(PacketDictError):
    """One capture file could not be converted by the debug dump."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Debug dump failed for {path}: {reason}")
