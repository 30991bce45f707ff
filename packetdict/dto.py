"""
Data Transfer Objects (DTOs) used across the dictionary pipeline.

These are intentionally small and independent of any I/O or compression
library. Records are immutable; pools are the only mutable accumulators and
they are filled strictly before the trial search starts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Literal, Optional, Tuple

from .errors import DumpIOError

PoolKind = Literal["dictionary", "dictionary_test", "trainer_overflow", "compression_test"]


# === Intake ===
@dataclass(frozen=True)
class PacketRecord:
    """One captured packet payload. A zero-length payload is valid."""
    payload: bytes

    @property
    def size(self) -> int:
        return len(self.payload)

    def __len__(self) -> int:
        return len(self.payload)


# === Pools (mutable during read_all only) ===
@dataclass
class CapturePool:
    """
    Ordered packets plus a running byte total and an overflow flag.

    `capacity` is a byte ceiling; None means unbounded.
    """
    kind: PoolKind
    capacity: Optional[int] = None
    records: List[PacketRecord] = field(default_factory=list)
    total_bytes: int = 0
    overflow: bool = False
    dropped: int = 0

    def fits(self, record: PacketRecord) -> bool:
        return self.capacity is None or self.total_bytes + record.size <= self.capacity

    def append(self, record: PacketRecord) -> None:
        self.records.append(record)
        self.total_bytes += record.size

    def payloads(self) -> List[bytes]:
        return [r.payload for r in self.records]

    def release(self) -> None:
        """Drop every held packet."""
        self.records.clear()
        self.total_bytes = 0

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PacketRecord]:
        return iter(self.records)


@dataclass
class PoolSet:
    """
    The four pools a capture stream is partitioned into.

    Use as a context manager: leaving the block releases every pool, on any
    exit path.
    """
    dictionary: CapturePool
    dictionary_test: CapturePool
    trainer_overflow: CapturePool
    compression_test: CapturePool
    packets_read: int = 0

    def get(self, kind: PoolKind) -> CapturePool:
        return getattr(self, kind)

    def all(self) -> Tuple[CapturePool, ...]:
        return (self.dictionary, self.dictionary_test, self.trainer_overflow, self.compression_test)

    @property
    def primary_bytes(self) -> int:
        """Bytes held by the dictionary and dictionary-test pools."""
        return self.dictionary.total_bytes + self.dictionary_test.total_bytes

    def totals(self) -> Dict[str, int]:
        return {p.kind: len(p) for p in self.all()}

    def release(self) -> None:
        for pool in self.all():
            pool.release()

    def __enter__(self) -> "PoolSet":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


# === Trial search ===
@dataclass(frozen=True)
class TrialCandidate:
    """A selection of material indices (dictionary pool first, then overflow pool)."""
    generation: int
    trial: int
    indices: Tuple[int, ...]
    randomness: float = 0.0

    def __len__(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class TrialResult:
    candidate: TrialCandidate
    score: Optional[float] = None
    dictionary: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.score is not None and self.dictionary is not None


@dataclass(frozen=True)
class GenerationSummary:
    generation: int
    randomness: float
    trials: int
    failed: int
    winner_trial: int
    winner_score: float
    incumbent_score: float      # best-known score after this generation
    improved: bool


@dataclass(frozen=True)
class SearchOutcome:
    """
    Final selection of the search plus the dictionary already trained for it.

    `dictionary` is None for a single pass: nothing was trained yet.
    """
    candidate: TrialCandidate
    dictionary: Optional[bytes]
    score: Optional[float]
    generations: Tuple[GenerationSummary, ...] = ()
    single_pass: bool = False


# === Build / validate ===
@dataclass(frozen=True)
class GeneratedDictionary:
    data: bytes
    output_path: Path
    packet_count: int
    source_bytes: int
    score: Optional[float] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CompressionReport:
    packets: int
    raw_bytes: int
    compressed_bytes: int
    ratio: float                 # raw_bytes / compressed_bytes
    mean_ratio: float
    min_ratio: float
    max_ratio: float

    @property
    def savings_percent(self) -> float:
        if self.raw_bytes <= 0:
            return 0.0
        return 100.0 * (1.0 - float(self.compressed_bytes) / float(self.raw_bytes))


# === Orchestration ===
@dataclass(frozen=True)
class GenerationResult:
    dictionary: GeneratedDictionary
    outcome: SearchOutcome
    report: Optional[CompressionReport]
    packets_read: int
    pool_totals: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AutoGenerateEntry:
    """Outcome for one capture directory of AutoGenerateDictionaries."""
    directory: Path
    output_path: Path
    result: Optional[GenerationResult] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None


# === Debug dump ===
@dataclass
class DumpSummary:
    outputs: List[Path] = field(default_factory=list)
    failures: List[DumpIOError] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.outputs)

    @property
    def failed(self) -> int:
        return len(self.failures)
