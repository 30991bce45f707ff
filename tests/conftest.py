from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

from packetdict.dto import PacketRecord
from packetdict.intake.capture_codec import write_capture


class FakeTrainer:
    """Deterministic trainer: concatenates the most frequent packets."""

    def __init__(
        self,
        limit: int = 4096,
        min_packets: int = 1,
        reject: Optional[Callable[[Sequence[bytes]], bool]] = None,
    ) -> None:
        self.limit = limit
        self.min_packets = min_packets
        self.reject = reject
        self.calls: List[List[bytes]] = []

    def train(self, packets: Sequence[bytes], hash_table_size: int) -> bytes:
        packets = list(packets)
        self.calls.append(packets)
        if len(packets) < self.min_packets:
            raise ValueError("not enough samples")
        if self.reject is not None and self.reject(packets):
            raise ValueError("degenerate samples")
        counts = {}
        for p in packets:
            counts[p] = counts.get(p, 0) + 1
        ranked = sorted(counts, key=lambda p: (-counts[p], p))
        return b"DICT" + b"".join(ranked)[: self.limit]


class FakeCompressor:
    """Packets found verbatim in the dictionary compress to one byte."""

    def __init__(self) -> None:
        self.calls = 0

    def compress(self, packet: bytes, dictionary: bytes) -> int:
        self.calls += 1
        if packet and packet in dictionary:
            return 1
        return len(packet) + 1


def game_packets(n: int, seed: int = 1, templates: int = 12) -> List[bytes]:
    """Small, repetitive packets in the style of replicated game state."""
    rng = random.Random(seed)
    shapes = [
        b"MOVE" + bytes([i]) * rng.randint(6, 24) for i in range(templates)
    ]
    out = []
    for _ in range(n):
        base = rng.choice(shapes)
        if rng.random() < 0.3:
            base = base + bytes([rng.randint(0, 255)])
        out.append(base)
    return out


@pytest.fixture
def make_capture(tmp_path: Path):
    def _make(rel: str, packets: Sequence[bytes]) -> Path:
        p = tmp_path / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        write_capture(p, packets)
        return p

    return _make


@pytest.fixture
def records():
    def _records(packets: Sequence[bytes]) -> List[PacketRecord]:
        return [PacketRecord(p) for p in packets]

    return _records


@pytest.fixture(autouse=True)
def _reset_packetdict_logger():
    yield
    logger = logging.getLogger("packetdict")
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
