"""
Hexagonal interfaces (Ports) for the dictionary primitives.

The pipeline only decides which packets are fed to training and how the
result is scored; the dictionary algorithm itself sits behind these ports.
Keep them small so tests can plug in deterministic fakes.
"""

from __future__ import annotations

from typing import Protocol, Sequence


class TrainerPort(Protocol):
    """Turns a packet sample into an opaque dictionary blob."""

    def train(self, packets: Sequence[bytes], hash_table_size: int) -> bytes:
        """
        Train a dictionary from `packets`.

        Implementations raise any exception to reject the input (e.g. too
        few or degenerate samples); the pipeline wraps it as
        TrainingFailedError.
        """
        ...


class CompressorPort(Protocol):
    """Measures how well a dictionary compresses a single packet."""

    def compress(self, packet: bytes, dictionary: bytes) -> int:
        """Return the compressed size of `packet` using `dictionary`."""
        ...
