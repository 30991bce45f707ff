"""
Dictionary build, validation and persistence.

- train_packets : calls the training primitive, wrapping failures
- build         : trains the final selection into a GeneratedDictionary
- validate      : compresses held-out packets and reports ratios (read-only)
- persist       : writes the dictionary bytes verbatim
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import TrialConfig
from ..dto import CapturePool, CompressionReport, GeneratedDictionary
from ..errors import TrainingFailedError
from ..ports import CompressorPort, TrainerPort

logger = logging.getLogger(__name__)


def train_packets(trainer: TrainerPort, packets: Sequence[bytes], hash_table_size: int) -> bytes:
    """Run the training primitive; any failure becomes TrainingFailedError."""
    if not packets:
        raise TrainingFailedError("No packets to train on")
    try:
        data = trainer.train(packets, hash_table_size)
    except TrainingFailedError:
        raise
    except Exception as e:
        raise TrainingFailedError(f"Training on {len(packets)} packets failed: {e}") from e
    if not data:
        raise TrainingFailedError(f"Training on {len(packets)} packets produced an empty dictionary")
    return bytes(data)


def build(
    packets: Sequence[bytes],
    cfg: TrialConfig,
    trainer: TrainerPort,
    output_path: Path | str,
    *,
    score: Optional[float] = None,
) -> GeneratedDictionary:
    """Train `packets` into a dictionary bound for `output_path`."""
    data = train_packets(trainer, packets, cfg.hash_table_size)
    logger.info("Trained %d byte dictionary from %d packets", len(data), len(packets))
    return GeneratedDictionary(
        data=data,
        output_path=Path(output_path),
        packet_count=len(packets),
        source_bytes=sum(len(p) for p in packets),
        score=score,
    )


def validate(
    dictionary: GeneratedDictionary | bytes,
    pool: CapturePool,
    compressor: CompressorPort,
) -> Optional[CompressionReport]:
    """
    Compress every packet of `pool` with the dictionary and report ratios.

    Returns None for an empty pool. Never modifies the dictionary.
    """
    data = dictionary.data if isinstance(dictionary, GeneratedDictionary) else bytes(dictionary)
    if len(pool) == 0:
        logger.warning("Compression test pool is empty; skipping compression test")
        return None

    raw_total = 0
    comp_total = 0
    ratios: List[float] = []
    for record in pool:
        size = int(compressor.compress(record.payload, data))
        raw_total += record.size
        comp_total += size
        ratios.append(float(record.size) / float(size) if size > 0 else 0.0)

    report = CompressionReport(
        packets=len(ratios),
        raw_bytes=raw_total,
        compressed_bytes=comp_total,
        ratio=float(raw_total) / float(comp_total) if comp_total > 0 else 0.0,
        mean_ratio=sum(ratios) / len(ratios),
        min_ratio=min(ratios),
        max_ratio=max(ratios),
    )
    logger.info(
        "Compression test: %d packets, %d -> %d bytes, ratio %.3f (%.1f%% saved)",
        report.packets,
        report.raw_bytes,
        report.compressed_bytes,
        report.ratio,
        report.savings_percent,
    )
    return report


def persist(dictionary: GeneratedDictionary) -> Path:
    """Write the dictionary to its output path. Overwrite must already be confirmed."""
    out = dictionary.output_path
    out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "wb") as f:
        f.write(dictionary.data)
    logger.info("Wrote dictionary %s (%d bytes)", out, dictionary.size)
    return out
