"""
Packet pool manager.

Partitions the merged packet stream into four bounded pools:
- dictionary        : candidate training material
- dictionary_test   : held out to score trial dictionaries
- trainer_overflow  : read but over capacity; substitution material for trials
- compression_test  : reserved for the post-hoc compression report

Routing is deterministic (by packet index) so the same corpus always yields
the same pools. A packet that would exceed its pool's ceiling goes to the
overflow pool and flags the origin pool instead of failing the read.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..config import TrialConfig
from ..dto import CapturePool, PacketRecord, PoolKind, PoolSet
from ..errors import EmptyCaptureError

logger = logging.getLogger(__name__)


def init_pools(cfg: TrialConfig) -> PoolSet:
    """Allocate the four pools, empty, with their byte ceilings."""
    return PoolSet(
        dictionary=CapturePool("dictionary", capacity=cfg.dictionary_capacity),
        dictionary_test=CapturePool("dictionary_test", capacity=cfg.dictionary_test_capacity),
        trainer_overflow=CapturePool("trainer_overflow", capacity=cfg.overflow_capacity),
        compression_test=CapturePool("compression_test", capacity=cfg.pool_capacity),
    )


def select_pool(index: int, cfg: TrialConfig) -> PoolKind:
    """
    Pick the pool for the `index`-th packet of the stream.

    Shares are spread evenly: with 20 percent, every fifth packet is taken.
    The dictionary-test share is taken from the packets the compression test
    left over, so the two shares never compete for the same indices.
    Nothing is held out for scoring when trials are disabled.
    """
    if cfg.compression_test:
        if _takes_share(index, cfg.compression_test_percent):
            return "compression_test"
        index -= _shares_before(index, cfg.compression_test_percent)
    if not cfg.no_trials and _takes_share(index, cfg.dictionary_test_percent):
        return "dictionary_test"
    return "dictionary"


def classify(pools: PoolSet, record: PacketRecord, kind: PoolKind) -> Optional[PoolKind]:
    """
    Append `record` to the pool `kind`, or to the overflow pool if it does not fit.

    Returns the pool the record landed in, or None if even the overflow pool
    was full (the record is dropped and counted).
    """
    pool = pools.get(kind)
    if pool.fits(record):
        pool.append(record)
        return kind

    if not pool.overflow:
        logger.debug("Pool %s reached its %s byte ceiling", kind, pool.capacity)
    pool.overflow = True

    if kind != "trainer_overflow":
        overflow = pools.trainer_overflow
        if overflow.fits(record):
            overflow.append(record)
            return "trainer_overflow"
        overflow.overflow = True
        overflow.dropped += 1
    else:
        pool.dropped += 1
    return None


def read_all(pools: PoolSet, packets: Iterable[PacketRecord], cfg: TrialConfig) -> PoolSet:
    """
    Decode-and-classify every packet of the merged stream.

    Raises
    ------
    EmptyCaptureError
        If the stream held no packets at all.
    MalformedCapture
        Propagated from the codec; a corrupt corpus aborts the run.
    """
    count = 0
    for record in packets:
        classify(pools, record, select_pool(count, cfg))
        count += 1
    pools.packets_read = count

    if count == 0:
        raise EmptyCaptureError("No packets found in the capture files")

    for pool in pools.all():
        logger.info(
            "Pool %s: %d packets, %d bytes%s",
            pool.kind,
            len(pool),
            pool.total_bytes,
            " (overflow)" if pool.overflow else "",
        )
    if pools.trainer_overflow.dropped:
        logger.warning(
            "Dropped %d packets: trainer overflow pool full (%d bytes)",
            pools.trainer_overflow.dropped,
            pools.trainer_overflow.total_bytes,
        )
    return pools


# === Helpers ===


def _takes_share(index: int, percent: int) -> bool:
    """True for `percent` out of every 100 consecutive indices, evenly spaced."""
    if percent <= 0:
        return False
    return ((index + 1) * percent) // 100 > (index * percent) // 100


def _shares_before(index: int, percent: int) -> int:
    """Number of indices below `index` that `_takes_share` picks."""
    if percent <= 0:
        return 0
    return (index * percent) // 100
