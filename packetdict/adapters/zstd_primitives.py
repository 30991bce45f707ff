"""
zstandard-backed training and compression primitives.

These adapters implement TrainerPort and CompressorPort. Packets are
compressed the way a network layer would send them: one frame per packet,
without content size, checksum or dictionary id, so the measured size is
close to what goes on the wire.

The hash table size (in bits) maps onto zstd's `hash_log`.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Sequence

import zstandard  # type: ignore

logger = logging.getLogger(__name__)


class ZstdTrainer:
    """
    TrainerPort over zstandard.train_dictionary.

    Parameters
    ----------
    dictionary_size : int
        Target dictionary size in bytes.
    level : int
        Compression level the dictionary is tuned for.
    """

    def __init__(self, dictionary_size: int, *, level: int = 3) -> None:
        self._dict_size = int(dictionary_size)
        self._level = int(level)

    def train(self, packets: Sequence[bytes], hash_table_size: int) -> bytes:
        """
        Train a dictionary; raises zstandard.ZstdError on degenerate samples.

        `hash_table_size` is accepted for the port but only logged here: zstd
        applies the hash log when compressing (see ZstdCompressor), and the
        trained dictionary content does not depend on it.
        """
        samples = [bytes(p) for p in packets]
        logger.debug(
            "zstd training: %d samples, dict_size=%d, level=%d, hash_log=%d",
            len(samples),
            self._dict_size,
            self._level,
            hash_table_size,
        )
        zdict = zstandard.train_dictionary(self._dict_size, samples, level=self._level)
        return zdict.as_bytes()


class ZstdCompressor:
    """
    CompressorPort using one zstd frame per packet.

    Compressor objects are cached per dictionary and per thread, since
    zstandard.ZstdCompressor instances must not be shared between threads.
    """

    def __init__(self, *, hash_table_size: int = 19, level: int = 3, cache_size: int = 4) -> None:
        self._params = zstandard.ZstdCompressionParameters.from_level(
            int(level),
            hash_log=int(hash_table_size),
            write_content_size=False,
            write_checksum=False,
            write_dict_id=False,
        )
        self._cache_size = int(cache_size)
        self._local = threading.local()

    def compress(self, packet: bytes, dictionary: bytes) -> int:
        return len(self._compressor_for(dictionary).compress(packet))

    # --- helpers ---

    def _compressor_for(self, dictionary: bytes) -> zstandard.ZstdCompressor:
        cache: Dict[bytes, zstandard.ZstdCompressor] = getattr(self._local, "cache", None)
        if cache is None:
            cache = {}
            self._local.cache = cache

        cctx = cache.get(dictionary)
        if cctx is None:
            if len(cache) >= self._cache_size:
                cache.pop(next(iter(cache)))
            cctx = zstandard.ZstdCompressor(
                dict_data=zstandard.ZstdCompressionDict(dictionary),
                compression_params=self._params,
            )
            cache[dictionary] = cctx
        return cctx
