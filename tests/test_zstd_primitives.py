import json
import random

import pytest

from packetdict.adapters.zstd_primitives import ZstdCompressor, ZstdTrainer
from packetdict.errors import TrainingFailedError
from packetdict.pipeline.builder import train_packets


def _messages(n, seed=0):
    rng = random.Random(seed)
    out = []
    for i in range(n):
        msg = {
            "type": rng.choice(["move", "fire", "spawn", "chat"]),
            "actor": rng.randint(1, 64),
            "pos": [rng.randint(0, 4096), rng.randint(0, 4096), rng.randint(0, 512)],
            "seq": i,
        }
        out.append(json.dumps(msg, separators=(",", ":")).encode())
    return out


@pytest.fixture(scope="module")
def trained():
    return ZstdTrainer(4096).train(_messages(3000), 19)


def test_trainer_produces_dictionary(trained):
    assert 0 < len(trained) <= 4096


def test_dictionary_improves_small_packets(trained):
    comp = ZstdCompressor(hash_table_size=19)
    packets = _messages(200, seed=1)
    with_dict = sum(comp.compress(p, trained) for p in packets)
    raw = sum(len(p) for p in packets)
    assert with_dict < raw


def test_compressor_caches_per_dictionary(trained):
    comp = ZstdCompressor(cache_size=1)
    p = _messages(1, seed=2)[0]
    first = comp.compress(p, trained)
    assert comp.compress(p, trained) == first


def test_degenerate_input_fails_training():
    with pytest.raises(TrainingFailedError):
        train_packets(ZstdTrainer(4096), [b"a", b"b"], 19)
