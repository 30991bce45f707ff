import pytest

from conftest import FakeCompressor, FakeTrainer

from packetdict.config import TrialConfig
from packetdict.dto import CapturePool, GeneratedDictionary, PacketRecord
from packetdict.errors import TrainingFailedError
from packetdict.pipeline.builder import build, persist, train_packets, validate


class _EmptyTrainer:
    def train(self, packets, hash_table_size):
        return b""


def test_train_packets_wraps_primitive_failure():
    with pytest.raises(TrainingFailedError) as info:
        train_packets(FakeTrainer(min_packets=5), [b"a"], 19)
    assert "not enough samples" in str(info.value)
    assert isinstance(info.value.__cause__, ValueError)


def test_train_packets_rejects_empty_input_and_output():
    with pytest.raises(TrainingFailedError):
        train_packets(FakeTrainer(), [], 19)
    with pytest.raises(TrainingFailedError):
        train_packets(_EmptyTrainer(), [b"a"], 19)


def test_build_reports_counts(tmp_path):
    trainer = FakeTrainer()
    d = build([b"ab", b"ab", b"c"], TrialConfig(), trainer, tmp_path / "x.udic")
    assert d.data.startswith(b"DICT")
    assert d.packet_count == 3
    assert d.source_bytes == 5
    assert d.output_path == tmp_path / "x.udic"
    assert len(trainer.calls) == 1


def test_validate_reports_ratios():
    pool = CapturePool("compression_test")
    for p in (b"abcd", b"zzzz"):
        pool.append(PacketRecord(p))
    report = validate(b"DICTabcd", pool, FakeCompressor())
    assert report.packets == 2
    assert report.raw_bytes == 8
    assert report.compressed_bytes == 1 + 5
    assert report.ratio == pytest.approx(8 / 6)
    assert report.max_ratio == pytest.approx(4.0)
    assert report.min_ratio == pytest.approx(0.8)
    assert report.mean_ratio == pytest.approx(2.4)
    assert report.savings_percent == pytest.approx(25.0)


def test_validate_empty_pool_is_none():
    assert validate(b"DICT", CapturePool("compression_test"), FakeCompressor()) is None


def test_persist_writes_verbatim(tmp_path):
    out = tmp_path / "Content" / "Oodle" / "GameInput.udic"
    d = GeneratedDictionary(data=b"\x00DICT\xff", output_path=out, packet_count=1, source_bytes=1)
    assert persist(d) == out
    assert out.read_bytes() == b"\x00DICT\xff"
