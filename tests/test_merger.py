import pytest

from packetdict.errors import CaptureAccessError, InsufficientInputError, MalformedCapture
from packetdict.intake.capture_codec import read_capture
from packetdict.intake.merger import build_merge_sources, iter_merged, merge_to_file


def test_single_file_rejected_unless_allowed(make_capture):
    a = make_capture("a.ucap", [b"1"])
    with pytest.raises(InsufficientInputError):
        build_merge_sources([a])
    with build_merge_sources([a], allow_single_file=True) as sources:
        assert len(sources) == 1


def test_no_files_is_insufficient(tmp_path):
    (tmp_path / "empty").mkdir()
    with pytest.raises(InsufficientInputError):
        build_merge_sources([tmp_path / "empty"], allow_single_file=True)


def test_missing_file_raises_access_error_and_closes_opened(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"1"])
    with pytest.raises(CaptureAccessError) as info:
        build_merge_sources([a, tmp_path / "missing.ucap"])
    assert info.value.path.name == "missing.ucap"


def test_merge_order_is_list_order_across_depths(make_capture):
    a = make_capture("deep/er/A.ucap", [b"a1", b"a2"])
    b = make_capture("B.ucap", [b"b1", b"", b"b3"])
    with build_merge_sources([a, b]) as sources:
        merged = [r.payload for r in iter_merged(sources)]
    assert merged == [b"a1", b"a2", b"b1", b"", b"b3"]


def test_directory_entry_expands_sorted(make_capture, tmp_path):
    make_capture("caps/2.ucap", [b"two"])
    make_capture("caps/1.ucap", [b"one"])
    with build_merge_sources([tmp_path / "caps"]) as sources:
        assert [p.name for p in sources.paths] == ["1.ucap", "2.ucap"]
        assert [r.payload for r in iter_merged(sources)] == [b"one", b"two"]


def test_handles_closed_after_context(make_capture):
    a = make_capture("a.ucap", [b"1"])
    b = make_capture("b.ucap", [b"2"])
    with build_merge_sources([a, b]) as sources:
        handles = [h for _, h in sources]
    assert all(h.closed for h in handles)


def test_merge_to_file_concatenates(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"x", b"y"])
    b = make_capture("b.ucap", [b"z"])
    out = tmp_path / "out" / "merged.ucap"
    assert merge_to_file(out, [a, b]) == 3
    assert [r.payload for r in read_capture(out)] == [b"x", b"y", b"z"]


def test_merge_to_file_removes_partial_output_on_malformed_input(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"x"])
    bad = tmp_path / "bad.ucap"
    bad.write_bytes(b"\x10\x00\x00\x00abc")
    out = tmp_path / "merged.ucap"
    with pytest.raises(MalformedCapture):
        merge_to_file(out, [a, bad])
    assert not out.exists()


def test_merge_to_file_refuses_input_as_output(make_capture):
    a = make_capture("a.ucap", [b"x"])
    b = make_capture("b.ucap", [b"y"])
    with pytest.raises(InsufficientInputError):
        merge_to_file(a, [a, b])


def test_merge_order_ignores_path_casing(make_capture):
    upper = make_capture("CAPS/Run/ZED.ucap", [b"z1", b"z2"])
    lower = make_capture("caps/run/alpha.ucap", [b"a1"])
    with build_merge_sources([upper, lower]) as sources:
        assert [r.payload for r in iter_merged(sources)] == [b"z1", b"z2", b"a1"]
    with build_merge_sources([lower, upper]) as sources:
        assert [r.payload for r in iter_merged(sources)] == [b"a1", b"z1", b"z2"]
