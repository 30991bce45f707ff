from pathlib import Path

import pytest

from conftest import FakeCompressor, FakeTrainer, game_packets

from packetdict import cli
from packetdict.intake.capture_codec import read_capture
from packetdict.orchestration.generator import DictionaryGenerator


@pytest.fixture
def fake_generator(monkeypatch):
    trainers = []

    def _factory(cfg):
        trainer = FakeTrainer()
        trainers.append(trainer)
        return DictionaryGenerator(cfg, trainer=trainer, compressor=FakeCompressor())

    monkeypatch.setattr(cli, "DictionaryGenerator", _factory)
    return trainers


def test_parse_input_list(tmp_path):
    assert cli.parse_input_list(["a.ucap,b.ucap", "c.ucap"]) == [Path("a.ucap"), Path("b.ucap"), Path("c.ucap")]
    assert cli.parse_input_list(["All", str(tmp_path)]) == [tmp_path]
    with pytest.raises(ValueError):
        cli.parse_input_list(["All"])
    with pytest.raises(ValueError):
        cli.parse_input_list(["all", str(tmp_path / "missing")])


def test_merge_packets_verb(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"1", b"2"])
    b = make_capture("b.ucap", [b"3"])
    out = tmp_path / "merged.ucap"
    assert cli.main(["MergePackets", str(out), f"{a},{b}"]) == 0
    assert [r.payload for r in read_capture(out)] == [b"1", b"2", b"3"]


def test_merge_packets_single_file_fails(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"1"])
    assert cli.main(["MergePackets", str(tmp_path / "m.ucap"), str(a)]) == 1


def test_declined_overwrite_aborts(make_capture, tmp_path, monkeypatch):
    a = make_capture("a.ucap", [b"1"])
    b = make_capture("b.ucap", [b"2"])
    out = tmp_path / "merged.ucap"
    out.write_bytes(b"keep")
    monkeypatch.setattr("builtins.input", lambda _prompt: "n")
    assert cli.main(["MergePackets", str(out), f"{a},{b}"]) == 1
    assert out.read_bytes() == b"keep"
    assert cli.main(["MergePackets", "--force", str(out), f"{a},{b}"]) == 0


def test_generate_dictionary_verb(make_capture, tmp_path, fake_generator):
    make_capture("caps/g_CL9.ucap", game_packets(40))
    make_capture("caps/g_CL8.ucap", game_packets(40, seed=2))
    out = tmp_path / "Game.udic"
    code = cli.main(
        ["GenerateDictionary", "--no-trials", str(out), "all", "9", "All", str(tmp_path / "caps")]
    )
    assert code == 0
    assert out.read_bytes().startswith(b"DICT")
    assert len(fake_generator[0].calls[0]) == 40


def test_generate_dictionary_missing_inputs(tmp_path, fake_generator):
    out = tmp_path / "Game.udic"
    code = cli.main(["GenerateDictionary", str(out), "all", "all", str(tmp_path / "nope.ucap")])
    assert code == 1
    assert not out.exists()


def test_debug_dump_verb_reports_failure(make_capture, tmp_path):
    make_capture("caps/a.ucap", [b"x"])
    (tmp_path / "caps" / "bad.ucap").write_bytes(b"\x09\x00\x00\x00")
    assert cli.main(["DebugDump", str(tmp_path / "out"), str(tmp_path / "caps")]) == 1
    assert (tmp_path / "out" / "a.bin").exists()


def test_auto_generate_verb(make_capture, tmp_path, fake_generator):
    make_capture("Game/Saved/Oodle/Server/Input/a.ucap", game_packets(20))
    code = cli.main(["AutoGenerateDictionaries", "--no-trials", "--game-root", str(tmp_path / "Game")])
    assert code == 0
    assert (tmp_path / "Game" / "Content" / "Oodle" / "GameInput.udic").exists()


def test_invalid_settings_exit_code(tmp_path):
    cfg = tmp_path / "s.yaml"
    cfg.write_text("packetdict:\n  trial_generations: 0\n")
    assert cli.main(["DebugDump", "--config", str(cfg), str(tmp_path / "o"), str(tmp_path)]) == 2


def test_unwritable_output_returns_failure(make_capture, tmp_path):
    a = make_capture("a.ucap", [b"1"])
    b = make_capture("b.ucap", [b"2"])
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")
    assert cli.main(["MergePackets", str(blocker / "merged.ucap"), f"{a},{b}"]) == 1


def test_overwrite_prompt_without_stdin_declines(make_capture, tmp_path, monkeypatch):
    a = make_capture("a.ucap", [b"1"])
    b = make_capture("b.ucap", [b"2"])
    out = tmp_path / "merged.ucap"
    out.write_bytes(b"keep")

    def _eof(_prompt):
        raise EOFError

    monkeypatch.setattr("builtins.input", _eof)
    assert cli.main(["MergePackets", str(out), f"{a},{b}"]) == 1
    assert out.read_bytes() == b"keep"


@pytest.mark.parametrize("verb_args", [["MergePackets", "o.ucap", "a,b"], ["DebugDump", "out", "caps"]])
def test_trial_options_only_on_generation_verbs(verb_args):
    with pytest.raises(SystemExit) as info:
        cli.main([verb_args[0], "--no-trials", *verb_args[1:]])
    assert info.value.code == 2
