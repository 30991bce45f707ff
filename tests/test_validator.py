from packetdict.intake.validator import verify_output_path


def test_missing_path_is_safe(tmp_path):
    assert verify_output_path(tmp_path / "new.udic")


def test_existing_file_needs_confirmation(tmp_path):
    p = tmp_path / "old.udic"
    p.write_bytes(b"x")
    assert not verify_output_path(p)
    assert verify_output_path(p, confirm=lambda _p: True)
    assert not verify_output_path(p, confirm=lambda _p: False)


def test_directory_is_never_safe(tmp_path):
    assert not verify_output_path(tmp_path, confirm=lambda _p: True)
