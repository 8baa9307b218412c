"""Tests for the file materializer."""
import os

import pytest

from init_mcp import materializer
from init_mcp.errors import ConflictError, DirectoryError, WriteError
from init_mcp.materializer import MaterializationResult, materialize


def test_materialize_empty_directory(tmp_path, small_templates):
    """All templates are written, in order, with their content."""
    result = materialize(str(tmp_path), small_templates)

    assert result.directory == str(tmp_path)
    assert result.files_created == [
        str(tmp_path / "a.txt"),
        str(tmp_path / "b.txt"),
        str(tmp_path / "c.txt"),
    ]
    assert (tmp_path / "a.txt").read_bytes() == b"alpha\n"
    assert (tmp_path / "b.txt").read_bytes() == b"beta\n"
    assert (tmp_path / "c.txt").read_bytes() == b"gamma\n"


def test_materialize_default_templates(tmp_path, templates):
    """Packaged templates map one-to-one onto created files."""
    result = materialize(str(tmp_path), templates)

    assert len(result.files_created) == len(templates)
    assert [os.path.basename(p) for p in result.files_created] == templates.destinations
    assert result.to_dict() == {
        "directory": str(tmp_path),
        "files_created": [str(tmp_path / "LICENSE"), str(tmp_path / "CONTRIBUTING.md")],
    }


def test_materialize_file_mode(tmp_path, small_templates):
    """Files are created readable by everyone and writable by the owner only."""
    old_umask = os.umask(0o022)
    try:
        materialize(str(tmp_path), small_templates)
    finally:
        os.umask(old_umask)

    assert (tmp_path / "a.txt").stat().st_mode & 0o777 == 0o644


def test_relative_directory_reported_absolute(tmp_path, small_templates, monkeypatch):
    """Relative targets are reported as absolute paths."""
    (tmp_path / "target").mkdir()
    monkeypatch.chdir(tmp_path)

    result = materialize("target", small_templates)

    assert result.directory == str(tmp_path / "target")
    assert result.files_created[0] == str(tmp_path / "target" / "a.txt")


def test_missing_directory(tmp_path, small_templates):
    """A missing target is a directory error and nothing is written."""
    missing = tmp_path / "missing"

    with pytest.raises(DirectoryError, match="checking directory"):
        materialize(str(missing), small_templates)

    assert not missing.exists()


def test_target_is_a_file(tmp_path, small_templates):
    """A regular file is not a valid target."""
    target = tmp_path / "file.txt"
    target.write_text("hello")

    with pytest.raises(DirectoryError, match="not a directory"):
        materialize(str(target), small_templates)


def test_conflict_keeps_earlier_files(tmp_path, small_templates):
    """Entries before the conflict stay written; later ones are never attempted."""
    (tmp_path / "b.txt").write_bytes(b"original\n")

    with pytest.raises(ConflictError) as exc_info:
        materialize(str(tmp_path), small_templates)

    assert exc_info.value.path == str(tmp_path / "b.txt")
    assert str(tmp_path / "b.txt") in str(exc_info.value)
    assert (tmp_path / "a.txt").read_bytes() == b"alpha\n"
    assert (tmp_path / "b.txt").read_bytes() == b"original\n"
    assert not (tmp_path / "c.txt").exists()


def test_conflict_on_first_entry_writes_nothing(tmp_path, small_templates):
    """A conflict on the first entry leaves the directory untouched."""
    (tmp_path / "a.txt").write_bytes(b"mine\n")

    with pytest.raises(ConflictError):
        materialize(str(tmp_path), small_templates)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["a.txt"]
    assert (tmp_path / "a.txt").read_bytes() == b"mine\n"


def test_conflict_with_directory_entry(tmp_path, small_templates):
    """Any existing filesystem entry counts as a conflict, not just files."""
    (tmp_path / "a.txt").mkdir()

    with pytest.raises(ConflictError):
        materialize(str(tmp_path), small_templates)


def test_conflict_with_dangling_symlink(tmp_path, small_templates):
    """A dangling symlink is never followed to create its target."""
    (tmp_path / "a.txt").symlink_to(tmp_path / "elsewhere.txt")

    with pytest.raises(ConflictError):
        materialize(str(tmp_path), small_templates)

    assert not (tmp_path / "elsewhere.txt").exists()


def test_conflict_is_repeatable(tmp_path, templates):
    """Retrying against a populated directory fails the same way every time."""
    materialize(str(tmp_path), templates)

    errors = []
    for _ in range(2):
        with pytest.raises(ConflictError) as exc_info:
            materialize(str(tmp_path), templates)
        errors.append(str(exc_info.value))

    assert errors[0] == errors[1]
    assert str(tmp_path / "LICENSE") in errors[0]


def test_exclusive_create_race(tmp_path, small_templates, monkeypatch):
    """A file appearing between the check and the create is still a conflict."""
    (tmp_path / "a.txt").write_bytes(b"raced\n")
    monkeypatch.setattr(materializer.os.path, "lexists", lambda path: False)

    with pytest.raises(ConflictError):
        materialize(str(tmp_path), small_templates)

    assert (tmp_path / "a.txt").read_bytes() == b"raced\n"


def test_write_error_stops_processing(tmp_path, small_templates, monkeypatch):
    """A failed write aborts the run; earlier files remain on disk."""
    real_write = materializer._write_exclusive

    def failing_write(path, content):
        if path.endswith("b.txt"):
            raise PermissionError(13, "Permission denied")
        real_write(path, content)

    monkeypatch.setattr(materializer, "_write_exclusive", failing_write)

    with pytest.raises(WriteError) as exc_info:
        materialize(str(tmp_path), small_templates)

    assert exc_info.value.filename == "b.txt"
    assert isinstance(exc_info.value.cause, PermissionError)
    assert str(exc_info.value).startswith("writing b.txt: ")
    assert (tmp_path / "a.txt").exists()
    assert not (tmp_path / "c.txt").exists()


def test_result_to_dict_copies_list():
    """Serializing a result does not expose its internal list."""
    result = MaterializationResult(directory="/tmp/x", files_created=["/tmp/x/a"])
    data = result.to_dict()
    data["files_created"].append("/tmp/x/b")

    assert result.files_created == ["/tmp/x/a"]


@pytest.mark.parametrize("directory", ["/tmp/bad\x00name", "/tmp/\ud800"])
def test_unencodable_directory(directory, small_templates):
    """Paths the OS cannot represent are directory errors, not crashes."""
    with pytest.raises(DirectoryError, match="checking directory"):
        materialize(directory, small_templates)
