from __future__ import annotations

import shutil
import tempfile

import pytest

from core.errors import ExtractionError, StructureAdjustmentError, StructureAmbiguousError
from core.normalizer import ArchiveNormalizer
from shared.install_target import InstallationTarget
from tests.helpers.archives import module_json, write_zip


@pytest.fixture
def normalizer():
    return ArchiveNormalizer()


@pytest.fixture
def target(tmp_path):
    target = InstallationTarget(tmp_path / "modules", "dice")
    target.path.mkdir(parents=True)
    return target


def _install(normalizer, target, entries):
    write_zip(target.artifact_path, entries)
    normalizer.unpack(target.artifact_path, target)
    return normalizer.normalize(target)


def test_flat_archive_needs_no_adjustment(normalizer, target):
    result = _install(normalizer, target, {"module.json": module_json("dice"), "scripts/main.js": "x"})

    assert result.adjusted is False
    assert target.is_installed()
    assert (target.path / "scripts" / "main.js").is_file()
    assert not target.artifact_path.exists()


def test_single_wrapper_directory_is_flattened(normalizer, target):
    result = _install(
        normalizer,
        target,
        {
            "dice-so-nice-4.2/": None,
            "dice-so-nice-4.2/module.json": module_json("dice"),
            "dice-so-nice-4.2/.hidden-config": "secret",
            "dice-so-nice-4.2/lang/en.json": "{}",
        },
    )

    assert result.adjusted is True
    assert result.wrapper_name == "dice-so-nice-4.2"
    assert target.manifest_path.is_file()
    assert (target.path / ".hidden-config").read_text(encoding="utf-8") == "secret"
    assert (target.path / "lang" / "en.json").is_file()
    assert not (target.path / "dice-so-nice-4.2").exists()


def test_wrapper_containing_same_named_directory(normalizer, target):
    _install(
        normalizer,
        target,
        {"dice/module.json": module_json("dice"), "dice/dice/readme.md": "inner"},
    )

    assert target.manifest_path.is_file()
    assert (target.path / "dice" / "readme.md").read_text(encoding="utf-8") == "inner"


def test_no_holding_directories_left_behind(normalizer, target):
    _install(normalizer, target, {"wrap/module.json": module_json("dice")})

    assert sorted(p.name for p in target.install_root.iterdir()) == ["dice"]


def test_two_top_level_entries_are_left_in_place(normalizer, target):
    with pytest.raises(StructureAmbiguousError):
        _install(
            normalizer,
            target,
            {"first/module.json": module_json("dice"), "second/readme.md": "hello"},
        )

    assert (target.path / "first" / "module.json").is_file()
    assert (target.path / "second" / "readme.md").is_file()


def test_single_directory_without_manifest_is_ambiguous(normalizer, target):
    with pytest.raises(StructureAmbiguousError):
        _install(normalizer, target, {"wrap/deeper/module.json": module_json("dice")})

    assert (target.path / "wrap" / "deeper" / "module.json").is_file()


def test_single_file_is_ambiguous(normalizer, target):
    with pytest.raises(StructureAmbiguousError):
        _install(normalizer, target, {"readme.md": "no manifest here"})

    assert (target.path / "readme.md").is_file()


def test_hidden_entries_count_as_top_level(normalizer, target):
    with pytest.raises(StructureAmbiguousError):
        _install(normalizer, target, {".DS_Store": "x", "wrap/module.json": module_json("dice")})

    assert (target.path / "wrap" / "module.json").is_file()


def test_unpack_overwrites_existing_files(normalizer, target):
    (target.path / "module.json").write_text("old", encoding="utf-8")
    write_zip(target.artifact_path, {"module.json": "new"})

    normalizer.unpack(target.artifact_path, target)

    assert target.manifest_path.read_text(encoding="utf-8") == "new"


def test_corrupt_archive_raises_and_keeps_it_for_inspection(normalizer, target):
    target.artifact_path.write_bytes(b"this is not a zip file")

    with pytest.raises(ExtractionError):
        normalizer.unpack(target.artifact_path, target)

    assert target.artifact_path.exists()


def test_entries_escaping_the_target_are_rejected(normalizer, target):
    write_zip(target.artifact_path, {"../../evil.txt": "boom", "module.json": "{}"})

    with pytest.raises(ExtractionError):
        normalizer.unpack(target.artifact_path, target)

    assert not (target.install_root.parent / "evil.txt").exists()
    assert not target.manifest_path.exists()


def _refuse(*_args, **_kwargs):
    raise OSError("No space left on device")


def test_holder_that_cannot_be_created_leaves_wrapper_in_place(normalizer, target, monkeypatch):
    write_zip(target.artifact_path, {"wrap/module.json": module_json("dice"), "wrap/lang/en.json": "{}"})
    normalizer.unpack(target.artifact_path, target)
    monkeypatch.setattr(tempfile, "mkdtemp", _refuse)

    with pytest.raises(StructureAdjustmentError, match="Could not create temporary directory"):
        normalizer.normalize(target)

    assert (target.path / "wrap" / "module.json").is_file()
    assert (target.path / "wrap" / "lang" / "en.json").is_file()
    assert not target.is_installed()


def test_failed_swap_reports_where_moved_content_remains(normalizer, target, monkeypatch):
    write_zip(target.artifact_path, {"wrap/module.json": module_json("dice")})
    normalizer.unpack(target.artifact_path, target)
    monkeypatch.setattr(shutil, "rmtree", _refuse)

    with pytest.raises(StructureAdjustmentError, match="Moved content may remain") as excinfo:
        normalizer.normalize(target)

    holders = [path for path in target.install_root.iterdir() if path.name.startswith(".dice-")]
    assert len(holders) == 1
    assert (holders[0] / "module.json").is_file()
    assert str(holders[0]) in str(excinfo.value)
