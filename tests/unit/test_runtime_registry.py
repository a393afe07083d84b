from __future__ import annotations

from pathlib import Path

import pytest

from domain.runtime import BuiltinRuntime, CustomRuntime, InstalledRuntime, Version
from services.runtime.errors import InvalidCustomRuntime, RuntimeNotInstalled
from services.runtime.legacy import LegacyRuntime
from services.runtime.registry import RuntimeRegistry
from tests.unit.runtime_test_utils import write_bin_folder, write_legacy_library, write_runtime_root


@pytest.fixture()
def app_folder(tmp_path: Path) -> Path:
    return tmp_path / "app"


def _registry(app_folder: Path) -> RuntimeRegistry:
    return RuntimeRegistry(app_folder / "Runtimes", legacy=LegacyRuntime(app_folder / "Libraries"))


def test_available_versions_is_the_union_of_both_slots(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "9.0.0")
    write_runtime_root(app_folder / "Runtimes" / "9.0.0" / "Wine")
    write_runtime_root(app_folder / "Runtimes" / "11.2.0" / "Wine")
    write_runtime_root(app_folder / "Runtimes" / "8.0.1" / "Wine", wine_name="wine")

    assert _registry(app_folder).available_versions() == {
        Version(9, 0, 0),
        Version(11, 2, 0),
        Version(8, 0, 1),
    }


def test_invalid_registry_entries_are_ignored(app_folder: Path) -> None:
    runtimes = app_folder / "Runtimes"
    write_runtime_root(runtimes / "latest" / "Wine")
    write_runtime_root(runtimes / ".9.21.0.partial-abc" / "Wine")
    (runtimes / "10.0.0" / "Wine" / "bin").mkdir(parents=True)
    (runtimes / "notes.txt").write_text("hi", encoding="utf-8")
    write_runtime_root(runtimes / "9.21" / "Wine")
    write_runtime_root(runtimes / "09.21.0" / "Wine")

    registry = _registry(app_folder)
    assert registry.available_versions() == set()
    assert not registry.is_installed(Version(9, 21, 0))


def test_legacy_slot_without_binaries_is_not_available(app_folder: Path) -> None:
    library = write_legacy_library(app_folder / "Libraries", "9.0.0")
    (library / "Wine" / "bin" / "wineserver").unlink()

    assert _registry(app_folder).available_versions() == set()


def test_installed_runtimes_are_newest_first_and_prefer_versioned_slot(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "9.0.0")
    write_runtime_root(app_folder / "Runtimes" / "9.0.0" / "Wine")
    write_runtime_root(app_folder / "Runtimes" / "11.2.0" / "Wine")

    runtimes = _registry(app_folder).installed_runtimes()

    assert runtimes == [
        InstalledRuntime(Version(11, 2, 0), app_folder / "Runtimes" / "11.2.0" / "Wine"),
        InstalledRuntime(Version(9, 0, 0), app_folder / "Runtimes" / "9.0.0" / "Wine"),
    ]


def test_is_installed_checks_both_slots(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "7.7.0")
    write_runtime_root(app_folder / "Runtimes" / "9.21.0" / "Wine")
    registry = _registry(app_folder)

    assert registry.is_installed(Version(9, 21, 0))
    assert registry.is_installed(Version(7, 7, 0))
    assert not registry.is_installed(Version(8, 0, 1))


def test_builtin_resolution_prefers_versioned_slot(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "9.0.0")
    write_runtime_root(app_folder / "Runtimes" / "9.0.0" / "Wine")

    bin_folder = _registry(app_folder).resolve_bin_folder(BuiltinRuntime(Version(9, 0, 0)))

    assert bin_folder == app_folder / "Runtimes" / "9.0.0" / "Wine" / "bin"


def test_builtin_resolution_falls_back_to_legacy_slot(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "7.7.0")

    bin_folder = _registry(app_folder).resolve_bin_folder(BuiltinRuntime(Version(7, 7, 0)))

    assert bin_folder == app_folder / "Libraries" / "Wine" / "bin"


def test_missing_builtin_runtime_raises(app_folder: Path) -> None:
    with pytest.raises(RuntimeNotInstalled) as excinfo:
        _registry(app_folder).resolve_bin_folder(BuiltinRuntime(Version(9, 21, 0)))

    assert excinfo.value.version == Version(9, 21, 0)


def test_custom_runtime_nested_wine_bin_is_found(tmp_path: Path, app_folder: Path) -> None:
    custom = tmp_path / "CustomWine"
    write_runtime_root(custom / "Wine")

    assert _registry(app_folder).resolve_bin_folder(CustomRuntime(custom)) == custom / "Wine" / "bin"


@pytest.mark.parametrize("relative", [".", "bin", "wine/bin", "Contents/Resources/wine/bin"])
def test_custom_runtime_probe_locations(tmp_path: Path, app_folder: Path, relative: str) -> None:
    custom = tmp_path / "CustomWine"
    bin_folder = write_bin_folder(custom / relative if relative != "." else custom)

    assert _registry(app_folder).validate_custom_runtime(custom) == bin_folder


def test_custom_runtime_without_binaries_raises(tmp_path: Path, app_folder: Path) -> None:
    custom = tmp_path / "Empty"
    (custom / "bin").mkdir(parents=True)
    (custom / "bin" / "wine64").write_text("", encoding="utf-8")
    (custom / "bin" / "wine64").chmod(0o755)

    with pytest.raises(InvalidCustomRuntime) as excinfo:
        _registry(app_folder).resolve_bin_folder(CustomRuntime(custom))

    assert excinfo.value.probed[0] == custom
    assert len(excinfo.value.probed) == 5
    assert "Missing wine binaries" in str(excinfo.value)


def test_resolve_binaries_prefers_wine64(tmp_path: Path, app_folder: Path) -> None:
    root = write_runtime_root(app_folder / "Runtimes" / "9.21.0" / "Wine")
    (root / "bin" / "wine").write_text("", encoding="utf-8")
    (root / "bin" / "wine").chmod(0o755)

    binaries = _registry(app_folder).resolve_binaries(BuiltinRuntime(Version(9, 21, 0)))

    assert binaries.wine == root / "bin" / "wine64"
    assert binaries.wineserver == root / "bin" / "wineserver"
    assert binaries.bin_folder == root / "bin"


def test_uninstall_removes_only_the_versioned_slot(app_folder: Path) -> None:
    write_legacy_library(app_folder / "Libraries", "9.0.0")
    write_runtime_root(app_folder / "Runtimes" / "9.0.0" / "Wine")
    registry = _registry(app_folder)

    assert registry.uninstall(Version(9, 0, 0))
    assert not registry.uninstall(Version(9, 0, 0))
    assert not (app_folder / "Runtimes" / "9.0.0").exists()
    assert registry.resolve_bin_folder(BuiltinRuntime(Version(9, 0, 0))) == app_folder / "Libraries" / "Wine" / "bin"


def test_registry_without_legacy_slot(app_folder: Path) -> None:
    registry = RuntimeRegistry(app_folder / "Runtimes")

    assert registry.available_versions() == set()
    assert registry.legacy_version() is None


def test_every_listed_runtime_resolves_and_uninstalls(app_folder: Path) -> None:
    runtimes = app_folder / "Runtimes"
    write_runtime_root(runtimes / "9.21.0" / "Wine")
    write_runtime_root(runtimes / "9.21" / "Wine")
    write_runtime_root(runtimes / "08.0.1" / "Wine")
    registry = _registry(app_folder)

    for version in registry.available_versions():
        assert registry.is_installed(version)
        assert registry.resolve_bin_folder(BuiltinRuntime(version)) == runtimes / str(version) / "Wine" / "bin"
    assert registry.available_versions() == {Version(9, 21, 0)}
    assert registry.uninstall(Version(9, 21, 0))
    assert registry.available_versions() == set()
