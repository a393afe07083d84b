from __future__ import annotations

import hashlib
import plistlib
import shutil
import tarfile
from pathlib import Path

import pytest

from domain.runtime import StagedArchive, Version
from services.runtime.checksum import ArchiveVerifier
from services.runtime.errors import ChecksumMismatch, LayoutValidationFailure
from services.runtime.legacy import LegacyRuntime, UpdateCheck
from tests.unit.runtime_test_utils import (
    DictFetcher,
    build_legacy_archive,
    build_tar_archive,
    entry_names,
    write_legacy_library,
)

METADATA_URL = "https://feed.invalid/RuntimeVersion.plist"
CHECKSUM_URL = "https://feed.invalid/Libraries.tar.gz.sha256"


@pytest.fixture()
def library(tmp_path: Path) -> Path:
    return tmp_path / "app" / "Libraries"


def test_version_reads_metadata(library: Path) -> None:
    write_legacy_library(library, "9.0.0")

    legacy = LegacyRuntime(library)

    assert legacy.version() == Version(9, 0, 0)
    assert legacy.is_installed()
    installed = legacy.installed_runtime()
    assert installed is not None and installed.legacy
    assert installed.bin_folder == library / "Wine" / "bin"


def test_missing_or_corrupt_metadata_means_not_installed(library: Path) -> None:
    legacy = LegacyRuntime(library)
    assert legacy.version() is None

    write_legacy_library(library, "9.0.0")
    (library / "RuntimeVersion.plist").write_bytes(b"garbage")

    assert legacy.version() is None
    assert not legacy.is_installed()


def test_install_extracts_and_validates(tmp_path: Path, library: Path) -> None:
    archive = build_legacy_archive(tmp_path, "9.0.0")
    digest = hashlib.sha256(archive.read_bytes()).hexdigest()
    verifier = ArchiveVerifier(CHECKSUM_URL, fetch=DictFetcher({CHECKSUM_URL: f"{digest}  Libraries.tar.gz".encode()}))

    installed = LegacyRuntime(library).install(StagedArchive(path=archive), verifier)

    assert installed.version == Version(9, 0, 0)
    assert installed.root == library / "Wine"
    assert (library / "DXVK" / "x64").is_dir()
    assert not archive.exists()
    assert entry_names(library.parent) == ["Libraries"]


def test_install_without_published_checksum_still_installs(tmp_path: Path, library: Path) -> None:
    archive = build_legacy_archive(tmp_path, "9.0.0")
    verifier = ArchiveVerifier(CHECKSUM_URL, fetch=DictFetcher())

    installed = LegacyRuntime(library).install(StagedArchive(path=archive), verifier)

    assert installed.version == Version(9, 0, 0)


def test_install_with_mismatched_checksum_keeps_old_slot(tmp_path: Path, library: Path) -> None:
    write_legacy_library(library, "8.0.0")
    archive = build_legacy_archive(tmp_path, "9.0.0")
    verifier = ArchiveVerifier(CHECKSUM_URL, fetch=DictFetcher({CHECKSUM_URL: ("f" * 64).encode()}))
    legacy = LegacyRuntime(library)

    with pytest.raises(ChecksumMismatch):
        legacy.install(StagedArchive(path=archive), verifier)

    assert legacy.version() == Version(8, 0, 0)
    assert not archive.exists()


def test_install_reports_every_missing_path(tmp_path: Path, library: Path) -> None:
    source_root = tmp_path / "incomplete"
    staged_library = write_legacy_library(source_root / "Libraries", "9.0.0")
    shutil.rmtree(staged_library / "DXVK")
    (staged_library / "verbs.txt").unlink()
    (staged_library / "Wine" / "bin" / "wine64").unlink()
    archive = build_tar_archive(tmp_path / "Libraries.tar.gz", source_root)

    with pytest.raises(LayoutValidationFailure) as excinfo:
        LegacyRuntime(library).install(StagedArchive(path=archive))

    assert set(excinfo.value.missing) == {
        library / "Wine" / "bin" / "wine64",
        library / "DXVK" / "x64",
        library / "DXVK" / "x32",
        library / "verbs.txt",
    }
    assert not library.exists()
    assert entry_names(library.parent) == []


def test_install_accepts_archive_without_libraries_prefix(tmp_path: Path, library: Path) -> None:
    source_root = tmp_path / "flat"
    write_legacy_library(source_root, "10.1.0")
    archive = tmp_path / "flat.tar.gz"
    with tarfile.open(archive, "w:gz") as handle:
        for path in sorted(source_root.rglob("*")):
            handle.add(path, arcname=path.relative_to(source_root).as_posix(), recursive=False)

    installed = LegacyRuntime(library).install(StagedArchive(path=archive))

    assert installed.version == Version(10, 1, 0)


def test_uninstall(library: Path) -> None:
    write_legacy_library(library, "9.0.0")
    legacy = LegacyRuntime(library)

    assert legacy.uninstall()
    assert not legacy.uninstall()
    assert not library.exists()


def test_check_for_update_compares_versions(library: Path) -> None:
    write_legacy_library(library, "9.0.0")
    fetch = DictFetcher({METADATA_URL: plistlib.dumps({"version": "9.1.0"})})

    check = LegacyRuntime(library).check_for_update(fetch, METADATA_URL)

    assert check == UpdateCheck(available=True, local_version=Version(9, 0, 0), remote_version=Version(9, 1, 0))


def test_check_for_update_when_current(library: Path) -> None:
    write_legacy_library(library, "9.1.0")
    fetch = DictFetcher({METADATA_URL: plistlib.dumps({"version": "9.1.0"})})

    assert not LegacyRuntime(library).check_for_update(fetch, METADATA_URL).available


def test_check_for_update_without_install_or_remote(library: Path) -> None:
    legacy = LegacyRuntime(library)

    assert legacy.check_for_update(DictFetcher(), METADATA_URL) == UpdateCheck(available=False)
    not_installed = legacy.check_for_update(
        DictFetcher({METADATA_URL: plistlib.dumps({"version": "9.1.0"})}), METADATA_URL
    )
    assert not_installed == UpdateCheck(available=False, remote_version=Version(9, 1, 0))
