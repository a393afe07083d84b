"""The single-slot runtime installation kept for backward compatibility."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from domain.runtime.models import InstalledRuntime, StagedArchive
from domain.runtime.version import Version
from services.runtime.archive import TarExtractor, TarfileExtractor
from services.runtime.checksum import ArchiveVerifier, verify_checksum
from services.runtime.constants import LEGACY_REQUIRED_PATHS, RUNTIME_SUBDIR, WINE_BINARY_NAMES
from services.runtime.errors import LayoutValidationFailure, SourceUnavailable
from services.runtime.fs import partial_path_for, swap_into_place, swap_lock
from services.runtime.layout import find_wine_binary, is_runtime_root
from services.runtime.metadata import parse_version_metadata

_LOGGER = logging.getLogger(__name__)

__all__ = ["LegacyRuntime", "UpdateCheck"]


@dataclass(frozen=True)
class UpdateCheck:
    available: bool
    local_version: Version | None = None
    remote_version: Version | None = None


class LegacyRuntime:
    """Runtime installed directly under ``<application>/Libraries``.

    The slot carries helper directories next to the runtime and records its
    version in a metadata property list at the library root.
    """

    def __init__(
        self,
        library_folder: Path,
        *,
        metadata_name: str = "RuntimeVersion.plist",
        extractor: TarExtractor | None = None,
    ) -> None:
        self._library_folder = Path(library_folder)
        self._metadata_name = metadata_name
        self._extractor = extractor or TarfileExtractor()

    @property
    def library_folder(self) -> Path:
        return self._library_folder

    @property
    def root(self) -> Path:
        return self._library_folder / RUNTIME_SUBDIR

    @property
    def bin_folder(self) -> Path:
        return self.root / "bin"

    @property
    def metadata_path(self) -> Path:
        return self._library_folder / self._metadata_name

    def version(self) -> Version | None:
        """Return the recorded version, or ``None`` when it cannot be read."""

        try:
            data = self.metadata_path.read_bytes()
        except OSError:
            _LOGGER.debug("No legacy runtime metadata at %s", self.metadata_path)
            return None
        try:
            return parse_version_metadata(data)
        except SourceUnavailable as exc:
            _LOGGER.warning("Ignoring unreadable legacy runtime metadata: %s", exc)
            return None

    def installed_runtime(self) -> InstalledRuntime | None:
        """Return the legacy install when its version and binaries are present."""

        version = self.version()
        if version is None or not is_runtime_root(self.root):
            return None
        return InstalledRuntime(version=version, root=self.root, legacy=True)

    def is_installed(self) -> bool:
        return self.installed_runtime() is not None

    def missing_paths(self, library_folder: Path | None = None) -> list[Path]:
        """List every required path absent from ``library_folder``."""

        library = library_folder or self._library_folder
        missing: list[Path] = []
        bin_folder = library / RUNTIME_SUBDIR / "bin"
        if find_wine_binary(bin_folder) is None:
            missing.append(bin_folder / WINE_BINARY_NAMES[0])
        for relative in LEGACY_REQUIRED_PATHS:
            path = library / relative
            if not path.exists():
                missing.append(path)
        metadata = library / self._metadata_name
        if not metadata.exists():
            missing.append(metadata)
        return missing

    def install(self, archive: StagedArchive, verifier: ArchiveVerifier | None = None) -> InstalledRuntime:
        """Replace the legacy slot with the contents of ``archive``.

        A published checksum that disagrees aborts the install; a missing one
        only skips verification.  The archive is always discarded.
        """

        partial = partial_path_for(self._library_folder)
        try:
            if verifier is not None:
                verifier.verify(archive.path, archive.expected_checksum)
            elif archive.expected_checksum:
                verify_checksum(archive.path, archive.expected_checksum)

            with swap_lock(self._library_folder.parent):
                try:
                    partial.mkdir()
                    self._extractor.extract(archive.path, partial)
                    extracted = self._locate_library(partial)

                    missing = self.missing_paths(extracted)
                    if missing:
                        raise LayoutValidationFailure(
                            [self._library_folder / path.relative_to(extracted) for path in missing]
                        )
                    swap_into_place(extracted, self._library_folder)
                finally:
                    shutil.rmtree(partial, ignore_errors=True)
        except Exception as exc:
            _LOGGER.error("Failed to install legacy runtime: %s", exc)
            raise
        finally:
            archive.discard()

        installed = self.installed_runtime()
        if installed is None:
            raise LayoutValidationFailure(self.missing_paths())
        _LOGGER.info("Installed legacy runtime %s", installed.version)
        return installed

    def uninstall(self) -> bool:
        if not self._library_folder.exists():
            return False
        with swap_lock(self._library_folder.parent):
            if not self._library_folder.exists():
                return False
            shutil.rmtree(self._library_folder)
        _LOGGER.info("Removed legacy runtime at %s", self._library_folder)
        return True

    def check_for_update(self, fetch: Callable[[str], bytes], metadata_url: str) -> UpdateCheck:
        """Compare the installed version against the published metadata."""

        local = self.version()
        try:
            remote = parse_version_metadata(fetch(metadata_url))
        except SourceUnavailable as exc:
            _LOGGER.info("Could not check for runtime updates: %s", exc)
            return UpdateCheck(available=False, local_version=local)

        if local is not None and local < remote:
            _LOGGER.info("Runtime update available: %s -> %s", local, remote)
            return UpdateCheck(available=True, local_version=local, remote_version=remote)
        return UpdateCheck(available=False, local_version=local, remote_version=remote)

    def _locate_library(self, extracted_root: Path) -> Path:
        nested = extracted_root / self._library_folder.name
        if nested.is_dir():
            return nested
        return extracted_root

