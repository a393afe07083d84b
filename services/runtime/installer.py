"""Install runtime archives into the versioned registry."""

from __future__ import annotations

import enum
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Callable

from domain.runtime.models import InstalledRuntime, StagedArchive
from domain.runtime.version import Version
from services.runtime.archive import TarExtractor, TarfileExtractor, locate_runtime_root
from services.runtime.checksum import verify_checksum
from services.runtime.constants import RUNTIME_SUBDIR
from services.runtime.errors import LayoutValidationFailure
from services.runtime.fs import (
    partial_path_for,
    recover_interrupted_swaps,
    swap_into_place,
    swap_lock,
)
from services.runtime.layout import missing_runtime_binaries

_LOGGER = logging.getLogger(__name__)

__all__ = ["InstallState", "RuntimeInstaller", "version_lock"]


class InstallState(str, enum.Enum):
    NOT_INSTALLED = "not_installed"
    EXTRACTING = "extracting"
    ROOT_LOCATED = "root_located"
    COPYING = "copying"
    INSTALLED = "installed"
    FAILED = "failed"


_VERSION_LOCKS: dict[tuple[str, Version], threading.Lock] = {}
_VERSION_LOCKS_GUARD = threading.Lock()


def version_lock(registry_root: Path, version: Version) -> threading.Lock:
    """Return the lock serialising installs of ``version`` into ``registry_root``."""

    key = (str(registry_root), version)
    with _VERSION_LOCKS_GUARD:
        lock = _VERSION_LOCKS.get(key)
        if lock is None:
            lock = threading.Lock()
            _VERSION_LOCKS[key] = lock
        return lock


class RuntimeInstaller:
    """Extract, locate, validate and commit a runtime into its version slot."""

    def __init__(
        self,
        registry_root: Path,
        *,
        extractor: TarExtractor | None = None,
        staging_parent: Path | None = None,
        on_state: Callable[[Version, InstallState], None] | None = None,
    ) -> None:
        self._registry_root = Path(registry_root)
        self._extractor = extractor or TarfileExtractor()
        self._staging_parent = staging_parent
        self._on_state = on_state

    @property
    def registry_root(self) -> Path:
        return self._registry_root

    def version_folder(self, version: Version) -> Path:
        return self._registry_root / str(version)

    def slot_path(self, version: Version) -> Path:
        return self.version_folder(version) / RUNTIME_SUBDIR

    def install(self, version: Version, archive: StagedArchive | Path) -> InstalledRuntime:
        """Install ``archive`` as ``version``.

        The archive and all scratch directories are removed whether or not
        the install succeeds.  An existing install of the same version stays
        in place until the replacement has been validated.
        """

        staged = archive if isinstance(archive, StagedArchive) else StagedArchive(path=Path(archive))
        staging: Path | None = None
        self._transition(version, InstallState.NOT_INSTALLED)
        try:
            if staged.expected_checksum:
                verify_checksum(staged.path, staged.expected_checksum)

            self._transition(version, InstallState.EXTRACTING)
            staging = Path(tempfile.mkdtemp(prefix="decanter-runtime-", dir=self._staging_parent))
            self._extractor.extract(staged.path, staging)

            runtime_root = locate_runtime_root(staging)
            self._transition(version, InstallState.ROOT_LOCATED)

            self._transition(version, InstallState.COPYING)
            installed = self._commit(version, runtime_root)
        except Exception as exc:
            _LOGGER.error("Failed to install runtime %s: %s", version, exc)
            self._transition(version, InstallState.FAILED)
            raise
        finally:
            if staging is not None:
                shutil.rmtree(staging, ignore_errors=True)
            staged.discard()

        self._transition(version, InstallState.INSTALLED)
        _LOGGER.info("Installed runtime %s at %s", version, installed.root)
        return installed

    def recover_interrupted_installs(self) -> list[Path]:
        return recover_interrupted_swaps(self._registry_root)

    def _commit(self, version: Version, runtime_root: Path) -> InstalledRuntime:
        version_folder = self.version_folder(version)
        self._registry_root.mkdir(parents=True, exist_ok=True)

        with version_lock(self._registry_root, version), swap_lock(self._registry_root):
            partial = partial_path_for(version_folder)
            try:
                _LOGGER.debug("Copying runtime from %s to %s", runtime_root, partial)
                shutil.copytree(runtime_root, partial / RUNTIME_SUBDIR, symlinks=True)
                _validate(partial / RUNTIME_SUBDIR)
                swap_into_place(partial, version_folder)
            finally:
                if partial.exists():
                    shutil.rmtree(partial, ignore_errors=True)

            slot = self.slot_path(version)
            _validate(slot)
        return InstalledRuntime(version=version, root=slot)

    def _transition(self, version: Version, state: InstallState) -> None:
        _LOGGER.debug("Runtime %s install state: %s", version, state.value)
        if self._on_state is not None:
            self._on_state(version, state)


def _validate(runtime_root: Path) -> None:
    missing = missing_runtime_binaries(runtime_root)
    if missing:
        raise LayoutValidationFailure(missing)
