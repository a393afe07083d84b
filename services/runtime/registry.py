"""Lookup of installed runtimes across the versioned and legacy slots."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from domain.runtime.models import (
    BuiltinRuntime,
    CustomRuntime,
    InstalledRuntime,
    RuntimeBinaries,
    RuntimeSelector,
)
from domain.runtime.version import Version
from services.runtime.constants import (
    CUSTOM_RUNTIME_BIN_CANDIDATES,
    RUNTIME_SUBDIR,
    WINESERVER_BINARY_NAME,
)
from services.runtime.errors import (
    InvalidCustomRuntime,
    MissingRuntimeBinaries,
    RuntimeNotInstalled,
)
from services.runtime.fs import swap_lock
from services.runtime.installer import version_lock
from services.runtime.layout import find_wine_binary, is_runtime_bin_folder, is_runtime_root
from services.runtime.legacy import LegacyRuntime

_LOGGER = logging.getLogger(__name__)

__all__ = ["RuntimeRegistry"]


class RuntimeRegistry:
    """Answer which runtimes are installed and where their binaries live.

    Versioned installs live at ``<registry_root>/<M.m.p>/Wine``.  The legacy
    single slot, when given, contributes its recorded version as well.
    """

    def __init__(self, registry_root: Path, legacy: LegacyRuntime | None = None) -> None:
        self._registry_root = Path(registry_root)
        self._legacy = legacy

    @property
    def registry_root(self) -> Path:
        return self._registry_root

    @property
    def legacy(self) -> LegacyRuntime | None:
        return self._legacy

    def slot_path(self, version: Version) -> Path:
        return self._registry_root / str(version) / RUNTIME_SUBDIR

    def legacy_version(self) -> Version | None:
        if self._legacy is None:
            return None
        installed = self._legacy.installed_runtime()
        return installed.version if installed else None

    def installed_runtimes(self) -> list[InstalledRuntime]:
        """Return every usable install, newest version first.

        A version present in both slots is reported once, from the versioned
        registry.
        """

        runtimes: dict[Version, InstalledRuntime] = {}
        if self._legacy is not None:
            legacy = self._legacy.installed_runtime()
            if legacy is not None:
                runtimes[legacy.version] = legacy

        if self._registry_root.is_dir():
            for entry in self._registry_root.iterdir():
                if entry.name.startswith(".") or not entry.is_dir():
                    continue
                version = Version.parse(entry.name)
                if version is None or entry.name != str(version):
                    _LOGGER.debug("Ignoring registry entry %s", entry)
                    continue
                slot = entry / RUNTIME_SUBDIR
                if is_runtime_root(slot):
                    runtimes[version] = InstalledRuntime(version=version, root=slot)
                else:
                    _LOGGER.debug("Ignoring incomplete runtime slot %s", slot)

        return [runtimes[version] for version in sorted(runtimes, reverse=True)]

    def available_versions(self) -> set[Version]:
        return {runtime.version for runtime in self.installed_runtimes()}

    def is_installed(self, version: Version) -> bool:
        if is_runtime_root(self.slot_path(version)):
            return True
        return self.legacy_version() == version

    def resolve_bin_folder(self, selector: RuntimeSelector) -> Path:
        """Return the ``bin`` directory for ``selector``.

        Raises :class:`RuntimeNotInstalled` for a missing builtin version and
        :class:`InvalidCustomRuntime` for a custom path without binaries.
        """

        if isinstance(selector, CustomRuntime):
            return self.validate_custom_runtime(selector.path)
        if not isinstance(selector, BuiltinRuntime):
            raise TypeError(f"Unsupported runtime selector: {selector!r}")

        slot = self.slot_path(selector.version)
        if is_runtime_root(slot):
            return slot / "bin"
        if self._legacy is not None and self.legacy_version() == selector.version:
            return self._legacy.bin_folder
        raise RuntimeNotInstalled(selector.version)

    def validate_custom_runtime(self, path: Path) -> Path:
        """Probe the usual locations under ``path`` for a runtime ``bin`` folder."""

        base = Path(path).expanduser()
        probed: list[Path] = []
        for relative in CUSTOM_RUNTIME_BIN_CANDIDATES:
            candidate = base if relative == "." else base / relative
            probed.append(candidate)
            if is_runtime_bin_folder(candidate):
                _LOGGER.debug("Resolved custom runtime %s to %s", base, candidate)
                return candidate
        raise InvalidCustomRuntime(base, probed)

    def resolve_binaries(self, selector: RuntimeSelector) -> RuntimeBinaries:
        bin_folder = self.resolve_bin_folder(selector)
        wine = find_wine_binary(bin_folder)
        if wine is None:
            raise MissingRuntimeBinaries(bin_folder)
        return RuntimeBinaries(
            wine=wine,
            wineserver=bin_folder / WINESERVER_BINARY_NAME,
            bin_folder=bin_folder,
        )

    def uninstall(self, version: Version) -> bool:
        """Remove the versioned install of ``version``; ``False`` if absent."""

        version_folder = self._registry_root / str(version)
        if not self._registry_root.is_dir():
            return False
        with version_lock(self._registry_root, version), swap_lock(self._registry_root):
            if not version_folder.exists():
                return False
            shutil.rmtree(version_folder)
        _LOGGER.info("Removed runtime %s", version)
        return True
