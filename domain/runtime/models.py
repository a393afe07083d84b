"""Value types shared by the runtime catalog, installer and registry."""

from __future__ import annotations

import enum
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from domain.runtime.version import Version

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "BuiltinRuntime",
    "CatalogEntry",
    "CustomRuntime",
    "InstalledRuntime",
    "RuntimeBinaries",
    "RuntimeSelector",
    "RuntimeSource",
    "StagedArchive",
]


class RuntimeSource(str, enum.Enum):
    """Where a catalog entry was published."""

    DECANTER_OFFICIAL = "Decanter Official"
    WINE_OFFICIAL = "Wine Official"


@dataclass(frozen=True)
class CatalogEntry:
    """A downloadable runtime build advertised by one distribution source."""

    source: RuntimeSource
    version: Version
    download_url: str


@dataclass
class StagedArchive:
    """A downloaded archive awaiting installation.

    ``owned_dir`` is the temporary directory created for the download, if
    any; :meth:`discard` removes it together with the archive itself.
    """

    path: Path
    expected_checksum: str | None = None
    owned_dir: Path | None = None

    def discard(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError:
            _LOGGER.warning("Unable to remove staged archive %s", self.path, exc_info=True)
        if self.owned_dir is not None:
            shutil.rmtree(self.owned_dir, ignore_errors=True)


@dataclass(frozen=True)
class InstalledRuntime:
    version: Version
    root: Path
    legacy: bool = False

    @property
    def bin_folder(self) -> Path:
        return self.root / "bin"


@dataclass(frozen=True)
class BuiltinRuntime:
    """A runtime managed by the versioned registry."""

    version: Version


@dataclass(frozen=True)
class CustomRuntime:
    """A user-supplied runtime directory."""

    path: Path


RuntimeSelector = Union[BuiltinRuntime, CustomRuntime]


@dataclass(frozen=True)
class RuntimeBinaries:
    """Executables resolved for a runtime selector."""

    wine: Path
    wineserver: Path
    bin_folder: Path
