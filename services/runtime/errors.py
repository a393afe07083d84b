"""Error taxonomy for runtime discovery, verification and installation."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from domain.runtime.version import Version


class RuntimeManagerError(RuntimeError):
    """Base class for every failure raised by the runtime services."""


class SourceUnavailable(RuntimeManagerError):
    """A catalog source or remote resource could not be fetched or decoded."""


class ChecksumUnavailable(RuntimeManagerError):
    """No usable expected checksum could be obtained."""


class ChecksumMismatch(RuntimeManagerError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Runtime checksum mismatch: expected {expected} but computed {actual}")
        self.expected = expected
        self.actual = actual


class LayoutValidationFailure(RuntimeManagerError):
    """Required runtime files are absent after installation."""

    def __init__(self, missing: Iterable[Path], message: str | None = None) -> None:
        self.missing = tuple(missing)
        listing = ", ".join(str(path) for path in self.missing)
        super().__init__(message or f"Runtime layout validation failed. Missing: {listing}")


class MissingRuntimeBinaries(LayoutValidationFailure):
    """No directory inside an archive satisfies the runtime root layout."""

    def __init__(self, searched: Path) -> None:
        super().__init__((searched,), f"Missing wine binaries in {searched}")
        self.searched = searched


class RuntimeNotInstalled(RuntimeManagerError):
    def __init__(self, version: Version) -> None:
        super().__init__(f"Runtime {version} is not installed")
        self.version = version


class InvalidCustomRuntime(RuntimeManagerError):
    def __init__(self, path: Path, probed: Iterable[Path]) -> None:
        self.path = path
        self.probed = tuple(probed)
        super().__init__(f"Missing wine binaries: no runtime found under {path}")


class DownloadError(RuntimeManagerError):
    """A runtime archive could not be downloaded."""


class DownloadCancelled(DownloadError):
    """The download was cancelled before it completed."""


class UnsupportedArchive(DownloadError):
    """The URL or file does not name a supported archive format."""


class ArchiveExtractionError(RuntimeManagerError):
    """The archive is corrupt or contains unsafe members."""


__all__ = [
    "ArchiveExtractionError",
    "ChecksumMismatch",
    "ChecksumUnavailable",
    "DownloadCancelled",
    "DownloadError",
    "InvalidCustomRuntime",
    "LayoutValidationFailure",
    "MissingRuntimeBinaries",
    "RuntimeManagerError",
    "RuntimeNotInstalled",
    "SourceUnavailable",
    "UnsupportedArchive",
]
