"""Archive extraction and runtime root discovery for the installer."""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path, PurePosixPath
from typing import Protocol

from services.runtime import constants
from services.runtime.errors import ArchiveExtractionError, MissingRuntimeBinaries
from services.runtime.layout import is_runtime_root

_LOGGER = logging.getLogger(__name__)

__all__ = ["TarExtractor", "TarfileExtractor", "locate_runtime_root"]


class TarExtractor(Protocol):
    """Protocol describing the tar extraction collaborator."""

    def extract(self, archive_path: Path, destination: Path) -> None:
        """Unpack ``archive_path`` into the existing ``destination`` directory."""


class TarfileExtractor:
    """Extract ``.tar.gz`` and ``.tar.xz`` archives with :mod:`tarfile`."""

    def __init__(
        self,
        *,
        max_entries: int = constants.MAX_ARCHIVE_ENTRIES,
        max_total_bytes: int = constants.MAX_ARCHIVE_TOTAL_BYTES,
    ) -> None:
        self._max_entries = max_entries
        self._max_total_bytes = max_total_bytes

    def extract(self, archive_path: Path, destination: Path) -> None:
        _LOGGER.info("Extracting runtime archive %s", archive_path)
        root = destination.resolve()
        try:
            with tarfile.open(archive_path, mode="r:*") as archive:
                members = archive.getmembers()
                self._check_members(members, root)
                if hasattr(tarfile, "data_filter"):
                    archive.extractall(root, members=members, filter="data")
                else:  # pragma: no cover - interpreters without extraction filters
                    archive.extractall(root, members=members)
        except (OSError, tarfile.TarError, EOFError) as exc:
            raise ArchiveExtractionError(f"Failed to extract runtime archive: {exc}") from exc
        _LOGGER.debug("Archive extracted to %s", root)

    def _check_members(self, members: list[tarfile.TarInfo], root: Path) -> None:
        if len(members) > self._max_entries:
            _LOGGER.error("Archive entry count %s exceeded limit %s", len(members), self._max_entries)
            raise ArchiveExtractionError("Runtime archive contained too many entries")

        total_bytes = 0
        for member in members:
            name = PurePosixPath(member.name)
            if name.is_absolute():
                raise ArchiveExtractionError(f"Runtime archive contained an absolute path: {member.name}")
            destination = _resolve_inside(root, root / name)
            if destination is None:
                raise ArchiveExtractionError(f"Runtime archive contained an unsafe path: {member.name}")
            if member.isdev():
                raise ArchiveExtractionError(f"Runtime archive contained a device node: {member.name}")
            if member.issym():
                target = root / name.parent / member.linkname
                if PurePosixPath(member.linkname).is_absolute() or _resolve_inside(root, target) is None:
                    raise ArchiveExtractionError(
                        f"Runtime archive contained a link escaping the archive: {member.name}"
                    )
            if member.islnk() and _resolve_inside(root, root / member.linkname) is None:
                raise ArchiveExtractionError(
                    f"Runtime archive contained a link escaping the archive: {member.name}"
                )
            total_bytes += max(member.size, 0)
            if total_bytes > self._max_total_bytes:
                _LOGGER.error(
                    "Archive expanded to %s bytes which exceeds limit %s",
                    total_bytes,
                    self._max_total_bytes,
                )
                raise ArchiveExtractionError("Runtime archive expanded beyond safe limits")


def _resolve_inside(root: Path, candidate: Path) -> Path | None:
    resolved = Path(os.path.normpath(candidate))
    try:
        resolved.relative_to(root)
    except ValueError:
        return None
    return resolved


def locate_runtime_root(staging: Path) -> Path:
    """Return the directory inside ``staging`` that holds the runtime.

    The well-known locations are tried first, then the whole tree is walked
    top-down in sorted order.
    """

    for relative in constants.ARCHIVE_ROOT_CANDIDATES:
        candidate = staging / relative if relative != "." else staging
        if is_runtime_root(candidate):
            _LOGGER.info("Located runtime root at %s", candidate)
            return candidate

    for current, directories, _files in os.walk(staging):
        directories.sort()
        candidate = Path(current)
        if is_runtime_root(candidate):
            _LOGGER.info("Located nested runtime root at %s", candidate)
            return candidate

    raise MissingRuntimeBinaries(staging)
