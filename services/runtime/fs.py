"""Directory swaps used to commit runtime installs."""

from __future__ import annotations

import logging
import os
import shutil
import sys
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

from services.runtime.constants import PARTIAL_SLOT_MARKER, REPLACED_SLOT_MARKER, SWAP_LOCK_NAME

_LOGGER = logging.getLogger(__name__)

__all__ = ["partial_path_for", "recover_interrupted_swaps", "swap_into_place", "swap_lock"]


def _acquire(handle: IO[str], *, blocking: bool) -> bool:
    if sys.platform == "win32":
        import msvcrt

        mode = msvcrt.LK_LOCK if blocking else msvcrt.LK_NBLCK
        try:
            msvcrt.locking(handle.fileno(), mode, 1)
        except OSError:
            if blocking:
                raise
            return False
        return True

    import fcntl

    flags = fcntl.LOCK_EX if blocking else fcntl.LOCK_EX | fcntl.LOCK_NB
    try:
        fcntl.flock(handle, flags)
    except BlockingIOError:
        return False
    return True


@contextmanager
def swap_lock(parent: Path, *, blocking: bool = True) -> Iterator[bool]:
    """Hold the lock guarding staged and moved-aside siblings in ``parent``.

    The lock is a file shared by every process using ``parent``.  With
    ``blocking=False`` the context yields ``False`` instead of waiting when
    another holder exists.  Closing the file releases the lock.
    """

    parent.mkdir(parents=True, exist_ok=True)
    with open(parent / SWAP_LOCK_NAME, "w", encoding="utf-8") as handle:
        yield _acquire(handle, blocking=blocking)


def partial_path_for(destination: Path) -> Path:
    """Return a unique sibling of ``destination`` to stage new contents in."""

    return destination.parent / f".{destination.name}{PARTIAL_SLOT_MARKER}{uuid.uuid4().hex}"


def swap_into_place(staged: Path, destination: Path) -> None:
    """Replace ``destination`` with ``staged`` using renames.

    The previous contents are moved aside first and restored if the final
    rename fails, so ``destination`` is never left half-written.  Callers
    hold :func:`swap_lock` on the parent directory.
    """

    replaced: Path | None = None
    if destination.exists():
        replaced = destination.parent / f".{destination.name}{REPLACED_SLOT_MARKER}{uuid.uuid4().hex}"
        os.replace(destination, replaced)
        _LOGGER.debug("Moved previous contents of %s to %s", destination, replaced)

    try:
        os.replace(staged, destination)
    except OSError:
        if replaced is not None and not destination.exists():
            os.replace(replaced, destination)
            _LOGGER.warning("Restored previous contents of %s after a failed swap", destination)
        raise

    if replaced is not None:
        shutil.rmtree(replaced, ignore_errors=True)


def recover_interrupted_swaps(parent: Path) -> list[Path]:
    """Clean up after swaps that were interrupted by a crash.

    Partial directories are deleted.  A moved-aside directory whose
    destination is missing is renamed back; otherwise it is deleted.
    Nothing is touched while another process holds :func:`swap_lock`.
    Returns the destinations that were restored.
    """

    if not parent.is_dir():
        return []

    with swap_lock(parent, blocking=False) as acquired:
        if not acquired:
            _LOGGER.info("Skipping recovery in %s while another install is in progress", parent)
            return []
        return _recover_locked(parent)


def _recover_locked(parent: Path) -> list[Path]:
    restored: list[Path] = []
    for entry in sorted(parent.iterdir()):
        name = entry.name
        if not name.startswith(".") or not entry.is_dir():
            continue
        if PARTIAL_SLOT_MARKER in name:
            _LOGGER.info("Removing interrupted install %s", entry)
            shutil.rmtree(entry, ignore_errors=True)
            continue
        if REPLACED_SLOT_MARKER in name:
            destination = parent / name[1:].split(REPLACED_SLOT_MARKER, 1)[0]
            if destination.exists():
                shutil.rmtree(entry, ignore_errors=True)
            else:
                os.replace(entry, destination)
                _LOGGER.warning("Restored %s from an interrupted install", destination)
                restored.append(destination)
    return restored
