"""Predicates describing a usable runtime directory."""

from __future__ import annotations

import os
from pathlib import Path

from services.runtime.constants import WINE_BINARY_NAMES, WINESERVER_BINARY_NAME

__all__ = [
    "find_wine_binary",
    "is_runtime_bin_folder",
    "is_runtime_root",
    "missing_runtime_binaries",
]


def _is_executable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def find_wine_binary(bin_folder: Path) -> Path | None:
    """Return ``wine64`` or ``wine`` inside ``bin_folder``, preferring ``wine64``."""

    for name in WINE_BINARY_NAMES:
        candidate = bin_folder / name
        if _is_executable(candidate):
            return candidate
    return None


def is_runtime_bin_folder(bin_folder: Path) -> bool:
    return find_wine_binary(bin_folder) is not None and (bin_folder / WINESERVER_BINARY_NAME).exists()


def is_runtime_root(directory: Path) -> bool:
    """``directory/bin`` holds a wine executable and ``wineserver``."""

    return is_runtime_bin_folder(directory / "bin")


def missing_runtime_binaries(directory: Path) -> list[Path]:
    """List the required paths absent from the runtime root ``directory``."""

    bin_folder = directory / "bin"
    missing: list[Path] = []
    if find_wine_binary(bin_folder) is None:
        missing.append(bin_folder / WINE_BINARY_NAMES[0])
    wineserver = bin_folder / WINESERVER_BINARY_NAME
    if not wineserver.exists():
        missing.append(wineserver)
    return missing
