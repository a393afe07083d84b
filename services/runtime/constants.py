"""Constants shared across the runtime service modules."""

from __future__ import annotations

RUNTIME_SUBDIR = "Wine"
WINE_BINARY_NAMES = ("wine64", "wine")
WINESERVER_BINARY_NAME = "wineserver"

SUPPORTED_ARCHIVE_SUFFIXES = (".tar.gz", ".tar.xz")

# Relative to an extraction root: the root itself, then the primary archive layout.
ARCHIVE_ROOT_CANDIDATES = (".", "Libraries/Wine")

CUSTOM_RUNTIME_BIN_CANDIDATES = (
    ".",
    "bin",
    "Wine/bin",
    "wine/bin",
    "Contents/Resources/wine/bin",
)

LEGACY_REQUIRED_PATHS = (
    "Wine/bin/wineserver",
    "DXVK/x64",
    "DXVK/x32",
    "winetricks",
    "verbs.txt",
)

PARTIAL_SLOT_MARKER = ".partial-"
REPLACED_SLOT_MARKER = ".replaced-"
SWAP_LOCK_NAME = ".decanter.lock"

MAX_ARCHIVE_TOTAL_BYTES = 8 * 1024 * 1024 * 1024  # 8 GiB
MAX_ARCHIVE_ENTRIES = 200_000

CHECKSUM_LENGTH = 64
