"""Runtime versions, catalog values and version resolution."""

from domain.runtime.models import (
    BuiltinRuntime,
    CatalogEntry,
    CustomRuntime,
    InstalledRuntime,
    RuntimeBinaries,
    RuntimeSelector,
    RuntimeSource,
    StagedArchive,
)
from domain.runtime.resolution import resolve_version
from domain.runtime.version import Version, normalize_version_tag

__all__ = [
    "BuiltinRuntime",
    "CatalogEntry",
    "CustomRuntime",
    "InstalledRuntime",
    "RuntimeBinaries",
    "RuntimeSelector",
    "RuntimeSource",
    "StagedArchive",
    "Version",
    "normalize_version_tag",
    "resolve_version",
]
