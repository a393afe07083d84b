"""Public API for the runtime manager services."""

from __future__ import annotations

from services.runtime.archive import TarExtractor, TarfileExtractor, locate_runtime_root
from services.runtime.builder import build_catalog_sources, build_fetcher, build_runtime_service
from services.runtime.catalog import CatalogAggregator, sort_catalog
from services.runtime.checksum import ArchiveVerifier, calculate_sha256, checksum_url_for
from services.runtime.download import ArchiveDownload, DownloadProgress
from services.runtime.errors import (
    ArchiveExtractionError,
    ChecksumMismatch,
    ChecksumUnavailable,
    DownloadCancelled,
    DownloadError,
    InvalidCustomRuntime,
    LayoutValidationFailure,
    MissingRuntimeBinaries,
    RuntimeManagerError,
    RuntimeNotInstalled,
    SourceUnavailable,
    UnsupportedArchive,
)
from services.runtime.installer import InstallState, RuntimeInstaller
from services.runtime.legacy import LegacyRuntime, UpdateCheck
from services.runtime.registry import RuntimeRegistry
from services.runtime.service import RuntimeService
from services.runtime.sources import (
    CatalogSource,
    LatestTagSource,
    OfficialMetadataSource,
    TargetVersionSource,
)

__all__ = [
    "ArchiveDownload",
    "ArchiveExtractionError",
    "ArchiveVerifier",
    "CatalogAggregator",
    "CatalogSource",
    "ChecksumMismatch",
    "ChecksumUnavailable",
    "DownloadCancelled",
    "DownloadError",
    "DownloadProgress",
    "InstallState",
    "InvalidCustomRuntime",
    "LatestTagSource",
    "LayoutValidationFailure",
    "LegacyRuntime",
    "MissingRuntimeBinaries",
    "OfficialMetadataSource",
    "RuntimeInstaller",
    "RuntimeManagerError",
    "RuntimeNotInstalled",
    "RuntimeRegistry",
    "RuntimeService",
    "SourceUnavailable",
    "TarExtractor",
    "TarfileExtractor",
    "TargetVersionSource",
    "UnsupportedArchive",
    "UpdateCheck",
    "build_catalog_sources",
    "build_fetcher",
    "build_runtime_service",
    "calculate_sha256",
    "checksum_url_for",
    "locate_runtime_root",
    "sort_catalog",
]
