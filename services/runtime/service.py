"""Coordinate catalog discovery, downloads and installs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from app.config import RuntimeConfig
from domain.runtime.models import (
    BuiltinRuntime,
    CatalogEntry,
    CustomRuntime,
    InstalledRuntime,
    RuntimeSelector,
    StagedArchive,
)
from domain.runtime.version import Version
from services.runtime.catalog import CatalogAggregator
from services.runtime.checksum import ArchiveVerifier, checksum_url_for
from services.runtime.download import ArchiveDownload, DownloadProgress, archive_suffix
from services.runtime.errors import RuntimeManagerError, UnsupportedArchive
from services.runtime.fs import recover_interrupted_swaps
from services.runtime.installer import RuntimeInstaller
from services.runtime.legacy import LegacyRuntime, UpdateCheck
from services.runtime.registry import RuntimeRegistry
from services.runtime.sources import Fetcher
from shared.result import Result

_LOGGER = logging.getLogger(__name__)

__all__ = ["RuntimeService"]


class RuntimeService:
    """Entry point used by the command line and embedding applications."""

    def __init__(
        self,
        config: RuntimeConfig,
        *,
        catalog: CatalogAggregator,
        registry: RuntimeRegistry,
        installer: RuntimeInstaller,
        legacy: LegacyRuntime,
        fetch: Fetcher,
    ) -> None:
        self._config = config
        self._catalog = catalog
        self._registry = registry
        self._installer = installer
        self._legacy = legacy
        self._fetch = fetch

    @property
    def config(self) -> RuntimeConfig:
        return self._config

    @property
    def registry(self) -> RuntimeRegistry:
        return self._registry

    @property
    def legacy(self) -> LegacyRuntime:
        return self._legacy

    def fetch_catalog(self) -> list[CatalogEntry]:
        return self._catalog.fetch_all()

    def verifier_for(self, download_url: str) -> ArchiveVerifier:
        return ArchiveVerifier(
            checksum_url_for(download_url, self._config.distribution),
            fetch=self._fetch,
        )

    def download(self, url: str) -> ArchiveDownload:
        """Return a download for ``url``; iterate it or call ``run()`` to transfer."""

        network = self._config.network
        return ArchiveDownload(
            url,
            timeout=network.download_timeout_seconds,
            chunk_size=network.chunk_size,
            user_agent=network.user_agent,
        )

    def install_archive(
        self, version: Version, staged: StagedArchive
    ) -> Result[InstalledRuntime, RuntimeManagerError]:
        return Result.capture(self._installer.install, version, staged, errors=(RuntimeManagerError,))

    def install_from_url(
        self,
        version: Version,
        url: str,
        on_progress: Callable[[DownloadProgress], None] | None = None,
    ) -> InstalledRuntime:
        """Download ``url``, verify it against its published checksum and install it."""

        staged = self.download(url).run(on_progress)
        try:
            verifier = self.verifier_for(url)
            staged.expected_checksum = verifier.expected_checksum()
            if staged.expected_checksum is None:
                _LOGGER.warning(
                    "Runtime checksum was unavailable from %s. Continuing without checksum verification.",
                    verifier.checksum_url,
                )
        except BaseException:
            staged.discard()
            raise
        return self.install_archive(version, staged).unwrap()

    def install_legacy(
        self, on_progress: Callable[[DownloadProgress], None] | None = None
    ) -> InstalledRuntime:
        """Download and install the distribution archive into the legacy slot."""

        url = self._config.distribution.archive_url
        staged = self.download(url).run(on_progress)
        try:
            verifier = self.verifier_for(url)
        except BaseException:
            staged.discard()
            raise
        return self._legacy.install(staged, verifier)

    def ensure_installed(self, selector: RuntimeSelector, download_url: str | None = None) -> Path:
        """Return the ``bin`` folder for ``selector``, installing it if needed.

        Custom runtimes are never installed; they are only validated.
        """

        if isinstance(selector, CustomRuntime):
            return self._registry.resolve_bin_folder(selector)
        if not isinstance(selector, BuiltinRuntime):
            raise TypeError(f"Unsupported runtime selector: {selector!r}")

        if self._registry.is_installed(selector.version):
            _LOGGER.debug("Runtime %s already installed", selector.version)
            return self._registry.resolve_bin_folder(selector)

        if not download_url or archive_suffix(download_url) is None:
            raise UnsupportedArchive(
                f"Runtime {selector.version} is not installed and no .tar.gz or .tar.xz URL was given"
            )
        _LOGGER.info("Runtime %s missing; installing from %s", selector.version, download_url)
        self.install_from_url(selector.version, download_url)
        return self._registry.resolve_bin_folder(selector)

    def uninstall(self, version: Version) -> bool:
        return self._registry.uninstall(version)

    def check_for_legacy_update(self) -> UpdateCheck:
        return self._legacy.check_for_update(self._fetch, self._config.distribution.metadata_url)

    def recover(self) -> list[Path]:
        """Finish or roll back installs interrupted by a previous process."""

        restored = self._installer.recover_interrupted_installs()
        restored.extend(recover_interrupted_swaps(self._legacy.library_folder.parent))
        return restored
