"""Helpers for constructing the runtime service from configuration."""

from __future__ import annotations

import functools
import logging

from app.config import RuntimeConfig, get_runtime_config
from services.runtime.catalog import CatalogAggregator
from services.runtime.installer import RuntimeInstaller
from services.runtime.legacy import LegacyRuntime
from services.runtime.registry import RuntimeRegistry
from services.runtime.service import RuntimeService
from services.runtime.sources import (
    CatalogSource,
    Fetcher,
    LatestTagSource,
    OfficialMetadataSource,
    TargetVersionSource,
)
from services.runtime.transport import fetch_bytes

_LOGGER = logging.getLogger(__name__)

__all__ = ["build_catalog_sources", "build_fetcher", "build_runtime_service"]


def build_fetcher(config: RuntimeConfig) -> Fetcher:
    network = config.network
    return functools.partial(
        fetch_bytes,
        timeout=network.request_timeout_seconds,
        user_agent=network.user_agent,
    )


def build_catalog_sources(config: RuntimeConfig, fetch: Fetcher) -> list[CatalogSource]:
    """Return the sources queried for the catalog, in configuration order."""

    catalog = config.catalog
    distribution = config.distribution
    sources: list[CatalogSource] = [
        LatestTagSource(catalog.tags_url, catalog.source_url_pattern, fetch=fetch),
    ]
    for target in catalog.target_versions:
        sources.append(
            TargetVersionSource(
                catalog.releases_url,
                target,
                fetch=fetch,
                ident=catalog.asset_ident,
                extension=catalog.asset_extension,
            )
        )
    if catalog.include_official_metadata:
        sources.append(
            OfficialMetadataSource(distribution.metadata_url, distribution.archive_url, fetch=fetch)
        )
    return sources


def build_runtime_service(
    config: RuntimeConfig | None = None,
    *,
    fetch: Fetcher | None = None,
) -> RuntimeService:
    """Construct a :class:`RuntimeService` for ``config`` or the process configuration."""

    config = config or get_runtime_config()
    fetch = fetch or build_fetcher(config)
    if config.distribution.uses_local_feed:
        _LOGGER.info("Using local runtime feed at %s", config.distribution.local_feed_dir)

    legacy = LegacyRuntime(config.library_folder, metadata_name=config.distribution.metadata_name)
    registry = RuntimeRegistry(config.runtimes_folder, legacy=legacy)
    installer = RuntimeInstaller(config.runtimes_folder)
    catalog = CatalogAggregator(build_catalog_sources(config, fetch))
    return RuntimeService(
        config,
        catalog=catalog,
        registry=registry,
        installer=installer,
        legacy=legacy,
        fetch=fetch,
    )
