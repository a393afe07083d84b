"""Runtime manager configuration loaded from JSON resources.

The bundled ``runtime.json`` supplies defaults.  Three environment variables
are consulted once, when the configuration is built:

``DECANTER_HOME``
    Application folder holding the legacy ``Libraries`` slot and the
    versioned ``Runtimes`` registry.

``DECANTER_WINE_LOCAL_FEED_DIR``
    Local directory serving the runtime archive, checksum and version
    metadata instead of the remote distribution.

``DECANTER_WINE_BASE_URL``
    Remote base URL for the same three resources when no local feed is set.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from importlib import resources
from math import isfinite
from pathlib import Path
from typing import Any, Mapping

from domain.runtime.version import Version

HOME_ENV = "DECANTER_HOME"
LOCAL_FEED_ENV = "DECANTER_WINE_LOCAL_FEED_DIR"
BASE_URL_ENV = "DECANTER_WINE_BASE_URL"

_CONFIG_RESOURCE = "runtime.json"
_RUNTIME_CONFIG_CACHE: RuntimeConfig | None = None

_DEFAULT_APPLICATION_FOLDER = "~/.decanter"
_DEFAULT_BASE_URL = "https://data.getwhisky.app/Wine/"
_DEFAULT_TAGS_URL = "https://gitlab.winehq.org/api/v4/projects/wine%2Fwine/repository/tags?per_page=1"
_DEFAULT_RELEASES_URL = "https://api.github.com/repos/Gcenx/macOS_Wine_builds/releases?per_page=100"
_DEFAULT_SOURCE_URL_PATTERN = "https://dl.winehq.org/wine/source/{major}.x/wine-{version}.tar.xz"
_DEFAULT_TARGET_VERSIONS = (Version(8, 0, 1), Version(9, 21, 0), Version(11, 2, 0))


@dataclass(frozen=True)
class DistributionConfig:
    """Location of the primary distribution's archive, checksum and metadata."""

    base_url: str
    local_feed_dir: Path | None = None
    archive_name: str = "Libraries.tar.gz"
    checksum_name: str = "Libraries.tar.gz.sha256"
    metadata_name: str = "RuntimeVersion.plist"

    @property
    def uses_local_feed(self) -> bool:
        return self.local_feed_dir is not None

    @property
    def archive_url(self) -> str:
        return self._resource_url(self.archive_name)

    @property
    def checksum_url(self) -> str:
        return self._resource_url(self.checksum_name)

    @property
    def metadata_url(self) -> str:
        return self._resource_url(self.metadata_name)

    def _resource_url(self, name: str) -> str:
        if self.local_feed_dir is not None:
            return (self.local_feed_dir / name).as_uri()
        return f"{self.base_url}{name}"


@dataclass(frozen=True)
class CatalogConfig:
    """Endpoints and targets queried when building the runtime catalog."""

    tags_url: str = _DEFAULT_TAGS_URL
    releases_url: str = _DEFAULT_RELEASES_URL
    source_url_pattern: str = _DEFAULT_SOURCE_URL_PATTERN
    target_versions: tuple[Version, ...] = _DEFAULT_TARGET_VERSIONS
    asset_ident: str = "wine"
    asset_extension: str = ".tar.xz"
    include_official_metadata: bool = True


@dataclass(frozen=True)
class NetworkConfig:
    request_timeout_seconds: float = 15.0
    download_timeout_seconds: float = 60.0
    chunk_size: int = 64 * 1024
    user_agent: str = "decanter-runtime-manager"


@dataclass(frozen=True)
class RuntimeConfig:
    """Folder locations and distribution endpoints for one process."""

    application_folder: Path
    distribution: DistributionConfig
    catalog: CatalogConfig = CatalogConfig()
    network: NetworkConfig = NetworkConfig()

    @property
    def library_folder(self) -> Path:
        """Legacy single-slot installation root."""

        return self.application_folder / "Libraries"

    @property
    def legacy_bin_folder(self) -> Path:
        return self.library_folder / "Wine" / "bin"

    @property
    def runtimes_folder(self) -> Path:
        """Root of the versioned runtime registry."""

        return self.application_folder / "Runtimes"

    @classmethod
    def for_folder(cls, application_folder: Path, **overrides: Any) -> RuntimeConfig:
        """Build a configuration rooted at ``application_folder`` using defaults."""

        distribution = overrides.pop("distribution", DistributionConfig(base_url=_DEFAULT_BASE_URL))
        return cls(application_folder=Path(application_folder), distribution=distribution, **overrides)


def get_runtime_config() -> RuntimeConfig:
    """Return the cached configuration, building it from the environment once."""

    global _RUNTIME_CONFIG_CACHE
    if _RUNTIME_CONFIG_CACHE is None:
        _RUNTIME_CONFIG_CACHE = load_runtime_config()
    return _RUNTIME_CONFIG_CACHE


def reset_runtime_config_cache() -> None:
    """Reset the cached configuration for subsequent reloads."""

    global _RUNTIME_CONFIG_CACHE
    _RUNTIME_CONFIG_CACHE = None


def load_runtime_config(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """Load configuration from ``path`` or the bundled resource plus ``environ``."""

    env = os.environ if environ is None else environ
    data = _read_config_data(path)

    folder_value = env.get(HOME_ENV) or _coerce_text(
        data.get("application_folder"), default=_DEFAULT_APPLICATION_FOLDER
    )
    application_folder = Path(folder_value).expanduser()

    distribution = _parse_distribution_section(data.get("distribution"), env)
    catalog = _parse_catalog_section(data.get("catalog"))
    network = _parse_network_section(data.get("network"))
    return RuntimeConfig(
        application_folder=application_folder,
        distribution=distribution,
        catalog=catalog,
        network=network,
    )


def _read_config_data(path: str | Path | None) -> Mapping[str, Any]:
    if path is not None:
        return _load_json_from_path(Path(path).expanduser())
    return _load_default_config_data()


def _load_json_from_path(path: Path) -> Mapping[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    return _parse_json(raw)


def _load_default_config_data() -> Mapping[str, Any]:
    try:
        resource = resources.files(__package__).joinpath(_CONFIG_RESOURCE)
        raw = resource.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return {}
    return _parse_json(raw)


def _parse_json(raw: str) -> Mapping[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, Mapping):
        return parsed
    return {}


def _parse_distribution_section(section: Any, env: Mapping[str, str]) -> DistributionConfig:
    if not isinstance(section, Mapping):
        section = {}

    local_feed_dir: Path | None = None
    local_feed = env.get(LOCAL_FEED_ENV)
    if local_feed:
        local_feed_dir = Path(local_feed).expanduser().absolute()

    base_url = env.get(BASE_URL_ENV) or _coerce_text(section.get("base_url"), default=_DEFAULT_BASE_URL)
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"

    return DistributionConfig(
        base_url=base_url,
        local_feed_dir=local_feed_dir,
        archive_name=_coerce_text(section.get("archive_name"), default="Libraries.tar.gz"),
        checksum_name=_coerce_text(section.get("checksum_name"), default="Libraries.tar.gz.sha256"),
        metadata_name=_coerce_text(section.get("metadata_name"), default="RuntimeVersion.plist"),
    )


def _parse_catalog_section(section: Any) -> CatalogConfig:
    if not isinstance(section, Mapping):
        return CatalogConfig()

    targets = _DEFAULT_TARGET_VERSIONS
    raw_targets = section.get("target_versions")
    if isinstance(raw_targets, list):
        parsed = [Version.parse(str(item)) for item in raw_targets]
        targets = tuple(version for version in parsed if version is not None)

    include_metadata = section.get("include_official_metadata")
    return CatalogConfig(
        tags_url=_coerce_text(section.get("tags_url"), default=_DEFAULT_TAGS_URL),
        releases_url=_coerce_text(section.get("releases_url"), default=_DEFAULT_RELEASES_URL),
        source_url_pattern=_coerce_text(
            section.get("source_url_pattern"), default=_DEFAULT_SOURCE_URL_PATTERN
        ),
        target_versions=targets,
        asset_ident=_coerce_text(section.get("asset_ident"), default="wine"),
        asset_extension=_coerce_text(section.get("asset_extension"), default=".tar.xz"),
        include_official_metadata=include_metadata if isinstance(include_metadata, bool) else True,
    )


def _parse_network_section(section: Any) -> NetworkConfig:
    if not isinstance(section, Mapping):
        return NetworkConfig()
    return NetworkConfig(
        request_timeout_seconds=_coerce_positive_float(section.get("request_timeout_seconds"), default=15.0),
        download_timeout_seconds=_coerce_positive_float(section.get("download_timeout_seconds"), default=60.0),
        chunk_size=int(_coerce_positive_float(section.get("chunk_size"), default=64 * 1024)),
        user_agent=_coerce_text(section.get("user_agent"), default="decanter-runtime-manager"),
    )


def _coerce_text(value: Any, *, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _coerce_positive_float(value: Any, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str):
        try:
            candidate = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    if not isfinite(candidate) or candidate <= 0:
        return default
    return candidate


__all__ = [
    "BASE_URL_ENV",
    "CatalogConfig",
    "DistributionConfig",
    "HOME_ENV",
    "LOCAL_FEED_ENV",
    "NetworkConfig",
    "RuntimeConfig",
    "get_runtime_config",
    "load_runtime_config",
    "reset_runtime_config_cache",
]
