"""Catalog sources, each describing one place runtime builds are published."""

from __future__ import annotations

import json
import logging
from typing import Callable, Protocol

from domain.runtime.models import CatalogEntry, RuntimeSource
from domain.runtime.resolution import resolve_version
from domain.runtime.version import Version, normalize_version_tag
from services.runtime.assets import preferred_asset_url
from services.runtime.errors import SourceUnavailable
from services.runtime.metadata import parse_version_metadata

_LOGGER = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]


class CatalogSource(Protocol):
    """Protocol describing a single runtime distribution source."""

    name: str

    def fetch(self) -> CatalogEntry | None:
        """Return the build this source offers, or ``None`` when it has none."""


def _load_json(fetch: Fetcher, url: str) -> object:
    data = fetch(url)
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SourceUnavailable(f"Response from {url} was not valid JSON: {exc}") from exc


class LatestTagSource:
    """Newest upstream tag, mapped onto the upstream source tarball."""

    def __init__(self, tags_url: str, url_pattern: str, *, fetch: Fetcher) -> None:
        self._tags_url = tags_url
        self._url_pattern = url_pattern
        self._fetch = fetch
        self.name = "latest-tag"

    def fetch(self) -> CatalogEntry | None:
        payload = _load_json(self._fetch, self._tags_url)
        if not isinstance(payload, list) or not payload:
            _LOGGER.debug("Tag listing from %s was empty", self._tags_url)
            return None
        first = payload[0]
        name = first.get("name") if isinstance(first, dict) else None
        if not isinstance(name, str):
            return None

        normalized = normalize_version_tag(name)
        version = Version.parse(normalized) if normalized else None
        if version is None:
            _LOGGER.debug("Ignoring unparseable tag %r", name)
            return None

        url = self._url_pattern.format(major=version.major, version=normalized)
        return CatalogEntry(source=RuntimeSource.WINE_OFFICIAL, version=version, download_url=url)


class TargetVersionSource:
    """Published build closest to ``target`` in a release listing."""

    def __init__(
        self,
        releases_url: str,
        target: Version,
        *,
        fetch: Fetcher,
        ident: str = "wine",
        extension: str = ".tar.xz",
    ) -> None:
        self._releases_url = releases_url
        self._target = target
        self._fetch = fetch
        self._ident = ident
        self._extension = extension
        self.name = f"target-{target}"

    def fetch(self) -> CatalogEntry | None:
        payload = _load_json(self._fetch, self._releases_url)
        if not isinstance(payload, list):
            _LOGGER.debug("Release listing from %s was not a list", self._releases_url)
            return None

        candidates = self._collect_candidates(payload)
        selected = resolve_version(self._target, candidates)
        if selected is None:
            _LOGGER.debug("No release shares the major version of %s", self._target)
            return None
        return CatalogEntry(
            source=RuntimeSource.WINE_OFFICIAL,
            version=selected,
            download_url=candidates[selected],
        )

    def _collect_candidates(self, releases: list) -> dict[Version, str]:
        candidates: dict[Version, str] = {}
        for release in releases:
            if not isinstance(release, dict):
                continue
            if release.get("draft") or release.get("prerelease"):
                continue
            tag = release.get("tag_name")
            if not isinstance(tag, str):
                continue
            normalized = normalize_version_tag(tag)
            version = Version.parse(normalized) if normalized else None
            if version is None or version in candidates:
                continue
            assets = release.get("assets")
            url = preferred_asset_url(
                assets if isinstance(assets, list) else [],
                ident=self._ident,
                extension=self._extension,
            )
            if url is not None:
                candidates[version] = url
        return candidates


class OfficialMetadataSource:
    """The primary distribution's packaged runtime described by its metadata."""

    def __init__(self, metadata_url: str, archive_url: str, *, fetch: Fetcher) -> None:
        self._metadata_url = metadata_url
        self._archive_url = archive_url
        self._fetch = fetch
        self.name = "official-metadata"

    def fetch(self) -> CatalogEntry | None:
        version = parse_version_metadata(self._fetch(self._metadata_url))
        return CatalogEntry(
            source=RuntimeSource.DECANTER_OFFICIAL,
            version=version,
            download_url=self._archive_url,
        )


__all__ = [
    "CatalogSource",
    "Fetcher",
    "LatestTagSource",
    "OfficialMetadataSource",
    "TargetVersionSource",
]
