"""Aggregate runtime builds from every configured distribution source."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Iterable, Sequence

from domain.runtime.models import CatalogEntry
from services.runtime.errors import SourceUnavailable
from services.runtime.sources import CatalogSource

_LOGGER = logging.getLogger(__name__)

__all__ = ["CatalogAggregator", "sort_catalog"]


def sort_catalog(entries: Iterable[CatalogEntry]) -> list[CatalogEntry]:
    """Group entries by source name, newest version first within a group."""

    by_version = sorted(entries, key=lambda entry: entry.version, reverse=True)
    return sorted(by_version, key=lambda entry: entry.source.value)


class CatalogAggregator:
    """Query sources concurrently and merge whatever they return."""

    def __init__(self, sources: Sequence[CatalogSource], *, max_workers: int | None = None) -> None:
        self._sources = list(sources)
        self._max_workers = max_workers

    @property
    def sources(self) -> tuple[CatalogSource, ...]:
        return tuple(self._sources)

    def fetch_all(self) -> list[CatalogEntry]:
        """Return the merged catalog once every source has finished.

        A source that fails contributes nothing; it never cancels or delays
        the others.
        """

        if not self._sources:
            return []

        workers = self._max_workers or len(self._sources)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="decanter-catalog") as executor:
            futures = {executor.submit(source.fetch): source for source in self._sources}
            wait(futures)

        entries: set[CatalogEntry] = set()
        for future, source in futures.items():
            entry = self._collect(future, source)
            if entry is not None:
                entries.add(entry)

        catalog = sort_catalog(entries)
        _LOGGER.info(
            "Runtime catalog contains %s entries from %s sources",
            len(catalog),
            len(self._sources),
        )
        return catalog

    def _collect(self, future: Future, source: CatalogSource) -> CatalogEntry | None:
        try:
            entry = future.result()
        except SourceUnavailable as exc:
            _LOGGER.info("Catalog source %s unavailable: %s", source.name, exc)
            return None
        except Exception:
            _LOGGER.exception("Unexpected error from catalog source %s", source.name)
            return None

        if entry is None:
            _LOGGER.debug("Catalog source %s returned no runtime", source.name)
            return None
        _LOGGER.debug("Catalog source %s offers %s at %s", source.name, entry.version, entry.download_url)
        return entry
