"""Cancellable archive downloads that report progress as they go."""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator
from urllib.parse import unquote, urlparse
from urllib.request import urlopen

from domain.runtime.models import StagedArchive
from services.runtime.constants import SUPPORTED_ARCHIVE_SUFFIXES
from services.runtime.errors import DownloadCancelled, DownloadError, UnsupportedArchive
from services.runtime.transport import DEFAULT_USER_AGENT, build_request, local_path_for_url

_LOGGER = logging.getLogger(__name__)

__all__ = ["ArchiveDownload", "DownloadProgress", "archive_suffix"]


@dataclass(frozen=True)
class DownloadProgress:
    completed_bytes: int
    total_bytes: int | None

    @property
    def fraction(self) -> float | None:
        if not self.total_bytes:
            return None
        return min(max(self.completed_bytes / self.total_bytes, 0.0), 1.0)


def archive_suffix(url: str) -> str | None:
    """Return the supported archive suffix named by ``url``'s path."""

    path = unquote(urlparse(url).path).lower()
    for suffix in SUPPORTED_ARCHIVE_SUFFIXES:
        if path.endswith(suffix):
            return suffix
    return None


class ArchiveDownload:
    """Download ``url`` into a private temporary directory.

    Iterating the object performs the transfer and yields
    :class:`DownloadProgress` samples.  It can be iterated only once.  If the
    transfer fails, is cancelled, or the consumer stops early, the partial
    file and its directory are removed before control returns.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float,
        chunk_size: int = 64 * 1024,
        user_agent: str = DEFAULT_USER_AGENT,
        opener: Callable | None = None,
    ) -> None:
        suffix = archive_suffix(url)
        if suffix is None:
            raise UnsupportedArchive(f"Runtime archives must be .tar.gz or .tar.xz: {url}")
        self._url = url
        self._suffix = suffix
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._user_agent = user_agent
        self._opener = opener or urlopen
        self._cancelled = threading.Event()
        self._started = False
        self._staged: StagedArchive | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def completed(self) -> bool:
        return self._staged is not None

    def cancel(self) -> None:
        self._cancelled.set()

    def __iter__(self) -> Iterator[DownloadProgress]:
        if self._started:
            raise DownloadError("A download can only be iterated once")
        self._started = True
        return self._transfer()

    def run(self, on_progress: Callable[[DownloadProgress], None] | None = None) -> StagedArchive:
        """Drive the download to completion and return the staged archive."""

        for progress in self:
            if on_progress is not None:
                on_progress(progress)
        return self.staged()

    def staged(self) -> StagedArchive:
        if self._staged is None:
            raise DownloadError("Download has not completed")
        return self._staged

    def _transfer(self) -> Iterator[DownloadProgress]:
        target_dir = Path(tempfile.mkdtemp(prefix="decanter-download-"))
        target_path = target_dir / f"runtime{self._suffix}"
        finished = False
        try:
            _LOGGER.info("Downloading runtime archive from %s", self._url)
            yield from self._copy_into(target_path)
            if self._cancelled.is_set():
                raise DownloadCancelled(f"Download of {self._url} was cancelled")
            finished = True
        finally:
            if not finished:
                _LOGGER.info("Discarding partial download of %s", self._url)
                shutil.rmtree(target_dir, ignore_errors=True)

        self._staged = StagedArchive(path=target_path, owned_dir=target_dir)
        _LOGGER.debug("Runtime archive stored at %s", target_path)

    def _copy_into(self, target_path: Path) -> Iterator[DownloadProgress]:
        local_path = local_path_for_url(self._url)
        try:
            if local_path is not None:
                total = local_path.stat().st_size
                with local_path.open("rb") as source, target_path.open("wb") as destination:
                    yield from self._pump(source, destination, total)
                return

            request = build_request(self._url, user_agent=self._user_agent)
            with self._opener(request, timeout=self._timeout) as response:  # nosec - HTTPS
                length = response.headers.get("Content-Length") if response.headers else None
                total = int(length) if length and length.isdigit() else None
                with target_path.open("wb") as destination:
                    yield from self._pump(response, destination, total)
        except DownloadError:
            raise
        except (OSError, ValueError) as exc:
            raise DownloadError(f"Runtime download failed: {exc}") from exc

    def _pump(self, source, destination, total: int | None) -> Iterator[DownloadProgress]:
        completed = 0
        yield DownloadProgress(completed, total)
        while True:
            if self._cancelled.is_set():
                raise DownloadCancelled(f"Download of {self._url} was cancelled")
            chunk = source.read(self._chunk_size)
            if not chunk:
                break
            destination.write(chunk)
            completed += len(chunk)
            yield DownloadProgress(completed, total)
