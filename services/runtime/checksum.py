"""SHA-256 verification of downloaded runtime archives."""

from __future__ import annotations

import hashlib
import logging
import string
from pathlib import Path
from typing import Callable

from app.config import DistributionConfig
from services.runtime.constants import CHECKSUM_LENGTH
from services.runtime.errors import ChecksumMismatch, ChecksumUnavailable, SourceUnavailable

_LOGGER = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)
_CHUNK_SIZE = 64 * 1024

__all__ = [
    "ArchiveVerifier",
    "calculate_sha256",
    "checksum_url_for",
    "parse_checksum_text",
    "verify_checksum",
]


def calculate_sha256(path: Path, *, chunk_size: int = _CHUNK_SIZE) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as source:
        for chunk in iter(lambda: source.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def parse_checksum_text(text: str) -> str | None:
    """Return the lower-cased digest leading ``text`` or ``None`` if malformed."""

    tokens = text.split()
    if not tokens:
        return None
    checksum = tokens[0]
    if len(checksum) != CHECKSUM_LENGTH or not set(checksum) <= _HEX_DIGITS:
        return None
    return checksum.lower()


def checksum_url_for(download_url: str, distribution: DistributionConfig) -> str:
    """Return where the checksum for ``download_url`` is published."""

    if download_url == distribution.archive_url:
        return distribution.checksum_url
    return f"{download_url}.sha256"


class ArchiveVerifier:
    """Compare a downloaded archive against its published checksum."""

    def __init__(self, checksum_url: str, *, fetch: Callable[[str], bytes]) -> None:
        self._checksum_url = checksum_url
        self._fetch = fetch

    @property
    def checksum_url(self) -> str:
        return self._checksum_url

    def fetch_expected_checksum(self) -> str:
        """Fetch the published checksum or raise :class:`ChecksumUnavailable`."""

        try:
            body = self._fetch(self._checksum_url)
        except SourceUnavailable as exc:
            raise ChecksumUnavailable(f"Checksum resource {self._checksum_url} unavailable: {exc}") from exc
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ChecksumUnavailable(f"Checksum resource {self._checksum_url} was not UTF-8 text") from exc

        checksum = parse_checksum_text(text)
        if checksum is None:
            raise ChecksumUnavailable(
                f"Checksum resource {self._checksum_url} did not start with a SHA-256 digest"
            )
        return checksum

    def expected_checksum(self) -> str | None:
        """Best-effort variant of :meth:`fetch_expected_checksum`."""

        try:
            return self.fetch_expected_checksum()
        except ChecksumUnavailable as exc:
            _LOGGER.debug("%s", exc)
            return None

    def actual_checksum(self, archive_path: Path) -> str:
        return calculate_sha256(archive_path)

    def verify(self, archive_path: Path, expected: str | None = None) -> str | None:
        """Check ``archive_path`` and return the verified digest.

        ``expected`` defaults to the published checksum.  Raises
        :class:`ChecksumMismatch` on disagreement; returns ``None`` after
        logging a warning when no checksum is available.
        """

        if expected is None:
            expected = self.expected_checksum()
        if expected is None:
            _LOGGER.warning(
                "Runtime checksum was unavailable from %s. Continuing without checksum verification.",
                self._checksum_url,
            )
            return None
        return verify_checksum(archive_path, expected)


def verify_checksum(archive_path: Path, expected: str) -> str:
    actual = calculate_sha256(archive_path)
    if actual.lower() != expected.strip().lower():
        raise ChecksumMismatch(expected.strip().lower(), actual)
    _LOGGER.info("Verified checksum of %s", archive_path.name)
    return actual
