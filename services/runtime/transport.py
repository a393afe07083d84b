"""Fetch small remote or local resources with a bounded timeout."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.error import URLError
from urllib.parse import urlparse
from urllib.request import Request, url2pathname, urlopen

from services.runtime.errors import SourceUnavailable

_LOGGER = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "decanter-runtime-manager"

__all__ = ["build_request", "fetch_bytes", "local_path_for_url"]


def local_path_for_url(url: str) -> Path | None:
    """Return the filesystem path for a ``file://`` URL, else ``None``."""

    parsed = urlparse(url)
    if parsed.scheme != "file":
        return None
    return Path(url2pathname(parsed.path))


def build_request(url: str, *, user_agent: str = DEFAULT_USER_AGENT) -> Request:
    return Request(url, headers={"User-Agent": user_agent})


def fetch_bytes(url: str, *, timeout: float, user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    """Return the body stored at ``url``.

    Raises :class:`SourceUnavailable` for any transport failure, including
    timeouts, so callers can treat every failure as absence of data.
    """

    local_path = local_path_for_url(url)
    if local_path is not None:
        try:
            return local_path.read_bytes()
        except OSError as exc:
            raise SourceUnavailable(f"Failed to read {local_path}: {exc}") from exc

    try:
        with urlopen(build_request(url, user_agent=user_agent), timeout=timeout) as response:  # nosec - HTTPS
            return response.read()
    except (OSError, URLError, ValueError) as exc:
        _LOGGER.debug("Request to %s failed: %s", url, exc)
        raise SourceUnavailable(f"Failed to fetch {url}: {exc}") from exc
