"""Version reported by ``decanter --version``."""

from __future__ import annotations

import logging
from functools import lru_cache
from importlib import metadata, resources

_LOGGER = logging.getLogger(__name__)

DISTRIBUTION_NAME = "decanter"
_FALLBACK_VERSION = "0.0.0-dev"


def _installed_version() -> str | None:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        _LOGGER.debug("Distribution %s is not installed", DISTRIBUTION_NAME)
        return None


def _bundled_version() -> str | None:
    try:
        text = resources.files("app").joinpath("VERSION").read_text(encoding="utf-8")
    except (FileNotFoundError, ModuleNotFoundError):
        return None
    return text.strip() or None


@lru_cache(maxsize=1)
def get_app_version() -> str:
    """Return the installed distribution version.

    A source checkout that was never installed reports the ``VERSION`` file
    shipped with the ``app`` package instead.
    """

    return _installed_version() or _bundled_version() or _FALLBACK_VERSION


__all__ = ["DISTRIBUTION_NAME", "get_app_version"]
