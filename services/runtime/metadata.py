"""Read and write the runtime version metadata property list."""

from __future__ import annotations

import plistlib

from domain.runtime.version import Version
from services.runtime.errors import SourceUnavailable

__all__ = ["encode_version_metadata", "parse_version_metadata"]


def parse_version_metadata(data: bytes) -> Version:
    """Return the version recorded in a metadata document.

    The canonical form is ``{"version": "9.0.0"}``.  Older documents store
    the version as a ``{major, minor, patch}`` dictionary, a component list or
    a bare number, and those are accepted too.
    """

    try:
        payload = plistlib.loads(data)
    except (plistlib.InvalidFileException, ValueError, TypeError) as exc:
        raise SourceUnavailable(f"Version metadata could not be decoded: {exc}") from exc

    raw = payload.get("version") if isinstance(payload, dict) else payload
    version = _coerce_version(raw)
    if version is None:
        raise SourceUnavailable(f"Version metadata did not contain a usable version: {raw!r}")
    return version


def encode_version_metadata(version: Version) -> bytes:
    return plistlib.dumps({"version": str(version)})


def _coerce_version(raw: object) -> Version | None:
    if isinstance(raw, str):
        return Version.parse(raw)
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return Version.from_components([raw])
    if isinstance(raw, float):
        return Version.parse(repr(raw)) if raw >= 0 else None
    return Version.from_components(raw)
