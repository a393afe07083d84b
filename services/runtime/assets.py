"""Select the downloadable archive from a release's asset list."""

from __future__ import annotations

from typing import Iterable, Mapping

__all__ = ["preferred_asset_url"]

_FLAVOUR_PRIORITY = ("stable", "staging", "devel")


def preferred_asset_url(
    assets: Iterable[Mapping[str, object]],
    *,
    ident: str = "wine",
    extension: str = ".tar.xz",
) -> str | None:
    """Return the download URL of the best archive asset.

    Stable builds win over staging, staging over devel; otherwise the first
    asset with the right extension is used.
    """

    usable: list[tuple[str, str]] = []
    for asset in assets:
        if not isinstance(asset, Mapping):
            continue
        name = asset.get("name")
        url = asset.get("browser_download_url")
        if not isinstance(name, str) or not isinstance(url, str) or not url.strip():
            continue
        if name.endswith(extension):
            usable.append((name, url.strip()))

    for flavour in _FLAVOUR_PRIORITY:
        marker = f"{ident}-{flavour}"
        for name, url in usable:
            if marker in name:
                return url

    if usable:
        return usable[0][1]
    return None
