"""Semantic runtime versions and release tag normalisation."""

from __future__ import annotations

import re
from dataclasses import dataclass

from packaging.version import InvalidVersion
from packaging.version import Version as _PackagingVersion

__all__ = ["Version", "normalize_version_tag"]

_LEADING_NUMERIC = re.compile(r"[0-9.]*")


@dataclass(frozen=True, order=True)
class Version:
    """A ``major.minor.patch`` runtime version ordered component-wise."""

    major: int
    minor: int = 0
    patch: int = 0

    def __post_init__(self) -> None:
        for component in (self.major, self.minor, self.patch):
            if isinstance(component, bool) or not isinstance(component, int):
                raise TypeError(f"Version components must be integers: {component!r}")
            if component < 0:
                raise ValueError(f"Version components must be non-negative: {component}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @classmethod
    def parse(cls, text: object) -> Version | None:
        """Return the :class:`Version` described by ``text`` or ``None``.

        One to three numeric components are accepted (``"9"``, ``"9.21"``,
        ``"9.21.0"``); missing components default to zero.  Anything carrying
        pre-release, post-release, local or epoch segments is rejected so that
        registry directory names map one-to-one onto versions.
        """

        if not isinstance(text, str):
            return None
        candidate = text.strip()
        if not candidate or not candidate[0].isdigit():
            return None
        try:
            parsed = _PackagingVersion(candidate)
        except InvalidVersion:
            return None
        if parsed.epoch or parsed.pre or parsed.post is not None or parsed.dev is not None:
            return None
        if parsed.local is not None:
            return None
        release = parsed.release
        if not 1 <= len(release) <= 3:
            return None
        if candidate.count(".") != len(release) - 1:
            return None
        padded = tuple(release) + (0,) * (3 - len(release))
        return cls(*padded)

    @classmethod
    def from_components(cls, components: object) -> Version | None:
        """Build a version from a ``{major, minor, patch}`` mapping or sequence."""

        if isinstance(components, dict):
            values = [components.get(key, 0) for key in ("major", "minor", "patch")]
        elif isinstance(components, (list, tuple)):
            values = list(components)
        else:
            return None
        if not 1 <= len(values) <= 3:
            return None
        if any(isinstance(value, bool) or not isinstance(value, int) or value < 0 for value in values):
            return None
        return cls(*values)


def normalize_version_tag(tag: str) -> str | None:
    """Strip release-tag decoration such as ``wine-`` or ``v`` prefixes.

    The leading numeric portion is kept, so ``"wine-8.0.1-rc1"`` becomes
    ``"8.0.1"``.  When that yields nothing the looser rule of removing every
    ``wine-`` and ``v`` is applied instead.
    """

    value = tag.strip()
    if not value:
        return None

    stripped = value
    if stripped.startswith("wine-"):
        stripped = stripped[len("wine-"):]
    if stripped.startswith("v"):
        stripped = stripped[1:]

    numeric = _LEADING_NUMERIC.match(stripped)
    normalized = numeric.group(0).rstrip(".") if numeric else ""
    if normalized:
        return normalized

    fallback = value.replace("wine-", "").replace("v", "").strip()
    if not any(character.isdigit() for character in fallback):
        return None
    return fallback
