"""Pick the best runtime build for a requested version."""

from __future__ import annotations

from typing import Iterable

from domain.runtime.version import Version

__all__ = ["resolve_version"]


def resolve_version(target: Version, candidates: Iterable[Version]) -> Version | None:
    """Return the candidate that best satisfies ``target``.

    Only candidates sharing ``target.major`` are considered.  An exact match
    wins, then the newest candidate not above ``target``, then the newest
    candidate of that major line.  ``None`` when the major line is absent.
    """

    same_major = [candidate for candidate in candidates if candidate.major == target.major]
    if not same_major:
        return None
    if target in same_major:
        return target

    lower_or_equal = [candidate for candidate in same_major if candidate <= target]
    if lower_or_equal:
        return max(lower_or_equal)
    return max(same_major)
