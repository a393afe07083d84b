from __future__ import annotations

from domain.runtime import Version, resolve_version


def test_exact_match_wins() -> None:
    candidates = [Version(9, 19, 0), Version(9, 21, 0), Version(9, 25, 0)]
    assert resolve_version(Version(9, 21, 0), candidates) == Version(9, 21, 0)


def test_nearest_lower_candidate_is_preferred() -> None:
    candidates = [Version(9, 19, 0), Version(9, 5, 0)]
    assert resolve_version(Version(9, 21, 0), candidates) == Version(9, 19, 0)


def test_falls_back_to_newest_of_the_same_major() -> None:
    assert resolve_version(Version(9, 21, 0), [Version(9, 25, 0)]) == Version(9, 25, 0)
    assert resolve_version(Version(9, 21, 0), [Version(9, 30, 0), Version(9, 22, 0)]) == Version(9, 30, 0)


def test_other_major_lines_are_ignored() -> None:
    candidates = [Version(8, 0, 1), Version(10, 0, 0), Version(9, 1, 0)]
    assert resolve_version(Version(9, 21, 0), candidates) == Version(9, 1, 0)


def test_no_same_major_candidate_resolves_to_nothing() -> None:
    assert resolve_version(Version(9, 21, 0), []) is None
    assert resolve_version(Version(9, 21, 0), [Version(8, 0, 1), Version(10, 0, 0)]) is None


def test_accepts_any_iterable() -> None:
    candidates = {Version(11, 1, 0): "a", Version(11, 3, 0): "b"}
    assert resolve_version(Version(11, 2, 0), candidates) == Version(11, 1, 0)
