from __future__ import annotations

import pytest

from shared.result import Result


def test_capture_wraps_expected_errors() -> None:
    def fail() -> int:
        raise KeyError("missing")

    result = Result.capture(fail, errors=(KeyError,))

    assert result.is_err()
    with pytest.raises(KeyError):
        result.unwrap()


def test_capture_lets_unexpected_errors_propagate() -> None:
    def fail() -> int:
        raise ValueError("boom")

    with pytest.raises(ValueError):
        Result.capture(fail, errors=(KeyError,))


def test_ok_result_unwraps_to_value() -> None:
    result = Result.capture(lambda left, right: left + right, 2, 3)

    assert result.is_ok()
    assert result.unwrap() == 5
