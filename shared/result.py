"""Outcome values for operations whose failures are expected and typed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Either a success value or the error that prevented one."""

    value: T | None = None
    error: E | None = None

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        return cls(value=value)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        return cls(error=error)

    @classmethod
    def capture(
        cls,
        operation: Callable[..., T],
        *args: object,
        errors: tuple[type[BaseException], ...] = (Exception,),
    ) -> Result[T, E]:
        """Run ``operation`` and wrap its return value or one of ``errors``.

        Exceptions outside ``errors`` propagate unchanged.
        """

        try:
            return cls.ok(operation(*args))
        except errors as exc:
            return cls.err(exc)  # type: ignore[arg-type]

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> T:
        """Return the value or raise the stored error."""

        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value


__all__ = ["Result"]
