"""Result envelope returned by every data-access operation.

Expected failure modes (row not found, constraint violation, lost
connection) are reported through ServiceResult rather than raised, so
callers always branch on ``is_success``.  Not-found is a *success* whose
value is None; only errors produce a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Either success(value) or failure(messages).

    A success never carries messages; a failure never carries a value and
    always carries at least one message.  Build instances through the
    ``success`` / ``failure`` class methods.
    """

    is_success: bool
    _value: T | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.is_success and self.errors:
            raise ValueError("a successful result cannot carry error messages")
        if not self.is_success:
            if self._value is not None:
                raise ValueError("a failed result cannot carry a value")
            if not self.errors:
                raise ValueError("a failed result needs at least one error message")

    @classmethod
    def success(cls, value: T | None = None) -> ServiceResult[T]:
        return cls(is_success=True, _value=value)

    @classmethod
    def failure(cls, messages: str | list[str] | tuple[str, ...]) -> ServiceResult[T]:
        if isinstance(messages, str):
            messages = (messages,)
        return cls(is_success=False, errors=tuple(messages))

    @property
    def value(self) -> T | None:
        """The success value.  Reading it from a failure is a programming error."""
        if not self.is_success:
            raise ValueError(f"no value on a failed result: {'; '.join(self.errors)}")
        return self._value

    @property
    def error(self) -> str | None:
        """First error message, or None on success."""
        return self.errors[0] if self.errors else None

    def __repr__(self) -> str:
        if self.is_success:
            return f"ServiceResult.success({self._value!r})"
        return f"ServiceResult.failure({list(self.errors)!r})"
