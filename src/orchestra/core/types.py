"""Core types for Orchestra - the Result type and shared aliases.

``Result[T, E]`` carries expected failures (a language-model call that
errored, a storage write that failed) without raising. Exceptions stay
reserved for caller mistakes and bugs.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast


@dataclass(frozen=True, slots=True)
class Result[T, E]:
    """Either a success value (Ok) or an error value (Err).

    Usage:
        result = await llm.complete(messages, config)
        if result.is_err:
            return handle(result.error)
        response = result.value
    """

    _value: T | None
    _error: E | None
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> Result[T, E]:
        """Wrap a success value."""
        return cls(_value=value, _error=None, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> Result[T, E]:
        """Wrap an error value."""
        return cls(_value=None, _error=error, _is_ok=False)

    @property
    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def is_err(self) -> bool:
        return not self._is_ok

    def __repr__(self) -> str:
        if self._is_ok:
            return f"Ok({self._value!r})"
        return f"Err({self._error!r})"

    @property
    def value(self) -> T:
        """The Ok value. Raises ValueError on an Err result."""
        if not self._is_ok:
            msg = "Cannot access value on Err result"
            raise ValueError(msg)
        return cast(T, self._value)

    @property
    def error(self) -> E:
        """The Err value. Raises ValueError on an Ok result."""
        if self._is_ok:
            msg = "Cannot access error on Ok result"
            raise ValueError(msg)
        return cast(E, self._error)

    def unwrap(self) -> T:
        """Return the Ok value, or raise the error if it is an exception.

        Raises:
            The wrapped error when it is a ``BaseException``; otherwise a
            ValueError carrying its string form.
        """
        if self._is_ok:
            return cast(T, self._value)
        if isinstance(self._error, BaseException):
            raise self._error
        raise ValueError(str(self._error))

    def unwrap_or(self, default: T) -> T:
        """Return the Ok value or ``default`` when this is an Err."""
        if self._is_ok:
            return cast(T, self._value)
        return default

    def map[U](self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to the Ok value; pass an Err through unchanged."""
        if self._is_ok:
            return Result.ok(fn(cast(T, self._value)))
        return Result.err(cast(E, self._error))

    def map_err[F](self, fn: Callable[[E], F]) -> Result[T, F]:
        """Apply ``fn`` to the Err value; pass an Ok through unchanged."""
        if self._is_ok:
            return Result.ok(cast(T, self._value))
        return Result.err(fn(cast(E, self._error)))

    def and_then[U](self, fn: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        """Chain a Result-producing step onto an Ok value."""
        if self._is_ok:
            return fn(cast(T, self._value))
        return Result.err(cast(E, self._error))


Metadata = dict[str, Any]
"""Free-form, JSON-serializable metadata attached to results and messages."""

AgentId = str
"""Stable agent identifier, e.g. ``"planner"``."""

TaskId = str
"""Task identifier assigned by the caller or generated on creation."""
