"""
The ``(data, error)`` pair handed to adapter callers.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, NamedTuple, Optional, TypeVar

T = TypeVar("T")

ReplyCallback = Callable[[Optional[Any], Optional[Any]], None]


class Reply(NamedTuple, Generic[T]):
    """Data-first result pair. At most one side is populated."""

    data: Optional[T]
    error: Optional[Any]

    @classmethod
    def ok(cls, data: T) -> "Reply[T]":
        return cls(data, None)

    @classmethod
    def failed(cls, error: Any) -> "Reply[T]":
        return cls(None, error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def deliver(self, callback: Optional[ReplyCallback]) -> "Reply[T]":
        """Invoke ``callback(data, error)`` when one was supplied and return ``self``."""

        if callback is not None:
            callback(self.data, self.error)
        return self
