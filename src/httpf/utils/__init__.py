"""Utility components for httpf."""

from .iteration import (
    as_async_iterable,
    empty,
    iter_to_stream,
    resolve,
    wrap_async,
)

__all__ = [
    "as_async_iterable",
    "empty",
    "iter_to_stream",
    "resolve",
    "wrap_async",
]
