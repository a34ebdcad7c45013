"""Common asyncronous operators."""

from collections.abc import (
    AsyncGenerator,
    AsyncIterable,
    Callable,
    Iterable,
    Mapping,
)
from logging import getLogger
from typing import Any, TypeVar

from httpf.core import Operator
from httpf.utils import resolve

logger = getLogger(__name__)

T = TypeVar("T")
TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


def _require_count(name: str, value: int, minimum: int = 0) -> int:
    if value < minimum:
        raise ValueError(f"{name} must be at least {minimum}, got {value}.")
    return value


class Map(Operator[TInput, TOutput]):
    """Asyncronously map a function over an iterable."""

    def __init__(self, op: Callable[[TInput], TOutput]):
        """
        Create a new `Map` operator.

        :param op: The function to invoke with each element. If it
            returns an awaitable, the awaited value is yielded.
        """

        self._op = op

    async def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TOutput, None]:
        """
        Create an `AsyncGenerator` that invokes the `op` function on
        each item of `iterable` and yields the result.
        """

        op = self._op
        async for item in iterable:
            yield await resolve(op(item))


class Filter(Operator[TInput, TInput]):
    """Asyncronously filter an iterable."""

    def __init__(
        self,
        predicate: Callable[[TInput], Any],
        negate: bool = False,
    ):
        """
        Create a new `Filter` operator.

        :param predicate: The function to check each element. May
            return an awaitable.
        :param negate: Keep the elements the predicate rejects instead.
        """

        self._predicate = predicate
        self._negate = negate

    async def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TInput, None]:
        """
        Create an `AsyncGenerator` that yields each item of `iterable`
        for which the `predicate` function returns a truthy value.
        """

        pred = self._predicate
        negate = self._negate
        async for item in iterable:
            if bool(await resolve(pred(item))) is not negate:
                yield item


class Take(Operator[T, T]):
    """Relay the first `count` items, then stop pulling."""

    def __init__(self, count: int):
        self._count = _require_count("count", count)

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        remaining = self._count
        if remaining == 0:
            return
        async for item in iterable:
            yield item
            remaining -= 1
            if remaining == 0:
                return


class Drop(Operator[T, T]):
    """Skip the first `count` items and relay the rest."""

    def __init__(self, count: int):
        self._count = _require_count("count", count)

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        skip = self._count
        async for item in iterable:
            if skip:
                skip -= 1
                continue
            yield item


class TakeWhile(Operator[T, T]):
    """Relay items until `predicate` first fails."""

    def __init__(self, predicate: Callable[[T], Any]):
        self._predicate = predicate

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        pred = self._predicate
        async for item in iterable:
            if not await resolve(pred(item)):
                return
            yield item


class DropWhile(Operator[T, T]):
    """Skip items while `predicate` holds, then relay everything."""

    def __init__(self, predicate: Callable[[T], Any]):
        self._predicate = predicate

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        pred = self._predicate
        dropping = True
        async for item in iterable:
            if dropping and await resolve(pred(item)):
                continue
            dropping = False
            yield item


class Chunk(Operator[T, list[T]]):
    """
    Group items into lists of `size`.

    The last list is shorter when the item count is not a multiple of
    `size`. Empty input produces no lists.
    """

    def __init__(self, size: int):
        self._size = _require_count("size", size, minimum=1)

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[list[T], None]:
        size = self._size
        buffer: list[T] = []
        async for item in iterable:
            buffer.append(item)
            if len(buffer) == size:
                yield buffer
                buffer = []
        if buffer:
            yield buffer


class Peek(Operator[T, T]):
    """Call a function for every item and relay the item unchanged."""

    def __init__(self, op: Callable[[T], Any]):
        self._op = op

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        op = self._op
        async for item in iterable:
            await resolve(op(item))
            yield item


class Sort(Operator[T, T]):
    """
    Syncronously sort an asynchronous iterable.

    This operator is a little different than most others in that it
    operates on a complete collection rather than a stream of items.
    It accumulates an entire collection before sorting it. After
    which it yields each item in sorted order. It still maintains an
    asynchronous interface even though it basically operates
    synchronously.
    """

    def __init__(self, **kwargs):
        """
        Create a new `Sort` operator.

        :param kwargs: The keyword arguments to pass to the
            built-in :py:func:`sorted`.
        """

        self._kwargs = kwargs

    async def _run(
        self,
        iterable: AsyncIterable[T],
    ) -> AsyncGenerator[T, None]:
        kwargs = self._kwargs
        items = sorted([x async for x in iterable], **kwargs)
        for x in items:
            yield x


class FlatMap(Operator[TInput, TOutput]):
    """
    Map each item to a group of items and concatenate the groups.

    The mapper is synchronous and must return a finite iterable. Every
    element of one group is yielded, in order, before the next item is
    pulled from upstream.
    """

    def __init__(self, mapper: Callable[[TInput], Iterable[TOutput]]):
        self._mapper = mapper

    async def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TOutput, None]:
        mapper = self._mapper
        async for item in iterable:
            for inner in mapper(item):
                yield inner


class CatchError(Operator[TInput, TInput | TOutput]):
    """
    Replace a failure with a substitute value.

    Items are relayed unchanged until iterating the upstream raises an
    :py:class:`Exception`. The error is then handed to `handler`, its
    return value is yielded as the last item, and the generator ends
    normally. Items relayed before the failure are kept.
    """

    def __init__(self, handler: Callable[[Exception], TOutput]):
        """
        Create a new `CatchError` operator.

        :param handler: Called with the error, returns the substitute.
        """

        self._handler = handler

    async def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TInput | TOutput, None]:
        try:
            async for item in iterable:
                yield item
        except Exception as error:
            logger.debug(f"Substituting {error!r}")
            yield self._handler(error)


class Pluck(Operator[Any, Any]):
    """
    Extract one field from every item.

    Mappings are indexed with `key`; any other object has the attribute
    `key` read from it.
    """

    def __init__(self, key: str):
        self._key = key

    async def _run(
        self,
        iterable: AsyncIterable[Any],
    ) -> AsyncGenerator[Any, None]:
        key = self._key
        async for item in iterable:
            if isinstance(item, Mapping):
                yield item[key]
            else:
                yield getattr(item, key)


def pluck(key: str) -> Pluck:
    """Shorthand for :py:class:`Pluck`, for use with `chain`."""
    return Pluck(key)
