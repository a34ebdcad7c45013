"""Sequences extended with error handling, retries and flattening."""

from collections.abc import (
    AsyncGenerator,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
)
from logging import getLogger
from typing import Any, Generic, TypeVar

from anyio import sleep
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream

from httpf.algorithm import CatchError, FlatMap
from httpf.core import Operator
from httpf.errors import ReplayError
from httpf.seq import Detachable, Recipe, Seq

logger = getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


def _is_sequence(value: Any) -> bool:
    """Whether `value` looks like a sequence that should be extended."""
    return isinstance(value, AsyncIterable) and callable(
        getattr(value, "map", None)
    )


def _lift(result: Any) -> Any:
    if isinstance(result, ExtendedStream):
        return result
    if _is_sequence(result):
        return wrap(result)
    return result


def _retry_recipe(
    upstream: Recipe,
    max_retries: int,
    delay: float,
) -> Recipe:
    async def attempts() -> AsyncGenerator:
        attempt = 0
        last_error: Exception | None = None
        while attempt <= max_retries:
            if attempt and delay:
                await sleep(delay)
            try:
                async for item in upstream():
                    yield item
                return
            except ReplayError:
                if last_error is None:
                    raise
                logger.warning("The source cannot start over")
                break
            except Exception as error:
                last_error = error
                attempt += 1
                logger.warning(
                    f"Attempt {attempt} of {max_retries + 1} failed: "
                    f"{error!r}"
                )

        logger.error(f"Giving up after {attempt} attempts")
        raise last_error  # type: ignore[misc]

    return attempts


class ExtendedStream(Generic[T]):
    """
    A :py:class:`Seq` with `catch_error`, `retry` and `merge_map`.

    Every operation of :py:class:`Seq` is available and forwards to the
    wrapped sequence. Whenever the result is itself a sequence it is
    wrapped again, so the extra operations survive any amount of
    chaining. Terminal operations return their coroutine unchanged.

    Instances are immutable and own their underlying sequence. Build
    them with :py:func:`wrap`.
    """

    def __init__(self, seq: Seq[T]):
        self._seq = seq

    def __aiter__(self) -> AsyncIterator[T]:
        return aiter(self._seq)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} of {self._seq!r}>"

    @property
    def consumed(self) -> bool:
        """Whether the underlying sequence was iterated or derived from."""
        return self._seq.consumed

    def detach(self) -> Recipe:
        """Take ownership of the underlying data flow."""
        return self._seq.detach()

    # Added operations.

    def catch_error(
        self,
        handler: Callable[[Exception], E],
    ) -> "ExtendedStream[T | E]":
        """
        Absorb a failure by substituting a value.

        The new stream relays every item. If the upstream fails,
        ``handler(error)`` is yielded as the final item and the stream
        ends normally. Items that came before the failure are kept.

        :param handler: Maps the error to its substitute.
        """

        return ExtendedStream(self._seq.pipe(CatchError(handler)))

    def retry(
        self,
        max_retries: int,
        delay: float = 0.0,
    ) -> "ExtendedStream[T]":
        """
        Re-run the upstream data flow when it fails.

        Every attempt starts the whole upstream over, including the
        request that produced it. The first attempt that completes ends
        the stream. After `max_retries` failed retries the last error is
        raised. Items relayed by a failed attempt are not taken back, so
        a later attempt may yield them again.

        :param max_retries: Additional attempts after the first one.
            ``retry(0)`` makes a single attempt.
        :param delay: Seconds to wait before each retry.

        :raises ValueError: If `max_retries` is negative.
        """

        if max_retries < 0:
            raise ValueError(
                f"max_retries must be at least 0, got {max_retries}."
            )
        recipe = _retry_recipe(self._seq.detach(), max_retries, delay)
        return ExtendedStream(Seq(recipe))

    def merge_map(
        self,
        mapper: Callable[[T], Iterable[U]],
    ) -> "ExtendedStream[U]":
        """
        Map every item to a group of items and flatten them in order.

        :param mapper: Synchronous function returning a finite iterable.
        """

        return ExtendedStream(self._seq.pipe(FlatMap(mapper)))

    # Forwarded lazy operations.

    def pipe(self, *operators: Operator) -> "ExtendedStream":
        return _lift(self._seq.pipe(*operators))

    def chain(self, func: Callable[[Seq[T]], Any]) -> "ExtendedStream":
        return _lift(self._seq.chain(func))

    def map(self, func: Callable[[T], U]) -> "ExtendedStream[U]":
        return _lift(self._seq.map(func))

    def filter(self, predicate: Callable[[T], Any]) -> "ExtendedStream[T]":
        return _lift(self._seq.filter(predicate))

    def reject(self, predicate: Callable[[T], Any]) -> "ExtendedStream[T]":
        return _lift(self._seq.reject(predicate))

    def take(self, count: int) -> "ExtendedStream[T]":
        return _lift(self._seq.take(count))

    def drop(self, count: int) -> "ExtendedStream[T]":
        return _lift(self._seq.drop(count))

    def take_while(
        self,
        predicate: Callable[[T], Any],
    ) -> "ExtendedStream[T]":
        return _lift(self._seq.take_while(predicate))

    def drop_while(
        self,
        predicate: Callable[[T], Any],
    ) -> "ExtendedStream[T]":
        return _lift(self._seq.drop_while(predicate))

    def chunk(self, size: int) -> "ExtendedStream[list[T]]":
        return _lift(self._seq.chunk(size))

    def peek(self, func: Callable[[T], Any]) -> "ExtendedStream[T]":
        return _lift(self._seq.peek(func))

    def sort(self, **kwargs) -> "ExtendedStream[T]":
        return _lift(self._seq.sort(**kwargs))

    def concat(
        self,
        *others: Detachable | AsyncIterable | Iterable,
    ) -> "ExtendedStream":
        return _lift(self._seq.concat(*others))

    # Forwarded terminal operations.

    def head(self, default: Any = None):
        return _lift(self._seq.head(default))

    def to_list(self):
        return _lift(self._seq.to_list())

    def reduce(self, func: Callable[[Any, T], Any], *initial: Any):
        return _lift(self._seq.reduce(func, *initial))

    def each(self, func: Callable[[T], Any]):
        return _lift(self._seq.each(func))

    def find(self, predicate: Callable[[T], Any], default: Any = None):
        return _lift(self._seq.find(predicate, default))

    def some(self, predicate: Callable[[T], Any]):
        return _lift(self._seq.some(predicate))

    def every(self, predicate: Callable[[T], Any]):
        return _lift(self._seq.every(predicate))

    def count(self):
        return _lift(self._seq.count())

    def to_stream(self, tg: TaskGroup) -> MemoryObjectReceiveStream[T]:
        return _lift(self._seq.to_stream(tg))


def wrap(
    source: Detachable | Recipe | AsyncIterable[T] | Iterable[T],
) -> ExtendedStream[T]:
    """
    Extend `source` with `catch_error`, `retry` and `merge_map`.

    `source` may be a recipe (a callable such as an async generator
    function), a `Seq`, another `ExtendedStream`, or any iterable. A
    recipe lets `retry` start the data flow over. An iterator can only
    run once: `retry` then raises the error of its single attempt.
    """

    return ExtendedStream(Seq.of(source))
