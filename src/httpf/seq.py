"""The base functional sequence."""

from collections.abc import (
    AsyncGenerator,
    AsyncIterable,
    AsyncIterator,
    Callable,
    Iterable,
    Iterator,
)
from contextlib import asynccontextmanager
from typing import (
    Any,
    Generic,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream

from httpf.algorithm import (
    Chunk,
    Drop,
    DropWhile,
    Filter,
    Map,
    Peek,
    Sort,
    Take,
    TakeWhile,
)
from httpf.core import Operator, Pipeline
from httpf.errors import ReplayError
from httpf.utils import (
    as_async_iterable,
    empty,
    iter_to_stream,
    resolve,
)

T = TypeVar("T")
U = TypeVar("U")

Recipe = Callable[[], AsyncIterator]
"""Zero-argument callable starting a fresh run of a data flow."""

_MISSING: Any = object()


@runtime_checkable
class Detachable(Protocol):
    """Protocol identifying sources whose data flow can be taken over."""

    def detach(self) -> Recipe:
        """Take ownership of the data flow and return its recipe."""
        raise NotImplementedError()


def _once(source: AsyncIterator | Iterator) -> Recipe:
    """
    Make a recipe of an iterator, which can only run once.

    :raises ReplayError: When the recipe is called a second time.
    """

    started = False

    def recipe() -> AsyncIterator:
        nonlocal started
        if started:
            raise ReplayError()
        started = True
        return aiter(as_async_iterable(source))

    return recipe


@asynccontextmanager
async def _opened(
    iterable: AsyncIterable[T],
) -> AsyncGenerator[AsyncIterator[T], None]:
    iterator = aiter(iterable)
    try:
        yield iterator
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


class Seq(Generic[T]):
    """
    A lazy, single-use asynchronous sequence.

    A `Seq` holds a recipe: a callable that starts a new run of some
    data flow. Lazy operations return a new `Seq` whose recipe runs
    this one and transforms its items; nothing is executed until a
    terminal operation (or an `async for`) pulls.

    Consuming a `Seq` is a one-time affair, and so is deriving a new
    sequence from it: the derived one takes ownership of the data flow
    (see :py:meth:`detach`). Afterwards, iterating or deriving from the
    original yields nothing.
    """

    def __init__(self, recipe: Recipe):
        """
        Create a new `Seq` around `recipe`.

        :param recipe: Called once per run, returns an `AsyncIterator`.
        """

        self._recipe = recipe
        self.consumed = False

    @classmethod
    def of(
        cls,
        source: "Detachable | Recipe | AsyncIterable[T] | Iterable[T]",
    ) -> "Seq[T]":
        """
        Adapt `source` as a `Seq`.

        Another sequence hands its data flow over. A callable is used
        as the recipe; its return value may be any iterable. Re-iterable
        collections start over on every run, while iterators and
        generators can only run once.

        :raises TypeError: If `source` is none of the above.
        """

        if isinstance(source, Detachable):
            return cls(source.detach())
        if isinstance(source, AsyncIterator | Iterator):
            return cls(_once(source))
        if isinstance(source, AsyncIterable | Iterable):
            return cls(lambda: aiter(as_async_iterable(source)))
        if callable(source):
            return cls(lambda: aiter(as_async_iterable(source())))
        raise TypeError(
            f"Cannot build a sequence from {type(source).__name__}."
        )

    def detach(self) -> Recipe:
        """
        Take ownership of the data flow.

        The sequence counts as consumed afterwards. The returned recipe
        still starts a full run every time it is called, which is how
        derived sequences and `retry` run their upstream. Detaching a
        consumed sequence gives a recipe of nothing.
        """

        if self.consumed:
            return empty
        self.consumed = True
        return self._recipe

    def __aiter__(self) -> AsyncIterator[T]:
        return aiter(self.detach()())

    def __repr__(self) -> str:
        state = "consumed" if self.consumed else "pending"
        return f"<{type(self).__name__} {state}>"

    # Lazy operations.

    def pipe(self, *operators: Operator) -> "Seq":
        """
        Run every item through `operators`, in order.

        :param operators: The operators to apply.
        :return: A new sequence of the last operator's output.
        """

        operator = (
            operators[0] if len(operators) == 1 else Pipeline(*operators)
        )
        upstream = self.detach()
        return Seq(lambda: operator(upstream()))

    def chain(self, func: Callable[["Seq[T]"], Any]) -> "Seq":
        """
        Apply `func` to this whole sequence.

        `func` receives a fresh `Seq` on every run and must return an
        iterable (sync or async), which becomes the new sequence.
        Operators qualify, e.g. ``seq.chain(pluck("body"))``.

        :raises TypeError: At iteration time, if `func` did not return
            an iterable.
        """

        upstream = self.detach()

        def run() -> AsyncIterator:
            return aiter(as_async_iterable(func(Seq(upstream))))

        return Seq(run)

    def map(self, func: Callable[[T], U]) -> "Seq[U]":
        """Apply `func` to every item, awaiting awaitable results."""
        return self.pipe(Map(func))

    def filter(self, predicate: Callable[[T], Any]) -> "Seq[T]":
        """Keep the items `predicate` accepts."""
        return self.pipe(Filter(predicate))

    def reject(self, predicate: Callable[[T], Any]) -> "Seq[T]":
        """Drop the items `predicate` accepts."""
        return self.pipe(Filter(predicate, negate=True))

    def take(self, count: int) -> "Seq[T]":
        """Keep at most the first `count` items."""
        return self.pipe(Take(count))

    def drop(self, count: int) -> "Seq[T]":
        """Skip the first `count` items."""
        return self.pipe(Drop(count))

    def take_while(self, predicate: Callable[[T], Any]) -> "Seq[T]":
        return self.pipe(TakeWhile(predicate))

    def drop_while(self, predicate: Callable[[T], Any]) -> "Seq[T]":
        return self.pipe(DropWhile(predicate))

    def chunk(self, size: int) -> "Seq[list[T]]":
        """Group items into lists of `size`."""
        return self.pipe(Chunk(size))

    def peek(self, func: Callable[[T], Any]) -> "Seq[T]":
        """Call `func` on every item as it passes."""
        return self.pipe(Peek(func))

    def sort(self, **kwargs) -> "Seq[T]":
        """Sort the whole sequence; `kwargs` go to :py:func:`sorted`."""
        return self.pipe(Sort(**kwargs))

    def concat(
        self,
        *others: "Detachable | AsyncIterable | Iterable",
    ) -> "Seq":
        """Follow this sequence with the items of `others`."""

        recipes = [
            self.detach(),
            *(Seq.of(other).detach() for other in others),
        ]

        async def run() -> AsyncGenerator:
            for recipe in recipes:
                async for item in recipe():
                    yield item

        return Seq(run)

    # Terminal operations.

    async def head(self, default: Any = None) -> T | Any:
        """
        Pull the first item.

        :param default: Returned when the sequence is empty.
        """

        async with _opened(self) as iterator:
            async for item in iterator:
                return item
        return default

    async def to_list(self) -> list[T]:
        """Drain the sequence into a list."""
        async with _opened(self) as iterator:
            return [item async for item in iterator]

    async def reduce(
        self,
        func: Callable[[Any, T], Any],
        initial: Any = _MISSING,
    ) -> Any:
        """
        Fold the sequence from the left.

        :param func: Combines the accumulator with an item. May return
            an awaitable.
        :param initial: The starting accumulator. Without it, the first
            item is used.

        :raises TypeError: If the sequence is empty and no `initial` was
            given.
        """

        acc = initial
        async with _opened(self) as iterator:
            async for item in iterator:
                if acc is _MISSING:
                    acc = item
                else:
                    acc = await resolve(func(acc, item))
        if acc is _MISSING:
            raise TypeError("reduce() of empty sequence with no initial value")
        return acc

    async def each(self, func: Callable[[T], Any]) -> None:
        """Call `func` for every item."""
        async with _opened(self) as iterator:
            async for item in iterator:
                await resolve(func(item))

    async def find(
        self,
        predicate: Callable[[T], Any],
        default: Any = None,
    ) -> T | Any:
        """Pull items until one satisfies `predicate`."""
        async with _opened(self) as iterator:
            async for item in iterator:
                if await resolve(predicate(item)):
                    return item
        return default

    async def some(self, predicate: Callable[[T], Any]) -> bool:
        """Whether any item satisfies `predicate`."""
        return await self.find(predicate, _MISSING) is not _MISSING

    async def every(self, predicate: Callable[[T], Any]) -> bool:
        """Whether all items satisfy `predicate`."""
        async with _opened(self) as iterator:
            async for item in iterator:
                if not await resolve(predicate(item)):
                    return False
        return True

    async def count(self) -> int:
        total = 0
        async with _opened(self) as iterator:
            async for _ in iterator:
                total += 1
        return total

    def to_stream(self, tg: TaskGroup) -> MemoryObjectReceiveStream[T]:
        """
        Feed the sequence into an `anyio` memory object stream.

        Consumption happens in a task started in `tg`, so other tasks
        of the group can receive the items.
        """

        return iter_to_stream(tg, self)
