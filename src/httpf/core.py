"""Composable asynchronous operators."""

from collections.abc import AsyncGenerator, AsyncIterable, Iterable
from functools import reduce
from typing import (
    Generic,
    TypeVar,
)

from httpf.utils import as_async_iterable

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")
TOther = TypeVar("TOther")


class Operator(Generic[TInput, TOutput]):
    """
    One transformation step applied to the items of a response stream.

    Calling an operator on an iterable only builds an async generator;
    no item is pulled until that generator is. This is what keeps a
    chain of operators lazy up to its terminal operation, and what lets
    `retry` apply the same operator again to a fresh run of a request.

    Subclasses implement :py:meth:`_run`. An operator is accepted by
    :py:meth:`httpf.seq.Seq.pipe`, and also by
    :py:meth:`httpf.seq.Seq.chain` since it is a plain callable over an
    iterable:

    .. code-block:: python
        class StatusOnly(Operator[Response, int]):
            async def _run(self, iterable):
                async for response in iterable:
                    yield response.status_code

        status = await service.head(url).pipe(StatusOnly()).head()
    """

    def operators(self) -> tuple["Operator", ...]:
        """The steps this operator is made of: just itself."""

        return (self,)

    def __call__(
        self,
        iterable: Iterable[TInput] | AsyncIterable[TInput],
    ) -> AsyncGenerator[TOutput, None]:
        """
        Apply the operator to `iterable`.

        :param iterable: Items to transform. A plain iterable is
            adapted to an async one first.

        :raises TypeError: If `iterable` is not iterable at all.
        :return: An `AsyncGenerator` of the transformed items.
        """

        return self._run(as_async_iterable(iterable))

    def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TOutput, None]:
        """
        Transform the items of `iterable`.

        Subclasses must override this, normally as an async generator.
        """

        raise NotImplementedError()

    def __or__(
        self,
        rhs: "Operator[TOutput, TOther]",
    ) -> "Pipeline[TInput, TOther]":
        """
        Feed the output of this operator into `rhs`.

        Nested pipelines are flattened, so ``(a | b) | c`` and
        ``a | (b | c)`` hold the same three steps.
        """

        return Pipeline(*self.operators(), *rhs.operators())


class Pipeline(Operator[TInput, TOutput]):
    """
    Several operators applied as one, first to last.

    An empty pipeline relays its input unchanged.
    """

    def __init__(self, *operators: Operator):
        self._operators = tuple(operators)

    def operators(self) -> tuple[Operator, ...]:
        """The steps of this pipeline, in application order."""

        return self._operators

    async def _run(
        self,
        iterable: AsyncIterable[TInput],
    ) -> AsyncGenerator[TOutput, None]:
        stages = reduce(
            lambda upstream, operator: operator(upstream),
            self._operators,
            iterable,
        )
        async for item in stages:
            yield item  # type: ignore[misc]
