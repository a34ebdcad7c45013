"""Miscellaneous utilities related to iterators."""

from collections.abc import AsyncGenerator, AsyncIterable, Iterable
from inspect import isawaitable
from typing import TypeVar

from anyio import create_memory_object_stream
from anyio.abc import TaskGroup
from anyio.streams.memory import (
    MemoryObjectReceiveStream,
    MemoryObjectSendStream,
)

TInput = TypeVar("TInput")


async def wrap_async(iterable: Iterable[TInput]) -> AsyncGenerator[TInput, None]:
    """Adapt an `Iterable` as an `AsyncIterable`."""
    for item in iterable:
        yield item


async def empty() -> AsyncGenerator:
    """An async generator which yields nothing."""
    return
    yield  # pragma: no cover


async def resolve(value):
    """Await `value` if it is awaitable, otherwise return it as is."""
    if isawaitable(value):
        return await value
    return value


def as_async_iterable(
    iterable: Iterable | AsyncIterable,
) -> AsyncIterable:
    """
    Adapt any iterable as an `AsyncIterable`.

    :raises TypeError: If `iterable` is neither an `Iterable` nor an
        `AsyncIterable`.
    """

    if isinstance(iterable, AsyncIterable):
        return iterable
    if isinstance(iterable, Iterable):
        return wrap_async(iterable)
    raise TypeError(
        f"Expected an iterable, got {type(iterable).__name__}."
    )


def iter_to_stream(
    tg: TaskGroup,
    iterable: Iterable | AsyncIterable,
) -> MemoryObjectReceiveStream:
    """
    Adapt an `Iterable` as an `anyio` receive stream.

    Creates a memory object stream and starts a task to push the items
    of `iterable` into the stream. A failure while iterating is raised
    inside the task group.

    :param tg: The task group to use for the task.
    :param iterable: The iterable to adapt.

    :raises TypeError: If `iterable` is neither an `Iterable` nor an
        `AsyncIterable`.
    :return: The receive stream.
    """

    aiterable = as_async_iterable(iterable)

    async def stream(send_stream: MemoryObjectSendStream):
        async with send_stream:
            async for item in aiterable:
                await send_stream.send(item)

    send, recv = create_memory_object_stream()
    tg.start_soon(stream, send)
    return recv
