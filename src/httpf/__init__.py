"""Lazy, chainable streams of HTTP responses."""

from .algorithm import (
    CatchError,
    Chunk,
    Drop,
    DropWhile,
    Filter,
    FlatMap,
    Map,
    Peek,
    Pluck,
    Sort,
    Take,
    TakeWhile,
    pluck,
)
from .core import Operator, Pipeline
from .errors import HttpfError, HTTPStatusError, ParseError, RequestError
from .options import HttpfOptions
from .response import Response
from .seq import Seq
from .service import HttpfService
from .stream import ExtendedStream, wrap

__all__ = [
    "CatchError",
    "Chunk",
    "Drop",
    "DropWhile",
    "ExtendedStream",
    "Filter",
    "FlatMap",
    "HTTPStatusError",
    "HttpfError",
    "HttpfOptions",
    "HttpfService",
    "Map",
    "Operator",
    "ParseError",
    "Peek",
    "Pipeline",
    "Pluck",
    "RequestError",
    "Response",
    "Seq",
    "Sort",
    "Take",
    "TakeWhile",
    "pluck",
    "wrap",
]
