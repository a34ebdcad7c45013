"""The value produced by every request."""

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar

import httpx

from httpf.errors import ParseError

T = TypeVar("T")

ResponseType = Literal["json", "text", "bytes"]


@dataclass(frozen=True)
class Response(Generic[T]):
    """A completed HTTP exchange with its body decoded."""

    status_code: int
    body: T
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    method: str = "GET"
    reason: str = ""

    @property
    def ok(self) -> bool:
        """Whether the status code is in the 2xx range."""
        return 200 <= self.status_code < 300

    @classmethod
    def from_httpx(
        cls,
        response: httpx.Response,
        response_type: ResponseType = "json",
        strict: bool = True,
    ) -> "Response[Any]":
        """
        Build a `Response` from the transport's response.

        The body of a ``HEAD`` response is always `None`, as is an empty
        JSON payload.

        :param response: The response to convert. Must be read.
        :param response_type: How to decode the body.
        :param strict: Raise on a body that is not valid JSON. Otherwise
            such a body is kept as text.

        :raises ParseError: If `response_type` is ``"json"`` and the
            body is not valid JSON.
        """

        method = response.request.method
        url = str(response.url)
        return cls(
            status_code=response.status_code,
            body=_decode(response, method, url, response_type, strict),
            headers=dict(response.headers.items()),
            url=url,
            method=method,
            reason=response.reason_phrase,
        )


def _decode(
    response: httpx.Response,
    method: str,
    url: str,
    response_type: ResponseType,
    strict: bool,
) -> Any:
    if method == "HEAD":
        return None
    if response_type == "bytes":
        return response.content
    if response_type == "text":
        return response.text
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        if not strict:
            return response.text
        raise ParseError(response.status_code, url) from exc
