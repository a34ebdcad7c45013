"""Streams of HTTP responses."""

from collections.abc import AsyncGenerator, Callable
from logging import getLogger
from typing import Any

import httpx

from httpf.errors import HTTPStatusError, RequestError
from httpf.options import HttpfOptions
from httpf.response import Response
from httpf.stream import ExtendedStream, wrap

logger = getLogger(__name__)

METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"})
BODY_OPTIONS = frozenset({"json", "content", "data"})

ClientFactory = Callable[[], httpx.AsyncClient]


class HttpfService:
    """
    Issue HTTP requests as lazy, single-response streams.

    Every verb returns an :py:class:`ExtendedStream` that yields exactly
    one :py:class:`Response` and ends, or fails with an
    :py:class:`HttpfError`. The request is only sent when the stream is
    pulled, and is sent again each time `retry` starts over, so
    retrying a non-idempotent request repeats its side effects.

    .. code-block:: python
        service = HttpfService(options=HttpfOptions(base_url=url))
        body = await (
            service.get("/hello")
            .retry(2)
            .catch_error(lambda error: Response(200, {}))
            .chain(pluck("body"))
            .head()
        )
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        options: HttpfOptions | None = None,
    ):
        """
        Create a new service.

        :param client_factory: Creates the client for one request. The
            client is closed once the response is read. Defaults to
            :py:class:`httpx.AsyncClient`.
        :param options: The defaults of every request.
        """

        self._client_factory = client_factory or httpx.AsyncClient
        self._options = options or HttpfOptions()

    @property
    def options(self) -> HttpfOptions:
        """The defaults of every request."""
        return self._options

    def extend(self, **options: Any) -> "HttpfService":
        """
        Create a service sharing this client factory with new defaults.

        :param options: Merged into the current defaults, see
            :py:meth:`HttpfOptions.merge`.
        """

        return HttpfService(
            self._client_factory,
            self._options.merge(**options),
        )

    def request(
        self,
        method: str,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """
        Build a stream which sends one request when pulled.

        :param method: One of ``GET``, ``POST``, ``PUT``, ``PATCH``,
            ``DELETE`` or ``HEAD``, in any case.
        :param url: Absolute, or relative to the `base_url` option.
        :param options: `json`, `content` or `data` for the body, plus
            any :py:class:`HttpfOptions` field to override.

        :raises ValueError: If `method` is not supported.
        :raises TypeError: If an option is unknown.
        :return: A stream of one :py:class:`Response`.
        """

        method = method.upper()
        if method not in METHODS:
            raise ValueError(f"Unsupported method: {method}")

        body = {
            name: options.pop(name)
            for name in BODY_OPTIONS & options.keys()
        }
        settings = self._options.merge(**options)
        target = settings.resolve_url(url)

        async def send() -> AsyncGenerator[Response, None]:
            yield await self._send(method, target, body, settings)

        return wrap(send)

    async def _send(
        self,
        method: str,
        url: str,
        body: dict[str, Any],
        settings: HttpfOptions,
    ) -> Response:
        extra: dict[str, Any] = {}
        if settings.timeout is not None:
            extra["timeout"] = settings.timeout

        logger.debug(f"Sending {method} {url}")
        async with self._client_factory() as client:
            try:
                raw = await client.request(
                    method,
                    url,
                    params=dict(settings.params),
                    headers=dict(settings.headers),
                    follow_redirects=settings.follow_redirects,
                    **body,
                    **extra,
                )
            except httpx.RequestError as exc:
                raise RequestError(method, url, exc) from exc

        logger.info(f"{method} {url} -> {raw.status_code}")
        if not raw.is_success:
            raise HTTPStatusError(
                Response.from_httpx(
                    raw,
                    settings.response_type,
                    strict=False,
                )
            )
        return Response.from_httpx(raw, settings.response_type)

    def get(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``GET`` request."""
        return self.request("GET", url, **options)

    def post(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``POST`` request."""
        return self.request("POST", url, **options)

    def put(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``PUT`` request."""
        return self.request("PUT", url, **options)

    def patch(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``PATCH`` request."""
        return self.request("PATCH", url, **options)

    def delete(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``DELETE`` request."""
        return self.request("DELETE", url, **options)

    def head(
        self,
        url: str | httpx.URL,
        **options: Any,
    ) -> ExtendedStream[Response]:
        """Stream the response of a ``HEAD`` request."""
        return self.request("HEAD", url, **options)
