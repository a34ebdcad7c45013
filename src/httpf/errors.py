"""Errors raised while producing responses."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from httpf.response import Response


class HttpfError(Exception):
    """Base class of every error raised by httpf."""


class RequestError(HttpfError):
    """Exception indicating that the transport failed to complete a request."""

    def __init__(self, method: str, url: str, reason: Exception):
        """
        Initialize the exception.

        :param method: The HTTP method of the failed request.
        :param url: The URL of the failed request.
        :param reason: The transport's own error.
        """

        super().__init__(f"{method} {url} failed: {reason!r}")
        self.method = method
        self.url = url


class HTTPStatusError(HttpfError):
    """Exception indicating a response status outside of 2xx."""

    def __init__(self, response: "Response"):
        """
        Initialize the exception.

        :param response: The offending response, body decoded.
        """

        super().__init__(
            f"Response code {response.status_code} ({response.reason})"
        )
        self.response = response

    @property
    def status_code(self) -> int:
        """The status code of the response."""
        return self.response.status_code


class ParseError(HttpfError):
    """Exception indicating that a response body is not valid JSON."""

    def __init__(self, status_code: int, url: str):
        super().__init__(
            f"Unable to parse the JSON body of a {status_code} response"
            f" from {url}"
        )
        self.status_code = status_code
        self.url = url


class ReplayError(HttpfError):
    """Exception indicating that a one-shot source was asked to run again."""

    def __init__(self):
        """Initialize the exception."""
        super().__init__("The source is an iterator and cannot start over.")
