"""Default request configuration."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from typing import Any

import httpx

from httpf.response import ResponseType

_MERGED_FIELDS = ("headers", "params")


@dataclass(frozen=True)
class HttpfOptions:
    """
    Options applied to every request of a service.

    :ivar base_url: Relative request URLs are joined onto it.
    :ivar headers: Headers sent with every request.
    :ivar params: Query parameters sent with every request.
    :ivar timeout: Seconds before the transport gives up. `None` keeps
        the client's own timeout.
    :ivar response_type: How response bodies are decoded.
    :ivar follow_redirects: Whether the transport follows redirects.
    """

    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    timeout: float | None = None
    response_type: ResponseType = "json"
    follow_redirects: bool = True

    def merge(self, **overrides: Any) -> "HttpfOptions":
        """
        Create new options with `overrides` applied.

        `headers` and `params` are merged key by key, every other
        option is replaced.

        :raises TypeError: If an override names an unknown option.
        """

        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise TypeError(f"Unknown options: {', '.join(unknown)}")

        for name in _MERGED_FIELDS:
            if name in overrides:
                overrides[name] = {
                    **getattr(self, name),
                    **overrides[name],
                }
        return replace(self, **overrides)

    def resolve_url(self, url: str | httpx.URL) -> str:
        """Join `url` onto the `base_url`, if any."""
        if not self.base_url:
            return str(url)
        return str(httpx.URL(self.base_url).join(url))
