"""
Request Options
===============

Per-call request modifiers. Each option exposes ``apply(request)`` and runs
after the client has set its own headers; an option that raises aborts the
call before anything is sent.
"""

from dataclasses import dataclass
from typing import Protocol

import httpx

from lenses_cli.api.constants import (
    ACCEPT_HEADER,
    CONFIG_ACCEPT,
    CONTENT_TYPE_SCHEMA_JSON,
    EVENT_STREAM_ACCEPT,
    TOKEN_HEADER,
)


class RequestOption(Protocol):
    """Anything that can modify an outgoing request."""

    def apply(self, request: httpx.Request) -> None: ...


@dataclass(frozen=True)
class HeaderOption:
    """Set a header, or append to an existing value when ``replace`` is false."""

    name: str
    value: str
    replace: bool = False

    def apply(self, request: httpx.Request) -> None:
        existing = request.headers.get(self.name)
        if existing and not self.replace:
            request.headers[self.name] = f"{existing}, {self.value}"
        else:
            request.headers[self.name] = self.value


def accept(value: str) -> HeaderOption:
    """Append ``value`` to the Accept header."""
    return HeaderOption(ACCEPT_HEADER, value)


def with_token(token: str) -> HeaderOption:
    """Send ``token`` as the session token, whatever the client has configured."""
    return HeaderOption(TOKEN_HEADER, token, replace=True)


# Schema registry proxy calls negotiate the registry's vendor JSON type.
SCHEMA_API_OPTION = accept(CONTENT_TYPE_SCHEMA_JSON)

# Live endpoints answer with an event stream.
EVENT_STREAM_OPTION = accept(EVENT_STREAM_ACCEPT)

CONFIG_ACCEPT_OPTION = HeaderOption(ACCEPT_HEADER, CONFIG_ACCEPT, replace=True)
