"""
Connection Bootstrap
====================

Builds a ready-to-use ``LensesClient`` from a ``ClientConfig``: applies
connection options, prepares the HTTP client and, unless a token is already
known, authenticates.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, NoReturn, Optional

import httpx

from lenses_cli.api.auth import Authentication
from lenses_cli.api.client import mask_token
from lenses_cli.api.errors import AuthenticationError, ConfigurationError, LensesError
from lenses_cli.api.resources import LensesClient

ConnectionOption = Callable[[LensesClient], None]

CLIENT_LOGGER_NAME = "lenses_cli.api.client"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: Optional[str]) -> float:
    """Parse a duration such as ``"15s"``, ``"300ms"`` or ``"2h45m"`` into seconds.

    Empty or malformed input gives ``0.0``, which means no timeout.
    """
    text = (text or "").strip()
    if not text or text == "0":
        return 0.0

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    total = 0.0
    position = 0
    while position < len(text):
        match = _DURATION_PART.match(text, position)
        if match is None:
            return 0.0
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0:
        return 0.0
    return sign * total


@dataclass
class ClientConfig:
    """
    Connection settings for a single Lenses box.

    Attributes:
        host: Base URL, e.g. ``https://lenses.example.com``
        token: Session token; when set no login is performed
        authentication: Login method used when there is no token
        timeout: Duration string, empty for no timeout
        insecure: Skip TLS certificate verification
        debug: Trace requests and responses through the client logger
    """

    host: str = ""
    token: str = ""
    authentication: Optional[Authentication] = None
    timeout: str = ""
    insecure: bool = False
    debug: bool = False

    def is_valid(self) -> bool:
        """Normalize the host and check a host and a way to authenticate are present."""
        self.host = self.host.strip()
        if self.host.endswith("/"):
            self.host = self.host[:-1]
        return bool(self.host) and bool(self.token or self.authentication is not None)


def using_client(http_client: Optional[httpx.Client]) -> ConnectionOption:
    """Send requests through an existing ``httpx.Client``."""

    def option(client: LensesClient) -> None:
        if http_client is not None:
            client.http_client = http_client

    return option


def using_token(token: Optional[str]) -> ConnectionOption:
    """Use an existing session token and skip authentication."""

    def option(client: LensesClient) -> None:
        if token:
            client.config.token = token

    return option


def _raise_verbosity(client: LensesClient) -> None:
    """Let the client's debug traces through its logger.

    An injected logger with a ``setLevel`` is lowered to DEBUG; otherwise the
    standard-library logger behind the client module's default logger is.
    """
    set_level = getattr(client.logger, "setLevel", None)
    if callable(set_level):
        set_level(logging.DEBUG)
    else:
        logging.getLogger(CLIENT_LOGGER_NAME).setLevel(logging.DEBUG)


def _http_timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds if seconds > 0 else None)


def _prepare_http_client(client: LensesClient) -> None:
    config = client.config
    timeout = parse_duration(config.timeout)

    if client.http_client is None:
        client.http_client = httpx.Client(
            timeout=_http_timeout(timeout),
            verify=not config.insecure,
            http2=False,
        )
        return

    existing = client.http_client.timeout.read or 0.0
    if timeout > existing:
        client.http_client.timeout = _http_timeout(timeout)


def open_connection(
    config: ClientConfig,
    *options: ConnectionOption,
    logger: Optional[Any] = None,
) -> LensesClient:
    """Create a client for ``config`` and authenticate it if needed.

    ``config`` is copied; the caller's instance is never modified.

    Args:
        config: Connection settings
        *options: Connection options such as ``using_client`` or ``using_token``
        logger: Logger injected into the client

    Returns:
        A client holding a session token

    Raises:
        ConfigurationError: If the host or the means to authenticate are missing
        AuthenticationError: If login fails or yields no token
    """
    config = replace(config)
    client = LensesClient(config, logger=logger)

    for option in options:
        option(client)

    if not config.is_valid():
        raise ConfigurationError(
            "client: invalid configuration: a host and a token or an authentication are required"
        )

    if config.debug:
        _raise_verbosity(client)

    owns_http_client = client.http_client is None
    _prepare_http_client(client)
    try:
        return _authenticate(client)
    except BaseException:
        if owns_http_client:
            client.close()
        raise


def _authenticate(client: LensesClient) -> LensesClient:
    config = client.config

    def fail(message: str, cause: Optional[BaseException] = None) -> NoReturn:
        raise AuthenticationError(message) from cause

    if config.token:
        if client.debug:
            client.logger.debug(
                "connection_opened", host=config.host, token=mask_token(config.token)
            )
        return client

    if config.authentication is None:
        fail("client: auth failure: authenticator missing")

    try:
        config.authentication.authenticate(client)
    except (LensesError, httpx.HTTPError) as e:
        fail(f"client: auth failure: [{e}]", e)

    if not config.token:
        fail("client: login failure: token is undefined")

    if client.debug:
        client.logger.debug(
            "connection_authenticated",
            host=config.host,
            user=client.user.name,
            token=mask_token(config.token),
        )
    return client
