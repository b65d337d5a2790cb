"""
HTTP Client Core for lenses-cli
================================

Synchronous HTTP client for the Lenses management API. One call sends one
request; the response is classified before it is handed back, so callers
only ever see a successful, still-open response or an exception.
"""

import json
from typing import Any, Callable, Iterable, Optional, TypeVar

import httpx
import structlog

from lenses_cli.api.body import ResponseBody
from lenses_cli.api.constants import (
    ACCEPT_ENCODING_HEADER,
    ACCEPT_HEADER,
    CONTENT_TYPE_HEADER,
    CONTENT_TYPE_HTML,
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_SCHEMA_JSON,
    GZIP_ENCODING,
    LOGOUT_PATH,
    TOKEN_HEADER,
)
from lenses_cli.api.errors import (
    CredentialsMissingError,
    LensesError,
    ResourceError,
    UnknownResponseError,
)
from lenses_cli.api.models import User
from lenses_cli.api.options import RequestOption
from lenses_cli.api.streaming import iter_frames

T = TypeVar("T")

_ALWAYS_OK = frozenset({200, 201, 202})


def is_authorized(status_code: int) -> bool:
    return status_code != 401


def is_ok(status_code: int, method: str) -> bool:
    """Whether ``status_code`` counts as success for ``method``.

    200, 201 and 202 always succeed. 204 succeeds for DELETE and POST only,
    and 400 for GET only; SQL validation reports invalid statements with a
    400 that still carries the validation result.
    """
    if status_code in _ALWAYS_OK:
        return True
    method = method.upper()
    if status_code == 204:
        return method in ("DELETE", "POST")
    if status_code == 400:
        return method == "GET"
    return False


def mask_token(token: str) -> str:
    """Keep only the last four characters of a token for logging."""
    if len(token) <= 4:
        return "*" * len(token)
    return "*" * (len(token) - 4) + token[-4:]


class Client:
    """
    Low-level Lenses API client.

    Handles:
    - Request construction (token, content type, gzip negotiation, options)
    - Response classification into success, credentials or resource errors
    - Body reading with scoped release, gzip included
    - Dispatch of live stream frames to a handler
    """

    def __init__(
        self,
        config,
        http_client: Optional[httpx.Client] = None,
        *,
        logger: Optional[Any] = None,
    ):
        """
        Initialize the client.

        Args:
            config: A ``ClientConfig`` with host, token and flags
            http_client: The HTTP client to send requests with
            logger: Logger to trace with, defaults to this module's logger
        """
        self.config = config
        self.http_client = http_client
        self.logger = logger or structlog.get_logger(__name__)

        # Applied to every request before per-call options (e.g. SPNEGO).
        self.persistent_request_modifier: Optional[RequestOption] = None

        self.user = User()

    @property
    def debug(self) -> bool:
        return bool(self.config.debug)

    def close(self) -> None:
        """Close the HTTP client."""
        if self.http_client is not None:
            self.http_client.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def do(
        self,
        method: str,
        path: str,
        content_type: str = "",
        send: Optional[bytes] = None,
        options: Iterable[RequestOption] = (),
    ) -> httpx.Response:
        """Send one request and return the open response on success.

        Args:
            method: HTTP method
            path: Path relative to the configured host; one leading ``/`` is dropped
            content_type: Optional Content-Type of ``send``
            send: Optional request body
            options: Request options applied after the persistent modifier

        Returns:
            The still-open response; the caller must read or close it

        Raises:
            CredentialsMissingError: On 401
            ResourceError: On any other unsuccessful status
            httpx.TransportError: On network failures
        """
        if path.startswith("/"):
            path = path[1:]
        uri = f"{self.config.host}/{path}"

        if self.debug:
            self.logger.debug(
                "client_request",
                method=method,
                uri=uri,
                body=send.decode("utf-8", errors="replace") if send else None,
            )

        request = self.http_client.build_request(method, uri, content=send)
        # Accept is negotiated per call through options.
        request.headers.pop(ACCEPT_HEADER, None)

        if self.config.token:
            request.headers[TOKEN_HEADER] = self.config.token
        if content_type:
            request.headers[CONTENT_TYPE_HEADER] = content_type
        request.headers[ACCEPT_ENCODING_HEADER] = GZIP_ENCODING

        if self.persistent_request_modifier is not None:
            self.persistent_request_modifier.apply(request)
        for option in options:
            option.apply(request)

        response = self.http_client.send(request, stream=True)

        if not is_authorized(response.status_code):
            response.close()
            raise CredentialsMissingError()

        if not is_ok(response.status_code, method):
            message = self._read_error_message(response)
            raise ResourceError(response.status_code, uri, method, message)

        return response

    def close_response(self, response: httpx.Response) -> None:
        """Release a response whose body is not needed."""
        ResponseBody(response).close()

    # =========================================================================
    # Body Reading
    # =========================================================================

    def read_response_body(self, response: httpx.Response) -> bytes:
        """Read the whole body, decompressing if needed, and close the response.

        Raises:
            UnknownResponseError: In debug mode, when the server sent HTML
        """
        with ResponseBody(response) as body:
            data = body.read()

        if self.debug:
            content_type = response.headers.get(CONTENT_TYPE_HEADER, "")
            self.logger.debug(
                "client_response",
                status_code=response.status_code,
                content_type=content_type,
                body=data.decode("utf-8", errors="replace"),
            )
            if CONTENT_TYPE_HTML in content_type:
                raise UnknownResponseError()

        return data

    def read_json(
        self,
        response: httpx.Response,
        model: Optional[Callable[[Any], T]] = None,
    ) -> Any:
        """Read the body as JSON, optionally converting it with ``model``.

        ``model`` may be a class with ``from_dict`` or any callable taking the
        decoded value.
        """
        data = self.read_response_body(response)
        try:
            value = json.loads(data)
        except json.JSONDecodeError as e:
            if self.debug:
                self.logger.debug("client_json_syntax_error", offset=e.pos, error=e.msg)
            raise

        if model is None:
            return value
        convert = getattr(model, "from_dict", model)
        return convert(value)

    def _read_error_message(self, response: httpx.Response) -> str:
        content_type = response.headers.get(CONTENT_TYPE_HEADER, "")
        try:
            data = self.read_response_body(response)
        except (LensesError, httpx.HTTPError, OSError) as e:
            return f" unable to read body: {e}"

        text = data.decode("utf-8", errors="replace")
        if CONTENT_TYPE_JSON in content_type or CONTENT_TYPE_SCHEMA_JSON in content_type:
            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                payload = None
            if isinstance(payload, dict) and payload.get("message"):
                return str(payload["message"])

        return text

    # =========================================================================
    # Live Streams
    # =========================================================================

    def stream_events(
        self,
        response: httpx.Response,
        decode: Callable[[bytes], T],
        handler: Callable[[T], Any],
        *,
        strict: bool = True,
    ) -> None:
        """Decode every frame of a live response and hand it to ``handler``.

        Runs until the server ends the stream, a frame fails to decode or the
        handler raises. The response is closed on every path.

        Args:
            response: Open response from ``do``
            decode: Turns a frame payload into an event
            handler: Called with each event, in arrival order
            strict: Whether non-``data`` lines are an error or skipped
        """
        with ResponseBody(response) as body:
            for payload in iter_frames(body, strict=strict):
                handler(decode(payload))

    # =========================================================================
    # Session
    # =========================================================================

    def get_access_token(self) -> str:
        """The session token, from the config or from login."""
        return self.config.token

    def logout(self) -> None:
        """End the current session.

        Raises:
            CredentialsMissingError: If there is no token to log out with
        """
        if not self.config.token:
            raise CredentialsMissingError()

        response = self.do("GET", LOGOUT_PATH + self.config.token)
        self.close_response(response)
        self.logger.debug("client_logged_out", token=mask_token(self.config.token))
