"""
Errors for API Client Module
=============================

Every failure the client raises on its own behalf derives from
``LensesError``. Transport failures surface as ``httpx`` exceptions and
decode failures as ``json.JSONDecodeError``, both unchanged.
"""

from typing import Any, Dict
from urllib.parse import unquote_plus


class LensesError(Exception):
    """Base class for errors raised by the Lenses client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Error payload for JSON output."""
        return {"error": str(self)}


class CredentialsMissingError(LensesError):
    """The server answered 401, or an operation needs a token that is not set."""

    def __init__(self, message: str = "credentials missing or invalid"):
        super().__init__(message)


class UnknownResponseError(LensesError):
    """An HTML page came back while debugging; usually a proxy or a wrong host."""

    def __init__(self, message: str = "unknown"):
        super().__init__(message)


class StreamProtocolError(LensesError):
    """A live stream sent a line that is not a ``data`` frame."""


class RequiredFieldError(LensesError):
    """Caller input failed validation before any request was sent."""

    def __init__(self, field: str):
        super().__init__(f"client: [{field}] is required")
        self.field = field


class AuthenticationError(LensesError):
    """Login or session establishment failed."""


class ConfigurationError(LensesError):
    """The client configuration or the config file is invalid."""


class ResourceError(LensesError):
    """
    A non-successful, non-401 response.

    ``str(error)`` is the server message, lightly normalized so it reads well
    when embedded in other messages. ``detail()`` is the full diagnostic with
    method, URI and status code.
    """

    def __init__(self, status_code: int, uri: str, method: str, body: str):
        self.status_code = status_code
        self.uri = unquote_plus(uri)
        self.method = method
        self.body = body
        super().__init__(body)

    @property
    def code(self) -> int:
        """The HTTP status code."""
        return self.status_code

    def __str__(self) -> str:
        body = self.body
        if len(body) <= 1:
            return body.lower()

        if body[0].isalpha() and body[1].isalpha() and body[1].islower():
            body = body[0].lower() + body[1:]

        if len(body) > 2 and body[-1] in ".!":
            body = body[:-1]

        return body

    def detail(self) -> str:
        """Full diagnostic text including method, URI and status code."""
        return (
            f"client: [{self.method}: {self.uri}] failed with status code "
            f"[{self.status_code}]:\n[{self.body}]"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "method": self.method,
            "uri": self.uri,
            "message": str(self),
        }
