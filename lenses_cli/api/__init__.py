"""
API Client Module for lenses-cli
=================================

This module provides the HTTP client for the Lenses management API.

Components:
- client: Client core (transport, response classification, body reading)
- resources: LensesClient with typed per-resource operations
- connection: ClientConfig and open_connection bootstrap
- auth: Basic and Kerberos authentication
- streaming: Live stream frame reader
- errors: Error taxonomy
"""

from lenses_cli.api.auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from lenses_cli.api.body import ResponseBody
from lenses_cli.api.client import Client, is_authorized, is_ok
from lenses_cli.api.connection import (
    ClientConfig,
    open_connection,
    parse_duration,
    using_client,
    using_token,
)
from lenses_cli.api.errors import (
    AuthenticationError,
    ConfigurationError,
    CredentialsMissingError,
    LensesError,
    RequiredFieldError,
    ResourceError,
    StreamProtocolError,
    UnknownResponseError,
)
from lenses_cli.api.options import HeaderOption, RequestOption
from lenses_cli.api.resources import LensesClient
from lenses_cli.api.streaming import iter_frames

__all__ = [
    # Client
    "Client",
    "LensesClient",
    "ResponseBody",
    "is_authorized",
    "is_ok",
    "iter_frames",
    # Connection
    "ClientConfig",
    "open_connection",
    "parse_duration",
    "using_client",
    "using_token",
    # Authentication
    "BasicAuthentication",
    "KerberosAuthentication",
    "KerberosFromCCache",
    "KerberosWithKeytab",
    "KerberosWithPassword",
    # Options
    "HeaderOption",
    "RequestOption",
    # Errors
    "AuthenticationError",
    "ConfigurationError",
    "CredentialsMissingError",
    "LensesError",
    "RequiredFieldError",
    "ResourceError",
    "StreamProtocolError",
    "UnknownResponseError",
]
