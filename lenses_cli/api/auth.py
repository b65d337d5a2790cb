"""
Authentication
==============

The ways a client can establish a session when it has no token yet. Each
variant exposes ``authenticate(client)``, which logs in, stores the session
token on the client and returns the session user.

Kerberos support needs the optional ``gssapi`` package
(``pip install lenses-cli[kerberos]``).
"""

import base64
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

import httpx

from lenses_cli.api.constants import (
    AUTH_PATH,
    AUTHORIZATION_HEADER,
    CONTENT_TYPE_JSON,
    LOGIN_PATH,
)
from lenses_cli.api.errors import AuthenticationError, LensesError
from lenses_cli.api.models import User
from lenses_cli.api.options import with_token


def _import_gssapi():
    try:
        import gssapi
        import gssapi.exceptions
    except ImportError as e:
        raise AuthenticationError(
            "kerberos authentication requires the 'gssapi' package: "
            "pip install lenses-cli[kerberos]"
        ) from e
    return gssapi


def _principal(username: str, realm: str) -> str:
    return f"{username}@{realm}" if realm else username


def _negotiate_token(credentials: Any, host: str) -> bytes:
    """First SPNEGO token for the ``HTTP`` service on ``host``."""
    gssapi = _import_gssapi()
    try:
        service = gssapi.Name(f"HTTP@{host}", gssapi.NameType.hostbased_service)
        context = gssapi.SecurityContext(name=service, creds=credentials, usage="initiate")
        return context.step()
    except gssapi.exceptions.GSSError as e:
        raise AuthenticationError(f"unable to build the SPNEGO token for [{host}]: {e}") from e


def _store_session(client, user: User) -> User:
    client.user = user
    client.config.token = user.token
    return user


# =============================================================================
# Basic
# =============================================================================


@dataclass
class BasicAuthentication:
    """Username and password login."""

    username: str
    password: str

    def authenticate(self, client) -> User:
        if not self.username or not self.password:
            raise AuthenticationError("basic failure: 'Username' and 'Password' are both required")

        payload = json.dumps({"user": self.username, "password": self.password}).encode()
        try:
            response = client.do("POST", LOGIN_PATH, CONTENT_TYPE_JSON, payload)
        except (LensesError, httpx.HTTPError) as e:
            raise AuthenticationError(f"{e} or kerberos authentication is required") from e

        token = client.read_response_body(response).decode("utf-8").strip()
        if not token:
            raise AuthenticationError("basic failure: retrieved an empty token")

        try:
            response = client.do("GET", AUTH_PATH, CONTENT_TYPE_JSON, options=[with_token(token)])
        except (LensesError, httpx.HTTPError) as e:
            raise AuthenticationError(f"basic failure: {e}") from e

        user = client.read_json(response, User)
        if not user.token:
            user.token = token

        if client.debug:
            client.logger.debug("basic_authentication_succeeded", user=user.name)
        return _store_session(client, user)


# =============================================================================
# Kerberos
# =============================================================================


@dataclass
class KerberosWithPassword:
    username: str
    password: str
    realm: str = ""

    def credentials(self):
        if not self.username or not self.password:
            raise AuthenticationError("with password: 'Username' and 'Password' are both required")

        gssapi = _import_gssapi()
        try:
            name = gssapi.Name(_principal(self.username, self.realm), gssapi.NameType.user)
            acquired = gssapi.raw.acquire_cred_with_password(
                name, self.password.encode("utf-8"), usage="initiate"
            )
            return gssapi.Credentials(base=acquired.creds)
        except gssapi.exceptions.GSSError as e:
            raise AuthenticationError(f"with password: {e}") from e


@dataclass
class KerberosWithKeytab:
    username: str
    keytab_file: str
    realm: str = ""

    def credentials(self):
        if not self.username:
            raise AuthenticationError("with keytab: 'Username' is required")
        if not self.keytab_file or not Path(self.keytab_file).is_file():
            raise AuthenticationError(
                f"with keytab: unable to read the keytab file '{self.keytab_file}'"
            )

        gssapi = _import_gssapi()
        try:
            name = gssapi.Name(
                _principal(self.username, self.realm), gssapi.NameType.kerberos_principal
            )
            return gssapi.Credentials(
                name=name, usage="initiate", store={"client_keytab": self.keytab_file}
            )
        except gssapi.exceptions.GSSError as e:
            raise AuthenticationError(f"with keytab: {e}") from e


@dataclass
class KerberosFromCCache:
    ccache_file: str

    def credentials(self):
        if not self.ccache_file or not Path(self.ccache_file).is_file():
            raise AuthenticationError(
                f"from ccache: unable to read the ccache file '{self.ccache_file}'"
            )

        gssapi = _import_gssapi()
        try:
            return gssapi.Credentials(
                usage="initiate", store={"ccache": f"FILE:{self.ccache_file}"}
            )
        except gssapi.exceptions.GSSError as e:
            raise AuthenticationError(f"from ccache: {e}") from e


KerberosMethod = Union[KerberosWithPassword, KerberosWithKeytab, KerberosFromCCache]


class NegotiateOption:
    """Adds a fresh ``Authorization: Negotiate`` header to each request."""

    def __init__(self, credentials: Any):
        self.credentials = credentials

    def apply(self, request: httpx.Request) -> None:
        token = _negotiate_token(self.credentials, request.url.host)
        request.headers[AUTHORIZATION_HEADER] = "Negotiate " + base64.b64encode(token).decode(
            "ascii"
        )


@dataclass
class KerberosAuthentication:
    """
    Kerberos (SPNEGO) login.

    ``conf_file`` is the krb5 configuration to use; ``method`` says where
    the credentials come from. Once authenticated, every request the client
    sends carries a Negotiate header.
    """

    conf_file: str
    method: KerberosMethod

    def authenticate(self, client) -> User:
        if self.method is None:
            raise AuthenticationError("kerberos failure: authentication method is missing")

        conf_file = Path(self.conf_file).expanduser() if self.conf_file else None
        if conf_file is None or not conf_file.is_file():
            raise AuthenticationError(
                f"kerberos failure: unable to read the configuration file '{self.conf_file}'"
            )
        os.environ["KRB5_CONFIG"] = str(conf_file)

        try:
            credentials = self.method.credentials()
        except AuthenticationError as e:
            raise AuthenticationError(f"kerberos failure: {e}") from e

        client.persistent_request_modifier = NegotiateOption(credentials)

        try:
            response = client.do("GET", AUTH_PATH, CONTENT_TYPE_JSON)
        except (LensesError, httpx.HTTPError) as e:
            raise AuthenticationError(
                f"kerberos failure: unable to authenticate with the SPNEGO header: {e}"
            ) from e

        user = client.read_json(response, User)
        if client.debug:
            client.logger.debug("kerberos_authentication_succeeded", user=user.name)
        return _store_session(client, user)


Authentication = Union[BasicAuthentication, KerberosAuthentication]
