"""
Pydantic models for the CLI configuration file.

These models define the schema of lenses-cli.yml: a current context name
and one connection context per Lenses box.
"""

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lenses_cli.api.auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from lenses_cli.api.connection import ClientConfig
from lenses_cli.api.constants import DEFAULT_CONTEXT
from lenses_cli.api.errors import ConfigurationError


class _FileModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BasicAuthConfig(_FileModel):
    """Username and password login."""

    username: str = Field(default="", alias="Username", description="Lenses user name")
    password: str = Field(default="", alias="Password", description="Lenses user password")


class KerberosWithPasswordConfig(_FileModel):
    username: str = Field(default="", alias="Username", description="Kerberos principal name")
    password: str = Field(default="", alias="Password", description="Kerberos password")
    realm: str = Field(default="", alias="Realm", description="Kerberos realm")


class KerberosWithKeytabConfig(_FileModel):
    username: str = Field(default="", alias="Username", description="Kerberos principal name")
    realm: str = Field(default="", alias="Realm", description="Kerberos realm")
    keytab_file: str = Field(default="", alias="KeytabFile", description="Path to the keytab")


class KerberosFromCCacheConfig(_FileModel):
    ccache_file: str = Field(
        default="", alias="CCacheFile", description="Path to the credentials cache"
    )


class KerberosConfig(_FileModel):
    """Kerberos login; exactly one credentials source must be given."""

    conf_file: str = Field(default="", alias="ConfFile", description="Path to krb5.conf")
    with_password: Optional[KerberosWithPasswordConfig] = Field(default=None, alias="WithPassword")
    with_keytab: Optional[KerberosWithKeytabConfig] = Field(default=None, alias="WithKeytab")
    from_ccache: Optional[KerberosFromCCacheConfig] = Field(default=None, alias="FromCCache")

    @model_validator(mode="after")
    def _single_method(self) -> "KerberosConfig":
        methods = [m for m in (self.with_password, self.with_keytab, self.from_ccache) if m]
        if len(methods) > 1:
            raise ValueError("only one of WithPassword, WithKeytab or FromCCache can be set")
        return self

    def to_authentication(self) -> KerberosAuthentication:
        if self.with_password is not None:
            method: Union[KerberosWithPassword, KerberosWithKeytab, KerberosFromCCache] = (
                KerberosWithPassword(
                    username=self.with_password.username,
                    password=self.with_password.password,
                    realm=self.with_password.realm,
                )
            )
        elif self.with_keytab is not None:
            method = KerberosWithKeytab(
                username=self.with_keytab.username,
                keytab_file=self.with_keytab.keytab_file,
                realm=self.with_keytab.realm,
            )
        elif self.from_ccache is not None:
            method = KerberosFromCCache(ccache_file=self.from_ccache.ccache_file)
        else:
            raise ConfigurationError("kerberos: one of WithPassword, WithKeytab or FromCCache is required")
        return KerberosAuthentication(conf_file=self.conf_file, method=method)


class ContextConfig(_FileModel):
    """Connection settings for one Lenses box."""

    host: str = Field(default="", alias="Host", description="Lenses base URL")
    token: str = Field(default="", alias="Token", description="Session token")
    timeout: str = Field(default="", alias="Timeout", description='Request timeout, e.g. "15s"')
    insecure: bool = Field(default=False, alias="Insecure", description="Skip TLS verification")
    debug: bool = Field(default=False, alias="Debug", description="Trace requests and responses")
    basic: Optional[BasicAuthConfig] = Field(default=None, alias="Basic")
    kerberos: Optional[KerberosConfig] = Field(default=None, alias="Kerberos")

    @field_validator("timeout", mode="before")
    @classmethod
    def _timeout_as_text(cls, value):
        # A bare number in YAML means seconds.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return f"{value}s"
        return value or ""

    @model_validator(mode="after")
    def _single_authentication(self) -> "ContextConfig":
        if self.basic is not None and self.kerberos is not None:
            raise ValueError("only one of Basic or Kerberos authentication can be set")
        return self

    @property
    def is_basic_auth(self) -> bool:
        return self.basic is not None

    @property
    def is_kerberos_auth(self) -> bool:
        return self.kerberos is not None

    def to_client_config(self) -> ClientConfig:
        authentication = None
        if self.basic is not None:
            authentication = BasicAuthentication(
                username=self.basic.username, password=self.basic.password
            )
        elif self.kerberos is not None:
            authentication = self.kerberos.to_authentication()

        return ClientConfig(
            host=self.host,
            token=self.token,
            authentication=authentication,
            timeout=self.timeout,
            insecure=self.insecure,
            debug=self.debug,
        )


class CLIConfig(_FileModel):
    """The whole configuration file."""

    current_context: str = Field(default=DEFAULT_CONTEXT, alias="CurrentContext")
    contexts: Dict[str, ContextConfig] = Field(default_factory=dict, alias="Contexts")

    def current_context_exists(self) -> bool:
        return self.current_context in self.contexts

    def set_current(self, name: str) -> bool:
        """Switch to context ``name``; returns false, leaving the current one, if it does not exist."""
        if name not in self.contexts:
            return False
        self.current_context = name
        return True

    def get_current(self) -> ContextConfig:
        """The current context.

        Raises:
            ConfigurationError: If the current context is not defined
        """
        context = self.contexts.get(self.current_context)
        if context is None:
            raise ConfigurationError(f"context [{self.current_context}] does not exist")
        return context
