"""Tests for connection bootstrap."""

import logging

import httpx
import pytest

from lenses_cli.api.connection import (
    ClientConfig,
    open_connection,
    parse_duration,
    using_client,
    using_token,
)
from lenses_cli.api.errors import AuthenticationError, ConfigurationError, ResourceError

HOST = "http://lenses.test"


class FakeAuthentication:
    """Authentication stand-in that sets a fixed token, or fails."""

    def __init__(self, token="issued-token", error=None):
        self.token = token
        self.error = error
        self.calls = 0

    def authenticate(self, client):
        self.calls += 1
        if self.error is not None:
            raise self.error
        client.config.token = self.token


def mock_http_client(timeout=5.0):
    return httpx.Client(
        transport=httpx.MockTransport(lambda request: httpx.Response(200)), timeout=timeout
    )


class TestParseDuration:
    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("15s", 15.0),
            ("300ms", 0.3),
            ("1m", 60.0),
            ("2h45m", 9900.0),
            ("1.5s", 1.5),
            ("100us", 0.0001),
            ("0", 0.0),
            ("", 0.0),
            (None, 0.0),
            ("abc", 0.0),
            ("15", 0.0),
            ("10x", 0.0),
        ],
    )
    def test_parse(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)


class TestClientConfig:
    def test_host_is_normalized(self):
        config = ClientConfig(host="  http://lenses.test/ ", token="t")

        assert config.is_valid()
        assert config.host == "http://lenses.test"

    def test_host_required(self):
        assert not ClientConfig(host="  ", token="t").is_valid()

    def test_token_or_authentication_required(self):
        assert not ClientConfig(host=HOST).is_valid()
        assert ClientConfig(host=HOST, authentication=FakeAuthentication()).is_valid()


class TestOpenConnection:
    def test_token_skips_authentication(self):
        authentication = FakeAuthentication()
        config = ClientConfig(host=HOST, token="existing", authentication=authentication)
        http_client = mock_http_client()

        client = open_connection(config, using_client(http_client))

        assert client.get_access_token() == "existing"
        assert client.http_client is http_client
        assert authentication.calls == 0

    def test_authenticates_without_token(self):
        config = ClientConfig(host=HOST, authentication=FakeAuthentication("fresh"))

        client = open_connection(config, using_client(mock_http_client()))

        assert client.get_access_token() == "fresh"

    def test_callers_config_is_not_modified(self):
        config = ClientConfig(host=HOST + "/", authentication=FakeAuthentication("fresh"))

        open_connection(config, using_client(mock_http_client()))

        assert config.token == ""
        assert config.host == HOST + "/"

    def test_using_token_skips_authentication(self):
        authentication = FakeAuthentication()
        config = ClientConfig(host=HOST, authentication=authentication)

        client = open_connection(config, using_client(mock_http_client()), using_token("given"))

        assert client.get_access_token() == "given"
        assert authentication.calls == 0

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError, match="invalid configuration"):
            open_connection(ClientConfig(host="", token="t"))

    def test_missing_authentication(self):
        with pytest.raises(ConfigurationError):
            open_connection(ClientConfig(host=HOST))

    def test_authentication_failure_is_wrapped(self):
        error = ResourceError(500, HOST + "/api/login", "POST", "down")
        config = ClientConfig(host=HOST, authentication=FakeAuthentication(error=error))

        with pytest.raises(AuthenticationError, match=r"client: auth failure: \[down\]"):
            open_connection(config, using_client(mock_http_client()))

    def test_authentication_without_token(self):
        config = ClientConfig(host=HOST, authentication=FakeAuthentication(token=""))

        with pytest.raises(AuthenticationError, match="client: login failure: token is undefined"):
            open_connection(config, using_client(mock_http_client()))

    def test_failure_keeps_callers_http_client_open(self):
        http_client = mock_http_client()
        config = ClientConfig(host=HOST, authentication=FakeAuthentication(token=""))

        with pytest.raises(AuthenticationError):
            open_connection(config, using_client(http_client))

        assert not http_client.is_closed

    def test_creates_http_client(self):
        config = ClientConfig(host=HOST, token="t", timeout="15s", insecure=True)

        with open_connection(config) as client:
            assert isinstance(client.http_client, httpx.Client)
            assert client.http_client.timeout.read == 15.0

    def test_no_timeout_by_default(self):
        with open_connection(ClientConfig(host=HOST, token="t")) as client:
            assert client.http_client.timeout.read is None

    def test_raises_existing_client_timeout(self):
        http_client = mock_http_client(timeout=1.0)
        config = ClientConfig(host=HOST, token="t", timeout="30s")

        open_connection(config, using_client(http_client))

        assert http_client.timeout.read == 30.0

    def test_keeps_longer_existing_timeout(self):
        http_client = mock_http_client(timeout=60.0)
        config = ClientConfig(host=HOST, token="t", timeout="30s")

        open_connection(config, using_client(http_client))

        assert http_client.timeout.read == 60.0

    def test_unexpected_failure_closes_owned_http_client(self, monkeypatch):
        created = []
        real_client = httpx.Client

        def recording_client(**kwargs):
            http_client = real_client(**kwargs)
            created.append(http_client)
            return http_client

        monkeypatch.setattr(httpx, "Client", recording_client)
        config = ClientConfig(host=HOST, authentication=FakeAuthentication(error=RuntimeError("boom")))

        with pytest.raises(RuntimeError, match="boom"):
            open_connection(config)

        assert created[0].is_closed

    def test_unexpected_failure_keeps_callers_http_client_open(self):
        http_client = mock_http_client()
        config = ClientConfig(host=HOST, authentication=FakeAuthentication(error=RuntimeError("boom")))

        with pytest.raises(RuntimeError):
            open_connection(config, using_client(http_client))

        assert not http_client.is_closed


class TestDebugVerbosity:
    """Debug mode lowers the level of the client's logger."""

    @pytest.fixture
    def injected_logger(self):
        logger = logging.getLogger("lenses_cli.tests.injected")
        yield logger
        logger.setLevel(logging.NOTSET)

    def test_injected_logger_lowered_to_debug(self, injected_logger):
        config = ClientConfig(host=HOST, token="t", debug=True)

        client = open_connection(config, using_client(mock_http_client()), logger=injected_logger)

        assert client.logger is injected_logger
        assert injected_logger.level == logging.DEBUG

    def test_injected_logger_untouched_without_debug(self, injected_logger):
        open_connection(
            ClientConfig(host=HOST, token="t"),
            using_client(mock_http_client()),
            logger=injected_logger,
        )

        assert injected_logger.level == logging.NOTSET

    def test_default_logger_lets_debug_through(self, isolated_logging):
        isolated_logging.setLevel(logging.INFO)
        client_logger = logging.getLogger("lenses_cli.api.client")
        client_logger.setLevel(logging.NOTSET)
        assert not client_logger.isEnabledFor(logging.DEBUG)

        open_connection(ClientConfig(host=HOST, token="t", debug=True), using_client(mock_http_client()))

        assert client_logger.isEnabledFor(logging.DEBUG)
