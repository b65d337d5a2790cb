"""Integration tests for CLI workflows against a mocked Lenses server."""

import json
import logging

import httpx
import pytest

from lenses_cli.main import run_cli, setup_logging

pytestmark = pytest.mark.integration

HOST = "http://lenses.test"
CONNECTION = ["--host", HOST, "--token", "cli-token"]


class FakeLenses:
    """Routes requests by ``(method, path)`` and records them."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, respond):
        self.routes[(method, path)] = respond

    def __call__(self, request):
        self.requests.append(request)
        respond = self.routes.get((request.method, request.url.path))
        if respond is None:
            return httpx.Response(404, json={"error_code": 404, "message": "Not found"})
        return respond(request) if callable(respond) else respond


@pytest.fixture
def lenses(monkeypatch, work_dir, temp_home, clean_env, isolated_logging):
    """Send every CLI connection to a FakeLenses server."""
    from lenses_cli import api
    from lenses_cli.api.connection import open_connection, using_client

    server = FakeLenses()

    def open_mocked_connection(config, *options, **kwargs):
        http_client = httpx.Client(transport=httpx.MockTransport(server))
        return open_connection(config, using_client(http_client), *options, **kwargs)

    monkeypatch.setattr(api, "open_connection", open_mocked_connection)
    return server


def run(argv):
    """Run the CLI and return its exit code (0 when it returns normally)."""
    try:
        run_cli(argv)
    except SystemExit as e:
        return e.code
    return 0


class TestResourceWorkflow:
    def test_topics_list_json(self, lenses, capsys):
        lenses.add(
            "GET",
            "/api/topics",
            httpx.Response(200, json=[{"topicName": "orders", "partitions": 3}]),
        )

        assert run(CONNECTION + ["--output", "json", "topics", "list"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output[0]["topicName"] == "orders"
        assert lenses.requests[0].headers["X-Kafka-Lenses-Token"] == "cli-token"

    def test_piped_output_is_json(self, lenses, capsys):
        lenses.add(
            "GET",
            "/api/protection/policy",
            httpx.Response(200, json=[{"id": "p1", "name": "Email"}]),
        )

        assert run(CONNECTION + ["policies", "list"]) == 0

        assert json.loads(capsys.readouterr().out)[0]["name"] == "Email"

    def test_basic_login_then_command(self, lenses, capsys):
        lenses.add("POST", "/api/login", httpx.Response(200, text="login-token"))
        lenses.add(
            "GET", "/api/auth", lambda request: httpx.Response(200, json={"user": "admin", "token": "session"})
        )
        lenses.add(
            "GET",
            "/api/license",
            httpx.Response(200, json={"clientId": "acme", "isRespected": True, "expiry": 0}),
        )

        code = run(["--host", HOST, "--user", "admin", "--pass", "secret", "-o", "json", "license"])

        assert code == 0
        assert json.loads(capsys.readouterr().out)["clientId"] == "acme"
        assert [r.url.path for r in lenses.requests] == ["/api/login", "/api/auth", "/api/license"]
        assert lenses.requests[-1].headers["X-Kafka-Lenses-Token"] == "session"

    def test_context_from_config_file(self, lenses, work_dir, capsys):
        (work_dir / "lenses-cli.yml").write_text(
            "CurrentContext: dev\n"
            "Contexts:\n"
            "  dev:\n"
            f"    Host: {HOST}\n"
            "    Token: file-token\n"
        )
        lenses.add("GET", "/api/proxy-sr/subjects", httpx.Response(200, json=["orders-value"]))

        assert run(["-o", "json", "schemas", "list"]) == 0

        assert json.loads(capsys.readouterr().out) == ["orders-value"]
        assert lenses.requests[0].headers["X-Kafka-Lenses-Token"] == "file-token"

    def test_debug_from_config_context_traces_requests(self, lenses, work_dir, capsys):
        (work_dir / "lenses-cli.yml").write_text(
            "CurrentContext: dev\n"
            "Contexts:\n"
            "  dev:\n"
            f"    Host: {HOST}\n"
            "    Token: file-token\n"
            "    Debug: true\n"
        )
        lenses.add("GET", "/api/topics", httpx.Response(200, json=[]))

        assert run(["-o", "json", "topics", "list"]) == 0

        captured = capsys.readouterr()
        assert json.loads(captured.out) == []
        assert "client_request" in captured.err
        assert "client_response" in captured.err

    def test_connector_restart(self, lenses, capsys):
        lenses.add("POST", "/api/proxy-connect/dev/connectors/sink/restart", httpx.Response(202))

        assert run(CONNECTION + ["connectors", "restart", "--cluster", "dev", "sink"]) == 0

        assert "Connector [sink] restarted" in capsys.readouterr().out


class TestErrorWorkflow:
    def test_unauthorized(self, lenses, capsys):
        lenses.add("GET", "/api/topics", httpx.Response(401))

        assert run(CONNECTION + ["topics", "list"]) == 1

        assert "credentials missing or invalid" in capsys.readouterr().err

    def test_not_found(self, lenses, capsys):
        assert run(CONNECTION + ["schemas", "get", "missing"]) == 1

        assert "Error: not found" in capsys.readouterr().err

    def test_not_found_in_debug_shows_detail(self, lenses, capsys):
        assert run(CONNECTION + ["--debug", "schemas", "get", "missing"]) == 1

        err = capsys.readouterr().err
        assert "[GET:" in err
        assert "404" in err

    def test_json_error_output(self, lenses, capsys):
        assert run(CONNECTION + ["-o", "json", "topics", "delete", "missing"]) == 1

        assert json.loads(capsys.readouterr().err)["statusCode"] == 404

    def test_invalid_sql(self, lenses, capsys):
        lenses.add(
            "GET",
            "/api/sql/validation",
            httpx.Response(400, json={"isValid": False, "line": 1, "column": 8, "message": "bad"}),
        )

        assert run(CONNECTION + ["sql", "validate", "SELECT x"]) == 1

        assert "line 1, column 8" in capsys.readouterr().err

    def test_no_host(self, lenses, capsys):
        assert run(["topics", "list"]) == 1

        assert "no Lenses host configured" in capsys.readouterr().err

    def test_transport_error(self, lenses, capsys):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        lenses.add("GET", "/api/topics", refuse)

        assert run(CONNECTION + ["topics", "list"]) == 1

        assert "unable to reach Lenses" in capsys.readouterr().err

    def test_no_command(self, lenses, capsys):
        assert run(CONNECTION) == 2


class TestLiveWorkflow:
    def test_alerts_live_prints_events(self, lenses, capsys):
        frames = (
            b'data:1{"alertId":1000,"labels":{"severity":"HIGH"},"annotations":{"summary":"a"}}\n'
            b'data:1{"alertId":1001,"labels":{"severity":"LOW"},"annotations":{"summary":"b"}}\n'
        )
        lenses.add("GET", "/api/sse/alerts", httpx.Response(200, content=frames))

        assert run(CONNECTION + ["-o", "json", "alerts", "live"]) == 0

        out = capsys.readouterr().out
        assert '"alertId": 1000' in out
        assert '"alertId": 1001' in out

    def test_interrupt_exits_cleanly(self, lenses, capsys):
        def interrupt(request):
            raise KeyboardInterrupt

        lenses.add("GET", "/api/sse/audit", interrupt)

        assert run(CONNECTION + ["audit", "live"]) == 0

        assert "Interrupted" in capsys.readouterr().out

    def test_processor_logs_need_kubernetes(self, lenses, capsys):
        lenses.add(
            "GET", "/api/config", httpx.Response(200, json={"lenses.sql.execution.mode": "IN_PROC"})
        )

        code = run(
            CONNECTION
            + ["logs", "processor", "--cluster", "c", "--namespace", "n", "--pod", "p"]
        )

        assert code == 1
        assert "execution mode is not KUBERNETES" in capsys.readouterr().err


class TestLogging:
    def test_setup_logging_writes_to_home(self, temp_home, isolated_logging):
        log_file = setup_logging()

        assert log_file.parent == temp_home / ".lenses" / "logs"
        assert isolated_logging.level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_debug_logs_to_stderr(self, temp_home, isolated_logging):
        setup_logging(debug=True)

        assert isolated_logging.level == logging.DEBUG
        assert any(
            isinstance(handler, logging.StreamHandler)
            and not isinstance(handler, logging.FileHandler)
            for handler in isolated_logging.handlers
        )

    def test_old_logs_are_removed(self, temp_home, isolated_logging):
        import os
        import time

        log_dir = temp_home / ".lenses" / "logs"
        log_dir.mkdir(parents=True)
        old_log = log_dir / "lenses-cli-old.log"
        old_log.write_text("old")
        week_ago = time.time() - 8 * 24 * 3600
        os.utime(old_log, (week_ago, week_ago))

        setup_logging()

        assert not old_log.exists()
