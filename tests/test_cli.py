"""CLI tests for ``authhook destinations`` and ``authhook call``.

Commands run through the real Typer app with ``--registry`` pointing at a
temporary file. ``call`` talks to an :class:`httpx.MockTransport` by
swapping :class:`~authhook.client.AsyncClient` for a partial that injects
the transport.
"""

from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any

import httpx
import pytest
from typer.testing import CliRunner

from authhook import __version__
from authhook.app import app
from authhook.auth import create_default_manager
from authhook.client import AsyncClient
from authhook.commands.call import _parse_pairs
from authhook.config import load_registry_config
from authhook.exceptions import InvalidUsageError


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def registry_file(isolated_config: Path) -> Path:
    return isolated_config / "destinations.json"


@pytest.fixture
def api_requests(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    """Route ``authhook call`` traffic to a mock API and record requests."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/missing":
            return httpx.Response(404, json={"message": "no such invoice"})
        return httpx.Response(200, json={"status": "ok"})

    monkeypatch.setattr(
        "authhook.client.AsyncClient",
        functools.partial(AsyncClient, transport=httpx.MockTransport(handler)),
    )
    return requests


def _invoke(runner: CliRunner, registry_file: Path, *args: str) -> Any:
    return runner.invoke(app, ["--registry", str(registry_file), "--no-color", *args])


def _add_billing(runner: CliRunner, registry_file: Path) -> None:
    result = _invoke(
        runner,
        registry_file,
        "destinations",
        "add",
        "billing-api",
        "--base-url",
        "https://billing.example.com",
        "--function-key-source",
        "env:BILLING_KEY",
    )
    assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"authhook {__version__}" in result.output


# ---------------------------------------------------------------------------
# destinations
# ---------------------------------------------------------------------------


class TestDestinations:
    def test_list_empty(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "destinations", "list")
        assert result.exit_code == 0, result.output
        assert "No destinations registered" in result.output

    def test_add_function_key(self, runner: CliRunner, registry_file: Path) -> None:
        _add_billing(runner, registry_file)

        config = load_registry_config(registry_file)
        entry = config.get_destination("billing-api")
        assert entry is not None
        assert entry.base_url == "https://billing.example.com"
        assert entry.credentials[0].kind == "function_key"

    def test_add_client_secret(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(
            runner,
            registry_file,
            "destinations",
            "add",
            "reports",
            "--base-url",
            "https://reports.example.com",
            "--client-id",
            "app-id",
            "--tenant-id",
            "contoso",
            "--secret-source",
            "env:REPORTS_SECRET",
            "--scope",
            "api://reports/.default",
        )
        assert result.exit_code == 0, result.output
        assert "Saved destination 'reports'" in result.output

        [credential] = load_registry_config(registry_file).destinations[0].credentials
        assert credential.kind == "client_secret"
        assert credential.scope == "api://reports/.default"
        assert credential.secret_source == "env:REPORTS_SECRET"

    def test_list_json(self, runner: CliRunner, registry_file: Path) -> None:
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "--json", "destinations", "list")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {
                "name": "billing-api",
                "base_url": "https://billing.example.com",
                "credentials": "function_key",
            }
        ]

    def test_list_plain(self, runner: CliRunner, registry_file: Path) -> None:
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "--plain", "destinations", "list")
        assert result.exit_code == 0, result.output
        assert "billing-api\thttps://billing.example.com\tfunction_key" in result.output

    def test_show(self, runner: CliRunner, registry_file: Path) -> None:
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "--json", "destinations", "show", "billing-api")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["credentials"] == [{"kind": "function_key", "key_source": "env:BILLING_KEY"}]

    def test_show_unknown(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "destinations", "show", "nowhere")
        assert result.exit_code == 2
        assert "Unknown destination 'nowhere'" in result.output

    def test_add_conflicting_options(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(
            runner,
            registry_file,
            "destinations",
            "add",
            "x",
            "--function-key-source",
            "env:K",
            "--client-id",
            "app",
        )
        assert result.exit_code == 2
        assert not registry_file.exists()

    def test_add_incomplete_client_secret(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "destinations", "add", "x", "--client-id", "app")
        assert result.exit_code == 2
        assert "--tenant-id" in result.output

    def test_add_existing_credential_needs_replace(
        self, runner: CliRunner, registry_file: Path
    ) -> None:
        _add_billing(runner, registry_file)
        args = ("destinations", "add", "billing-api", "--function-key-source", "env:NEW_KEY")

        refused = _invoke(runner, registry_file, *args)
        assert refused.exit_code == 2
        assert "--replace" in refused.output

        replaced = _invoke(runner, registry_file, *args, "--replace")
        assert replaced.exit_code == 0, replaced.output
        [credential] = load_registry_config(registry_file).destinations[0].credentials
        assert credential.key_source == "env:NEW_KEY"

    def test_add_without_base_url_warns(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "destinations", "add", "public")
        assert result.exit_code == 0, result.output
        assert "has no base URL" in result.output
        assert load_registry_config(registry_file).destinations[0].credentials == []

    def test_remove(self, runner: CliRunner, registry_file: Path) -> None:
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "destinations", "remove", "billing-api")
        assert result.exit_code == 0, result.output
        assert load_registry_config(registry_file).destinations == []

    def test_remove_unknown(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "destinations", "remove", "nowhere")
        assert result.exit_code == 2

    def test_invalid_registry_file(self, runner: CliRunner, registry_file: Path) -> None:
        registry_file.write_text("{not json", encoding="utf-8")
        result = _invoke(runner, registry_file, "destinations", "list")
        assert result.exit_code == 7
        assert "Invalid registry file" in result.output


# ---------------------------------------------------------------------------
# call
# ---------------------------------------------------------------------------


class TestCall:
    def test_sends_function_key(
        self,
        runner: CliRunner,
        registry_file: Path,
        api_requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("BILLING_KEY", "fk-123")
        _add_billing(runner, registry_file)

        result = _invoke(
            runner,
            registry_file,
            "--quiet",
            "--json",
            "call",
            "billing-api",
            "get",
            "/invoices",
            "-P",
            "status=open",
            "-H",
            "X-Trace: abc",
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"status": "ok"}
        [sent] = api_requests
        assert sent.method == "GET"
        assert str(sent.url) == "https://billing.example.com/invoices?status=open"
        assert sent.headers["x-functions-key"] == "fk-123"
        assert sent.headers["X-Trace"] == "abc"
        assert "Authorization" not in sent.headers

    def test_json_body(
        self,
        runner: CliRunner,
        registry_file: Path,
        api_requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("BILLING_KEY", "fk-123")
        _add_billing(runner, registry_file)

        result = _invoke(
            runner, registry_file, "call", "billing-api", "POST", "/invoices", "-b", '{"amount": 10}'
        )

        assert result.exit_code == 0, result.output
        assert "HTTP 200" in result.output
        assert json.loads(api_requests[0].content) == {"amount": 10}

    def test_base_url_override(
        self,
        runner: CliRunner,
        registry_file: Path,
        api_requests: list[httpx.Request],
    ) -> None:
        _invoke(runner, registry_file, "destinations", "add", "public")

        result = _invoke(
            runner,
            registry_file,
            "call",
            "public",
            "GET",
            "/status",
            "--base-url",
            "https://status.example.com",
        )

        assert result.exit_code == 0, result.output
        assert str(api_requests[0].url) == "https://status.example.com/status"

    def test_missing_base_url(self, runner: CliRunner, registry_file: Path) -> None:
        _invoke(runner, registry_file, "destinations", "add", "public")
        result = _invoke(runner, registry_file, "call", "public", "GET", "/status")
        assert result.exit_code == 2
        assert "--base-url" in result.output

    def test_unknown_destination(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "call", "nowhere", "GET", "/")
        assert result.exit_code == 7
        assert "Unknown destination 'nowhere'" in result.output

    def test_unresolvable_secret_source(
        self,
        runner: CliRunner,
        registry_file: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.delenv("BILLING_KEY", raising=False)
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "call", "billing-api", "GET", "/invoices")
        assert result.exit_code == 7
        assert "BILLING_KEY" in result.output

    def test_not_found_exit_code(
        self,
        runner: CliRunner,
        registry_file: Path,
        api_requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("BILLING_KEY", "fk-123")
        _add_billing(runner, registry_file)
        result = _invoke(runner, registry_file, "call", "billing-api", "GET", "/missing")
        assert result.exit_code == 4
        assert "HTTP 404: no such invoice" in result.output

    def test_dry_run_sends_nothing(
        self,
        runner: CliRunner,
        registry_file: Path,
        api_requests: list[httpx.Request],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("BILLING_KEY", "fk-123")
        _add_billing(runner, registry_file)

        result = _invoke(runner, registry_file, "--dry-run", "call", "billing-api", "GET", "/invoices")

        assert result.exit_code == 0, result.output
        assert "[dry-run] GET https://billing.example.com/invoices" in result.output
        assert "Pre-send callbacks: 1 (not invoked)" in result.output
        assert "fk-123" not in result.output
        assert api_requests == []

    def test_invalid_header(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "call", "x", "GET", "/", "-H", "no-colon")
        assert result.exit_code == 2
        assert "Invalid header 'no-colon'" in result.output

    def test_invalid_param(self, runner: CliRunner, registry_file: Path) -> None:
        result = _invoke(runner, registry_file, "call", "x", "GET", "/", "-P", "=open")
        assert result.exit_code == 2
        assert "Invalid parameter '=open'" in result.output

    def test_request_settings_reach_token_requests(
        self,
        runner: CliRunner,
        registry_file: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        registry_file.write_text(
            json.dumps(
                {
                    "destinations": [
                        {
                            "name": "reports",
                            "base_url": "https://reports.example.com",
                            "credentials": [
                                {
                                    "kind": "client_secret",
                                    "client_id": "app-id",
                                    "tenant_id": "contoso",
                                    "secret_source": "env:REPORTS_SECRET",
                                }
                            ],
                        }
                    ],
                    "request": {"timeout": 5, "verify_ssl": False},
                }
            ),
            encoding="utf-8",
        )
        monkeypatch.setenv("REPORTS_SECRET", "s3cr3t")
        factories: list[Any] = []

        def _capture(resolver: Any, strict: bool = False, confidential_clients: Any = None) -> Any:
            factories.append(confidential_clients)
            return create_default_manager(
                resolver, strict=strict, confidential_clients=confidential_clients
            )

        monkeypatch.setattr("authhook.auth.create_default_manager", _capture)

        result = _invoke(runner, registry_file, "--dry-run", "call", "reports", "GET", "/summary")

        assert result.exit_code == 0, result.output
        [factory] = factories
        assert factory.timeout == 5
        assert factory.verify is False


# ---------------------------------------------------------------------------
# Option parsing
# ---------------------------------------------------------------------------


class TestParsePairs:
    def test_splits_on_first_separator(self) -> None:
        assert _parse_pairs(["X-Trace: a:b"], ":", "header") == {"X-Trace": "a:b"}

    @pytest.mark.parametrize("value", ["no-colon", ": value"])
    def test_malformed_pair_is_invalid_usage(self, value: str) -> None:
        with pytest.raises(InvalidUsageError, match="expected KEY:VALUE") as exc_info:
            _parse_pairs([value], ":", "header")
        assert exc_info.value.exit_code == 2
