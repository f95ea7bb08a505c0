"""Tests for the route CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from fairlend.cli import cli


@pytest.mark.usefixtures("_isolated_project")
class TestRouteCheck:
    def test_anonymous_request_is_gated(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["route", "check", "http://localhost:3000/dashboard"])
        assert result.exit_code == 0
        assert "OK" in result.output
        assert "http://localhost:3000/underconstruction" in result.output
        assert "restricted-access-underconstruction" in result.output

    def test_json_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "route", "check", "http://mic.localhost:3000/listings?x=1"]
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["ok"] is True
        assert data["op"] == "route_check"
        assert data["data"]["subdomain"] == "mic"
        assert data["data"]["redirect"] == "http://mic.localhost:3000/"
        assert data["data"]["rule"] == "public-subdomain-landing-only"

    def test_allowed_role_passes(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli,
            ["route", "check", "http://localhost:3000/deals", "--authenticated", "--role", "admin"],
        )
        assert result.exit_code == 0
        assert "no redirect" in result.output

    def test_quiet_prints_target(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "route", "check", "http://localhost:3000/deals"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "http://localhost:3000/underconstruction"

    def test_quiet_without_redirect(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "route", "check", "http://localhost:3000/blog"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "OK: route_check"

    def test_relative_url_fails(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "route", "check", "/dashboard"])
        assert result.exit_code == 1
        assert result.stdout == ""
        payload = json.loads(result.stderr)
        assert payload["ok"] is False
        assert payload["error"]["code"] == "INVALID_URL"

    def test_configured_role_redirect(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "fairlend.toml").write_text(
            "[[routing.role_redirects]]\n"
            'roles = ["broker"]\n'
            'destination = "/broker"\n'
            "priority = 20\n"
            'name = "broker-home"\n',
            encoding="utf-8",
        )
        result = cli_runner.invoke(
            cli,
            [
                "--json",
                "route",
                "check",
                "http://localhost:3000/deals",
                "--authenticated",
                "--role",
                "broker",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)["data"]
        assert data["redirect"] == "http://localhost:3000/broker"
        assert data["rule"] == "broker-home"

    def test_gate_can_be_disabled(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "fairlend.toml").write_text(
            "[routing]\nrestricted_access = false\n", encoding="utf-8"
        )
        result = cli_runner.invoke(cli, ["--json", "route", "check", "http://localhost:3000/deals"])
        assert json.loads(result.stdout)["data"]["redirect"] is None


@pytest.mark.usefixtures("_isolated_project")
class TestRouteRules:
    def test_table(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["route", "rules"])
        assert result.exit_code == 0
        assert "public-subdomain-landing-only" in result.output
        assert "restricted-access-underconstruction" in result.output
        assert "2 rules" in result.output

    def test_json_in_priority_order(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "route", "rules"])
        data = json.loads(result.stdout)["data"]
        assert data["count"] == 2
        assert [item["priority"] for item in data["items"]] == [10, 100]

    def test_quiet_lists_names(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "route", "rules"])
        assert result.stdout.split() == [
            "public-subdomain-landing-only",
            "restricted-access-underconstruction",
        ]
