"""Tests for the Typer command line front end."""

import json

import httpx
import pytest
from typer.testing import CliRunner

from useradmin import cli
from useradmin.infrastructure.api_client import AdminApiClient

runner = CliRunner()

USERS = [
    {"_id": "u1", "userid": "T1", "username": "Tina", "loginid": "tina", "role": "TDL", "isActive": True},
    {"_id": "u2", "userid": "S1", "username": "Sam", "loginid": "sam", "role": "TDS",
     "leader": "Tina", "isActive": True},
    {"_id": "u3", "userid": "P1", "username": "Pat", "loginid": "pat", "role": "PRT",
     "leader": "Sam", "isActive": False},
]


def _handler(request):
    path = request.url.path
    if path == "/api/users" and request.method == "GET":
        return httpx.Response(200, json={
            "success": True,
            "data": USERS,
            "pagination": {"page": 1, "limit": 25, "total": 3, "totalPages": 1},
        })
    if path == "/api/users/stats":
        return httpx.Response(200, json={"data": {
            "overview": {"totalUsers": 3, "activeUsers": 2, "inactiveUsers": 1},
            "roleDistribution": [{"_id": "TDL", "count": 1}, {"_id": "TDS", "count": 1}],
        }})
    if path.startswith("/api/users/") and request.method == "PUT":
        if path.endswith("/u2"):
            return httpx.Response(500, json={"message": "locked"})
        return httpx.Response(200, json={"success": True})
    if path == "/api/users/export/csv":
        return httpx.Response(200, content=b"userid,username\nT1,Tina\n")
    return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def invoke(tmp_path, monkeypatch):
    def factory(settings, base_url=None):
        return AdminApiClient("http://api.test/api", "tok", transport=httpx.MockTransport(_handler))

    monkeypatch.setattr(cli, "create_client", factory)
    settings_path = tmp_path / "settings.json"

    def _invoke(*args):
        return runner.invoke(cli.app, ["--settings", str(settings_path), *args])

    return _invoke


class TestCli:
    def test_users_table(self, invoke):
        result = invoke("users")
        assert result.exit_code == 0, result.output
        assert "Tina" in result.output
        assert "Showing 1-3 of 3" in result.output

    def test_users_status_filter(self, invoke):
        result = invoke("users", "--status", "inactive")
        assert result.exit_code == 0, result.output
        assert "Pat" in result.output
        assert "Tina" not in result.output

    def test_users_bad_status(self, invoke):
        result = invoke("users", "--status", "sleeping")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_stats(self, invoke):
        result = invoke("stats")
        assert result.exit_code == 0, result.output
        assert "Active: 2" in result.output
        assert "TDL: 1" in result.output

    def test_leaders(self, invoke):
        result = invoke("leaders", "PRT", "--selected", "Sam")
        assert result.exit_code == 0, result.output
        assert "* Sam (TDS)" in result.output
        assert "Tina (TDL)" in result.output

    def test_activate_partial_failure_exits_1(self, invoke):
        result = invoke("activate", "u1", "u2")
        assert result.exit_code == 1
        assert "1 of 2 succeeded" in result.output
        assert "u2: locked" in result.output

    def test_deactivate_success(self, invoke):
        result = invoke("deactivate", "u1", "u3")
        assert result.exit_code == 0, result.output
        assert "2 user(s) updated" in result.output

    def test_export_writes_file(self, invoke, tmp_path):
        target = tmp_path / "out.csv"
        result = invoke("export", "--output", str(target))
        assert result.exit_code == 0, result.output
        assert target.read_bytes() == b"userid,username\nT1,Tina\n"

    def test_session_expired(self, tmp_path, monkeypatch):
        def factory(settings, base_url=None):
            return AdminApiClient(
                "http://api.test/api",
                "tok",
                transport=httpx.MockTransport(lambda r: httpx.Response(401, json={})),
            )

        monkeypatch.setattr(cli, "create_client", factory)
        result = runner.invoke(cli.app, ["--settings", str(tmp_path / "s.json"), "stats"])
        assert result.exit_code == 1
        assert "Session expired" in result.output

    def test_create_client_prefers_environment_token(self, tmp_path, monkeypatch):
        from useradmin.settings import SettingsManager

        settings = SettingsManager(tmp_path / "s.json")
        settings.load()
        settings.set("api.token", "from-file")
        monkeypatch.setenv("USERADMIN_API_TOKEN", "from-env")

        client = cli.create_client(settings)

        assert client.token == "from-env"

    def test_base_url_override_is_not_persisted(self, tmp_path, monkeypatch):
        seen = []

        def factory(settings, base_url=None):
            seen.append(base_url)
            return AdminApiClient("http://api.test/api", "tok", transport=httpx.MockTransport(_handler))

        monkeypatch.setattr(cli, "create_client", factory)
        settings_path = tmp_path / "settings.json"

        result = runner.invoke(
            cli.app, ["--settings", str(settings_path), "--base-url", "http://other/api", "stats"]
        )
        assert result.exit_code == 0, result.output
        assert seen == ["http://other/api"]
        data = json.loads(settings_path.read_text(encoding="utf-8"))
        assert data["api"]["base_url"] != "http://other/api"

        runner.invoke(cli.app, ["--settings", str(settings_path), "stats"])
        assert seen[-1] is None

    def test_create_client_applies_base_url_override(self, tmp_path):
        from useradmin.settings import SettingsManager

        settings = SettingsManager(tmp_path / "s.json")
        settings.load()

        client = cli.create_client(settings, "http://other/api")

        assert client.base_url.startswith("http://other/api")
