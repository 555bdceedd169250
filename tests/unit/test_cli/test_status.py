"""Unit tests for the opsentry status command."""

import json

from opsentry.cli.main import cli


class TestStatus:
    def test_default_status(self, cli_runner):
        result = cli_runner.invoke(cli, ["status"])

        assert result.exit_code == 0, f"Unexpected output: {result.output}"
        data = json.loads(result.stdout)
        assert data["success"] is True
        assert data["error"] is None
        assert data["data"]["observability"]["tracing_enabled"] is True
        assert data["data"]["observability"]["active_traces"] == 0
        assert data["data"]["observability"]["sampler_running"] is False
        assert data["data"]["config"]["metrics"]["retention"] == 100
        assert data["data"]["config"]["retry"]["max_attempts"] == 3

    def test_config_option(self, cli_runner, tmp_path):
        config_file = tmp_path / "custom.toml"
        config_file.write_text("debug = true\n[metrics]\nretention = 5\n")

        result = cli_runner.invoke(cli, ["--config", str(config_file), "status"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["data"]["config"]["debug"] is True
        assert data["data"]["config"]["metrics"]["retention"] == 5
        assert data["data"]["observability"]["tracing_enabled"] is False

    def test_project_config_picked_up(self, cli_runner, isolated_cli_env):
        (isolated_cli_env / "opsentry.toml").write_text("[sampler]\nkey = \"rss\"\n")

        result = cli_runner.invoke(cli, ["status"])

        data = json.loads(result.stdout)
        assert data["data"]["config"]["sampler"]["key"] == "rss"

    def test_invalid_config(self, cli_runner, tmp_path):
        config_file = tmp_path / "bad.toml"
        config_file.write_text("[metrics]\nretention = 0\n")

        result = cli_runner.invoke(cli, ["--config", str(config_file), "status"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["data"]["error_code"] == "CONFIG_ERROR"
        assert "retention" in data["error"]
