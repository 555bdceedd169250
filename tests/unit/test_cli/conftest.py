"""Shared fixtures for CLI command tests."""

import logging

import pytest
from click.testing import CliRunner

ENV_VARS = (
    "OPSENTRY_CONFIG_FILE",
    "OPSENTRY_DEBUG",
    "OPSENTRY_LOG_LEVEL",
    "OPSENTRY_TRACING_ENABLED",
    "OPSENTRY_METRICS_RETENTION",
    "OPSENTRY_RETRY_MAX_ATTEMPTS",
    "OPSENTRY_RETRY_BASE_DELAY",
    "OPSENTRY_SAMPLER_INTERVAL",
    "OPSENTRY_SAMPLER_ENABLED",
)


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli_env(tmp_path, monkeypatch):
    """Run commands with no user config and restore the package logger afterwards."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OPSENTRY_LOG_LEVEL", "ERROR")

    package_logger = logging.getLogger("opsentry")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield tmp_path
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
