"""
Pytest configuration and fixtures for shellgate tests.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shellgate.audit.logger import reset_audit_logger
from shellgate.config import clear_config_cache


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point SHELLGATE_HOME at a temporary directory and reset cached state."""
    home = tmp_path / "shellgate-home"
    home.mkdir()
    monkeypatch.setenv("SHELLGATE_HOME", str(home))
    monkeypatch.chdir(tmp_path)
    clear_config_cache()
    reset_audit_logger()

    yield home

    clear_config_cache()
    reset_audit_logger()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration dictionary."""
    return {
        "security": {
            "allowed_commands": ["terraform", "helm"],
            "blocked_commands": ["docker"],
            "dangerous_patterns": [
                {"pattern": r"\bgit\s+push\s+--force\b", "description": "force push"},
            ],
            "unknown_command_policy": "warn",
            "max_output_chars": 1000,
            "audit_log": {"enable": False},
        },
        "general": {"log_level": "INFO"},
    }
