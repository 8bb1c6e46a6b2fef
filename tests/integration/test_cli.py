"""Integration tests for the geodesk command line."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from geodesk.config import EmailConfig, GeodeskConfig
from geodesk.main import app, config_rows, mask, mask_url


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "geodesk.toml"
    path.write_text(
        "[database]\n"
        'url = "postgresql+asyncpg://geodesk:hunter22@db:5432/geodesk"\n'
        "\n"
        "[webhook]\n"
        'secret = "whsec_abcd1234"\n'
        "\n"
        "[logging]\n"
        'level = "WARNING"\n'
    )
    return path


class TestMasking:
    def test_mask(self) -> None:
        assert mask("") == "(unset)"
        assert mask("abc") == "****"
        assert mask("re_live_9876") == "****9876"

    def test_mask_url(self) -> None:
        masked = mask_url("postgresql+asyncpg://u:p@h:5432/d")
        assert masked == "postgresql+asyncpg://u:****@h:5432/d"
        assert mask_url("sqlite+aiosqlite://") == "sqlite+aiosqlite://"

    def test_config_rows_hide_secrets(self) -> None:
        rows = dict(
            ((section, key), value)
            for section, key, value in config_rows(
                GeodeskConfig(email=EmailConfig(api_key="re_live_9876"))
            )
        )

        assert rows[("email", "api_key")] == "****9876"
        assert rows[("auth", "api_key")] == "(unset)"
        assert rows[("quote", "usd_rate")] == "128.5"


class TestShowConfig:
    def test_show_config(self, cli_runner: CliRunner, config_file: Path) -> None:
        result = cli_runner.invoke(app, ["--config", str(config_file), "show-config"])

        assert result.exit_code == 0
        assert "****1234" in result.output
        assert "whsec_abcd1234" not in result.output
        assert "hunter22" not in result.output

    def test_invalid_config(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[web]\nport = 0\n")

        result = cli_runner.invoke(app, ["--config", str(path), "show-config"])

        assert result.exit_code == 1
        assert "Error loading configuration" in result.output

    def test_missing_config_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(
            app, ["--config", str(tmp_path / "absent.toml"), "show-config"]
        )

        assert result.exit_code != 0
