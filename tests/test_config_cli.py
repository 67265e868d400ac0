"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from printrack.cli import cli
from printrack.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".printrack" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "identify:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["config", "set", "identify.top_results", "--value", "12"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0
    assert "Updated identify.top_results" in result.output
    config = ConfigManager(config_path=_config_path(tmp_path)).load(include_env=False)
    assert config.identify.top_results == 12


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "identify.workers", "--value", "0"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    config = ConfigManager(config_path=_config_path(tmp_path)).load(include_env=False)
    assert config.identify.workers == 1


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("top_results: 45", "top_results: 7")

    monkeypatch.setattr("printrack.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "Configuration updated successfully" in result.output
    assert manager.load(include_env=False).identify.top_results == 7


def _configure_root(runner: CliRunner, root: Path, env: dict[str, Any]) -> None:
    result = runner.invoke(cli, ["config", "set", "storage.root", "--value", str(root)], env=env)
    assert result.exit_code == 0


def _sample(tmp_path: Path) -> Path:
    sample = tmp_path / "page.html"
    sample.write_bytes(b"<!doctype html><title>x</title>")
    return sample


def test_learn_uses_configured_storage_root(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env.pop("PRINTRACK_STORE", None)
    _configure_root(runner, tmp_path / "configured", env)

    result = runner.invoke(cli, ["learn", str(_sample(tmp_path))], env=env)

    assert result.exit_code == 0
    assert (tmp_path / "configured" / "learns" / "html.learn1").exists()


def test_store_option_overrides_configured_root(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env.pop("PRINTRACK_STORE", None)
    _configure_root(runner, tmp_path / "configured", env)

    result = runner.invoke(
        cli, ["--store", str(tmp_path / "flag"), "learn", str(_sample(tmp_path))], env=env
    )

    assert result.exit_code == 0
    assert (tmp_path / "flag" / "learns" / "html.learn1").exists()
    assert not (tmp_path / "configured" / "learns").exists()
