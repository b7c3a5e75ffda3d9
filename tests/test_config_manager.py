"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from iconsmith.config import (
    ConfigError,
    ConfigManager,
    IconSmithConfig,
    flatten_for_env,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path.exists()
    assert path == tmp_path / ".iconsmith" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "IconSmith configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, IconSmithConfig)
    assert config.history.undo_max_entries == 50
    assert config.history.recent_icons_max == 10


def test_resolve_with_precedence_respects_order(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.save({"history": {"activity_max_entries": 20}, "logging": {"level": "INFO"}})

    env = {"ICONSMITH__LOGGING__LEVEL": "DEBUG", "ICONSMITH__CLI__HISTORY_LIMIT": "5"}
    cli = {"cli.history_limit": 3}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.history.activity_max_entries == 20
    assert config.logging.level == "DEBUG"
    # CLI overrides take precedence over environment
    assert config.cli.history_limit == 3


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_unknown_keys_are_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"history": {"undo_depth": 3}})

    with pytest.raises(ConfigError):
        manager.load(include_env=False)


def test_flatten_for_env_round_trips_defaults() -> None:
    flat = flatten_for_env(IconSmithConfig())

    assert flat["ICONSMITH__HISTORY__UNDO_MAX_ENTRIES"] == "50"
    assert flat["ICONSMITH__SCANNING__INCLUDE_HIDDEN"] == "False"
    assert flat["ICONSMITH__STORAGE__DATA_DIR"] == "~/.iconsmith/data"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=IconSmithConfig(),
            file_overrides={"history": {"undo_max_entries": "not-an-int"}},
        )
