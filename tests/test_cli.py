"""CLI integration tests."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List

import yaml
from click.testing import CliRunner
from PIL import Image

from iconsmith.cli import cli
from iconsmith.deeplink import build_apply_uri


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set.
    """
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def _files(root: Path, names: List[str]) -> List[Path]:
    root.mkdir(parents=True, exist_ok=True)
    paths = []
    for name in names:
        path = root / name
        path.write_text(name, encoding="utf-8")
        paths.append(path)
    return paths


def _import_icon(runner: CliRunner, tmp_path: Path, env: dict[str, str]) -> str:
    image = tmp_path / "badge.png"
    Image.new("RGB", (24, 24), (220, 40, 40)).save(image, format="PNG")
    result = runner.invoke(cli, ["library", "import", str(image), "--category", "code"], env=env)
    assert result.exit_code == 0, result.output

    listing = runner.invoke(cli, ["library", "list", "--json"], env=env)
    assert listing.exit_code == 0, listing.output
    (icon,) = json.loads(listing.output)
    assert icon["name"] == "badge"
    assert icon["category"] == "code"
    return icon["id"]


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "IconSmith assigns custom file icons" in result.output
    for command in ("scan", "check", "fix", "apply", "undo", "library", "preset", "folders"):
        assert command in result.output


def test_apply_history_and_undo(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    icon_id = _import_icon(runner, tmp_path, env)
    files = _files(tmp_path / "docs", ["a.txt", "b.txt"])

    result = runner.invoke(
        cli, ["apply", icon_id, *map(str, files), str(tmp_path / "ghost.txt"), "--json"], env=env
    )
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["counts"] == {"succeeded": 2, "failed": 1}
    assert payload["failed"][0]["error"] == "File not found: ghost.txt"

    history = runner.invoke(cli, ["history", "--json"], env=env)
    assert history.exit_code == 0, history.output
    (entry,) = json.loads(history.output)
    assert entry["action"] == "batchApplied"
    assert entry["iconUsed"] == icon_id

    listing = json.loads(runner.invoke(cli, ["library", "list", "--json"], env=env).output)
    assert listing[0]["usageCount"] == 1

    undo = runner.invoke(cli, ["undo", "--json"], env=env)
    assert undo.exit_code == 0, undo.output
    assert json.loads(undo.output)["undone"] is True
    assert json.loads(undo.output)["remaining"] == 1


def test_apply_unknown_icon_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    (target,) = _files(tmp_path / "docs", ["a.txt"])

    result = runner.invoke(
        cli, ["apply", "00000000-0000-0000-0000-000000000000", str(target)], env=env
    )

    assert result.exit_code != 0
    assert "No icon with id" in result.output


def test_scan_lists_files(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    root = tmp_path / "project"
    _files(root, ["main.py", "notes.md", ".secret"])

    result = runner.invoke(cli, ["scan", str(root), "--json"], env=env)

    assert result.exit_code == 0, result.output
    records = json.loads(result.output)
    assert sorted(record["filename"] for record in records) == ["main.py", "notes.md"]

    filtered = runner.invoke(cli, ["scan", str(root), "--ext", "PY", "--json"], env=env)
    assert [record["extension"] for record in json.loads(filtered.output)] == ["py"]


def test_check_and_fix_inconsistencies(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    icon_id = _import_icon(runner, tmp_path, env)
    root = tmp_path / "project"
    files = _files(root, [f"{index}.txt" for index in range(5)])
    applied = runner.invoke(cli, ["apply", icon_id, *map(str, files[:3])], env=env)
    assert applied.exit_code == 0, applied.output

    check = runner.invoke(cli, ["check", str(root), "--json"], env=env)
    assert check.exit_code == 0, check.output
    (found,) = json.loads(check.output)
    assert found["extension"] == "txt"
    assert found["differentIconCount"] == 2
    assert len(found["outlierFiles"]) == 2

    dry_run = runner.invoke(cli, ["fix", str(root), "--dry-run"], env=env)
    assert dry_run.exit_code == 0, dry_run.output
    assert "Would update 2 .txt file(s)" in dry_run.output

    fix = runner.invoke(cli, ["fix", str(root)], env=env)
    assert fix.exit_code == 0, fix.output
    assert "fixed=2" in fix.output

    recheck = runner.invoke(cli, ["check", str(root), "--json"], env=env)
    assert json.loads(recheck.output) == []


def test_presets_workflow(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    icon_id = _import_icon(runner, tmp_path, env)
    root = tmp_path / "notes"
    _files(root, ["a.md", "b.MD", "c.txt"])

    created = runner.invoke(cli, ["preset", "create", "Docs"], env=env)
    assert created.exit_code == 0, created.output
    (preset,) = json.loads(runner.invoke(cli, ["preset", "list", "--json"], env=env).output)

    mapped = runner.invoke(cli, ["preset", "set", preset["id"], ".MD", icon_id], env=env)
    assert mapped.exit_code == 0, mapped.output

    applied = runner.invoke(cli, ["preset", "apply", preset["id"], str(root), "--json"], env=env)
    assert applied.exit_code == 0, applied.output
    assert json.loads(applied.output)["md"]["counts"]["succeeded"] == 2

    duplicated = runner.invoke(cli, ["preset", "duplicate", preset["id"]], env=env)
    assert duplicated.exit_code == 0, duplicated.output
    listing = runner.invoke(cli, ["preset", "list", "--json"], env=env)
    assert [item["name"] for item in json.loads(listing.output)] == ["Docs", "Docs Copy"]

    unset = runner.invoke(cli, ["preset", "unset", preset["id"], "md"], env=env)
    assert unset.exit_code == 0, unset.output
    (first, _) = json.loads(runner.invoke(cli, ["preset", "list", "--json"], env=env).output)
    assert first["mappings"] == {}


def test_folders_add_list_remove(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    folder = tmp_path / "photos"
    folder.mkdir()

    added = runner.invoke(cli, ["folders", "add", str(folder)], env=env)
    assert added.exit_code == 0, added.output
    (item,) = json.loads(runner.invoke(cli, ["folders", "list", "--json"], env=env).output)
    assert item["path"] == str(folder.resolve())

    removed = runner.invoke(cli, ["folders", "rm", item["id"]], env=env)
    assert removed.exit_code == 0, removed.output
    assert json.loads(runner.invoke(cli, ["folders", "list", "--json"], env=env).output) == []


def test_open_link_reports_pending_files(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    files = _files(tmp_path / "docs", ["a.txt", "b.txt"])

    result = runner.invoke(cli, ["open", build_apply_uri(files), "--json"], env=env)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"pending": [str(path.resolve()) for path in files]}

    bad = runner.invoke(cli, ["open", "https://example.com", "--json"], env=env)
    assert bad.exit_code == 1
    assert json.loads(bad.output)["error"]["code"] == "deeplink_error"


def test_config_view_and_set(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    view = runner.invoke(cli, ["config", "view"], env=env)
    assert view.exit_code == 0, view.output
    assert "undo_max_entries" in view.output

    updated = runner.invoke(cli, ["config", "set", "cli.history_limit", "--value", "3"], env=env)
    assert updated.exit_code == 0, updated.output

    config_path = tmp_path / "home" / ".iconsmith" / "config.yaml"
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    assert data["cli"]["history_limit"] == 3

    invalid = runner.invoke(cli, ["config", "set", "cli.history_limit", "--value", "many"], env=env)
    assert invalid.exit_code != 0
    data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    assert data["cli"]["history_limit"] == 3


def test_history_empty_message(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["history"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "No recent activity" in result.output


def test_load_warnings_reach_log_file(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    data_dir = tmp_path / "home" / ".iconsmith" / "data"
    data_dir.mkdir(parents=True)
    (data_dir / "presets.json").write_text("{not json", encoding="utf-8")

    result = runner.invoke(cli, ["preset", "list", "--json"], env=env)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == []
    log_text = (data_dir / "iconsmith.log").read_text(encoding="utf-8")
    assert "presets.json" in log_text
