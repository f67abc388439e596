"""Command-line behaviour tests."""

from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from arbor.main import app
from tests._fixtures.tree_builder import TreeBuilder

runner = CliRunner()


def test_prints_tree_and_summary(tree_builder: TreeBuilder, tmp_path: Path) -> None:
    tree_builder.write({"x": b"0" * 10, "empty": None, "b/y": b"0" * 5})

    result = runner.invoke(
        app, [str(tree_builder.root), "--prune", "--sort", "name", "--config", str(tmp_path / "none.yaml")]
    )

    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0].endswith(" root")
    assert "15 B" in lines[0]
    assert not any("empty" in line for line in lines)
    assert lines[-1] == "1 directory, 2 files, 0 links"


def test_missing_root_exits_with_diagnostic(tmp_path: Path) -> None:
    result = runner.invoke(app, [str(tmp_path / "missing"), "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 1
    assert "arbor:" in result.output
    assert "missing" in result.output


def test_config_file_supplies_defaults_and_flags_override(tree_builder: TreeBuilder, tmp_path: Path) -> None:
    tree_builder.write({"a/deep.txt": "d", "top.txt": "t"})
    config_path = tmp_path / "arbor.yaml"
    config_path.write_text(
        yaml.safe_dump({"config": {"root": str(tree_builder.root), "dirs_only": True, "sort": "name"}}),
        encoding="utf-8",
    )

    from_file = runner.invoke(app, ["--config", str(config_path)])
    assert from_file.exit_code == 0, from_file.output
    assert "top.txt" not in from_file.output

    overridden = runner.invoke(app, ["--config", str(config_path), "--all-entries"])
    assert overridden.exit_code == 0, overridden.output
    assert "top.txt" in overridden.output


def test_invalid_config_exits_with_diagnostic(tmp_path: Path) -> None:
    config_path = tmp_path / "arbor.yaml"
    config_path.write_text("config:\n  sort: sideways\n", encoding="utf-8")

    result = runner.invoke(app, [str(tmp_path), "--config", str(config_path)])

    assert result.exit_code == 1
    assert "sideways" in result.output


def test_level_option_limits_output(tree_builder: TreeBuilder, tmp_path: Path) -> None:
    tree_builder.write({"a/b/c.txt": "c"})

    result = runner.invoke(app, [str(tree_builder.root), "-L", "1", "--config", str(tmp_path / "none.yaml")])

    assert result.exit_code == 0, result.output
    assert "c.txt" not in result.output
    assert "└── a" in result.output


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.output.strip()


def test_log_file_records_pipeline_phases(tree_builder: TreeBuilder, tmp_path: Path) -> None:
    tree_builder.write({"f.txt": "f"})
    log_file = tmp_path / "run.log"

    result = runner.invoke(
        app, [str(tree_builder.root), "--log-file", str(log_file), "--config", str(tmp_path / "none.yaml")]
    )

    assert result.exit_code == 0, result.output
    assert "Collected" in log_file.read_text(encoding="utf-8")
    assert "Collected" not in result.output
