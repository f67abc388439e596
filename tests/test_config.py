"""Tests for arbor.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from arbor.config import RunConfig
from arbor.errors import ConfigError
from arbor.models import DiskUsage, PrefixKind, SortKey


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    cfg = RunConfig.load(tmp_path / "absent.yaml")

    assert cfg.root == Path(".")
    assert cfg.threads >= 1
    assert cfg.sort is SortKey.NONE
    assert cfg.level is None


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / ".arbor.yaml"
    cfg = RunConfig(
        root=tmp_path,
        threads=3,
        hidden=True,
        prune=True,
        sort=SortKey.SIZE,
        reverse=True,
        disk_usage=DiskUsage.PHYSICAL,
        prefix=PrefixKind.SI,
        scale=1,
        level=2,
        globs=["*.py", "!test_*"],
    )

    cfg.save(path)

    assert RunConfig.load(path) == cfg


def test_load_reads_partial_mapping(tmp_path: Path) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text("config:\n  sort: Name\n  dirs_only: true\n", encoding="utf-8")

    cfg = RunConfig.load(path)

    assert cfg.sort is SortKey.NAME
    assert cfg.dirs_only is True
    assert cfg.prune is False


@pytest.mark.parametrize(
    "body",
    [
        "config:\n  sort: sideways\n",
        "config:\n  threads: many\n",
        "config:\n  hidden: 'yes'\n",
        "config:\n  colour: red\n",
        "config:\n  threads: 0\n",
        "config: [1, 2]\n",
        "- just\n- a list\n",
        "config: {unterminated\n",
    ],
)
def test_invalid_files_raise_config_error(tmp_path: Path, body: str) -> None:
    path = tmp_path / "cfg.yaml"
    path.write_text(body, encoding="utf-8")

    with pytest.raises(ConfigError):
        RunConfig.load(path)


def test_with_overrides_ignores_none_values() -> None:
    cfg = RunConfig(threads=2, hidden=True)

    updated = cfg.with_overrides(threads=None, hidden=None, prune=True, level=1)

    assert updated.threads == 2
    assert updated.hidden is True
    assert updated.prune is True
    assert updated.level == 1
    assert cfg.prune is False


def test_overrides_are_validated() -> None:
    with pytest.raises(ConfigError):
        RunConfig().with_overrides(threads=0)
