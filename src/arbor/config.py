from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import NoReturn, TypedDict, TypeVar, cast

import yaml

from .errors import ConfigError
from .models import DiskUsage, PrefixKind, SortKey


class RawRunConfig(TypedDict, total=False):
    root: str
    threads: int
    follow_links: bool
    no_ignore: bool
    hidden: bool
    prune: bool
    dirs_only: bool
    sort: str
    reverse: bool
    disk_usage: str
    prefix: str
    scale: int
    level: int | None
    globs: list[str]
    glob_case_insensitive: bool


class RawConfigFile(TypedDict):
    config: RawRunConfig


CONFIG_FILENAME: Path = Path(".arbor.yaml")

E = TypeVar("E", bound=Enum)


def type_error(key: str, value: object) -> NoReturn:
    raise ConfigError(f"Unexpected value of wrong type for {key!r}: {value!r}")


def default_threads() -> int:
    return os.cpu_count() or 1


def _as_enum(enum_type: type[E], key: str, value: object) -> E:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        type_error(key, value)
    try:
        return enum_type(value.lower())
    except ValueError:
        choices: str = ", ".join(member.value for member in enum_type)
        raise ConfigError(f"Invalid value for {key!r}: {value!r} (expected one of: {choices})") from None


def _as_bool(key: str, value: object) -> bool:
    if not isinstance(value, bool):
        type_error(key, value)
    return value


def _as_int(key: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        type_error(key, value)
    return value


@dataclass(slots=True)
class RunConfig:
    root: Path = Path(".")
    threads: int = field(default_factory=default_threads)
    follow_links: bool = False
    no_ignore: bool = False
    hidden: bool = False
    prune: bool = False
    dirs_only: bool = False
    sort: SortKey = SortKey.NONE
    reverse: bool = False
    disk_usage: DiskUsage = DiskUsage.LOGICAL
    prefix: PrefixKind = PrefixKind.BIN
    scale: int = 2
    level: int | None = None
    globs: list[str] = field(default_factory=list)
    glob_case_insensitive: bool = False

    def __post_init__(self) -> None:
        if self.threads < 1:
            raise ConfigError(f"threads must be >= 1, got {self.threads}")
        if self.scale < 0:
            raise ConfigError(f"scale must be >= 0, got {self.scale}")
        if self.level is not None and self.level < 0:
            raise ConfigError(f"level must be >= 0, got {self.level}")

    @staticmethod
    def load(path: Path = CONFIG_FILENAME) -> RunConfig:
        if not path.exists():
            return RunConfig()

        try:
            with path.open("r", encoding="UTF-8") as f:
                raw_loaded_obj: object | None = cast(object, yaml.safe_load(f))
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e

        if not raw_loaded_obj:
            return RunConfig()

        if not isinstance(raw_loaded_obj, dict):
            type_error("<root>", raw_loaded_obj)

        raw_dict: dict[str, object] = cast(dict[str, object], raw_loaded_obj)

        cfg_raw: object | None = raw_dict.get("config")
        if cfg_raw is None:
            return RunConfig()
        if not isinstance(cfg_raw, dict):
            type_error("config", cfg_raw)

        return RunConfig.from_raw(cast(dict[str, object], cfg_raw))

    @staticmethod
    def from_raw(cfg: dict[str, object]) -> RunConfig:
        known: set[str] = {f.name for f in fields(RunConfig)}
        unknown: list[str] = sorted(set(cfg) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        values: dict[str, object] = {}

        for key, value in cfg.items():
            if key == "root":
                if not isinstance(value, str):
                    type_error(key, value)
                values[key] = Path(value)
            elif key == "sort":
                values[key] = _as_enum(SortKey, key, value)
            elif key == "disk_usage":
                values[key] = _as_enum(DiskUsage, key, value)
            elif key == "prefix":
                values[key] = _as_enum(PrefixKind, key, value)
            elif key in ("threads", "scale"):
                values[key] = _as_int(key, value)
            elif key == "level":
                values[key] = None if value is None else _as_int(key, value)
            elif key == "globs":
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    type_error(key, value)
                values[key] = list(cast(list[str], value))
            else:
                values[key] = _as_bool(key, value)

        return RunConfig(**values)  # type: ignore[arg-type]

    def with_overrides(self, **overrides: object) -> RunConfig:
        """Return a copy with every override that is not None applied."""
        changes: dict[str, object] = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)  # type: ignore[arg-type]

    def save(self, path: Path = CONFIG_FILENAME) -> None:
        raw: RawConfigFile = {"config": self.to_raw()}
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(raw, f, sort_keys=False)

    def to_raw(self) -> RawRunConfig:
        return {
            "root": str(self.root),
            "threads": self.threads,
            "follow_links": self.follow_links,
            "no_ignore": self.no_ignore,
            "hidden": self.hidden,
            "prune": self.prune,
            "dirs_only": self.dirs_only,
            "sort": self.sort.value,
            "reverse": self.reverse,
            "disk_usage": self.disk_usage.value,
            "prefix": self.prefix.value,
            "scale": self.scale,
            "level": self.level,
            "globs": list(self.globs),
            "glob_case_insensitive": self.glob_case_insensitive,
        }
