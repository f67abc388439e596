"""Ignore-file rules and explicit path overrides applied while walking."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path

import pathspec

from .logging import get_logger

IGNORE_FILENAME = ".gitignore"

_LOGGER = get_logger("ignore")


@dataclass(frozen=True, slots=True)
class IgnoreRule:
    """
    One pattern line parsed from a .gitignore file.

    Matching follows git's wildmatch rules through ``pathspec``: ``*`` stops
    at ``/``, ``**`` spans any number of directories and a pattern with an
    inner slash is anchored to the directory holding the ignore file. The
    leading ``!`` is kept out of the compiled matcher so that a negated rule
    still reports a match and can re-include a path.
    """

    pattern: str
    negate: bool
    matcher: pathspec.PathSpec

    @property
    def directory_only(self) -> bool:
        return self.pattern.endswith("/")

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        # Directories carry a trailing slash so "name/" rules only hit them.
        subject: str = f"{rel_path}/" if is_dir else rel_path
        return self.matcher.match_file(subject)


def build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern == "/":
        return None

    try:
        matcher: pathspec.PathSpec = pathspec.PathSpec.from_lines("gitwildmatch", [pattern])
    except ValueError as e:
        _LOGGER.debug("Skipping malformed ignore pattern %r: %s", pattern, e)
        return None

    return IgnoreRule(pattern=pattern, negate=negate, matcher=matcher)


def parse_ignore_lines(lines: list[str]) -> tuple[IgnoreRule, ...]:
    rules: list[IgnoreRule] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


def parse_ignore_file(path: Path) -> tuple[IgnoreRule, ...]:
    try:
        text: str = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return ()
    except OSError as e:
        _LOGGER.debug("Skipping unreadable ignore file %s: %s", path, e)
        return ()
    return parse_ignore_lines(text.splitlines())


@dataclass(frozen=True, slots=True)
class IgnoreLayer:
    base: Path
    rules: tuple[IgnoreRule, ...]


@dataclass(frozen=True, slots=True)
class IgnoreStack:
    """
    Ignore rules in effect for one directory.

    Each layer holds the rules of one ignore file and is matched relative to
    the directory that file lives in. Layers are ordered outermost first and
    the last matching rule decides, so deeper files override shallower ones.
    The stack is immutable and can be handed to other threads as is.
    """

    layers: tuple[IgnoreLayer, ...] = ()

    def descend(self, directory: Path) -> IgnoreStack:
        rules: tuple[IgnoreRule, ...] = parse_ignore_file(directory / IGNORE_FILENAME)
        if not rules:
            return self
        return IgnoreStack(layers=self.layers + (IgnoreLayer(base=directory, rules=rules),))

    def is_ignored(self, path: Path, is_dir: bool) -> bool:
        ignored: bool = False
        for layer in self.layers:
            try:
                rel_path: str = path.relative_to(layer.base).as_posix()
            except ValueError:
                continue
            for rule in layer.rules:
                if rule.matches(rel_path, is_dir):
                    ignored = not rule.negate
        return ignored


@dataclass(frozen=True, slots=True)
class OverrideGlob:
    pattern: str
    negate: bool
    has_slash: bool


@dataclass(frozen=True, slots=True)
class PathOverrides:
    """
    Explicit include/exclude globs given on the command line.

    A plain glob whitelists matching paths; a glob prefixed with ``!``
    excludes them. The last matching glob wins. Once any whitelist glob is
    configured, files matching no glob at all are excluded. Directories are
    never excluded for failing to match a whitelist glob, so the walk can
    still reach matching files below them.
    """

    globs: tuple[OverrideGlob, ...] = ()
    case_insensitive: bool = False

    @staticmethod
    def build(patterns: list[str], case_insensitive: bool = False) -> PathOverrides:
        globs: list[OverrideGlob] = []
        for raw in patterns:
            pattern: str = raw.strip()
            negate: bool = pattern.startswith("!")
            if negate:
                pattern = pattern[1:]
            pattern = pattern.lstrip("/")
            if not pattern:
                continue
            if case_insensitive:
                pattern = pattern.lower()
            globs.append(OverrideGlob(pattern=pattern, negate=negate, has_slash="/" in pattern))
        return PathOverrides(globs=tuple(globs), case_insensitive=case_insensitive)

    @property
    def has_whitelist(self) -> bool:
        return any(not glob.negate for glob in self.globs)

    def matched(self, rel_path: str, is_dir: bool) -> bool | None:
        """
        Return True when whitelisted, False when excluded, None when the
        overrides have no opinion about ``rel_path``.
        """
        if not self.globs:
            return None

        target: str = rel_path.lower() if self.case_insensitive else rel_path
        name: str = target.rsplit("/", 1)[-1]

        decision: bool | None = None
        for glob in self.globs:
            subject: str = target if glob.has_slash else name
            if fnmatchcase(subject, glob.pattern):
                decision = not glob.negate

        if decision is None and self.has_whitelist and not is_dir:
            return False
        return decision
