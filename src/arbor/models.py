from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EntryKind(str, Enum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"


class DiskUsage(str, Enum):
    """How many bytes a file is said to occupy."""

    LOGICAL = "logical"
    PHYSICAL = "physical"


class PrefixKind(str, Enum):
    BIN = "bin"
    SI = "si"


class SortKey(str, Enum):
    NONE = "none"
    NAME = "name"
    SIZE = "size"
    TYPE = "type"


@dataclass(frozen=True, slots=True)
class Inode:
    device: int
    ino: int
    nlink: int

    @property
    def identity(self) -> tuple[int, int]:
        return (self.device, self.ino)


@dataclass(frozen=True, slots=True)
class Entry:
    """
    One filesystem object discovered by the walk.

    ``size`` is only set for regular files and already reflects the
    configured disk usage policy.
    """

    path: Path
    depth: int
    kind: EntryKind
    size: int | None = None
    inode: Inode | None = None

    @property
    def name(self) -> str:
        return self.path.name or str(self.path)

    @property
    def parent_path(self) -> Path | None:
        parent: Path = self.path.parent
        if parent == self.path:
            return None
        return parent

    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIR


@dataclass(frozen=True, slots=True)
class WalkDone:
    """Sentinel put on the channel once every walker task has finished."""


@dataclass(slots=True)
class FileCount:
    dirs: int = 0
    files: int = 0
    links: int = 0

    def update(self, entry: Entry) -> None:
        if entry.kind is EntryKind.DIR:
            self.dirs += 1
        elif entry.kind is EntryKind.SYMLINK:
            self.links += 1
        else:
            self.files += 1
