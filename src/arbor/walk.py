import os
import stat
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path

from .config import RunConfig
from .errors import RootNotFoundError
from .ignore import IgnoreStack, PathOverrides
from .logging import get_logger
from .models import Entry, EntryKind, Inode
from .size import measure

Emit = Callable[[Entry], None]

_LOGGER = get_logger("walk")


@dataclass(frozen=True, slots=True)
class DirTask:
    """One directory waiting to be listed by a worker."""

    path: Path
    depth: int
    ignores: IgnoreStack


def canonicalize_root(root: Path) -> tuple[Path, os.stat_result]:
    """
    Resolve ``root`` to an absolute, symlink-free path and read its metadata.

    Raises
    ------
    RootNotFoundError
        If the path cannot be resolved, its metadata cannot be read or it is
        not a directory.
    """
    try:
        resolved: Path = root.expanduser().resolve(strict=True)
        st: os.stat_result = resolved.stat()
    except OSError as e:
        reason: str = e.strerror or str(e)
        raise RootNotFoundError(f"{root}: {reason}") from e

    if not stat.S_ISDIR(st.st_mode):
        raise RootNotFoundError(f"{resolved}: Not a directory")

    return resolved, st


def entry_kind(mode: int) -> EntryKind:
    if stat.S_ISDIR(mode):
        return EntryKind.DIR
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    return EntryKind.OTHER


class ParallelWalker:
    """
    Lists the directory tree below a root with a pool of worker threads.

    Every visited object is handed to ``emit`` as an ``Entry``. The root is
    emitted before any worker is started; after that, entries from different
    directories arrive in whatever order the workers finish in.

    Each directory is emitted and listed at most once. When links are
    followed, the first path to reach a directory claims its (device, inode)
    pair; later links to the same directory, including links back to an
    ancestor, are skipped together with everything below them.
    """

    def __init__(self, config: RunConfig) -> None:
        self.config: RunConfig = config
        self.root, root_stat = canonicalize_root(config.root)
        self.root_inode: Inode = Inode(device=root_stat.st_dev, ino=root_stat.st_ino, nlink=root_stat.st_nlink)
        self.root_entry: Entry = Entry(path=self.root, depth=0, kind=EntryKind.DIR, inode=self.root_inode)
        self._visited_dirs: set[tuple[int, int]] = {self.root_inode.identity}
        self._visited_lock: threading.Lock = threading.Lock()
        self.overrides: PathOverrides = PathOverrides.build(config.globs, config.glob_case_insensitive)

    def walk(self, emit: Emit) -> None:
        emit(self.root_entry)

        first: DirTask = DirTask(path=self.root, depth=0, ignores=IgnoreStack())

        with ThreadPoolExecutor(max_workers=self.config.threads, thread_name_prefix="arbor-walk") as executor:
            in_flight: dict[Future[list[DirTask]], Path] = {}

            def submit(task: DirTask) -> None:
                future: Future[list[DirTask]] = executor.submit(self._scan, task, emit)
                in_flight[future] = task.path

            submit(first)

            while in_flight:
                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    _ = in_flight.pop(future)
                    for child in future.result():
                        submit(child)

    def _scan(self, task: DirTask, emit: Emit) -> list[DirTask]:
        """List one directory, emit its surviving children and return its subdirectories."""
        ignores: IgnoreStack = task.ignores if self.config.no_ignore else task.ignores.descend(task.path)

        try:
            with os.scandir(task.path) as it:
                dir_entries: list[os.DirEntry[str]] = list(it)
            # Real directories before links, so a link never shadows its sibling target.
            dir_entries.sort(key=lambda dir_entry: dir_entry.is_symlink())
        except OSError as e:
            _LOGGER.debug("Skipping unreadable directory %s: %s", task.path, e)
            return []

        subdirs: list[DirTask] = []

        for dir_entry in dir_entries:
            try:
                child: DirTask | None = self._visit(dir_entry, task, ignores, emit)
            except OSError as e:
                _LOGGER.debug("Skipping %s: %s", dir_entry.path, e)
                continue

            if child is not None:
                subdirs.append(child)

        return subdirs

    def _visit(
        self, dir_entry: os.DirEntry[str], task: DirTask, ignores: IgnoreStack, emit: Emit
    ) -> DirTask | None:
        follow: bool = self.config.follow_links
        path: Path = task.path / dir_entry.name
        is_symlink: bool = dir_entry.is_symlink()
        is_dir: bool = dir_entry.is_dir(follow_symlinks=follow)

        if not self._included(path, dir_entry.name, is_dir, ignores):
            return None

        try:
            st: os.stat_result = dir_entry.stat(follow_symlinks=follow)
        except FileNotFoundError:
            if not (follow and is_symlink):
                raise
            # Dangling link: report the link itself.
            st = dir_entry.stat(follow_symlinks=False)

        kind: EntryKind = entry_kind(st.st_mode)
        inode: Inode = Inode(device=st.st_dev, ino=st.st_ino, nlink=st.st_nlink)

        if kind is EntryKind.DIR and follow and not self._claim(inode):
            _LOGGER.debug("Skipping %s: directory already visited through another path", path)
            return None

        entry: Entry = Entry(
            path=path,
            depth=task.depth + 1,
            kind=kind,
            size=measure(st, self.config.disk_usage) if kind is EntryKind.FILE else None,
            inode=inode,
        )
        emit(entry)

        if kind is not EntryKind.DIR:
            return None

        return DirTask(path=path, depth=entry.depth, ignores=ignores)

    def _claim(self, inode: Inode) -> bool:
        """Record a directory as visited; False if some path already reached it."""
        with self._visited_lock:
            if inode.identity in self._visited_dirs:
                return False
            self._visited_dirs.add(inode.identity)
            return True

    def _included(self, path: Path, name: str, is_dir: bool, ignores: IgnoreStack) -> bool:
        rel_path: str = path.relative_to(self.root).as_posix()

        override: bool | None = self.overrides.matched(rel_path, is_dir)
        if override is not None:
            return override

        if not self.config.hidden and name.startswith("."):
            return False

        if not self.config.no_ignore and ignores.is_ignored(path, is_dir):
            return False

        return True
