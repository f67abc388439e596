"""
Assembly of the in-memory tree from the parallel walk.

The walk delivers entries in no particular order beyond the root coming
first, so building the tree happens in two phases. The ``Collector`` drains
the walker's channel on a single thread, inserting every entry into the arena
and remembering which handles belong under which parent path. Once the walk
has finished, ``assemble`` links children to their parents bottom-up,
aggregating directory sizes and ordering siblings on the way. Only one
thread ever mutates the arena, so no locking is involved.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import islice
from pathlib import Path
from queue import Queue
from typing import Any, TypeAlias

from .arena import Arena, Node, NodeId
from .config import RunConfig
from .errors import MissingParentError, MissingRootError
from .logging import get_logger
from .models import Entry, FileCount, SortKey, WalkDone
from .size import FileSize
from .walk import ParallelWalker

Channel: TypeAlias = "Queue[Entry | WalkDone]"
NodeKey = Callable[[Node], Any]

_LOGGER = get_logger("tree")


def empty_size(config: RunConfig, nbytes: int = 0) -> FileSize:
    return FileSize(bytes=nbytes, disk_usage=config.disk_usage, prefix=config.prefix, scale=config.scale)


class Collector:
    """Single consumer of walker output; the only writer of the arena."""

    def __init__(self, config: RunConfig) -> None:
        self.config: RunConfig = config
        self.arena: Arena = Arena()
        self.pending: dict[Path, list[NodeId]] = {}
        self.inodes: set[tuple[int, int]] = set()
        self.root: NodeId | None = None
        self.duplicates: int = 0

    def insert(self, entry: Entry) -> None:
        if entry.depth == 0:
            self.root = self.arena.new_node(entry)
            _ = self.pending.setdefault(entry.path, [])
            return

        # Only the first alias of a hard-linked file becomes a node. Directory
        # aliases never reach the channel: the walker lists each directory once.
        if not entry.is_dir() and entry.inode is not None and entry.inode.nlink > 1:
            identity: tuple[int, int] = entry.inode.identity
            if identity in self.inodes:
                self.duplicates += 1
                return
            self.inodes.add(identity)

        parent: Path | None = entry.parent_path
        if parent is None:
            raise MissingParentError(f"{entry.path}: entry has no parent directory")

        size: FileSize | None = empty_size(self.config, entry.size) if entry.size is not None else None
        node_id: NodeId = self.arena.new_node(entry, size)

        self.pending.setdefault(parent, []).append(node_id)

        if entry.is_dir():
            _ = self.pending.setdefault(entry.path, [])

    def drain(self, channel: Channel) -> NodeId:
        """Consume events until the walk is done and return the root handle."""
        while True:
            event: Entry | WalkDone = channel.get()
            if isinstance(event, WalkDone):
                break
            self.insert(event)

        if self.root is None:
            raise MissingRootError()

        _LOGGER.debug("Collected %d entries, dropped %d hard-link aliases", len(self.arena), self.duplicates)

        return self.root


def sort_key(config: RunConfig) -> NodeKey | None:
    """Return the key siblings are ordered by, or None to keep arrival order."""
    if config.sort is SortKey.NAME:
        return lambda node: node.entry.name
    if config.sort is SortKey.SIZE:
        return lambda node: node.size.bytes if node.size is not None else 0
    if config.sort is SortKey.TYPE:
        return lambda node: (not node.is_dir(), node.entry.name)
    return None


def assemble(arena: Arena, root: NodeId, pending: dict[Path, list[NodeId]], config: RunConfig) -> None:
    """
    Attach every collected child to its parent, starting at ``root``.

    Directories are finished in post-order: a directory's size is computed
    from its children only after each child directory has been assembled.
    An explicit stack is used so that very deep trees do not run into the
    interpreter's recursion limit.
    """
    key: NodeKey | None = sort_key(config)

    stack: list[tuple[NodeId, list[NodeId] | None]] = [(root, None)]

    while stack:
        node_id, children = stack.pop()

        if children is None:
            path: Path = arena[node_id].entry.path
            try:
                children = pending.pop(path)
            except KeyError:
                raise MissingParentError(f"{path}: no children were registered for this directory") from None

            stack.append((node_id, children))
            stack.extend((child_id, None) for child_id in children if arena[child_id].is_dir())
            continue

        _finish_directory(arena, node_id, children, config, key)


def _finish_directory(
    arena: Arena, node_id: NodeId, children: list[NodeId], config: RunConfig, key: NodeKey | None
) -> None:
    total: FileSize = empty_size(config)

    for child_id in children:
        child_size: FileSize | None = arena[child_id].size
        if child_size is not None:
            total += child_size

    # A directory with nothing sized below it keeps no size at all.
    if total.bytes > 0:
        arena[node_id].size = total

    if key is not None:
        children.sort(key=lambda child_id: key(arena[child_id]), reverse=config.reverse)

    for child_id in children:
        arena.append(node_id, child_id)


def prune_empty_directories(arena: Arena, root: NodeId) -> int:
    """Remove childless directories below ``root`` until none are left."""
    removed: int = 0

    while True:
        to_prune: list[NodeId] = [
            node_id
            for node_id in islice(arena.descendants(root), 1, None)
            if arena[node_id].is_dir() and arena[node_id].first_child is None
        ]

        if not to_prune:
            return removed

        for node_id in to_prune:
            arena.remove_subtree(node_id)

        removed += len(to_prune)


def retain_directories(arena: Arena, root: NodeId) -> int:
    """Detach every non-directory node below ``root``."""
    to_detach: list[NodeId] = [
        node_id for node_id in islice(arena.descendants(root), 1, None) if not arena[node_id].is_dir()
    ]

    for node_id in to_detach:
        arena.detach(node_id)

    return len(to_detach)


def traverse(config: RunConfig) -> tuple[Arena, NodeId]:
    """
    Walk ``config.root`` in parallel and build the finished arena.

    The walker runs on the calling thread (fanning out to its own workers)
    while the collector drains the channel on a separate thread. Assembly and
    the optional filters run once the walk has signalled completion.
    """
    walker: ParallelWalker = ParallelWalker(config)
    collector: Collector = Collector(config)
    channel: Channel = Queue()

    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="arbor-collect") as pool:
        collected: Future[NodeId] = pool.submit(collector.drain, channel)
        try:
            walker.walk(channel.put)
        finally:
            channel.put(WalkDone())
        root: NodeId = collected.result()

    arena: Arena = collector.arena

    assemble(arena, root, collector.pending, config)

    if config.prune:
        pruned: int = prune_empty_directories(arena, root)
        _LOGGER.debug("Pruned %d empty directories", pruned)

    if config.dirs_only:
        detached: int = retain_directories(arena, root)
        _LOGGER.debug("Detached %d non-directory nodes", detached)

    return arena, root


class Tree:
    """Finished, read-only tree of a directory subtree."""

    def __init__(self, arena: Arena, root: NodeId, config: RunConfig) -> None:
        self._arena: Arena = arena
        self._root: NodeId = root
        self._config: RunConfig = config

    @classmethod
    def init(cls, config: RunConfig) -> Tree:
        arena, root = traverse(config)
        return cls(arena, root, config)

    @property
    def root(self) -> NodeId:
        return self._root

    @property
    def arena(self) -> Arena:
        return self._arena

    @property
    def config(self) -> RunConfig:
        return self._config

    @property
    def level(self) -> int:
        """Deepest level to display."""
        return self._config.level if self._config.level is not None else sys.maxsize

    def node(self, node_id: NodeId) -> Node:
        return self._arena[node_id]

    def children(self, node_id: NodeId) -> list[NodeId]:
        return list(self._arena.children(node_id))

    def descendants(self, node_id: NodeId | None = None) -> list[NodeId]:
        start: NodeId = self._root if node_id is None else node_id
        return list(self._arena.descendants(start))

    def file_count(self, node_id: NodeId | None = None) -> FileCount:
        """Count every node below ``node_id`` (the root by default) by kind."""
        start: NodeId = self._root if node_id is None else node_id
        count: FileCount = FileCount()

        for descendant_id in islice(self._arena.descendants(start), 1, None):
            count.update(self._arena[descendant_id].entry)

        return count
