"""Helper utilities for laying out throwaway directory trees in tests."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from arbor.config import RunConfig
from arbor.tree import Tree


class TreeBuilder:
    """Write files and directories under a temporary root and build trees from it."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "root"
        self.root.mkdir()

    def write(self, files: Mapping[str, bytes | str | None]) -> None:
        """Write ``path -> contents`` entries; a None value creates a directory."""
        for relative, content in files.items():
            path = self.root / relative
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            path.write_bytes(content)

    def config(self, **overrides: object) -> RunConfig:
        values: dict[str, object] = {"root": self.root, "threads": 4}
        values.update(overrides)
        return RunConfig(**values)  # type: ignore[arg-type]

    def build(self, **overrides: object) -> Tree:
        """Return a freshly assembled tree of the root directory."""
        return Tree.init(self.config(**overrides))


def relative_paths(tree: Tree) -> list[str]:
    """Relative paths of every node reachable from the root, in display order."""
    root_path = tree.node(tree.root).entry.path
    return [
        tree.node(node_id).entry.path.relative_to(root_path).as_posix()
        for node_id in tree.descendants()
        if node_id != tree.root
    ]


def node_by_path(tree: Tree, relative: str):
    root_path = tree.node(tree.root).entry.path
    target = root_path / relative if relative else root_path
    for node_id in tree.descendants():
        node = tree.node(node_id)
        if node.entry.path == target:
            return node
    raise KeyError(relative)


__all__ = ["TreeBuilder", "node_by_path", "relative_paths"]
