"""Plain-text rendering of a finished tree."""

from __future__ import annotations

from .arena import NodeId
from .tree import Tree

BRANCH: str = "├── "
LAST_BRANCH: str = "└── "
PIPE: str = "│   "
BLANK: str = "    "


def _label(tree: Tree, node_id: NodeId) -> str:
    return tree.node(node_id).entry.name


def _size_text(tree: Tree, node_id: NodeId) -> str:
    size = tree.node(node_id).size
    return size.format() if size is not None else ""


def render_rows(tree: Tree) -> list[tuple[str, str]]:
    """
    Walk the tree depth-first and return ``(size, prefixed name)`` rows.

    Only levels up to ``tree.level`` are included; the root sits at level 0.
    """
    rows: list[tuple[str, str]] = [(_size_text(tree, tree.root), _label(tree, tree.root))]
    level: int = tree.level

    # (node, depth, prefix inherited from ancestors, is last sibling)
    stack: list[tuple[NodeId, int, str, bool]] = []

    def push_children(node_id: NodeId, depth: int, prefix: str) -> None:
        children: list[NodeId] = tree.children(node_id)
        for index in range(len(children) - 1, -1, -1):
            stack.append((children[index], depth, prefix, index == len(children) - 1))

    if level > 0:
        push_children(tree.root, 1, "")

    while stack:
        node_id, depth, prefix, is_last = stack.pop()
        branch: str = LAST_BRANCH if is_last else BRANCH
        rows.append((_size_text(tree, node_id), f"{prefix}{branch}{_label(tree, node_id)}"))

        if depth < level:
            push_children(node_id, depth + 1, prefix + (BLANK if is_last else PIPE))

    return rows


def summary(tree: Tree) -> str:
    count = tree.file_count()
    return (
        f"{count.dirs} {'directory' if count.dirs == 1 else 'directories'}, "
        f"{count.files} {'file' if count.files == 1 else 'files'}, "
        f"{count.links} {'link' if count.links == 1 else 'links'}"
    )


def render(tree: Tree) -> str:
    rows: list[tuple[str, str]] = render_rows(tree)
    width: int = max(len(size) for size, _ in rows)

    lines: list[str] = [f"{size:>{width}} {name}" if width else name for size, name in rows]
    lines.append("")
    lines.append(summary(tree))

    return "\n".join(lines)
