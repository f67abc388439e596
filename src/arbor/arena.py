from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from .models import Entry
from .size import FileSize

NodeId = int


@dataclass(slots=True)
class Node:
    entry: Entry
    size: FileSize | None = None
    parent: NodeId | None = None
    first_child: NodeId | None = None
    last_child: NodeId | None = None
    previous_sibling: NodeId | None = None
    next_sibling: NodeId | None = None

    def is_dir(self) -> bool:
        return self.entry.is_dir()


class Arena:
    """
    Pool of tree nodes addressed by integer handles.

    Structural links are stored as handles on each node rather than as object
    references, so a node can be reached from its parent, children and
    siblings in constant time. Handles stay valid for the life of the arena:
    detaching or removing a node unlinks it but never reuses its slot.
    """

    def __init__(self) -> None:
        self._nodes: list[Node] = []

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, node_id: NodeId) -> Node:
        return self._nodes[node_id]

    def new_node(self, entry: Entry, size: FileSize | None = None) -> NodeId:
        self._nodes.append(Node(entry=entry, size=size))
        return len(self._nodes) - 1

    def append(self, parent_id: NodeId, child_id: NodeId) -> None:
        """Attach ``child_id`` as the last child of ``parent_id``."""
        if parent_id == child_id:
            raise ValueError("A node cannot be appended to itself")

        self.detach(child_id)

        parent: Node = self._nodes[parent_id]
        child: Node = self._nodes[child_id]

        child.parent = parent_id
        child.previous_sibling = parent.last_child

        if parent.last_child is None:
            parent.first_child = child_id
        else:
            self._nodes[parent.last_child].next_sibling = child_id

        parent.last_child = child_id

    def detach(self, node_id: NodeId) -> None:
        """Unlink ``node_id`` (and with it, its subtree) from its parent and siblings."""
        node: Node = self._nodes[node_id]

        if node.previous_sibling is not None:
            self._nodes[node.previous_sibling].next_sibling = node.next_sibling
        elif node.parent is not None:
            self._nodes[node.parent].first_child = node.next_sibling

        if node.next_sibling is not None:
            self._nodes[node.next_sibling].previous_sibling = node.previous_sibling
        elif node.parent is not None:
            self._nodes[node.parent].last_child = node.previous_sibling

        node.parent = None
        node.previous_sibling = None
        node.next_sibling = None

    def remove_subtree(self, node_id: NodeId) -> None:
        """Detach ``node_id`` and unlink every node below it, leaving each one an orphan."""
        subtree: list[NodeId] = list(self.descendants(node_id))
        self.detach(node_id)
        for descendant_id in subtree:
            node: Node = self._nodes[descendant_id]
            node.parent = node.first_child = node.last_child = None
            node.previous_sibling = node.next_sibling = None

    def children(self, node_id: NodeId) -> Iterator[NodeId]:
        child_id: NodeId | None = self._nodes[node_id].first_child
        while child_id is not None:
            yield child_id
            child_id = self._nodes[child_id].next_sibling

    def descendants(self, node_id: NodeId) -> Iterator[NodeId]:
        """Yield ``node_id`` and every node below it in pre-order."""
        stack: list[NodeId] = [node_id]
        while stack:
            current: NodeId = stack.pop()
            yield current
            stack.extend(reversed(list(self.children(current))))
