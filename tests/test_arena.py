"""Tests for arbor.arena."""

from __future__ import annotations

from pathlib import Path

import pytest

from arbor.arena import Arena
from arbor.models import Entry, EntryKind


def _entry(name: str, kind: EntryKind = EntryKind.DIR) -> Entry:
    return Entry(path=Path("/") / name, depth=1, kind=kind)


def test_append_links_parent_children_and_siblings() -> None:
    arena = Arena()
    root = arena.new_node(_entry("root"))
    first = arena.new_node(_entry("first"))
    second = arena.new_node(_entry("second"))

    arena.append(root, first)
    arena.append(root, second)

    assert list(arena.children(root)) == [first, second]
    assert arena[first].parent == root
    assert arena[first].next_sibling == second
    assert arena[second].previous_sibling == first
    assert arena[root].last_child == second


def test_detach_unlinks_middle_child() -> None:
    arena = Arena()
    root = arena.new_node(_entry("root"))
    children = [arena.new_node(_entry(name)) for name in ("a", "b", "c")]
    for child in children:
        arena.append(root, child)

    arena.detach(children[1])

    assert list(arena.children(root)) == [children[0], children[2]]
    assert arena[children[1]].parent is None
    assert arena[children[0]].next_sibling == children[2]
    assert len(arena) == 4


def test_remove_subtree_orphans_every_descendant() -> None:
    arena = Arena()
    root = arena.new_node(_entry("root"))
    branch = arena.new_node(_entry("branch"))
    leaf = arena.new_node(_entry("leaf", EntryKind.FILE))
    arena.append(root, branch)
    arena.append(branch, leaf)

    arena.remove_subtree(branch)

    assert list(arena.children(root)) == []
    assert arena[leaf].parent is None
    assert arena[branch].first_child is None and arena[branch].last_child is None
    assert list(arena.descendants(branch)) == [branch]
    assert list(arena.descendants(root)) == [root]


def test_descendants_are_pre_order() -> None:
    arena = Arena()
    root = arena.new_node(_entry("root"))
    a = arena.new_node(_entry("a"))
    a1 = arena.new_node(_entry("a1"))
    b = arena.new_node(_entry("b"))
    arena.append(root, a)
    arena.append(a, a1)
    arena.append(root, b)

    assert list(arena.descendants(root)) == [root, a, a1, b]


def test_append_to_self_is_rejected() -> None:
    arena = Arena()
    root = arena.new_node(_entry("root"))

    with pytest.raises(ValueError):
        arena.append(root, root)
