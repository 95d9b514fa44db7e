# tests/test_tree_index.py

from __future__ import annotations

from datetime import date, datetime

from focus_desk.tasks.task_models import TaskNode
from focus_desk.tasks.tree_index import TreeIndex


def _tree() -> TreeIndex:
    leaf = TaskNode(id=4, content="leaf", parent_id=2)
    mid = TaskNode(id=2, content="mid", parent_id=1, children=[leaf])
    other = TaskNode(id=3, content="other", parent_id=1, due_date="2024-06-01")
    root = TaskNode(id=1, content="root", children=[other, mid])
    dated = TaskNode(id=5, content="dated", due_date="2024-06-02")
    return TreeIndex([dated, root])


def test_find_at_any_depth_and_missing() -> None:
    index = _tree()
    assert index.find(4).content == "leaf"
    assert index.find(1).content == "root"
    assert index.find(99) is None


def test_flatten_is_preorder_and_fresh_each_call() -> None:
    index = _tree()
    assert [n.id for n in index.flatten()] == [5, 1, 3, 2, 4]

    index.insert(TaskNode(id=9, content="new"))
    assert [n.id for n in index.flatten()] == [9, 5, 1, 3, 2, 4]
    assert index.count() == 6


def test_date_filters() -> None:
    index = _tree()
    assert [n.id for n in index.with_due_date()] == [5, 3]
    assert [n.id for n in index.without_due_date()] == [1, 2, 4]


def test_by_date_exact_match() -> None:
    index = TreeIndex(
        [
            TaskNode(id=1, content="a", due_date="2024-06-01"),
            TaskNode(id=2, content="b", due_date="2024-06-02"),
            TaskNode(id=3, content="c", due_date=None),
        ]
    )
    assert [n.id for n in index.by_date("2024-06-01")] == [1]
    assert [n.id for n in index.by_date(date(2024, 6, 1))] == [1]
    assert [n.id for n in index.by_date(datetime(2024, 6, 2, 18, 30))] == [2]


def test_insert_child_goes_first_and_expands_parent() -> None:
    index = _tree()
    parent = index.find(1)
    assert parent.expanded is False

    index.insert(TaskNode(id=10, content="child", parent_id=1), parent)
    assert [c.id for c in parent.children] == [10, 3, 2]
    assert parent.expanded is True


def test_remove_drops_whole_subtree_and_restore_puts_it_back() -> None:
    index = _tree()

    detached = index.remove(2)
    assert detached is not None
    assert detached.parent.id == 1
    assert detached.position == 1
    assert [n.id for n in index.flatten()] == [5, 1, 3]

    index.restore(detached)
    assert [n.id for n in index.flatten()] == [5, 1, 3, 2, 4]


def test_remove_root_and_missing() -> None:
    index = _tree()
    assert index.remove(99) is None

    detached = index.remove(1)
    assert detached.parent is None
    assert [n.id for n in index.flatten()] == [5]

    index.restore(detached)
    assert [n.id for n in index.roots] == [5, 1]
