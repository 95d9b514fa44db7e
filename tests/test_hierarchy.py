# tests/test_hierarchy.py

from __future__ import annotations

from focus_desk.tasks.hierarchy import build_hierarchy
from focus_desk.tasks.task_models import TaskNode
from focus_desk.tasks.tree_index import TreeIndex

from .fakes import task_row


def _records(rows: list[dict]) -> list[TaskNode]:
    return [TaskNode.from_row(r) for r in sorted(rows, key=lambda r: r["id"], reverse=True)]


def test_build_keeps_every_record_once_and_parent_links(seeded_rows) -> None:
    records = _records(seeded_rows)
    roots = build_hierarchy(records)

    flat = TreeIndex(roots).flatten()
    assert sorted(n.id for n in flat) == sorted(r.id for r in records)
    assert len(flat) == len(records)

    # Every child sits under the node its parent_id names.
    for node in flat:
        for child in node.children:
            assert child.parent_id == node.id
    assert all(n.parent_id is None for n in roots)


def test_build_preserves_input_order_preorder(seeded_rows) -> None:
    roots = build_hierarchy(_records(seeded_rows))

    assert [n.id for n in roots] == [6, 5, 1]
    assert [n.id for n in TreeIndex(roots).flatten()] == [6, 5, 1, 3, 2, 4]


def test_dangling_parent_is_dropped() -> None:
    rows = [task_row(1), task_row(2, parent_id=1), task_row(3, parent_id=42)]
    roots = build_hierarchy(_records(rows))

    ids = [n.id for n in TreeIndex(roots).flatten()]
    assert ids == [1, 2]
    assert 3 not in ids


def test_build_allocates_fresh_nodes() -> None:
    records = _records([task_row(1), task_row(2, parent_id=1)])
    roots = build_hierarchy(records)

    assert roots[0] is not records[1]
    assert records[1].children == []
    assert [c.id for c in roots[0].children] == [2]


def test_from_row_normalizes_values() -> None:
    node = TaskNode.from_row(
        {
            "id": "7",
            "content": "x",
            "completed": 1,
            "due_date": "",
            "expected_completion_time": None,
            "reminder_time": "09:00",
            "parent_id": 0,
            "group_id": "3",
        }
    )
    assert node.id == 7
    assert node.completed is True
    assert node.due_date is None
    assert node.reminder_time == "09:00"
    assert node.parent_id is None
    assert node.group_id == 3
    assert node.expanded is False
    assert node.children == []
