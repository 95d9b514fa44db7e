# src/focus_desk/tasks/tree_index.py

from __future__ import annotations

"""
In-memory mirror of the tasks table.

Reads (find/flatten/filters) are open to everyone. The structural writers
(insert/remove/restore/replace) are meant to be called by TodoStore only,
as part of the mutation protocol.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime

from .task_models import TaskNode, date_key


@dataclass(slots=True, frozen=True)
class Detached:
    """A subtree cut out of the forest, with enough context to put it back."""

    node: TaskNode
    parent: TaskNode | None
    position: int


def _find(nodes: list[TaskNode], task_id: int) -> TaskNode | None:
    for node in nodes:
        if node.id == task_id:
            return node
        if node.children:
            found = _find(node.children, task_id)
            if found is not None:
                return found
    return None


def iter_preorder(nodes: list[TaskNode]) -> Iterator[TaskNode]:
    for node in nodes:
        yield node
        if node.children:
            yield from iter_preorder(node.children)


def _filter_out(
    nodes: list[TaskNode],
    task_id: int,
    parent: TaskNode | None,
    cut: list[Detached],
) -> list[TaskNode]:
    kept: list[TaskNode] = []
    for pos, node in enumerate(nodes):
        if node.id == task_id:
            cut.append(Detached(node=node, parent=parent, position=pos))
            continue
        if node.children:
            node.children = _filter_out(node.children, task_id, node, cut)
        kept.append(node)
    return kept


class TreeIndex:
    def __init__(self, roots: Iterable[TaskNode] | None = None) -> None:
        self._roots: list[TaskNode] = list(roots or [])

    @property
    def roots(self) -> list[TaskNode]:
        return self._roots

    def replace(self, roots: Iterable[TaskNode]) -> None:
        self._roots = list(roots)

    def clear(self) -> None:
        self._roots = []

    # ---- reads ----

    def find(self, task_id: int) -> TaskNode | None:
        """Depth-first lookup; None when the id is not in the mirror."""
        return _find(self._roots, int(task_id))

    def iter_flat(self) -> Iterator[TaskNode]:
        """Pre-order walk over the current state (parent before children)."""
        return iter_preorder(self._roots)

    def flatten(self) -> list[TaskNode]:
        return list(self.iter_flat())

    def count(self) -> int:
        return sum(1 for _ in self.iter_flat())

    def with_due_date(self) -> list[TaskNode]:
        return [n for n in self.iter_flat() if n.due_date is not None]

    def without_due_date(self) -> list[TaskNode]:
        return [n for n in self.iter_flat() if n.due_date is None]

    def by_date(self, day: str | date | datetime) -> list[TaskNode]:
        """Tasks due exactly on `day` (compared as 'YYYY-MM-DD')."""
        key = date_key(day)
        return [n for n in self.iter_flat() if n.due_date == key]

    # ---- structural writes ----

    def insert(self, node: TaskNode, parent: TaskNode | None = None) -> None:
        """Put `node` first under `parent` (or first among roots); expands the parent."""
        if parent is None:
            self._roots.insert(0, node)
            return
        parent.children.insert(0, node)
        parent.expanded = True

    def remove(self, task_id: int) -> Detached | None:
        """
        Drop `task_id` together with its subtree, wherever it sits.

        Every level of the forest is filtered, so depth does not matter.
        """
        cut: list[Detached] = []
        self._roots = _filter_out(self._roots, int(task_id), None, cut)
        return cut[0] if cut else None

    def restore(self, detached: Detached) -> None:
        siblings = self._roots if detached.parent is None else detached.parent.children
        pos = min(detached.position, len(siblings))
        siblings.insert(pos, detached.node)
