# src/focus_desk/tasks/hierarchy.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from .task_models import TaskNode

logger = logging.getLogger(__name__)


def build_hierarchy(records: Iterable[TaskNode]) -> list[TaskNode]:
    """
    Turn flat task records into a forest.

    - every record gets a fresh node with an empty children list
    - parent_id None -> root list, otherwise appended to the parent's children
    - a record whose parent is not in `records` is dropped (stays in the DB,
      just not shown)

    Input order is preserved at every level, so rows loaded newest-first give
    newest-first roots and children.
    """
    flat = list(records)
    by_id: dict[int, TaskNode] = {r.id: replace(r, children=[]) for r in flat}
    roots: list[TaskNode] = []
    dropped = 0

    for rec in flat:
        node = by_id[rec.id]
        if rec.parent_id is None:
            roots.append(node)
            continue

        parent = by_id.get(rec.parent_id)
        if parent is None:
            dropped += 1
            logger.debug("Dangling parent_id=%s for task id=%s; not shown", rec.parent_id, rec.id)
            continue
        parent.children.append(node)

    logger.debug("Hierarchy built records=%d roots=%d dropped=%d", len(flat), len(roots), dropped)
    return roots
