# src/focus_desk/tasks/task_store.py

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from ..core.errors import PersistenceError
from ..core.ports import BackingStore
from .group_registry import GroupRegistry
from .hierarchy import build_hierarchy
from .mutations import apply_optimistic, commit_or_rollback
from .task_models import DEFAULT_GROUP_COLOR, TaskGroup, TaskNode, date_key
from .tree_index import TreeIndex, iter_preorder

logger = logging.getLogger(__name__)

SELECT_TASKS_SQL = """
    SELECT id, content, completed, due_date, expected_completion_time,
           reminder_time, parent_id, group_id
    FROM tasks
    ORDER BY id DESC
"""

DateLike = str | date | datetime | None


def _opt(value: Any) -> Any:
    """Empty strings coming from UI inputs mean 'no value'."""
    return value if value not in ("", None) else None


class TodoStore:
    """
    Hierarchical task store: in-memory tree mirror + optimistic writes.

    Lifecycle:
    - construct with a BackingStore (schema already in place),
    - `await initialize()` loads groups then tasks once,
    - mutate through the async methods below,
    - `close()` drops the mirror.

    Mutation results:
    - True / the new node on success,
    - False / None when the target id is not in the mirror (no store call),
    - PersistenceError after rollback when the store rejects the write.

    Concurrent writes to the same node are not serialized: the mirror keeps
    whichever apply ran last, the store whichever statement finished last.
    """

    def __init__(self, backend: BackingStore, *, default_group_color: str = DEFAULT_GROUP_COLOR) -> None:
        self._backend = backend
        self._index = TreeIndex()
        self.group_registry = GroupRegistry(backend, default_color=default_group_color)
        self._loading = False
        self._initialized = False

    # ---- lifecycle ----

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        if self._initialized:
            return
        self._loading = True
        try:
            await self.group_registry.load()
            await self.load_all_tasks()
            self._initialized = True
        except Exception:
            logger.exception("TodoStore initialization failed")
            raise
        finally:
            self._loading = False

    async def load_all_tasks(self) -> list[TaskNode]:
        rows = await self._backend.select(SELECT_TASKS_SQL)
        records = [TaskNode.from_row(r) for r in rows]
        self._index.replace(build_hierarchy(records))
        logger.info("Tasks loaded: rows=%d roots=%d", len(records), len(self._index.roots))
        return self.tasks

    def close(self) -> None:
        self._index.clear()
        self.group_registry.clear()
        self._initialized = False
        logger.debug("TodoStore closed")

    # ---- reads ----

    @property
    def index(self) -> TreeIndex:
        return self._index

    @property
    def tasks(self) -> list[TaskNode]:
        return list(self._index.roots)

    @property
    def groups(self) -> list[TaskGroup]:
        return self.group_registry.items()

    def find(self, task_id: int) -> TaskNode | None:
        return self._index.find(task_id)

    def flatten(self) -> list[TaskNode]:
        return self._index.flatten()

    def with_due_date(self) -> list[TaskNode]:
        return self._index.with_due_date()

    def without_due_date(self) -> list[TaskNode]:
        return self._index.without_due_date()

    def for_date(self, day: str | date | datetime) -> list[TaskNode]:
        return self._index.by_date(day)

    def toggle_expanded(self, task_id: int) -> bool:
        node = self._index.find(task_id)
        if node is None:
            return False
        node.expanded = not node.expanded
        return True

    # ---- add ----

    async def add_task(
        self,
        content: str,
        *,
        due_date: DateLike = None,
        parent_id: int | None = None,
        expected_completion_time: str | None = None,
        reminder_time: str | None = None,
        group_id: int | None = None,
    ) -> TaskNode | None:
        if not content or not content.strip():
            return None

        parent: TaskNode | None = None
        if parent_id:
            parent = self._index.find(parent_id)
            if parent is None:
                logger.debug("add_task: parent id=%s not in mirror", parent_id)
                return None

        due = date_key(due_date)
        expected = _opt(expected_completion_time)
        reminder = _opt(reminder_time)
        group = _opt(group_id)
        parent_ref = parent.id if parent is not None else None

        sql = (
            "INSERT INTO tasks (content, completed, due_date, expected_completion_time, "
            "reminder_time, parent_id, group_id) VALUES (?, ?, ?, ?, ?, ?, ?)"
        )
        result = await self._backend.execute(
            sql, (content, 0, due, expected, reminder, parent_ref, group)
        )
        if result.last_insert_id is None:
            raise PersistenceError("store did not return an id for the new task", statement=sql)

        node = TaskNode(
            id=int(result.last_insert_id),
            content=content,
            completed=False,
            due_date=due,
            expected_completion_time=expected,
            reminder_time=reminder,
            parent_id=parent_ref,
            group_id=group,
        )
        self._index.insert(node, parent)
        logger.debug("Task added id=%s parent=%s", node.id, parent_ref)
        return node

    # ---- field updates ----

    async def _set_fields(self, task_id: int, column: str, value: Any) -> bool:
        node = self._index.find(task_id)
        if node is None:
            return False
        await apply_optimistic(
            self._backend,
            node,
            {column: value},
            f"UPDATE tasks SET {column} = ? WHERE id = ?",
            (value, node.id),
            action=f"set {column} on task {node.id}",
        )
        return True

    async def set_completed(self, task_id: int, completed: bool) -> bool:
        """
        Mark a task done/undone.

        Completing a task that has at least one incomplete child also completes
        every descendant, one statement per node. Reopening never cascades.

        The cascade is all-or-nothing: if a descendant write fails, every node
        already written (the task itself included) gets its previous value back
        in the mirror and a compensating UPDATE, then PersistenceError is raised.
        """
        node = self._index.find(task_id)
        if node is None:
            return False

        completed = bool(completed)
        before = node.completed
        await apply_optimistic(
            self._backend,
            node,
            {"completed": completed},
            "UPDATE tasks SET completed = ? WHERE id = ?",
            (int(completed), node.id),
            action=f"set completed on task {node.id}",
        )

        if completed and node.children and node.has_incomplete_children():
            written: list[tuple[TaskNode, bool]] = [(node, before)]
            try:
                await self._complete_descendants(node.children, written)
            except PersistenceError:
                await self._undo_completion(written)
                raise
        return True

    async def _complete_descendants(
        self, children: list[TaskNode], written: list[tuple[TaskNode, bool]]
    ) -> None:
        for child in list(iter_preorder(children)):
            before = child.completed
            await apply_optimistic(
                self._backend,
                child,
                {"completed": True},
                "UPDATE tasks SET completed = ? WHERE id = ?",
                (1, child.id),
                action=f"cascade completion to task {child.id}",
            )
            written.append((child, before))

    async def _undo_completion(self, written: list[tuple[TaskNode, bool]]) -> None:
        sql = "UPDATE tasks SET completed = ? WHERE id = ?"
        for node, before in reversed(written):
            node.completed = before
            try:
                await self._backend.execute(sql, (int(before), node.id))
            except Exception:
                logger.exception("Could not restore completed for task id=%s", node.id)

    async def set_content(self, task_id: int, content: str) -> bool:
        """Blank content means 'delete this task'."""
        if not content or not content.strip():
            return await self.delete_task(task_id)
        return await self._set_fields(task_id, "content", content)

    async def set_due_date(self, task_id: int, due_date: DateLike) -> bool:
        return await self._set_fields(task_id, "due_date", date_key(due_date))

    async def set_expected_completion_time(self, task_id: int, value: str | None) -> bool:
        return await self._set_fields(task_id, "expected_completion_time", _opt(value))

    async def set_reminder_time(self, task_id: int, value: str | None) -> bool:
        return await self._set_fields(task_id, "reminder_time", _opt(value))

    async def set_group(self, task_id: int, group_id: int | None) -> bool:
        return await self._set_fields(task_id, "group_id", _opt(group_id))

    # ---- delete ----

    async def delete_task(self, task_id: int) -> bool:
        """
        Remove a task and its whole subtree.

        The statement deletes the row and its direct children; deeper levels
        go through the tasks.parent_id ON DELETE CASCADE. The mirror drops the
        full subtree itself.
        """
        if self._index.find(task_id) is None:
            return False

        detached = self._index.remove(task_id)
        if detached is None:
            return False

        sql = "DELETE FROM tasks WHERE id = ? OR parent_id = ?"
        await commit_or_rollback(
            self._backend.execute(sql, (detached.node.id, detached.node.id)),
            lambda: self._index.restore(detached),
            action=f"delete task {detached.node.id}",
            statement=sql,
        )
        logger.debug("Task deleted id=%s", detached.node.id)
        return True
