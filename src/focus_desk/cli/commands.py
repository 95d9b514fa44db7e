# src/focus_desk/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import cast

from ..core.errors import PersistenceError, ValidationError
from ..core.state import AppState
from ..tasks.task_models import TaskNode

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

NONE_WORDS = {"none", "-", "null", "clear"}


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Store failures come back as text; the mirror is already rolled back.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                result = cast(CommandHandler3, handler)(state, args, emit)
            else:
                result = cast(CommandHandler2, handler)(state, args)
            if inspect.isawaitable(result):
                result = await result
        except ValidationError as e:
            return f"Invalid input: {e}"
        except PersistenceError as e:
            logger.warning("Command /%s failed in the store: %s", name, e)
            return f"Could not save the change (local state was rolled back): {e.message}"
        return str(result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _parse_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        return None


def _optional_value(raw: str | None) -> str | None:
    if raw is None or raw.lower() in NONE_WORDS:
        return None
    return raw


def _parse_day(raw: str | None) -> str | None:
    if raw is None or raw.lower() in NONE_WORDS:
        return None
    if raw.lower() == "today":
        return date.today().isoformat()
    return raw


def _describe(node: TaskNode) -> str:
    mark = "x" if node.completed else " "
    extras: list[str] = []
    if node.due_date:
        extras.append(f"due {node.due_date}")
    if node.expected_completion_time:
        extras.append(f"eta {node.expected_completion_time}")
    if node.reminder_time:
        extras.append(f"remind {node.reminder_time}")
    if node.group_id is not None:
        extras.append(f"group {node.group_id}")
    tail = f"  ({', '.join(extras)})" if extras else ""
    return f"[{mark}] #{node.id} {node.content}{tail}"


def render_tree(nodes: list[TaskNode], *, show_all: bool = False, depth: int = 0) -> list[str]:
    lines: list[str] = []
    for node in nodes:
        if node.children:
            fold = "-" if (node.expanded or show_all) else f"+{len(node.children)}"
        else:
            fold = " "
        lines.append(f"{'    ' * depth}{fold:>3} {_describe(node)}")
        if node.children and (node.expanded or show_all):
            lines.extend(render_tree(node.children, show_all=show_all, depth=depth + 1))
    return lines


def _render_flat(title: str, nodes: list[TaskNode]) -> str:
    if not nodes:
        return f"{title}: none."
    return "\n".join([f"{title}:"] + [f"  {_describe(n)}" for n in nodes])


# ---- task commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_ls(state: AppState, args: list[str]) -> str:
    """
    /ls       -> roots, expanded nodes show their children
    /ls all   -> whole tree
    """
    roots = state.todos.tasks
    if not roots:
        return "No tasks yet. Use /add <text>."
    show_all = bool(args) and args[0].lower() == "all"
    return "\n".join(render_tree(roots, show_all=show_all))


async def cmd_add(state: AppState, args: list[str]) -> str:
    node = await state.todos.add_task(" ".join(args))
    if node is None:
        return "Usage: /add <text>"
    return f"Added #{node.id}."


async def cmd_sub(state: AppState, args: list[str]) -> str:
    parent_id = _parse_id(args[0] if args else None)
    content = " ".join(args[1:])
    if parent_id is None or not content.strip():
        return "Usage: /sub <parent_id> <text>"
    node = await state.todos.add_task(content, parent_id=parent_id)
    if node is None:
        return f"No task #{parent_id}."
    return f"Added #{node.id} under #{parent_id}."


async def _set_done(state: AppState, args: list[str], completed: bool) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return f"Usage: /{'done' if completed else 'undone'} <id>"
    if not await state.todos.set_completed(task_id, completed):
        return f"No task #{task_id}."
    return f"#{task_id} marked {'done' if completed else 'open'}."


async def cmd_done(state: AppState, args: list[str]) -> str:
    return await _set_done(state, args, True)


async def cmd_undone(state: AppState, args: list[str]) -> str:
    return await _set_done(state, args, False)


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> <text>; an empty text deletes the task."""
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /edit <id> <text>"
    content = " ".join(args[1:])
    if not await state.todos.set_content(task_id, content):
        return f"No task #{task_id}."
    if not content.strip():
        return f"#{task_id} deleted (empty text)."
    return f"#{task_id} updated."


async def cmd_due(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /due <id> <YYYY-MM-DD|today|none>"
    day = _parse_day(args[1] if len(args) > 1 else None)
    if not await state.todos.set_due_date(task_id, day):
        return f"No task #{task_id}."
    return f"#{task_id} due {day or '(none)'}."


async def cmd_expect(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /expect <id> <time|none>"
    value = _optional_value(" ".join(args[1:]) or None)
    if not await state.todos.set_expected_completion_time(task_id, value):
        return f"No task #{task_id}."
    return f"#{task_id} expected completion: {value or '(none)'}."


async def cmd_remind(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /remind <id> <time|none>"
    value = _optional_value(" ".join(args[1:]) or None)
    if not await state.todos.set_reminder_time(task_id, value):
        return f"No task #{task_id}."
    return f"#{task_id} reminder: {value or '(none)'}."


async def cmd_rm(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /rm <id>"
    if not await state.todos.delete_task(task_id):
        return f"No task #{task_id}."
    return f"#{task_id} deleted with its subtasks."


def cmd_toggle(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args[0] if args else None)
    if task_id is None:
        return "Usage: /toggle <id>"
    if not state.todos.toggle_expanded(task_id):
        return f"No task #{task_id}."
    return cmd_ls(state, [])


def cmd_day(state: AppState, args: list[str]) -> str:
    day = _parse_day(args[0] if args else "today") or date.today().isoformat()
    return _render_flat(f"Due {day}", state.todos.for_date(day))


def cmd_dated(state: AppState, args: list[str]) -> str:
    return _render_flat("With a due date", state.todos.with_due_date())


def cmd_undated(state: AppState, args: list[str]) -> str:
    return _render_flat("Without a due date", state.todos.without_due_date())


# ---- group commands ----


def cmd_groups(state: AppState, args: list[str]) -> str:
    groups = state.todos.groups
    if not groups:
        return "No groups yet. Use /group add <name> [color]."
    lines = ["Groups:"]
    for g in groups:
        lines.append(f"  {g.sort_order}. #{g.id} {g.name} {g.color}")
    return "\n".join(lines)


GROUP_USAGE = (
    "Group commands:\n"
    "  /group add <name> [color]\n"
    "  /group update <id> <name> [color]\n"
    "  /group color <id> <color>\n"
    "  /group rm <id>\n"
    "  /group order <id> <id> ...\n"
    "  /group set <task_id> <group_id|none>\n"
)


async def cmd_group(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if not args:
        return GROUP_USAGE

    sub = args[0].lower()
    rest = args[1:]
    groups = state.todos.group_registry

    if sub == "add":
        if not rest:
            return "Usage: /group add <name> [color]"
        color = rest[1] if len(rest) > 1 else None
        group = await groups.add_group(rest[0], color)
        if group is None:
            return "Group name cannot be empty."
        return f"Group #{group.id} '{group.name}' added."

    if sub in ("update", "rename"):
        group_id = _parse_id(rest[0] if rest else None)
        if group_id is None or len(rest) < 2:
            return "Usage: /group update <id> <name> [color]"
        color = rest[2] if len(rest) > 2 else None
        if not await groups.update_group(group_id, name=rest[1], color=color):
            return f"No group #{group_id}."
        return f"Group #{group_id} updated."

    if sub == "color":
        group_id = _parse_id(rest[0] if rest else None)
        if group_id is None or len(rest) < 2:
            return "Usage: /group color <id> <color>"
        if not await groups.update_group(group_id, color=rest[1]):
            return f"No group #{group_id}."
        return f"Group #{group_id} recolored."

    if sub in ("rm", "delete"):
        group_id = _parse_id(rest[0] if rest else None)
        if group_id is None:
            return "Usage: /group rm <id>"
        if not await groups.delete_group(group_id):
            return f"No group #{group_id}."
        return f"Group #{group_id} deleted (its tasks are kept)."

    if sub == "order":
        ids = [_parse_id(a) for a in rest]
        if not ids or any(i is None for i in ids):
            return "Usage: /group order <id> <id> ..."
        if emit is not None:
            emit(f"Writing new order for {len(ids)} groups...")
        await groups.reorder([i for i in ids if i is not None])
        return cmd_groups(state, [])

    if sub == "set":
        task_id = _parse_id(rest[0] if rest else None)
        if task_id is None or len(rest) < 2:
            return "Usage: /group set <task_id> <group_id|none>"
        group_id = None if rest[1].lower() in NONE_WORDS else _parse_id(rest[1])
        if group_id is None and rest[1].lower() not in NONE_WORDS:
            return "Usage: /group set <task_id> <group_id|none>"
        if not await state.todos.set_group(task_id, group_id):
            return f"No task #{task_id}."
        return f"#{task_id} moved to {'group #' + str(group_id) if group_id else 'no group'}."

    return GROUP_USAGE


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("ls", cmd_ls, help_text="Show the task tree: /ls | /ls all.", aliases=["list"])
registry.register("add", cmd_add, help_text="Add a task: /add <text>.")
registry.register("sub", cmd_sub, help_text="Add a subtask: /sub <parent_id> <text>.")
registry.register("done", cmd_done, help_text="Complete a task (and its subtasks): /done <id>.")
registry.register("undone", cmd_undone, help_text="Reopen a task: /undone <id>.")
registry.register("edit", cmd_edit, help_text="Change text: /edit <id> <text> (empty deletes).")
registry.register("due", cmd_due, help_text="Set due date: /due <id> <YYYY-MM-DD|today|none>.")
registry.register("expect", cmd_expect, help_text="Expected completion: /expect <id> <time|none>.")
registry.register("remind", cmd_remind, help_text="Reminder time: /remind <id> <time|none>.")
registry.register("rm", cmd_rm, help_text="Delete a task and its subtasks: /rm <id>.", aliases=["del"])
registry.register("toggle", cmd_toggle, help_text="Expand/collapse a task: /toggle <id>.")
registry.register("day", cmd_day, help_text="Tasks due on a day: /day [YYYY-MM-DD|today].")
registry.register("dated", cmd_dated, help_text="Tasks that have a due date.")
registry.register("undated", cmd_undated, help_text="Tasks without a due date.")
registry.register("groups", cmd_groups, help_text="List groups in display order.")
registry.register("group", cmd_group, help_text="Manage groups: /group add|update|color|rm|order|set.")
