"""
TASKBOARD - Board State Transitions
===================================
Every mutation of the board as a pure function: old BoardState in, new
BoardState out. Inputs are never modified; untouched columns, task lists and
tasks are shared between the old and new state.

Unknown ids make a transition a no-op (the same state object comes back),
except add_attachment which raises TaskNotFound.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .exceptions import TaskNotFound
from .schema import Attachment, BoardState, Column, SortOption, Task, utcnow

# Fields a partial update may never overwrite
_PROTECTED_FIELDS = ("id",)


def _replace(model, updates: Dict[str, Any]):
    """Validated copy of a model with some fields changed"""
    fields = type(model).model_fields
    aliases = {f.alias: name for name, f in fields.items() if f.alias}
    data = model.model_dump()
    for key, value in updates.items():
        key = aliases.get(key, key)
        if key in fields and key not in _PROTECTED_FIELDS:
            data[key] = value
    return type(model).model_validate(data)


def _with(state: BoardState, columns: Optional[List[Column]] = None,
          tasks: Optional[Dict[str, List[Task]]] = None) -> BoardState:
    return BoardState(
        columns=state.columns if columns is None else columns,
        tasks=state.tasks if tasks is None else tasks,
    )


# ========================================
# COLUMNS
# ========================================

def create_column(state: BoardState, column_id: str, name: str) -> BoardState:
    """Append a column, placed last"""
    column = Column(id=column_id, name=name, order=len(state.columns),
                    sort_option=SortOption.NORMAL)
    tasks = dict(state.tasks)
    tasks.setdefault(column_id, [])
    return _with(state, columns=state.columns + [column], tasks=tasks)


def update_column(state: BoardState, column_id: str, updates: Dict[str, Any],
                  now: Optional[datetime] = None) -> BoardState:
    """Field update with merge-on-rename.

    Renaming a column to the exact name of another column folds its tasks into
    that column (appended, columnId rewritten) and removes the renamed column.
    The target column keeps all of its own fields.
    """
    source = state.find_column(column_id)
    if source is None:
        return state

    new_name = updates.get("name")
    if new_name:
        target = next(
            (c for c in state.columns if c.name == new_name and c.id != column_id),
            None
        )
        if target is not None:
            return _merge_columns(state, source.id, target.id, now or utcnow())

    columns = [_replace(c, updates) if c.id == column_id else c for c in state.columns]
    return _with(state, columns=columns)


def _merge_columns(state: BoardState, source_id: str, target_id: str,
                   now: datetime) -> BoardState:
    moved = [
        _replace(task, {"column_id": target_id, "updated_at": now})
        for task in state.column_tasks(source_id)
    ]
    tasks = dict(state.tasks)
    tasks.pop(source_id, None)
    tasks[target_id] = state.column_tasks(target_id) + moved

    columns = [c for c in state.columns if c.id != source_id]
    return _with(state, columns=columns, tasks=tasks)


def delete_column(state: BoardState, column_id: str) -> BoardState:
    """Remove a column and every task in it"""
    if state.find_column(column_id) is None and column_id not in state.tasks:
        return state
    tasks = dict(state.tasks)
    tasks.pop(column_id, None)
    columns = [c for c in state.columns if c.id != column_id]
    return _with(state, columns=columns, tasks=tasks)


def reorder_columns(state: BoardState, ordered_ids: Sequence[str]) -> BoardState:
    """Set each column's order to its index in `ordered_ids`.

    Columns missing from `ordered_ids` are dropped together with their tasks;
    unknown ids are skipped.
    """
    by_id = {c.id: c for c in state.columns}
    columns: List[Column] = []
    kept = set()
    for index, column_id in enumerate(ordered_ids):
        column = by_id.get(column_id)
        if column is None or column_id in kept:
            continue
        kept.add(column_id)
        columns.append(column if column.order == index else _replace(column, {"order": index}))

    tasks = {cid: ts for cid, ts in state.tasks.items() if cid in kept}
    return _with(state, columns=columns, tasks=tasks)


# ========================================
# TASKS
# ========================================

def add_task(state: BoardState, task: Task) -> BoardState:
    """Append a fully formed task to the end of its column"""
    tasks = dict(state.tasks)
    tasks[task.column_id] = state.column_tasks(task.column_id) + [task]
    return _with(state, tasks=tasks)


def update_task(state: BoardState, task_id: str, updates: Dict[str, Any],
                now: Optional[datetime] = None) -> BoardState:
    """Update a task in place, or move it to the end of another column"""
    location = state.locate_task(task_id)
    if location is None:
        return state
    source_id, index = location
    changes = dict(updates)
    changes["updated_at"] = now or utcnow()
    updated = _replace(state.tasks[source_id][index], changes)

    tasks = dict(state.tasks)
    if updated.column_id != source_id:
        tasks[source_id] = [t for t in state.tasks[source_id] if t.id != task_id]
        tasks[updated.column_id] = state.column_tasks(updated.column_id) + [updated]
    else:
        column_tasks = list(state.tasks[source_id])
        column_tasks[index] = updated
        tasks[source_id] = column_tasks
    return _with(state, tasks=tasks)


def delete_task(state: BoardState, task_id: str) -> BoardState:
    """Remove a task (and its attachments) from whichever column holds it"""
    location = state.locate_task(task_id)
    if location is None:
        return state
    column_id, _ = location
    tasks = dict(state.tasks)
    tasks[column_id] = [t for t in state.tasks[column_id] if t.id != task_id]
    return _with(state, tasks=tasks)


def move_task(state: BoardState, task_id: str, target_column_id: str, target_index: int,
              now: Optional[datetime] = None) -> BoardState:
    """Index-based move used by drag and drop.

    The index is clamped to [0, len(target list)] after the task has been
    removed from its source list. Sort modes are not consulted.
    """
    location = state.locate_task(task_id)
    if location is None:
        return state
    source_id, index = location
    task = state.tasks[source_id][index]
    moved = _replace(task, {"column_id": target_column_id, "updated_at": now or utcnow()})

    tasks = dict(state.tasks)
    tasks[source_id] = [t for t in state.tasks[source_id] if t.id != task_id]
    target = list(tasks.get(target_column_id, []))
    position = max(0, min(target_index, len(target)))
    target.insert(position, moved)
    tasks[target_column_id] = target
    return _with(state, tasks=tasks)


def reorder_tasks(state: BoardState, column_id: str, ordered_task_ids: Sequence[str],
                  now: Optional[datetime] = None) -> BoardState:
    """Rewrite a column's manual order.

    Tasks of the column missing from `ordered_task_ids` are dropped; ids that
    are not in the column are ignored.
    """
    if column_id not in state.tasks:
        return state
    by_id = {t.id: t for t in state.tasks[column_id]}
    now = now or utcnow()

    reordered: List[Task] = []
    for task_id in ordered_task_ids:
        task = by_id.pop(task_id, None)
        if task is not None:
            reordered.append(_replace(task, {"updated_at": now}))

    tasks = dict(state.tasks)
    tasks[column_id] = reordered
    return _with(state, tasks=tasks)


# ========================================
# ATTACHMENTS
# ========================================

def _replace_task(state: BoardState, column_id: str, index: int, task: Task) -> BoardState:
    column_tasks = list(state.tasks[column_id])
    column_tasks[index] = task
    tasks = dict(state.tasks)
    tasks[column_id] = column_tasks
    return _with(state, tasks=tasks)


def add_attachment(state: BoardState, task_id: str, attachment: Attachment,
                   column_hint: Optional[str] = None,
                   now: Optional[datetime] = None) -> BoardState:
    """Append an attachment to a task; raises TaskNotFound"""
    location = state.locate_task(task_id, column_hint)
    if location is None:
        raise TaskNotFound(task_id)
    column_id, index = location
    task = state.tasks[column_id][index]
    updated = task.model_copy(update={
        "attachments": task.attachments + [attachment],
        "updated_at": now or utcnow(),
    })
    return _replace_task(state, column_id, index, updated)


def remove_attachment(state: BoardState, task_id: str, attachment_id: str,
                      now: Optional[datetime] = None) -> BoardState:
    location = state.locate_task(task_id)
    if location is None:
        return state
    column_id, index = location
    task = state.tasks[column_id][index]
    remaining = [a for a in task.attachments if a.id != attachment_id]
    if len(remaining) == len(task.attachments):
        return state
    updated = task.model_copy(update={"attachments": remaining, "updated_at": now or utcnow()})
    return _replace_task(state, column_id, index, updated)
