"""
TASKBOARD - Schema Migrator
===========================
Turns whatever was last persisted into a valid current-schema BoardState.

Decode order:
    1. absent            -> default board
    2. current schema    -> BoardState as stored
    3. legacy flat list  -> tasks grouped by columnId, old field names renamed
    4. anything else     -> default board

Both decode paths finish with reconcile(), which re-buckets every task by its
own columnId. The migrator never raises.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .schema import BoardState, Column, Task, create_default_board, utcnow

logger = logging.getLogger("taskboard.migrations")


def decode_board(raw: Optional[bytes]) -> BoardState:
    """Decode raw persisted bytes (or None) into a BoardState"""
    if raw is None:
        return migrate_board_state(None)
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning(f"Stored board is not valid JSON, starting fresh: {e}")
        return create_default_board()
    return migrate_board_state(data)


def migrate_board_state(data: Any) -> BoardState:
    """Migrate a previously persisted value to the current schema"""
    if data is None:
        return create_default_board()

    if not isinstance(data, dict):
        logger.warning(f"Unexpected stored board shape ({type(data).__name__}), using default board")
        return create_default_board()

    try:
        if isinstance(data.get("tasks"), list):
            state = _migrate_legacy(data)
        elif isinstance(data.get("tasks"), dict):
            state = BoardState.model_validate(data)
        else:
            # Nothing usable stored under "tasks"
            return create_default_board()
    except (ValidationError, KeyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Stored board failed to decode, using default board: {e}")
        return create_default_board()

    return reconcile(state)


def _migrate_legacy(data: Dict[str, Any]) -> BoardState:
    """Legacy shape: tasks stored as one flat list"""
    if data.get("columns"):
        columns = [Column.model_validate(c) for c in data["columns"]]
    else:
        columns = create_default_board().columns

    tasks_by_column: Dict[str, List[Task]] = {}
    for raw_task in data["tasks"]:
        task = Task.model_validate(_migrate_task_fields(raw_task))
        tasks_by_column.setdefault(task.column_id, []).append(task)

    logger.info(f"Migrated legacy board: {sum(len(t) for t in tasks_by_column.values())} tasks")
    return BoardState(columns=columns, tasks=tasks_by_column)


def _migrate_task_fields(raw: Dict[str, Any]) -> Dict[str, Any]:
    now = utcnow().isoformat()

    if "favorite" in raw:
        is_favorite = bool(raw["favorite"])
    else:
        is_favorite = bool(raw.get("isFavorite", False))

    return {
        "id": raw["id"],
        "name": raw.get("title") or raw.get("name") or "",
        "description": raw.get("description") or "",
        "deadline": raw.get("deadline") or None,
        "columnId": raw["columnId"],
        "imageUrl": raw.get("imageUrl"),
        "isFavorite": is_favorite,
        "createdAt": raw.get("createdAt") or now,
        "updatedAt": raw.get("updatedAt") or now,
        "attachments": raw.get("attachments") or [],
    }


def reconcile(state: BoardState) -> BoardState:
    """Re-derive column membership from each task's own columnId.

    Tasks already in the right list keep their order; tasks found in the wrong
    list are appended to their stated column afterwards. A task id seen twice
    keeps its first occurrence. Every column gets a (possibly empty) list.
    Idempotent.
    """
    buckets: Dict[str, List[Task]] = {column.id: [] for column in state.columns}
    misplaced: List[Task] = []
    seen = set()

    for bucket_id, tasks in state.tasks.items():
        for task in tasks:
            if task.id in seen:
                logger.warning(f"Dropping duplicate task {task.id} found under {bucket_id!r}")
                continue
            seen.add(task.id)
            if task.column_id != bucket_id:
                logger.warning(
                    f"Task {task.id} stored under {bucket_id!r} but belongs to "
                    f"{task.column_id!r}; re-bucketing"
                )
                misplaced.append(task)
                continue
            buckets.setdefault(bucket_id, []).append(task)

    for task in misplaced:
        buckets.setdefault(task.column_id, []).append(task)

    return BoardState(columns=list(state.columns), tasks=buckets)
