"""
TASKBOARD - Drag-Result Translator
==================================
Turns the outcome of a drag gesture into engine calls.

The engine only ever receives three shapes:
    - reorder columns to a full permutation
    - move task T to the end of column C
    - move task T to index I within column C

Drop policy lives HERE, not in the engine: a task dropped back into its own
column is only reordered when that column is in "normal" sort mode (under
A-Z / Z-A the display order is derived, so a manual drop has no meaning).
Cross-column drops are always forwarded. BoardManager.move_task itself stays
unconditionally permissive.

Target indexes are computed from the sort projection, which is stable for an
unchanged board.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .manager import BoardManager
from .schema import SortOption

logger = logging.getLogger("taskboard.dragdrop")


class DragKind(str, Enum):
    TASK = "task"
    COLUMN = "column"


@dataclass
class DragResult:
    """What the gesture layer reports when a drag ends (or hovers)"""
    kind: DragKind
    active_id: str                  # Dragged task/column id
    over_id: Optional[str] = None   # Column or task under the pointer; None = dropped nowhere


class DragTranslator:
    def __init__(self, manager: BoardManager):
        self.manager = manager

    def on_drag_end(self, result: DragResult) -> bool:
        """Apply a finished drag. Returns True if an engine call was made."""
        if result.over_id is None:
            return False
        if DragKind(result.kind) == DragKind.COLUMN:
            return self._drop_column(result.active_id, result.over_id)
        return self._drop_task(result.active_id, result.over_id)

    def on_drag_over(self, result: DragResult) -> bool:
        """Live preview: a task hovering another column moves to its end"""
        if result.over_id is None or DragKind(result.kind) != DragKind.TASK:
            return False
        task = self.manager.find_task(result.active_id)
        column = self.manager.get_column(result.over_id)
        if task is None or column is None or task.column_id == column.id:
            return False
        end = len(self.manager.get_sorted_tasks(column.id))
        self.manager.move_task(task.id, column.id, end)
        return True

    def can_reorder_within(self, column_id: str) -> bool:
        column = self.manager.get_column(column_id)
        return column is not None and column.sort_option == SortOption.NORMAL

    # ========================================
    # HELPER METHODS
    # ========================================

    def _drop_column(self, active_id: str, over_id: str) -> bool:
        if active_id == over_id:
            return False
        column_ids = [c.id for c in self.manager.columns]
        if active_id not in column_ids or over_id not in column_ids:
            return False
        new_index = column_ids.index(over_id)
        column_ids.remove(active_id)
        column_ids.insert(new_index, active_id)
        self.manager.reorder_columns(column_ids)
        return True

    def _drop_task(self, task_id: str, over_id: str) -> bool:
        task = self.manager.find_task(task_id)
        if task is None:
            return False

        over_column = self.manager.get_column(over_id)
        if over_column is not None:
            target_column_id = over_column.id
            target_index = len(self.manager.get_sorted_tasks(target_column_id))
        else:
            over_task = self.manager.find_task(over_id)
            if over_task is None or over_task.id == task.id:
                return False
            target_column_id = over_task.column_id
            projection = self.manager.get_sorted_tasks(target_column_id)
            target_index = next(i for i, t in enumerate(projection) if t.id == over_task.id)

        if target_column_id == task.column_id and not self.can_reorder_within(target_column_id):
            logger.debug(f"Ignoring reorder of {task_id}: column {target_column_id} is sorted")
            return False

        self.manager.move_task(task_id, target_column_id, target_index)
        return True
