"""
TASKBOARD - Single-User Kanban Board Engine
===========================================

Named, ordered columns of ordered tasks, persisted across sessions.

Usage:
    from taskboard import BoardManager, FileStore

    manager = BoardManager(store=FileStore(".taskboard"))
    review = manager.create_column("Review")

    task_id = manager.create_task("Write docs", column_id="todo")
    manager.update_task(task_id, is_favorite=True)
    manager.move_task(task_id, review, 0)

    # Display order: favorites first, then the column's sort mode
    for task in manager.get_sorted_tasks(review):
        print(task.name)
"""

from .schema import (
    BoardState,
    Column,
    Task,
    Attachment,
    SortOption,
    DEFAULT_COLUMNS,
    create_default_board
)

from .exceptions import (
    TaskBoardError,
    NotFound,
    TaskNotFound,
    ColumnNotFound,
    InvalidInput,
    AttachmentReadFailure,
    PersistFailure
)

from .attachments import FilePayload
from .migrations import migrate_board_state
from .sorting import sort_tasks
from .store import FileStore, MemoryStore
from .manager import BoardManager
from .dragdrop import DragTranslator, DragResult, DragKind

__version__ = "1.0.0"
__all__ = [
    "BoardManager",
    "BoardState",
    "Column",
    "Task",
    "Attachment",
    "SortOption",
    "DEFAULT_COLUMNS",
    "create_default_board",
    "TaskBoardError",
    "NotFound",
    "TaskNotFound",
    "ColumnNotFound",
    "InvalidInput",
    "AttachmentReadFailure",
    "PersistFailure",
    "FilePayload",
    "migrate_board_state",
    "sort_tasks",
    "FileStore",
    "MemoryStore",
    "DragTranslator",
    "DragResult",
    "DragKind"
]
