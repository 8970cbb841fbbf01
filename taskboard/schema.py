"""
TASKBOARD - Board Schema Definition
===================================
Columns, tasks and attachments of a single-user kanban board.

The board is one aggregate: a list of columns plus a mapping from column id
to that column's ordered task list. There is no separate global task list.
"""

from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime, date, timezone
from pydantic import BaseModel, ConfigDict, Field
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: Optional[str] = None) -> str:
    """Generate an opaque unique id, optionally prefixed (e.g. "column-3f2a...")"""
    token = uuid.uuid4().hex[:16]
    return f"{prefix}-{token}" if prefix else token


class SortOption(str, Enum):
    """Per-column display sort mode"""
    NORMAL = "normal"   # Manual (stored) order
    A_Z = "A-Z"         # Name ascending
    Z_A = "Z-A"         # Name descending


class _BoardModel(BaseModel):
    # Persisted JSON keeps camelCase keys; Python code uses snake_case
    model_config = ConfigDict(populate_by_name=True)


class Attachment(_BoardModel):
    """Inline binary payload owned by exactly one task"""
    id: str = Field(default_factory=lambda: new_id("attachment"))
    name: str
    media_type: str = Field(default="application/octet-stream", alias="type")
    data: str                       # data URI, e.g. "data:image/png;base64,..."


class Column(_BoardModel):
    """Named, ordered bucket of tasks"""
    id: str = Field(default_factory=lambda: new_id("column"))
    name: str
    order: int = 0
    sort_option: SortOption = Field(default=SortOption.NORMAL, alias="sortOption")


class Task(_BoardModel):
    """Individual card on the board"""
    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    deadline: Optional[date] = None
    column_id: str = Field(alias="columnId")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    is_favorite: bool = Field(default=False, alias="isFavorite")

    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    # Insertion order is display order
    attachments: List[Attachment] = Field(default_factory=list)


class BoardState(_BoardModel):
    """The whole board - THE ROOT AGGREGATE"""
    columns: List[Column] = Field(default_factory=list)

    # column id -> ordered task list (manual order)
    tasks: Dict[str, List[Task]] = Field(default_factory=dict)

    def column_tasks(self, column_id: str) -> List[Task]:
        return self.tasks.get(column_id, [])

    def find_column(self, column_id: str) -> Optional[Column]:
        for column in self.columns:
            if column.id == column_id:
                return column
        return None

    def locate_task(self, task_id: str, column_hint: Optional[str] = None):
        """Return (column_id, index) of a task, or None.

        The hinted column is searched first, then every list.
        """
        if column_hint is not None:
            for index, task in enumerate(self.tasks.get(column_hint, [])):
                if task.id == task_id:
                    return column_hint, index
        for column_id, tasks in self.tasks.items():
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    return column_id, index
        return None

    def find_task(self, task_id: str) -> Optional[Task]:
        location = self.locate_task(task_id)
        if location is None:
            return None
        column_id, index = location
        return self.tasks[column_id][index]

    def all_tasks(self) -> List[Task]:
        """Flattened view of every task (derived, never stored)"""
        return [task for tasks in self.tasks.values() for task in tasks]

    @property
    def task_count(self) -> int:
        return sum(len(tasks) for tasks in self.tasks.values())


# ============================================================
# DEFAULT BOARD TEMPLATE
# ============================================================

DEFAULT_COLUMNS = [
    {"id": "todo", "name": "To Do"},
    {"id": "in-progress", "name": "In Progress"},
    {"id": "done", "name": "Done"},
]


def create_default_board() -> BoardState:
    """Create the empty three-column board used on first run"""
    columns = [
        Column(id=column_def["id"], name=column_def["name"], order=i)
        for i, column_def in enumerate(DEFAULT_COLUMNS)
    ]
    return BoardState(columns=columns, tasks={column.id: [] for column in columns})
