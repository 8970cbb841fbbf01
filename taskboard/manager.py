"""
TASKBOARD - Board Manager
=========================
Owns the canonical board and is its only writer.

Every mutation computes the next BoardState with a pure transition, swaps it
in, then writes it through to the store. Writes are best effort: a failed
persist is logged and never surfaced to the caller.
"""

import json
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from . import transitions
from .attachments import FilePayload, read_attachment, read_attachments
from .config import DEFAULT_STORAGE_KEY
from .exceptions import ColumnNotFound, TaskNotFound
from .forms import ColumnForm, TaskForm
from .migrations import decode_board
from .schema import (
    Attachment, BoardState, Column, SortOption, Task, new_id, utcnow
)
from .sorting import sort_tasks, sorted_columns
from .store import BoardStore, MemoryStore

logger = logging.getLogger("taskboard")


def serialize_board(state: BoardState) -> bytes:
    """Board -> UTF-8 JSON bytes (camelCase keys)"""
    data = state.model_dump(mode="json", by_alias=True)
    return json.dumps(data, indent=2).encode("utf-8")


class BoardManager:
    """
    Single-writer state container for one board.

    Storage: one key in a BoardStore (file or memory)

    Key behaviors:
    - Migrates whatever was persisted on load
    - Unknown ids make mutations a no-op
    - Attachment reads finish before the single state transition
    """

    def __init__(
        self,
        store: Optional[BoardStore] = None,
        storage_key: str = DEFAULT_STORAGE_KEY
    ):
        self.store = store if store is not None else MemoryStore()
        self.storage_key = storage_key
        self._state: BoardState = self.load()

    # ========================================
    # PERSISTENCE
    # ========================================

    def load(self) -> BoardState:
        """Read and migrate the stored board (default board if absent)"""
        state = decode_board(self.store.read(self.storage_key))
        logger.info(f"📂 Loaded board: {len(state.columns)} columns, {state.task_count} tasks")
        return state

    def save(self, state: BoardState) -> bool:
        """Write the board through to the store; False if the write failed"""
        try:
            self.store.write(self.storage_key, serialize_board(state))
        except Exception as e:
            # PersistFailure or any other adapter error; never retried
            logger.warning(f"Board persist failed: {e}")
            return False
        logger.debug(f"💾 Saved board under {self.storage_key!r}")
        return True

    def _commit(self, new_state: BoardState) -> bool:
        """Swap in a new state and persist it. False when nothing changed."""
        if new_state is self._state:
            return False
        self._state = new_state
        self.save(new_state)
        return True

    # ========================================
    # READS
    # ========================================

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def columns(self) -> List[Column]:
        """Columns in display order"""
        return sorted_columns(self._state.columns)

    @property
    def tasks(self) -> List[Task]:
        """Every task on the board (flattened projection)"""
        return self._state.all_tasks()

    def get_column(self, column_id: str) -> Optional[Column]:
        return self._state.find_column(column_id)

    def require_column(self, column_id: str) -> Column:
        column = self.get_column(column_id)
        if column is None:
            raise ColumnNotFound(column_id)
        return column

    def find_task(self, task_id: str) -> Optional[Task]:
        return self._state.find_task(task_id)

    def require_task(self, task_id: str) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def get_sorted_tasks(self, column_id: str) -> List[Task]:
        """Display order of a column's tasks (favorites first, then sort mode)"""
        column = self.get_column(column_id)
        sort_option = column.sort_option if column else SortOption.NORMAL
        return sort_tasks(self._state.column_tasks(column_id), sort_option)

    # ========================================
    # COLUMN OPERATIONS
    # ========================================

    def create_column(self, name: str) -> str:
        """Append a new column (placed last) and return its id"""
        column_id = new_id("column")
        self._commit(transitions.create_column(self._state, column_id, name))
        logger.info(f"🆕 Created column: {name} ({column_id})")
        return column_id

    def update_column(self, column_id: str, **updates: Any) -> None:
        """Update column fields; a rename onto an existing name merges columns"""
        before = self._state
        if not self._commit(transitions.update_column(before, column_id, updates)):
            logger.debug(f"update_column: nothing to do for {column_id}")
            return
        if self._state.find_column(column_id) is None:
            target = next(c for c in self._state.columns if c.name == updates["name"])
            moved = len(before.column_tasks(column_id))
            logger.info(f"🔀 Merged column {column_id} into {target.id} ({moved} tasks)")

    def set_column_sort(self, column_id: str, sort_option: SortOption) -> None:
        self.update_column(column_id, sort_option=SortOption(sort_option))

    def delete_column(self, column_id: str) -> None:
        """Delete a column and all of its tasks"""
        dropped = len(self._state.column_tasks(column_id))
        if self._commit(transitions.delete_column(self._state, column_id)):
            logger.info(f"🗑️ Deleted column {column_id} ({dropped} tasks dropped)")

    def reorder_columns(self, ordered_ids: Sequence[str]) -> None:
        """Apply a full permutation of column ids; omitted columns are dropped"""
        missing = {c.id for c in self._state.columns} - set(ordered_ids)
        if missing:
            logger.warning(f"reorder_columns: dropping columns not listed: {sorted(missing)}")
        self._commit(transitions.reorder_columns(self._state, list(ordered_ids)))

    # ========================================
    # TASK OPERATIONS
    # ========================================

    def _build_task(
        self,
        name: str,
        column_id: str,
        description: str = "",
        deadline: Optional[date] = None,
        is_favorite: bool = False,
        image_url: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None
    ) -> Task:
        now = utcnow()
        return Task(
            id=new_id(),
            name=name,
            description=description,
            deadline=deadline,
            column_id=column_id,
            is_favorite=is_favorite,
            image_url=image_url,
            created_at=now,
            updated_at=now,
            attachments=attachments or [],
        )

    def create_task(
        self,
        name: str,
        column_id: str,
        description: str = "",
        deadline: Optional[date] = None,
        is_favorite: bool = False,
        image_url: Optional[str] = None
    ) -> str:
        """Append a new task to the end of its column and return its id"""
        task = self._build_task(name, column_id, description, deadline, is_favorite, image_url)
        self._commit(transitions.add_task(self._state, task))
        logger.info(f"🆕 Created task: {task.name} ({task.id}) in {column_id}")
        return task.id

    async def create_task_with_attachments(
        self,
        name: str,
        column_id: str,
        files: Iterable[FilePayload] = (),
        description: str = "",
        deadline: Optional[date] = None,
        is_favorite: bool = False,
        image_url: Optional[str] = None
    ) -> str:
        """Read every file, then create the task with all attachments at once.

        If any read fails the board is left unchanged.
        """
        attachments = await read_attachments(list(files))
        task = self._build_task(
            name, column_id, description, deadline, is_favorite, image_url,
            attachments=attachments
        )
        self._commit(transitions.add_task(self._state, task))
        logger.info(
            f"🆕 Created task: {task.name} ({task.id}) in {column_id} "
            f"with {len(attachments)} attachment(s)"
        )
        return task.id

    def update_task(self, task_id: str, **updates: Any) -> None:
        """Update task fields; a new column_id moves it to that column's end"""
        if not self._commit(transitions.update_task(self._state, task_id, updates)):
            logger.debug(f"update_task: unknown task {task_id}")

    def toggle_favorite(self, task_id: str) -> Optional[bool]:
        task = self.find_task(task_id)
        if task is None:
            return None
        self.update_task(task_id, is_favorite=not task.is_favorite)
        return not task.is_favorite

    def delete_task(self, task_id: str) -> None:
        if self._commit(transitions.delete_task(self._state, task_id)):
            logger.info(f"🗑️ Deleted task {task_id}")

    def move_task(self, task_id: str, target_column_id: str, target_index: int) -> None:
        """Move a task to an index in a column (drag and drop result).

        Always permitted; whether a drop is allowed under the column's sort
        mode is decided by the caller (see dragdrop.DragTranslator).
        """
        if not self._commit(
            transitions.move_task(self._state, task_id, target_column_id, target_index)
        ):
            logger.debug(f"move_task: unknown task {task_id}")

    def reorder_tasks(self, column_id: str, ordered_task_ids: Sequence[str]) -> None:
        self._commit(transitions.reorder_tasks(self._state, column_id, list(ordered_task_ids)))

    # ========================================
    # ATTACHMENTS
    # ========================================

    async def add_attachment(
        self,
        task_id: str,
        file: FilePayload,
        column_id_hint: Optional[str] = None
    ) -> Attachment:
        """Read a file and append it to a task's attachments.

        Raises AttachmentReadFailure or TaskNotFound; the board is unchanged
        in both cases.
        """
        attachment = await read_attachment(file)
        try:
            new_state = transitions.add_attachment(
                self._state, task_id, attachment, column_hint=column_id_hint
            )
        except TaskNotFound:
            logger.warning(f"Cannot attach {file.name!r}: task {task_id} not found")
            raise
        self._commit(new_state)
        logger.info(f"📎 Attached {attachment.name} to task {task_id}")
        return attachment

    def remove_attachment(self, task_id: str, attachment_id: str) -> None:
        if self._commit(transitions.remove_attachment(self._state, task_id, attachment_id)):
            logger.info(f"Removed attachment {attachment_id} from task {task_id}")

    # ========================================
    # FORM BOUNDARY
    # ========================================

    async def submit_task_form(
        self,
        form: TaskForm,
        files: Sequence[FilePayload] = (),
        remove_attachment_ids: Sequence[str] = (),
        task_id: Optional[str] = None
    ) -> str:
        """Create a task from a form, or apply an edit form to `task_id`"""
        fields: Dict[str, Any] = form.to_fields()

        if task_id is not None:
            self.update_task(task_id, **fields)
            for attachment_id in remove_attachment_ids:
                self.remove_attachment(task_id, attachment_id)
            for payload in files:
                await self.add_attachment(task_id, payload, column_id_hint=form.column_id)
            return task_id

        if files:
            return await self.create_task_with_attachments(files=files, **fields)
        return self.create_task(**fields)

    def submit_column_form(self, form: ColumnForm, column_id: Optional[str] = None) -> Optional[str]:
        """Create a column, or rename `column_id` (merging on a name clash)"""
        if column_id is None:
            return self.create_column(form.name)
        self.update_column(column_id, name=form.name)
        return column_id

    # ========================================
    # REPORTING
    # ========================================

    def get_status_report(self) -> str:
        """Generate human-readable board summary"""
        lines = [
            "📋 Task Board",
            f"Columns: {len(self._state.columns)} | Tasks: {self._state.task_count}",
            ""
        ]

        for column in self.columns:
            sort_label = "" if column.sort_option == SortOption.NORMAL else f" [{column.sort_option.value}]"
            tasks = self.get_sorted_tasks(column.id)
            lines.append(f"▸ {column.name} ({len(tasks)}){sort_label}  <{column.id}>")
            if not tasks:
                lines.append("    (empty)")
            for task in tasks:
                star = "★" if task.is_favorite else " "
                due = f" (due {task.deadline.isoformat()})" if task.deadline else ""
                clip = f" 📎{len(task.attachments)}" if task.attachments else ""
                lines.append(f"  {star} [{task.id}] {task.name}{due}{clip}")
            lines.append("")

        return "\n".join(lines).rstrip()
