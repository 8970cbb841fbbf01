"""
TASKBOARD - Error Taxonomy
==========================
Engine mutations never raise for unknown ids (permissive no-op policy).
These are raised only at the edges: attachment ingestion, strict reads,
form validation and store I/O.
"""


class TaskBoardError(Exception):
    """Base class for all taskboard errors"""


class NotFound(TaskBoardError, KeyError):
    """A task or column id is absent from the board"""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else self.__class__.__name__


class TaskNotFound(NotFound):
    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ColumnNotFound(NotFound):
    def __init__(self, column_id: str):
        super().__init__(f"Column not found: {column_id}")
        self.column_id = column_id


class InvalidInput(TaskBoardError, ValueError):
    """Form input rejected before it reaches the engine"""


class AttachmentReadFailure(TaskBoardError):
    """A file payload could not be read or encoded"""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Could not read attachment {name!r}: {reason}")
        self.name = name


class PersistFailure(TaskBoardError):
    """Write-through to the store failed (best effort, never retried)"""
