"""
TASKBOARD - Form Boundary
=========================
Field-value objects delivered by task and column forms. Required fields are
validated here, before anything reaches the engine.
"""

from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InvalidInput


class _Form(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    @classmethod
    def parse(cls, data: Dict[str, Any]):
        """Validate raw form values, raising InvalidInput on failure"""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'form'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidInput(problems) from e


class ColumnForm(_Form):
    name: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Column name is required")
        return value


class TaskForm(_Form):
    name: str
    description: str = ""
    deadline: Optional[date] = None
    column_id: str = Field(alias="columnId")
    is_favorite: bool = Field(default=False, alias="isFavorite")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Task name is required")
        return value

    @field_validator("column_id")
    @classmethod
    def _column_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Column is required")
        return value

    @field_validator("deadline", mode="before")
    @classmethod
    def _blank_deadline(cls, value):
        # Empty date inputs arrive as ""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump()
