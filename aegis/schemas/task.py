from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from aegis.config import DESCRIPTION_MAX_LENGTH, TITLE_MAX_LENGTH

TaskStatus = Literal["todo", "in-progress", "completed"]
Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=DESCRIPTION_MAX_LENGTH)]


class TaskCreate(BaseModel):
    title: str
    description: Description = ""
    status: Optional[TaskStatus] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Task title cannot be empty")
        if len(v) > TITLE_MAX_LENGTH:
            raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def null_description_is_empty(cls, v):
        return "" if v is None else v


class TaskUpdate(TaskCreate):
    """Partial update; only fields present in the body change.

    A null title or status is ignored, a null description clears it.
    """

    title: Optional[str] = None
    description: Optional[Description] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str = ""
    status: str
    user_id: int = Field(serialization_alias="userId")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
