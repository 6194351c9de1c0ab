import uuid
from typing import Optional

from pydantic import BaseModel, Field

from proofbench.core.enum import CourseCategory


class UpdateVideoProgress(BaseModel):
    last_position: float = Field(..., ge=0, description="Playback position (seconds)")
    watch_percentage: float = Field(..., description="Clamped to 0-100 before saving")
    completed: Optional[bool] = None


class CreateVideoComment(BaseModel):
    content: str = Field(..., min_length=1, description="Comment text")
    parent_id: Optional[uuid.UUID] = Field(
        None, description="Parent comment id (when replying)"
    )


class UpdateVideoComment(BaseModel):
    content: str = Field(..., min_length=1, description="Comment text")


class CourseFilters(BaseModel):
    category: Optional[CourseCategory] = None
    published: Optional[bool] = None
    search: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
