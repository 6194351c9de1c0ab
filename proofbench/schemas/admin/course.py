from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from proofbench.core.enum import CourseCategory, VideoResourceType
from proofbench.libs.formats.video_url import is_valid_video_url


def _check_video_url(value: str | None) -> str | None:
    if value is not None and not is_valid_video_url(value):
        raise ValueError("Unsupported video URL (YouTube or Vimeo expected)")
    return value


class CreateCourse(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    category: CourseCategory = CourseCategory.OTHER
    thumbnail_url: str | None = None
    tags: list[str] = Field(default_factory=list)
    published: bool = False


class UpdateCourse(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    category: CourseCategory | None = None
    thumbnail_url: str | None = None
    tags: list[str] | None = None
    published: bool | None = None


class PublishCourse(BaseModel):
    published: bool


class CreateSection(BaseModel):
    name: str = Field(..., min_length=1)
    order_index: int | None = Field(None, ge=0)


class UpdateSection(BaseModel):
    name: str | None = Field(None, min_length=1)
    order_index: int | None = Field(None, ge=0)


class ReorderSectionsSchema(BaseModel):
    section_ids: list[UUID]


class CreateVideo(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    video_url: str
    duration: int | None = Field(None, ge=0, description="Duration in seconds")
    order_index: int | None = Field(None, ge=0)

    @field_validator("video_url")
    @classmethod
    def validate_video_url(cls, value):
        return _check_video_url(value)


class UpdateVideo(BaseModel):
    title: str | None = Field(None, min_length=1)
    description: str | None = None
    video_url: str | None = None
    duration: int | None = Field(None, ge=0)
    order_index: int | None = Field(None, ge=0)

    @field_validator("video_url")
    @classmethod
    def validate_video_url(cls, value):
        return _check_video_url(value)


class ReorderVideosSchema(BaseModel):
    video_ids: list[UUID]


class CreateVideoResource(BaseModel):
    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    type: VideoResourceType = VideoResourceType.OTHER
