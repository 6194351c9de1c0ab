"""Row → response dict helpers shared by the catalog, admin and learning services."""
from typing import Any, Optional

from proofbench.db.models.database import (
    Courses,
    Profiles,
    Sections,
    VideoComments,
    VideoProgress,
    VideoResources,
    Videos,
)
from proofbench.libs.formats.datetime import isoformat_or_none
from proofbench.libs.formats.duration import format_duration
from proofbench.libs.formats.video_url import resolve_video_reference


def course_to_dict(course: Courses) -> dict[str, Any]:
    return {
        "id": str(course.id),
        "title": course.title,
        "description": course.description,
        "category": course.category.value if course.category else None,
        "thumbnail_url": course.thumbnail_url,
        "tags": list(course.tags or []),
        "published": bool(course.published),
        "created_by": str(course.created_by),
        "created_at": isoformat_or_none(course.created_at),
        "updated_at": isoformat_or_none(course.updated_at),
    }


def section_to_dict(section: Sections) -> dict[str, Any]:
    return {
        "id": str(section.id),
        "course_id": str(section.course_id),
        "name": section.name,
        "order_index": section.order_index,
        "created_at": isoformat_or_none(section.created_at),
        "updated_at": isoformat_or_none(section.updated_at),
    }


def video_to_dict(video: Videos) -> dict[str, Any]:
    ref = resolve_video_reference(video.video_url)
    return {
        "id": str(video.id),
        "section_id": str(video.section_id),
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "provider": ref.provider.value,
        "embed_url": ref.embed_url,
        "thumbnail_url": ref.thumbnail_url,
        "duration": video.duration,
        "duration_label": format_duration(video.duration),
        "order_index": video.order_index,
        "created_at": isoformat_or_none(video.created_at),
        "updated_at": isoformat_or_none(video.updated_at),
    }


def resource_to_dict(resource: VideoResources) -> dict[str, Any]:
    return {
        "id": str(resource.id),
        "video_id": str(resource.video_id),
        "title": resource.title,
        "url": resource.url,
        "type": resource.type.value if resource.type else None,
        "created_at": isoformat_or_none(resource.created_at),
    }


def progress_to_dict(progress: Optional[VideoProgress]) -> Optional[dict[str, Any]]:
    if progress is None:
        return None
    return {
        "id": str(progress.id),
        "user_id": str(progress.user_id),
        "video_id": str(progress.video_id),
        "last_position": progress.last_position,
        "watch_percentage": progress.watch_percentage,
        "completed": bool(progress.completed),
        "last_watched_at": isoformat_or_none(progress.last_watched_at),
        "created_at": isoformat_or_none(progress.created_at),
        "updated_at": isoformat_or_none(progress.updated_at),
    }


def comment_to_dict(
    comment: VideoComments, author: Optional[Profiles] = None
) -> dict[str, Any]:
    author = author or comment.user
    return {
        "id": str(comment.id),
        "video_id": str(comment.video_id),
        "user_id": str(comment.user_id),
        "parent_id": str(comment.parent_id) if comment.parent_id else None,
        "content": comment.content,
        "created_at": isoformat_or_none(comment.created_at),
        "updated_at": isoformat_or_none(comment.updated_at),
        "user": (
            {
                "id": str(author.id),
                "full_name": author.full_name,
                "avatar_url": author.avatar_url,
                "role": author.role.value if author.role else None,
            }
            if author is not None
            else None
        ),
    }
