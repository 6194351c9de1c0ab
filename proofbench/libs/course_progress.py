import datetime
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from proofbench.libs.formats.duration import calculate_progress_percentage


@dataclass
class CourseProgressSummary:
    course_id: uuid.UUID
    total_videos: int
    completed_videos: int
    progress_percentage: int
    last_watched_at: Optional[datetime.datetime] = None
    course: dict[str, Any] = field(default_factory=dict)

    @property
    def is_in_progress(self) -> bool:
        return 0 < self.progress_percentage < 100

    def as_dict(self) -> dict[str, Any]:
        return {
            **self.course,
            "id": str(self.course_id),
            "total_videos": self.total_videos,
            "completed_videos": self.completed_videos,
            "progress_percentage": self.progress_percentage,
            "last_watched_at": (
                self.last_watched_at.isoformat() if self.last_watched_at else None
            ),
        }


def summarize_course_progress(
    course_id: uuid.UUID,
    total_videos: int,
    completed_videos: int,
    last_watched_at: Optional[datetime.datetime] = None,
    course: Optional[dict[str, Any]] = None,
) -> CourseProgressSummary:
    return CourseProgressSummary(
        course_id=course_id,
        total_videos=total_videos,
        completed_videos=completed_videos,
        progress_percentage=calculate_progress_percentage(
            completed_videos, total_videos
        ),
        last_watched_at=last_watched_at,
        course=course or {},
    )


def select_continue_watching(
    summaries: Iterable[CourseProgressSummary],
) -> list[CourseProgressSummary]:
    """Partially watched courses, most recent activity first, never-watched last."""
    in_progress = [s for s in summaries if s.is_in_progress]
    with_ts = [s for s in in_progress if s.last_watched_at is not None]
    without_ts = [s for s in in_progress if s.last_watched_at is None]
    with_ts.sort(key=lambda s: s.last_watched_at, reverse=True)
    return with_ts + without_ts
