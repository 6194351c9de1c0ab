import uuid
from datetime import datetime

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from proofbench.db.models.database import VideoProgress
from proofbench.schemas.user.learning import CourseFilters, UpdateVideoProgress
from proofbench.services.user.progress import ProgressService


def _progress(position, percentage, completed=None):
    return UpdateVideoProgress(
        last_position=position, watch_percentage=percentage, completed=completed
    )


async def test_upsert_keeps_a_single_row(db, student, admin, make_course):
    _, videos = await make_course(admin)
    service = ProgressService(db)

    await service.update_video_progress_async(videos[0].id, student.id, _progress(10, 10))
    saved = await service.update_video_progress_async(
        videos[0].id, student.id, _progress(30, 30)
    )

    rows = await db.scalar(
        select(func.count()).select_from(VideoProgress).where(
            VideoProgress.user_id == student.id
        )
    )
    assert rows == 1
    assert saved["watch_percentage"] == 30
    assert saved["last_watched_at"] is not None


async def test_percentage_is_clamped(db, student, admin, make_course):
    _, videos = await make_course(admin)
    saved = await ProgressService(db).update_video_progress_async(
        videos[0].id, student.id, _progress(99, 140.4)
    )
    assert saved["watch_percentage"] == 100
    assert saved["completed"] is True


async def test_completed_is_sticky(db, student, admin, make_course):
    _, videos = await make_course(admin)
    service = ProgressService(db)

    await service.mark_video_complete_async(videos[0].id, student.id)
    later = await service.update_video_progress_async(
        videos[0].id, student.id, _progress(5, 5, completed=False)
    )
    assert later["completed"] is True
    assert later["watch_percentage"] == 5


async def test_mark_complete_resets_position(db, student, admin, make_course):
    _, videos = await make_course(admin)
    saved = await ProgressService(db).mark_video_complete_async(
        videos[1].id, student.id
    )
    assert saved["last_position"] == 0
    assert saved["watch_percentage"] == 100
    assert saved["completed"] is True


async def test_unknown_video_is_404(db, student):
    with pytest.raises(HTTPException) as exc:
        await ProgressService(db).update_video_progress_async(
            uuid.uuid4(), student.id, _progress(1, 1)
        )
    assert exc.value.status_code == 404


async def test_video_progress_none_before_watching(db, student, admin, make_course):
    _, videos = await make_course(admin)
    assert (
        await ProgressService(db).get_video_progress_async(videos[0].id, student.id)
        is None
    )


async def test_course_progress_half_done(db, student, admin, make_course):
    course, videos = await make_course(admin, sections=2, videos_per_section=2)
    service = ProgressService(db)
    await service.mark_video_complete_async(videos[0].id, student.id)
    await service.mark_video_complete_async(videos[3].id, student.id)

    summary = await service.get_course_progress_async(course.id, student.id)
    assert summary["total_videos"] == 4
    assert summary["completed_videos"] == 2
    assert summary["progress_percentage"] == 50
    assert summary["title"] == course.title


async def test_course_without_videos_is_zero(db, student, admin, make_course):
    course, _ = await make_course(admin, sections=0)
    summary = await ProgressService(db).get_course_progress_async(course.id, student.id)
    assert summary["total_videos"] == 0
    assert summary["progress_percentage"] == 0


async def test_continue_watching(db, student, admin, make_course):
    _, half_videos = await make_course(admin, title="Half")
    _, done_videos = await make_course(admin, title="Done")
    _, recent_videos = await make_course(admin, title="Recent")
    await make_course(admin, title="Untouched")

    rows = [
        (half_videos[0], True, datetime(2025, 1, 1)),
        (done_videos[0], True, datetime(2025, 1, 10)),
        (done_videos[1], True, datetime(2025, 1, 10)),
        (recent_videos[0], True, datetime(2025, 1, 5)),
    ]
    for video, completed, watched in rows:
        db.add(
            VideoProgress(
                user_id=student.id,
                video_id=video.id,
                last_position=0,
                watch_percentage=100,
                completed=completed,
                last_watched_at=watched,
            )
        )
    await db.commit()

    result = await ProgressService(db).get_continue_watching_async(student.id)
    assert [c["title"] for c in result] == ["Recent", "Half"]
    assert all(c["progress_percentage"] == 50 for c in result)


async def test_continue_watching_hides_drafts(db, student, admin, make_course):
    _, live_videos = await make_course(admin, title="Live")
    _, draft_videos = await make_course(admin, title="Unpublished", published=False)
    service = ProgressService(db)
    for video in (live_videos[0], draft_videos[0]):
        await service.mark_video_complete_async(video.id, student.id)

    result = await service.get_continue_watching_async(student.id)
    assert [c["title"] for c in result] == ["Live"]

    everything = await service.get_continue_watching_async(
        student.id, published_only=False
    )
    assert {c["title"] for c in everything} == {"Live", "Unpublished"}


async def test_courses_with_progress_filters(db, student, admin, make_course):
    await make_course(admin, title="Python Basics")
    await make_course(admin, title="Advanced SQL")

    result = await ProgressService(db).get_courses_with_progress_async(
        student.id, CourseFilters(search="sql")
    )
    assert [c["title"] for c in result] == ["Advanced SQL"]
    assert result[0]["progress_percentage"] == 0
