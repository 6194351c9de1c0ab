import uuid
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from proofbench.core.enum import UserRole
from proofbench.db.models.database import Sections, VideoProgress, Videos
from proofbench.schemas.admin.course import (
    CreateCourse,
    CreateSection,
    CreateVideo,
    CreateVideoResource,
    ReorderSectionsSchema,
    ReorderVideosSchema,
    UpdateCourse,
)
from proofbench.schemas.user.learning import CourseFilters
from proofbench.services.admin.course import CourseService
from proofbench.services.admin.section import SectionService
from proofbench.services.admin.user import UserService
from proofbench.services.admin.video import VideoService
from proofbench.services.user.progress import ProgressService


async def test_changing_own_role_never_touches_the_store(superadmin):
    store = MagicMock()
    service = UserService(store)

    with pytest.raises(HTTPException) as exc:
        await service.update_user_role_async(superadmin, superadmin.id, UserRole.STUDENT)

    assert exc.value.status_code == 400
    assert store.mock_calls == []


async def test_only_superadmin_changes_roles(db, admin, student, superadmin):
    service = UserService(db)

    with pytest.raises(HTTPException) as exc:
        await service.update_user_role_async(admin, student.id, UserRole.ADMIN)
    assert exc.value.status_code == 403

    updated = await service.update_user_role_async(
        superadmin, student.id, UserRole.ADMIN
    )
    assert updated["role"] == "admin"


async def test_users_are_paginated_and_filtered(db, admin, student, superadmin):
    service = UserService(db)

    page = await service.get_users_async(page=1, size=2)
    assert page["total_items"] == 3
    assert page["total_pages"] == 2
    assert len(page["items"]) == 2
    assert page["has_next"] is True

    students = await service.get_users_by_role_async(UserRole.STUDENT)
    assert [u["email"] for u in students] == [student.email]


async def test_section_reorder_is_dense(db, admin, make_course):
    course, _ = await make_course(admin, sections=3, videos_per_section=0)
    service = SectionService(db)
    ids = [
        s.id
        for s in await db.scalars(
            select(Sections)
            .where(Sections.course_id == course.id)
            .order_by(Sections.order_index)
        )
    ]

    await service.reorder_sections_async(
        course.id, ReorderSectionsSchema(section_ids=list(reversed(ids)))
    )

    sections = await service.list_sections_async(course.id)
    assert [s["id"] for s in sections] == [str(i) for i in reversed(ids)]
    assert [s["order_index"] for s in sections] == [0, 1, 2]


async def test_section_reorder_rejects_foreign_ids(db, admin, make_course):
    course, _ = await make_course(admin, sections=1, videos_per_section=0)
    with pytest.raises(HTTPException) as exc:
        await SectionService(db).reorder_sections_async(
            course.id, ReorderSectionsSchema(section_ids=[uuid.uuid4()])
        )
    assert exc.value.status_code == 400


async def test_section_reorder_requires_every_section(db, admin, make_course):
    course, _ = await make_course(admin, sections=3, videos_per_section=0)
    service = SectionService(db)
    ids = [s["id"] for s in await service.list_sections_async(course.id)]

    with pytest.raises(HTTPException) as exc:
        await service.reorder_sections_async(
            course.id,
            ReorderSectionsSchema(section_ids=[uuid.UUID(ids[2]), uuid.UUID(ids[0])]),
        )
    assert exc.value.status_code == 400

    sections = await service.list_sections_async(course.id)
    assert [s["id"] for s in sections] == ids
    assert [s["order_index"] for s in sections] == [0, 1, 2]


async def test_video_reorder_requires_every_video(db, admin, make_course):
    _, videos = await make_course(admin, sections=1, videos_per_section=3)
    section_id = videos[0].section_id

    with pytest.raises(HTTPException) as exc:
        await VideoService(db).reorder_videos_async(
            section_id, ReorderVideosSchema(video_ids=[videos[2].id, videos[0].id])
        )
    assert exc.value.status_code == 400

    indexes = (
        await db.scalars(
            select(Videos.order_index)
            .where(Videos.section_id == section_id)
            .order_by(Videos.order_index)
        )
    ).all()
    assert list(indexes) == [0, 1, 2]


async def test_new_section_and_video_take_next_index(db, admin, make_course):
    course, _ = await make_course(admin, sections=2, videos_per_section=0)

    section = await SectionService(db).create_section_async(
        course.id, CreateSection(name="Extras")
    )
    assert section["order_index"] == 2

    video_service = VideoService(db)
    first = await video_service.create_video_async(
        uuid.UUID(section["id"]),
        CreateVideo(title="One", video_url="https://youtu.be/one", duration=61),
    )
    second = await video_service.create_video_async(
        uuid.UUID(section["id"]),
        CreateVideo(title="Two", video_url="https://vimeo.com/222"),
    )
    assert (first["order_index"], second["order_index"]) == (0, 1)
    assert first["duration_label"] == "1:01"
    assert second["embed_url"] == "https://player.vimeo.com/video/222"


async def test_video_reorder_and_resources(db, admin, make_course):
    _, videos = await make_course(admin, sections=1, videos_per_section=3)
    service = VideoService(db)
    section_id = videos[0].section_id
    new_order = [videos[2].id, videos[0].id, videos[1].id]

    await service.reorder_videos_async(
        section_id, ReorderVideosSchema(video_ids=new_order)
    )
    ordered = (
        await db.scalars(
            select(Videos.id)
            .where(Videos.section_id == section_id)
            .order_by(Videos.order_index)
        )
    ).all()
    assert list(ordered) == new_order

    resource = await service.create_resource_async(
        videos[0].id, CreateVideoResource(title="Slides", url="https://x.io/s.pdf")
    )
    assert [r["title"] for r in await service.list_resources_async(videos[0].id)] == [
        "Slides"
    ]
    await service.delete_resource_async(uuid.UUID(resource["id"]))
    assert await service.list_resources_async(videos[0].id) == []


async def test_students_only_see_published_courses(db, admin, student, make_course):
    await make_course(admin, title="Live", published=True)
    draft, _ = await make_course(admin, title="Draft", published=False)
    service = CourseService(db)

    assert [c["title"] for c in await service.list_courses_async(viewer=student)] == [
        "Live"
    ]
    assert {c["title"] for c in await service.list_courses_async(viewer=admin)} == {
        "Live",
        "Draft",
    }
    assert [
        c["title"]
        for c in await service.list_courses_async(
            CourseFilters(published=False), viewer=admin
        )
    ] == ["Draft"]

    with pytest.raises(HTTPException) as exc:
        await service.get_course_detail_async(draft.id, student)
    assert exc.value.status_code == 404


async def test_course_detail_includes_progress_and_duration(
    db, admin, student, make_course
):
    course, videos = await make_course(admin, sections=2, videos_per_section=1)
    await ProgressService(db).mark_video_complete_async(videos[0].id, student.id)

    detail = await CourseService(db).get_course_detail_async(course.id, student)
    assert detail["total_videos"] == 2
    assert detail["completed_videos"] == 1
    assert detail["progress_percentage"] == 50
    assert detail["total_duration"] == 200
    assert detail["total_duration_label"] == "3:20"
    first_video = detail["sections"][0]["videos"][0]
    assert first_video["progress"]["completed"] is True
    assert first_video["provider"] == "youtube"


async def test_create_and_delete_course_cascades(db, admin, student):
    service = CourseService(db)
    course = await service.create_course_async(CreateCourse(title="Temp"), admin)
    course_id = uuid.UUID(course["id"])
    assert course["created_by"] == str(admin.id)

    section = await SectionService(db).create_section_async(
        course_id, CreateSection(name="Only")
    )
    video = await VideoService(db).create_video_async(
        uuid.UUID(section["id"]),
        CreateVideo(title="V", video_url="https://youtu.be/abc"),
    )
    await ProgressService(db).mark_video_complete_async(
        uuid.UUID(video["id"]), student.id
    )

    await service.delete_course_async(course_id)

    assert await db.scalar(select(func.count()).select_from(Videos)) == 0
    assert await db.scalar(select(func.count()).select_from(VideoProgress)) == 0


async def test_update_course_ignores_null_required_fields(db, admin, make_course):
    course, _ = await make_course(admin, title="Keep Me")

    updated = await CourseService(db).update_course_async(
        course.id,
        UpdateCourse(title=None, published=None, description="Now with notes"),
    )

    assert updated["title"] == "Keep Me"
    assert updated["published"] is True
    assert updated["description"] == "Now with notes"
