import uuid

from fastapi import APIRouter, Body, Depends, status

from proofbench.core.deps import ADMIN_ROLES, AuthorizationService
from proofbench.schemas.admin.course import (
    CreateCourse,
    CreateSection,
    CreateVideo,
    CreateVideoResource,
    PublishCourse,
    ReorderSectionsSchema,
    ReorderVideosSchema,
    UpdateCourse,
    UpdateSection,
    UpdateVideo,
)
from proofbench.services.admin.course import CourseService
from proofbench.services.admin.section import SectionService
from proofbench.services.admin.video import VideoService

router = APIRouter(prefix="/admin", tags=["ADMIN COURSES"])


# ==========================
# 📚 COURSES
# ==========================


@router.get("/courses")
async def get_all_courses(
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role(ADMIN_ROLES)
    return await course_service.list_courses_async(viewer=admin)


@router.post("/courses", status_code=status.HTTP_201_CREATED)
async def create_course(
    schema: CreateCourse = Body(...),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    admin = await authorization.require_role(ADMIN_ROLES)
    return await course_service.create_course_async(schema, admin)


@router.put("/courses/{course_id}")
async def update_course(
    course_id: uuid.UUID,
    schema: UpdateCourse = Body(...),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await course_service.update_course_async(course_id, schema)


@router.put("/courses/{course_id}/publish")
async def publish_course(
    course_id: uuid.UUID,
    schema: PublishCourse = Body(...),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await course_service.publish_course_async(course_id, schema.published)


@router.delete("/courses/{course_id}")
async def delete_course(
    course_id: uuid.UUID,
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await course_service.delete_course_async(course_id)


# ==========================
# 📑 SECTIONS
# ==========================


@router.get("/courses/{course_id}/sections")
async def get_sections(
    course_id: uuid.UUID,
    section_service: SectionService = Depends(SectionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await section_service.list_sections_async(course_id)


@router.post("/courses/{course_id}/sections", status_code=status.HTTP_201_CREATED)
async def create_section(
    course_id: uuid.UUID,
    schema: CreateSection = Body(...),
    section_service: SectionService = Depends(SectionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await section_service.create_section_async(course_id, schema)


@router.put("/courses/{course_id}/sections/reorder")
async def reorder_sections(
    course_id: uuid.UUID,
    schema: ReorderSectionsSchema = Body(...),
    section_service: SectionService = Depends(SectionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await section_service.reorder_sections_async(course_id, schema)


@router.put("/sections/{section_id}")
async def update_section(
    section_id: uuid.UUID,
    schema: UpdateSection = Body(...),
    section_service: SectionService = Depends(SectionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await section_service.update_section_async(section_id, schema)


@router.delete("/sections/{section_id}")
async def delete_section(
    section_id: uuid.UUID,
    section_service: SectionService = Depends(SectionService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await section_service.delete_section_async(section_id)


# ==========================
# 🎬 VIDEOS
# ==========================


@router.post("/sections/{section_id}/videos", status_code=status.HTTP_201_CREATED)
async def create_video(
    section_id: uuid.UUID,
    schema: CreateVideo = Body(...),
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.create_video_async(section_id, schema)


@router.put("/sections/{section_id}/videos/reorder")
async def reorder_videos(
    section_id: uuid.UUID,
    schema: ReorderVideosSchema = Body(...),
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.reorder_videos_async(section_id, schema)


@router.get("/videos/{video_id}")
async def get_video(
    video_id: uuid.UUID,
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.get_video_async(video_id)


@router.put("/videos/{video_id}")
async def update_video(
    video_id: uuid.UUID,
    schema: UpdateVideo = Body(...),
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.update_video_async(video_id, schema)


@router.delete("/videos/{video_id}")
async def delete_video(
    video_id: uuid.UUID,
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.delete_video_async(video_id)


# ==========================
# 📎 RESOURCES
# ==========================


@router.get("/videos/{video_id}/resources")
async def get_resources(
    video_id: uuid.UUID,
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.list_resources_async(video_id)


@router.post("/videos/{video_id}/resources", status_code=status.HTTP_201_CREATED)
async def create_resource(
    video_id: uuid.UUID,
    schema: CreateVideoResource = Body(...),
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.create_resource_async(video_id, schema)


@router.delete("/resources/{resource_id}")
async def delete_resource(
    resource_id: uuid.UUID,
    video_service: VideoService = Depends(VideoService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await video_service.delete_resource_async(resource_id)
