import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from proofbench.core.deps import AuthorizationService
from proofbench.core.enum import CourseCategory
from proofbench.schemas.user.learning import CourseFilters
from proofbench.services.admin.course import CourseService

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get("")
async def get_courses(
    category: Optional[CourseCategory] = Query(None),
    published: Optional[bool] = Query(None, description="Admins only"),
    search: Optional[str] = Query(None, description="Search in course title"),
    created_by: Optional[uuid.UUID] = Query(None),
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    viewer = await authorization.get_current_user_if_any()
    filters = CourseFilters(
        category=category, published=published, search=search, created_by=created_by
    )
    return await course_service.list_courses_async(filters, viewer)


@router.get("/{course_id}")
async def get_course_detail(
    course_id: uuid.UUID,
    course_service: CourseService = Depends(CourseService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    viewer = await authorization.get_current_user_if_any()
    return await course_service.get_course_detail_async(course_id, viewer)
