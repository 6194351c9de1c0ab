# proofbench/services/admin/course.py
import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from proofbench.db.models.database import (
    Courses,
    Profiles,
    Sections,
    VideoProgress,
    Videos,
)
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.formats.duration import (
    calculate_progress_percentage,
    calculate_total_duration,
    format_duration,
)
from proofbench.libs.roles import is_admin
from proofbench.schemas.admin.course import CreateCourse, UpdateCourse
from proofbench.schemas.user.learning import CourseFilters
from proofbench.services.shares.serialize import (
    course_to_dict,
    progress_to_dict,
    resource_to_dict,
    section_to_dict,
    video_to_dict,
)


class CourseService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_course_or_404(self, course_id: uuid.UUID) -> Courses:
        course = await self.db.scalar(select(Courses).where(Courses.id == course_id))
        if not course:
            raise HTTPException(404, "Course not found")
        return course

    # ==========================
    # 📚 CATALOG
    # ==========================

    async def list_courses_async(
        self, filters: Optional[CourseFilters] = None, viewer: Optional[Profiles] = None
    ):
        """
        Newest first. Filters: category, published, title search (ilike), created_by.
        Non-admin viewers only ever see published courses.
        """
        try:
            filters = filters or CourseFilters()
            stmt = select(Courses).order_by(desc(Courses.created_at))

            if filters.category:
                stmt = stmt.where(Courses.category == filters.category)
            if filters.search:
                stmt = stmt.where(Courses.title.ilike(f"%{filters.search.strip()}%"))
            if filters.created_by:
                stmt = stmt.where(Courses.created_by == filters.created_by)

            if viewer is None or not is_admin(viewer.role):
                stmt = stmt.where(Courses.published.is_(True))
            elif filters.published is not None:
                stmt = stmt.where(Courses.published.is_(filters.published))

            courses = (await self.db.scalars(stmt)).all()
            return [course_to_dict(c) for c in courses]
        except Exception as e:
            raise HTTPException(500, f"Error loading courses: {e}")

    async def get_course_detail_async(
        self, course_id: uuid.UUID, viewer: Optional[Profiles] = None
    ):
        """Course → sections → videos (+ resources), with the viewer's progress per video."""
        try:
            course = await self.db.scalar(
                select(Courses)
                .options(
                    selectinload(Courses.sections)
                    .selectinload(Sections.videos)
                    .selectinload(Videos.resources)
                )
                .where(Courses.id == course_id)
                .execution_options(populate_existing=True)
            )
            if not course:
                raise HTTPException(404, "Course not found")
            if not course.published and (viewer is None or not is_admin(viewer.role)):
                raise HTTPException(404, "Course not found")

            video_ids = [v.id for s in course.sections for v in s.videos]
            progress_by_video = {}
            if viewer is not None and video_ids:
                rows = await self.db.scalars(
                    select(VideoProgress).where(
                        VideoProgress.user_id == viewer.id,
                        VideoProgress.video_id.in_(video_ids),
                    )
                )
                progress_by_video = {p.video_id: p for p in rows}

            sections = []
            for section in course.sections:
                videos = []
                for video in section.videos:
                    item = video_to_dict(video)
                    item["resources"] = [resource_to_dict(r) for r in video.resources]
                    item["progress"] = progress_to_dict(progress_by_video.get(video.id))
                    videos.append(item)
                sections.append({**section_to_dict(section), "videos": videos})

            total_duration = calculate_total_duration(
                v.duration for s in course.sections for v in s.videos
            )
            completed = sum(1 for p in progress_by_video.values() if p.completed)
            return {
                **course_to_dict(course),
                "sections": sections,
                "total_videos": len(video_ids),
                "completed_videos": completed,
                "progress_percentage": calculate_progress_percentage(
                    completed, len(video_ids)
                ),
                "total_duration": total_duration,
                "total_duration_label": format_duration(total_duration),
            }
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(500, f"Error loading course: {e}")

    # ==========================
    # 🛠️ ADMIN CRUD
    # ==========================

    async def create_course_async(self, schema: CreateCourse, user: Profiles):
        try:
            now = get_now()
            course = Courses(
                **schema.model_dump(),
                created_by=user.id,
                created_at=now,
                updated_at=now,
            )
            self.db.add(course)
            await self.db.commit()
            await self.db.refresh(course)
            logger.info(f"📚 Course {course.id} created by {user.email}")
            return course_to_dict(course)
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error creating course: {e}")

    async def update_course_async(self, course_id: uuid.UUID, schema: UpdateCourse):
        try:
            course = await self.get_course_or_404(course_id)
            for key, value in schema.model_dump(exclude_unset=True).items():
                if key in ("title", "category", "published") and value is None:
                    continue
                setattr(course, key, value)
            course.updated_at = get_now()

            await self.db.commit()
            await self.db.refresh(course)
            return course_to_dict(course)
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating course: {e}")

    async def publish_course_async(self, course_id: uuid.UUID, published: bool):
        try:
            course = await self.get_course_or_404(course_id)
            course.published = published
            course.updated_at = get_now()
            await self.db.commit()
            await self.db.refresh(course)
            logger.info(
                f"{'🟢 Published' if published else '⚪ Unpublished'} course {course_id}"
            )
            return course_to_dict(course)
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error publishing course: {e}")

    async def delete_course_async(self, course_id: uuid.UUID):
        """Sections, videos, resources, progress and comments cascade."""
        try:
            await self.get_course_or_404(course_id)
            await self.db.execute(delete(Courses).where(Courses.id == course_id))
            await self.db.commit()
            logger.info(f"🗑️ Course {course_id} deleted")
            return {"detail": "Course deleted"}
        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error deleting course: {e}")
