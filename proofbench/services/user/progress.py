import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import case, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.core.settings import settings
from proofbench.db.models.database import (
    Courses,
    Sections,
    VideoProgress,
    Videos,
)
from proofbench.db.session import get_session
from proofbench.libs.course_progress import (
    CourseProgressSummary,
    select_continue_watching,
    summarize_course_progress,
)
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.formats.duration import (
    normalize_watch_percentage,
    should_mark_complete,
)
from proofbench.schemas.user.learning import CourseFilters, UpdateVideoProgress
from proofbench.services.shares.serialize import course_to_dict, progress_to_dict


class ProgressService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _get_video_or_404(self, video_id: uuid.UUID) -> Videos:
        video = await self.db.scalar(select(Videos).where(Videos.id == video_id))
        if not video:
            raise HTTPException(404, "Video not found")
        return video

    async def _get_progress_row(
        self, user_id: uuid.UUID, video_id: uuid.UUID
    ) -> Optional[VideoProgress]:
        return await self.db.scalar(
            select(VideoProgress).where(
                VideoProgress.user_id == user_id,
                VideoProgress.video_id == video_id,
            )
        )

    # ==========================
    # 🎬 VIDEO PROGRESS
    # ==========================

    async def get_video_progress_async(
        self, video_id: uuid.UUID, user_id: uuid.UUID
    ):
        """Stored progress of one video, or None when the user never watched it."""
        try:
            await self._get_video_or_404(video_id)
            return progress_to_dict(await self._get_progress_row(user_id, video_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(500, f"Error loading video progress: {e}")

    async def update_video_progress_async(
        self,
        video_id: uuid.UUID,
        user_id: uuid.UUID,
        schema: UpdateVideoProgress,
    ):
        """
        Save the playback state of a video for a user:
        - read the existing row, then update it or insert a new one
        - watch_percentage is clamped to 0-100
        - completed is sticky: once true it stays true
        """
        try:
            await self._get_video_or_404(video_id)

            percentage = normalize_watch_percentage(schema.watch_percentage)
            completed = (
                schema.completed
                if schema.completed is not None
                else should_mark_complete(percentage, settings.COMPLETION_THRESHOLD)
            )
            now = get_now()

            # 1️⃣ read
            progress = await self._get_progress_row(user_id, video_id)

            # 2️⃣ update or insert
            if progress:
                progress.last_position = schema.last_position
                progress.watch_percentage = percentage
                progress.completed = bool(progress.completed or completed)
                progress.last_watched_at = now
                progress.updated_at = now
            else:
                progress = VideoProgress(
                    user_id=user_id,
                    video_id=video_id,
                    last_position=schema.last_position,
                    watch_percentage=percentage,
                    completed=bool(completed),
                    last_watched_at=now,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(progress)

            await self.db.commit()
            await self.db.refresh(progress)
            return progress_to_dict(progress)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error saving video progress: {e}")

    async def mark_video_complete_async(
        self, video_id: uuid.UUID, user_id: uuid.UUID
    ):
        result = await self.update_video_progress_async(
            video_id,
            user_id,
            UpdateVideoProgress(last_position=0, watch_percentage=100, completed=True),
        )
        logger.info(f"✅ Video {video_id} completed by {user_id}")
        return result

    # ==========================
    # 📊 COURSE PROGRESS
    # ==========================

    async def _summaries_for_courses(
        self, courses: list[Courses], user_id: uuid.UUID
    ) -> dict[uuid.UUID, CourseProgressSummary]:
        if not courses:
            return {}
        course_ids = [c.id for c in courses]

        # total videos per course
        totals = dict(
            (
                await self.db.execute(
                    select(Sections.course_id, func.count(Videos.id))
                    .join(Videos, Videos.section_id == Sections.id)
                    .where(Sections.course_id.in_(course_ids))
                    .group_by(Sections.course_id)
                )
            ).all()
        )

        # completed videos + last activity per course for this user
        rows = (
            await self.db.execute(
                select(
                    Sections.course_id,
                    func.sum(case((VideoProgress.completed.is_(True), 1), else_=0)),
                    func.max(VideoProgress.last_watched_at),
                )
                .join(Videos, Videos.section_id == Sections.id)
                .join(VideoProgress, VideoProgress.video_id == Videos.id)
                .where(
                    Sections.course_id.in_(course_ids),
                    VideoProgress.user_id == user_id,
                )
                .group_by(Sections.course_id)
            )
        ).all()
        activity = {course_id: (done, last) for course_id, done, last in rows}

        summaries = {}
        for course in courses:
            done, last = activity.get(course.id, (0, None))
            summaries[course.id] = summarize_course_progress(
                course.id,
                totals.get(course.id, 0),
                done or 0,
                last_watched_at=last,
                course=course_to_dict(course),
            )
        return summaries

    async def get_course_progress_async(
        self, course_id: uuid.UUID, user_id: uuid.UUID
    ):
        try:
            course = await self.db.scalar(select(Courses).where(Courses.id == course_id))
            if not course:
                raise HTTPException(404, "Course not found")

            summaries = await self._summaries_for_courses([course], user_id)
            return summaries[course.id].as_dict()
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(500, f"Error computing course progress: {e}")

    async def get_courses_with_progress_async(
        self,
        user_id: uuid.UUID,
        filters: Optional[CourseFilters] = None,
    ):
        """Catalog courses (newest first) each carrying the user's progress."""
        try:
            stmt = select(Courses).order_by(desc(Courses.created_at))
            if filters:
                if filters.category:
                    stmt = stmt.where(Courses.category == filters.category)
                if filters.published is not None:
                    stmt = stmt.where(Courses.published.is_(filters.published))
                if filters.search:
                    stmt = stmt.where(Courses.title.ilike(f"%{filters.search}%"))
                if filters.created_by:
                    stmt = stmt.where(Courses.created_by == filters.created_by)

            courses = list((await self.db.scalars(stmt)).all())
            summaries = await self._summaries_for_courses(courses, user_id)
            return [summaries[c.id].as_dict() for c in courses]
        except Exception as e:
            raise HTTPException(500, f"Error loading courses with progress: {e}")

    async def get_continue_watching_async(
        self, user_id: uuid.UUID, published_only: bool = True
    ):
        """
        Courses the user is part-way through:
        progress rows → videos → sections → distinct courses,
        kept when 0 < percentage < 100, latest activity first.
        Drafts are left out unless `published_only` is False (admins).
        """
        try:
            course_ids = (
                await self.db.scalars(
                    select(Sections.course_id)
                    .join(Videos, Videos.section_id == Sections.id)
                    .join(VideoProgress, VideoProgress.video_id == Videos.id)
                    .where(VideoProgress.user_id == user_id)
                    .distinct()
                )
            ).all()
            if not course_ids:
                return []

            stmt = select(Courses).where(Courses.id.in_(course_ids))
            if published_only:
                stmt = stmt.where(Courses.published.is_(True))

            courses = list((await self.db.scalars(stmt)).all())
            summaries = await self._summaries_for_courses(courses, user_id)
            return [s.as_dict() for s in select_continue_watching(summaries.values())]
        except Exception as e:
            raise HTTPException(500, f"Error loading continue watching: {e}")
