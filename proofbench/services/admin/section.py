# proofbench/services/admin/section.py
import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.db.models.database import Courses, Sections
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import now as get_now
from proofbench.schemas.admin.course import (
    CreateSection,
    ReorderSectionsSchema,
    UpdateSection,
)
from proofbench.services.shares.serialize import section_to_dict


class SectionService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_section_or_404(self, section_id: uuid.UUID) -> Sections:
        section = await self.db.scalar(select(Sections).where(Sections.id == section_id))
        if not section:
            raise HTTPException(404, "Section not found")
        return section

    async def list_sections_async(self, course_id: uuid.UUID):
        sections = await self.db.scalars(
            select(Sections)
            .where(Sections.course_id == course_id)
            .order_by(Sections.order_index)
        )
        return [section_to_dict(s) for s in sections]

    async def create_section_async(self, course_id: uuid.UUID, schema: CreateSection):
        try:
            course = await self.db.scalar(select(Courses.id).where(Courses.id == course_id))
            if not course:
                raise HTTPException(404, "Course not found")

            order_index = schema.order_index
            if order_index is None:
                # 📚 next free index in this course
                last = await self.db.scalar(
                    select(Sections.order_index)
                    .where(Sections.course_id == course_id)
                    .order_by(desc(Sections.order_index))
                    .limit(1)
                )
                order_index = (last + 1) if last is not None else 0

            now = get_now()
            section = Sections(
                course_id=course_id,
                name=schema.name,
                order_index=order_index,
                created_at=now,
                updated_at=now,
            )
            self.db.add(section)
            await self.db.commit()
            await self.db.refresh(section)
            return {**section_to_dict(section), "videos": []}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error creating section: {e}")

    async def update_section_async(self, section_id: uuid.UUID, schema: UpdateSection):
        try:
            section = await self.get_section_or_404(section_id)
            for key, value in schema.model_dump(exclude_none=True).items():
                setattr(section, key, value)
            section.updated_at = get_now()

            await self.db.commit()
            await self.db.refresh(section)
            return section_to_dict(section)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating section: {e}")

    async def delete_section_async(self, section_id: uuid.UUID):
        try:
            await self.get_section_or_404(section_id)
            await self.db.execute(delete(Sections).where(Sections.id == section_id))
            await self.db.commit()
            logger.info(f"🗑️ Section {section_id} deleted")
            return {"detail": "Section deleted"}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error deleting section: {e}")

    async def reorder_sections_async(
        self, course_id: uuid.UUID, schema: ReorderSectionsSchema
    ):
        """
        Rewrite order_index of the course's sections as 0..n-1, in the given order.
        The ids must be exactly the course's sections.
        """
        try:
            # 1️⃣ sections of the course
            result = await self.db.scalars(
                select(Sections.id).where(Sections.course_id == course_id)
            )
            valid_section_ids = set(result)

            # 2️⃣ validate
            if len(set(schema.section_ids)) != len(schema.section_ids):
                raise HTTPException(400, "Duplicate section ids")
            for sid in schema.section_ids:
                if sid not in valid_section_ids:
                    raise HTTPException(
                        400, f"Section {sid} does not belong to course {course_id}"
                    )
            if set(schema.section_ids) != valid_section_ids:
                raise HTTPException(400, "Every section of the course must be listed")

            # 3️⃣ dense 0-based order_index
            now = get_now()
            for index, sid in enumerate(schema.section_ids):
                await self.db.execute(
                    update(Sections)
                    .where(Sections.id == sid)
                    .values(order_index=index, updated_at=now)
                )

            await self.db.commit()
            return {
                "detail": "Sections reordered",
                "section_ids": [str(sid) for sid in schema.section_ids],
            }

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error reordering sections: {e}")
