# proofbench/services/admin/video.py
import uuid

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.db.models.database import Sections, VideoResources, Videos
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import now as get_now
from proofbench.schemas.admin.course import (
    CreateVideo,
    CreateVideoResource,
    ReorderVideosSchema,
    UpdateVideo,
)
from proofbench.services.shares.serialize import resource_to_dict, video_to_dict


class VideoService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_video_or_404(self, video_id: uuid.UUID) -> Videos:
        video = await self.db.scalar(select(Videos).where(Videos.id == video_id))
        if not video:
            raise HTTPException(404, "Video not found")
        return video

    # ==========================
    # 🎬 VIDEOS
    # ==========================

    async def get_video_async(self, video_id: uuid.UUID):
        video = await self.get_video_or_404(video_id)
        resources = await self.db.scalars(
            select(VideoResources)
            .where(VideoResources.video_id == video_id)
            .order_by(VideoResources.created_at)
        )
        return {**video_to_dict(video), "resources": [resource_to_dict(r) for r in resources]}

    async def create_video_async(self, section_id: uuid.UUID, schema: CreateVideo):
        try:
            section = await self.db.scalar(
                select(Sections.id).where(Sections.id == section_id)
            )
            if not section:
                raise HTTPException(404, "Section not found")

            data = schema.model_dump()
            if data.get("order_index") is None:
                last = await self.db.scalar(
                    select(Videos.order_index)
                    .where(Videos.section_id == section_id)
                    .order_by(desc(Videos.order_index))
                    .limit(1)
                )
                data["order_index"] = (last + 1) if last is not None else 0

            now = get_now()
            video = Videos(**data, section_id=section_id, created_at=now, updated_at=now)
            self.db.add(video)
            await self.db.commit()
            await self.db.refresh(video)
            logger.info(f"🎬 Video {video.id} added to section {section_id}")
            return video_to_dict(video)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error creating video: {e}")

    async def update_video_async(self, video_id: uuid.UUID, schema: UpdateVideo):
        try:
            video = await self.get_video_or_404(video_id)
            for key, value in schema.model_dump(exclude_unset=True).items():
                if key in ("title", "video_url", "order_index") and value is None:
                    continue
                setattr(video, key, value)
            video.updated_at = get_now()

            await self.db.commit()
            await self.db.refresh(video)
            return video_to_dict(video)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating video: {e}")

    async def delete_video_async(self, video_id: uuid.UUID):
        """Resources, progress rows and comments of the video cascade."""
        try:
            await self.get_video_or_404(video_id)
            await self.db.execute(delete(Videos).where(Videos.id == video_id))
            await self.db.commit()
            logger.info(f"🗑️ Video {video_id} deleted")
            return {"detail": "Video deleted"}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error deleting video: {e}")

    async def reorder_videos_async(
        self, section_id: uuid.UUID, schema: ReorderVideosSchema
    ):
        try:
            valid_video_ids = set(
                await self.db.scalars(
                    select(Videos.id).where(Videos.section_id == section_id)
                )
            )

            if len(set(schema.video_ids)) != len(schema.video_ids):
                raise HTTPException(400, "Duplicate video ids")
            for vid in schema.video_ids:
                if vid not in valid_video_ids:
                    raise HTTPException(
                        400, f"Video {vid} does not belong to section {section_id}"
                    )
            if set(schema.video_ids) != valid_video_ids:
                raise HTTPException(400, "Every video of the section must be listed")

            now = get_now()
            for index, vid in enumerate(schema.video_ids):
                await self.db.execute(
                    update(Videos)
                    .where(Videos.id == vid)
                    .values(order_index=index, updated_at=now)
                )

            await self.db.commit()
            return {
                "detail": "Videos reordered",
                "video_ids": [str(vid) for vid in schema.video_ids],
            }

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error reordering videos: {e}")

    # ==========================
    # 📎 RESOURCES
    # ==========================

    async def list_resources_async(self, video_id: uuid.UUID):
        await self.get_video_or_404(video_id)
        resources = await self.db.scalars(
            select(VideoResources)
            .where(VideoResources.video_id == video_id)
            .order_by(VideoResources.created_at)
        )
        return [resource_to_dict(r) for r in resources]

    async def create_resource_async(
        self, video_id: uuid.UUID, schema: CreateVideoResource
    ):
        try:
            await self.get_video_or_404(video_id)
            resource = VideoResources(
                **schema.model_dump(), video_id=video_id, created_at=get_now()
            )
            self.db.add(resource)
            await self.db.commit()
            await self.db.refresh(resource)
            return resource_to_dict(resource)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error creating resource: {e}")

    async def delete_resource_async(self, resource_id: uuid.UUID):
        try:
            resource = await self.db.scalar(
                select(VideoResources.id).where(VideoResources.id == resource_id)
            )
            if not resource:
                raise HTTPException(404, "Resource not found")

            await self.db.execute(
                delete(VideoResources).where(VideoResources.id == resource_id)
            )
            await self.db.commit()
            return {"detail": "Resource deleted"}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error deleting resource: {e}")
