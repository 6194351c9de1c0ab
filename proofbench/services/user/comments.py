import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import asc, delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from proofbench.core.settings import settings
from proofbench.db.models.database import Profiles, VideoComments, Videos
from proofbench.db.session import get_session
from proofbench.libs.comment_tree import (
    build_comment_tree,
    can_modify_comment,
    count_comments,
)
from proofbench.libs.formats.datetime import now as get_now
from proofbench.schemas.user.learning import CreateVideoComment, UpdateVideoComment
from proofbench.services.shares.serialize import comment_to_dict


class CommentService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _comment_depth(self, comment: VideoComments) -> int:
        """0 for a root comment, 1 for a reply to a root, ..."""
        depth = 0
        parent_id = comment.parent_id
        while parent_id is not None:
            depth += 1
            parent_id = await self.db.scalar(
                select(VideoComments.parent_id).where(VideoComments.id == parent_id)
            )
        return depth

    async def _get_comment_or_404(self, comment_id: uuid.UUID) -> VideoComments:
        comment = await self.db.scalar(
            select(VideoComments)
            .options(selectinload(VideoComments.user))
            .where(VideoComments.id == comment_id)
        )
        if not comment:
            raise HTTPException(404, "Comment not found")
        return comment

    async def list_video_comments_async(
        self, video_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None
    ):
        try:
            video = await self.db.scalar(select(Videos.id).where(Videos.id == video_id))
            if not video:
                raise HTTPException(404, "Video not found")

            rows = (
                await self.db.scalars(
                    select(VideoComments)
                    .options(selectinload(VideoComments.user))
                    .where(VideoComments.video_id == video_id)
                    .order_by(asc(VideoComments.created_at))
                )
            ).all()

            tree = build_comment_tree(
                [comment_to_dict(c) for c in rows],
                viewer_id=viewer_id,
                max_depth=settings.COMMENT_MAX_DEPTH,
            )
            return {"items": tree, "total": count_comments(tree)}
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(500, f"Error loading comments: {e}")

    async def create_video_comment_async(
        self, video_id: uuid.UUID, schema: CreateVideoComment, user: Profiles
    ):
        """
        Post a comment (or a reply) under a video.
        - the parent must be a comment on the same video
        - a reply may not go deeper than COMMENT_MAX_DEPTH
        """
        try:
            content = schema.content.strip()
            if not content:
                raise HTTPException(400, "Comment content cannot be empty")

            video = await self.db.scalar(select(Videos.id).where(Videos.id == video_id))
            if not video:
                raise HTTPException(404, "Video not found")

            if schema.parent_id:
                parent = await self.db.scalar(
                    select(VideoComments).where(VideoComments.id == schema.parent_id)
                )
                if not parent:
                    raise HTTPException(404, "Parent comment not found")
                if parent.video_id != video_id:
                    raise HTTPException(
                        400, "Parent comment belongs to a different video"
                    )
                if await self._comment_depth(parent) + 1 > settings.COMMENT_MAX_DEPTH:
                    raise HTTPException(400, "Replies cannot be nested this deep")

            now = get_now()
            comment = VideoComments(
                video_id=video_id,
                user_id=user.id,
                parent_id=schema.parent_id,
                content=content,
                created_at=now,
                updated_at=now,
            )
            self.db.add(comment)
            await self.db.commit()
            await self.db.refresh(comment)

            return {"type": "comment_created", "comment": comment_to_dict(comment, user)}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error creating comment: {e}")

    async def update_comment_async(
        self, comment_id: uuid.UUID, schema: UpdateVideoComment, user: Profiles
    ):
        try:
            content = schema.content.strip()
            if not content:
                raise HTTPException(400, "Comment content cannot be empty")

            comment = await self._get_comment_or_404(comment_id)
            if not can_modify_comment(user.id, comment.user_id):
                raise HTTPException(403, "You can only edit your own comments")

            comment.content = content
            comment.updated_at = get_now()
            await self.db.commit()
            await self.db.refresh(comment)

            return {"type": "comment_updated", "comment": comment_to_dict(comment, user)}

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating comment: {e}")

    async def delete_comment_async(self, comment_id: uuid.UUID, user: Profiles):
        """Hard delete; replies go with it (FK cascade)."""
        try:
            comment = await self._get_comment_or_404(comment_id)
            if not can_modify_comment(user.id, comment.user_id):
                raise HTTPException(403, "You can only delete your own comments")

            video_id = comment.video_id
            await self.db.execute(
                delete(VideoComments).where(VideoComments.id == comment_id)
            )
            await self.db.commit()
            logger.info(f"🗑️ Comment {comment_id} deleted by {user.id}")

            return {
                "type": "comment_deleted",
                "comment_id": str(comment_id),
                "video_id": str(video_id),
            }

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error deleting comment: {e}")
