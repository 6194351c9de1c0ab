# proofbench/services/admin/user.py
import uuid
from typing import Optional

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.core.enum import UserRole
from proofbench.db.models.database import Profiles
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import isoformat_or_none
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.roles import is_superadmin


def profile_to_dict(profile: Profiles) -> dict:
    return {
        "id": str(profile.id),
        "email": profile.email,
        "full_name": profile.full_name,
        "avatar_url": profile.avatar_url,
        "role": profile.role.value,
        "created_at": isoformat_or_none(profile.created_at),
        "updated_at": isoformat_or_none(profile.updated_at),
    }


class UserService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_users_async(
        self,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
        page: int = 1,
        size: int = 20,
    ):
        """All profiles, newest first, optionally filtered by role / name / email."""
        try:
            stmt = select(Profiles)
            if role:
                stmt = stmt.where(Profiles.role == role)
            if search:
                stmt = stmt.where(
                    or_(
                        Profiles.full_name.ilike(f"%{search}%"),
                        Profiles.email.ilike(f"%{search}%"),
                    )
                )

            total_items = (
                await self.db.scalar(
                    select(func.count()).select_from(stmt.subquery())
                )
                or 0
            )
            if total_items == 0:
                return {
                    "page": page,
                    "size": size,
                    "total_items": 0,
                    "total_pages": 0,
                    "items": [],
                }

            stmt = (
                stmt.order_by(desc(Profiles.created_at))
                .offset((page - 1) * size)
                .limit(size)
            )
            users = (await self.db.scalars(stmt)).all()

            total_pages = (total_items + size - 1) // size
            return {
                "page": page,
                "size": size,
                "total_items": total_items,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_previous": page > 1,
                "items": [profile_to_dict(u) for u in users],
            }

        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error loading users: {e}")

    async def get_users_by_role_async(self, role: UserRole):
        users = await self.db.scalars(
            select(Profiles)
            .where(Profiles.role == role)
            .order_by(desc(Profiles.created_at))
        )
        return [profile_to_dict(u) for u in users]

    async def update_user_role_async(
        self, actor: Profiles, user_id: uuid.UUID, role: UserRole
    ):
        """
        Change another user's role.
        - only a superadmin may do it
        - nobody changes their own role (checked before touching the store)
        """
        if str(actor.id) == str(user_id):
            raise HTTPException(400, "You cannot change your own role")
        if not is_superadmin(actor.role):
            raise HTTPException(403, "Only a superadmin can change roles")

        try:
            user = await self.db.scalar(select(Profiles).where(Profiles.id == user_id))
            if not user:
                raise HTTPException(404, "User not found")

            previous = user.role
            user.role = role
            user.updated_at = get_now()
            await self.db.commit()
            await self.db.refresh(user)

            logger.info(
                f"🛡️ {actor.email} changed role of {user.email}: "
                f"{previous.value} → {role.value}"
            )
            return profile_to_dict(user)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating role: {e}")
