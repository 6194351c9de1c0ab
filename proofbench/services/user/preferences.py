from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.db.models.database import Profiles, UserPreferences
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import isoformat_or_none
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.roles import can_use_admin_mode


class UserPreferencesService:
    """Per-user admin-mode toggle, persisted and keyed by user id."""

    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def _get_preference(self, user: Profiles):
        return await self.db.scalar(
            select(UserPreferences).where(UserPreferences.user_id == user.id)
        )

    def _state(self, user: Profiles, pref, message=None) -> dict:
        stored = bool(pref and pref.admin_mode_enabled)
        data = {
            "admin_mode": stored and can_use_admin_mode(user.role),
            "can_use_admin_mode": can_use_admin_mode(user.role),
            "updated_at": isoformat_or_none(pref.updated_at) if pref else None,
        }
        if message:
            data["message"] = message
        return data

    async def get_admin_mode_async(self, user: Profiles):
        return self._state(user, await self._get_preference(user))

    async def toggle_admin_mode_async(self, user: Profiles):
        try:
            pref = await self._get_preference(user)

            if not can_use_admin_mode(user.role):
                logger.warning(
                    f"⚠️ {user.email} ({user.role.value}) tried to toggle admin mode"
                )
                return self._state(
                    user, pref, "Admin mode is only available to administrators"
                )

            if pref:
                pref.admin_mode_enabled = not pref.admin_mode_enabled
                pref.updated_at = get_now()
            else:
                pref = UserPreferences(
                    user_id=user.id, admin_mode_enabled=True, updated_at=get_now()
                )
                self.db.add(pref)

            await self.db.commit()
            await self.db.refresh(pref)
            logger.info(
                f"🔧 Admin mode {'on' if pref.admin_mode_enabled else 'off'} for {user.email}"
            )
            return self._state(user, pref)

        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error toggling admin mode: {e}")
