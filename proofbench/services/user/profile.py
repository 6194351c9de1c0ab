import uuid

from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.db.models.database import Profiles
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.roles import capabilities_for
from proofbench.schemas.auth.user import UpdateProfile
from proofbench.services.admin.user import profile_to_dict


class ProfileService:
    def __init__(self, db: AsyncSession = Depends(get_session)):
        self.db = db

    async def get_profile_async(self, user_id: uuid.UUID):
        profile = await self.db.scalar(select(Profiles).where(Profiles.id == user_id))
        if not profile:
            raise HTTPException(404, "Profile not found")
        return {
            **profile_to_dict(profile),
            "capabilities": sorted(c.value for c in capabilities_for(profile.role)),
        }

    async def update_profile_async(self, user_id: uuid.UUID, schema: UpdateProfile):
        """Only full_name / avatar_url are editable; role and email are not."""
        try:
            profile = await self.db.scalar(
                select(Profiles).where(Profiles.id == user_id)
            )
            if not profile:
                raise HTTPException(404, "Profile not found")

            for key, value in schema.model_dump(exclude_unset=True).items():
                setattr(profile, key, value)
            profile.updated_at = get_now()

            await self.db.commit()
            await self.db.refresh(profile)
            return profile_to_dict(profile)

        except HTTPException:
            raise
        except Exception as e:
            await self.db.rollback()
            raise HTTPException(500, f"Error updating profile: {e}")
