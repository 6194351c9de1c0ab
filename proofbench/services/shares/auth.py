# proofbench/services/shares/auth.py
from fastapi import Depends, HTTPException, Response
from google.auth.transport import requests
from google.oauth2 import id_token
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.core.deps import ACCESS_TOKEN_COOKIE
from proofbench.core.enum import UserRole
from proofbench.core.security import SecurityService
from proofbench.core.settings import settings
from proofbench.db.models.database import Profiles
from proofbench.db.session import get_session
from proofbench.libs.formats.datetime import now as get_now
from proofbench.libs.roles import can_use_admin_mode, capabilities_for
from proofbench.schemas.auth.user import GoogleLogin
from proofbench.services.admin.user import profile_to_dict


class AuthService:
    def __init__(
        self,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
    ):
        self.db = db
        self.security = security

    def verify_google_credential(self, credential: str) -> dict:
        return id_token.verify_oauth2_token(
            credential, requests.Request(), settings.GOOGLE_CLIENT_ID
        )

    async def set_access_cookie(self, res: Response, profile: Profiles) -> str:
        token = await self.security.create_access_token(str(profile.id))
        res.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=token,
            httponly=True,
            secure=False,  # Dev = False, Prod = True
            samesite="lax",
            max_age=int(settings.ACCESS_TOKEN_EXPIRE_MINUTES) * 60,
            path="/",
        )
        return token

    async def login_google_async(self, schema: GoogleLogin, res: Response):
        try:
            # 1️⃣ verify the Google ID token
            try:
                info = self.verify_google_credential(schema.credential)
            except ValueError as e:
                logger.warning(f"⚠️ Rejected Google credential: {e}")
                raise HTTPException(400, "Invalid Google token")

            email = info.get("email")
            if not email:
                raise HTTPException(400, "Google did not return an email address")

            # 2️⃣ find or create the profile (new accounts are students)
            profile = await self.db.scalar(
                select(Profiles).where(Profiles.email == email)
            )
            if not profile:
                now = get_now()
                profile = Profiles(
                    email=email,
                    full_name=info.get("name"),
                    avatar_url=info.get("picture"),
                    role=UserRole.STUDENT,
                    created_at=now,
                    updated_at=now,
                )
                self.db.add(profile)
                await self.db.commit()
                await self.db.refresh(profile)
                logger.info(f"👤 New profile created for {email}")

            # 3️⃣ token + cookie
            await self.set_access_cookie(res, profile)
            return {"message": "Login Google successful", "user": profile_to_dict(profile)}

        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"❌ Google login error: {e}")
            await self.db.rollback()
            raise HTTPException(400, "Invalid Google token")

    async def logout_async(self, res: Response):
        res.delete_cookie(
            key=ACCESS_TOKEN_COOKIE,
            httponly=True,
            secure=False,
            samesite="lax",
            path="/",
        )
        return {"message": "Logout done"}

    async def me_async(self, profile: Profiles):
        return {
            **profile_to_dict(profile),
            "capabilities": sorted(c.value for c in capabilities_for(profile.role)),
            "can_use_admin_mode": can_use_admin_mode(profile.role),
        }
