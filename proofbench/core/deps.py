# proofbench/core/deps.py
import asyncio
import uuid
from typing import Awaitable, Callable, Iterable, Optional

from fastapi import Depends, HTTPException, Request, WebSocket
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from proofbench.core.enum import UserRole
from proofbench.core.security import SecurityService
from proofbench.core.settings import settings
from proofbench.db.models.database import Profiles
from proofbench.db.session import AsyncSessionLocal, get_session
from proofbench.libs.roles import has_role

ACCESS_TOKEN_COOKIE = "access_token"


def _extract_token(cookies, headers, query_params=None) -> Optional[str]:
    token = (
        (query_params.get("token") if query_params is not None else None)
        or cookies.get(ACCESS_TOKEN_COOKIE)
        or headers.get("authorization")
    )
    if token and token.lower().startswith("bearer "):
        token = token.split(" ", 1)[1].strip()
    return token or None


async def fetch_profile_with_retry(
    load: Callable[[], Awaitable[Optional[Profiles]]],
    max_retries: int = settings.PROFILE_FETCH_MAX_RETRIES,
    base_delay: float = settings.PROFILE_FETCH_BASE_DELAY_SECONDS,
    max_delay: float = settings.PROFILE_FETCH_MAX_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Optional[Profiles]:
    """
    Load a profile, retrying while it does not exist yet.
    Right after the first sign-in the profile row can lag behind the identity,
    so a miss is retried with exponential backoff (1s, 2s, 4s cap).
    """
    for attempt in range(max_retries + 1):
        profile = await load()
        if profile is not None or attempt == max_retries:
            return profile

        delay = min(base_delay * (2**attempt), max_delay)
        logger.warning(
            f"⏳ Profile not found, retrying in {delay}s "
            f"(attempt {attempt + 1}/{max_retries})"
        )
        await sleep(delay)
    return None


class AuthorizationService:
    def __init__(
        self,
        request: Request,
        db: AsyncSession = Depends(get_session),
        security: SecurityService = Depends(SecurityService),
    ):
        self.request = request
        self.db = db
        self.security = security

    # ==============================
    # 🧩 IDENTITY
    # ==============================

    async def get_current_identity(self) -> uuid.UUID:
        """User id carried by the access token, no store access."""
        token = _extract_token(self.request.cookies, self.request.headers)
        if not token:
            raise HTTPException(status_code=401, detail="Not authenticated")

        try:
            payload = await self.security.decode_access_token(token)
            return uuid.UUID(str(payload.get("sub")))
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid token")

    async def load_profile(self, user_id: uuid.UUID) -> Optional[Profiles]:
        return await self.db.scalar(select(Profiles).where(Profiles.id == user_id))

    async def get_current_user(self) -> Profiles:
        user_id = await self.get_current_identity()
        user = await self.load_profile(user_id)
        if not user:
            raise HTTPException(status_code=401, detail="Profile not found")
        return user

    async def get_current_user_with_retry(self) -> Profiles:
        user_id = await self.get_current_identity()
        user = await fetch_profile_with_retry(lambda: self.load_profile(user_id))
        if not user:
            raise HTTPException(status_code=401, detail="Profile not found")
        return user

    async def get_current_user_if_any(self) -> Optional[Profiles]:
        try:
            return await self.get_current_user()
        except HTTPException:
            return None

    # ==============================
    # 🧩 ROLE-BASED ACCESS CONTROL
    # ==============================

    async def require_role(
        self, required_roles: Optional[Iterable[UserRole]] = None
    ) -> Profiles:
        current_user = await self.get_current_user()

        if not required_roles:
            return current_user

        if not has_role(current_user.role, required_roles):
            raise HTTPException(status_code=403, detail="Permission denied")

        return current_user

    @staticmethod
    async def get_user_ws(websocket: WebSocket) -> Optional[Profiles]:
        """
        Resolve the user of a WebSocket handshake:
        - ?token= query param, then the access_token cookie, then Authorization header
        - on failure sends an error frame, closes with 1008 and returns None
        """
        token = _extract_token(
            websocket.cookies, websocket.headers, websocket.query_params
        )
        if not token:
            await websocket.send_json({"error": "Missing authentication token"})
            await websocket.close(code=1008)
            return None

        try:
            async with SecurityService() as security:
                payload = await security.decode_access_token(token)
            user_id = uuid.UUID(str(payload.get("sub")))
        except ValueError as e:
            await websocket.send_json({"error": f"Invalid token ({e})"})
            await websocket.close(code=1008)
            return None

        async with AsyncSessionLocal() as db:
            user = await db.scalar(select(Profiles).where(Profiles.id == user_id))

        if not user:
            await websocket.send_json({"error": "Profile not found"})
            await websocket.close(code=1008)
            return None
        return user


ADMIN_ROLES = [UserRole.ADMIN, UserRole.SUPERADMIN]
SUPERADMIN_ROLES = [UserRole.SUPERADMIN]
