from datetime import timedelta
from typing import Any, Dict

import jwt

from proofbench.core.settings import settings
from proofbench.libs.formats.datetime import now_tzinfo


class SecurityService:
    def __init__(self):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.access_token_expire_minutes = float(settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    # 🔐 JWT
    async def create_access_token(self, sub: str) -> str:
        expire = now_tzinfo() + timedelta(minutes=self.access_token_expire_minutes)
        payload: Dict[str, Any] = {"sub": sub, "iat": now_tzinfo(), "exp": expire}
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return str(token)

    async def decode_access_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise ValueError("Token expired")
        except jwt.InvalidTokenError:
            raise ValueError("Invalid token")
