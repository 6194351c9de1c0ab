import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from proofbench.core.enum import UserRole


class GoogleLogin(BaseModel):
    credential: str


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: EmailStr
    full_name: str | None = None
    avatar_url: str | None = None
    role: UserRole
    created_at: datetime
    updated_at: datetime


class UpdateProfile(BaseModel):
    full_name: str | None = Field(None, max_length=200)
    avatar_url: str | None = None
