from pydantic import BaseModel

from proofbench.core.enum import UserRole


class UpdateUserRole(BaseModel):
    role: UserRole
