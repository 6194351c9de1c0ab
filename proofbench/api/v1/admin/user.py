import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from proofbench.core.deps import ADMIN_ROLES, SUPERADMIN_ROLES, AuthorizationService
from proofbench.core.enum import UserRole
from proofbench.schemas.admin.user import UpdateUserRole
from proofbench.services.admin.user import UserService

router = APIRouter(prefix="/admin/users", tags=["ADMIN USER"])


@router.get("")
async def get_users(
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
    role: Optional[UserRole] = Query(None),
    search: str | None = Query(None, description="Search by name or email"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
):
    await authorization.require_role(ADMIN_ROLES)
    return await user_service.get_users_async(role, search, page, size)


@router.get("/role/{role}")
async def get_users_by_role(
    role: UserRole,
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    await authorization.require_role(ADMIN_ROLES)
    return await user_service.get_users_by_role_async(role)


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: uuid.UUID,
    schema: UpdateUserRole = Body(...),
    authorization: AuthorizationService = Depends(AuthorizationService),
    user_service: UserService = Depends(UserService),
):
    actor = await authorization.require_role(SUPERADMIN_ROLES)
    return await user_service.update_user_role_async(actor, user_id, schema.role)
