from fastapi import APIRouter, Depends

from proofbench.core.deps import AuthorizationService
from proofbench.services.user.preferences import UserPreferencesService

router = APIRouter(prefix="/preferences", tags=["User Preferences"])


@router.get("/admin-mode")
async def get_admin_mode(
    preferences_service: UserPreferencesService = Depends(UserPreferencesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await preferences_service.get_admin_mode_async(user)


@router.post("/admin-mode/toggle")
async def toggle_admin_mode(
    preferences_service: UserPreferencesService = Depends(UserPreferencesService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await preferences_service.toggle_admin_mode_async(user)
