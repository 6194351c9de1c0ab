from fastapi import APIRouter, Depends, status

from proofbench.core.deps import AuthorizationService
from proofbench.schemas.auth.user import UpdateProfile
from proofbench.services.user.profile import ProfileService

router = APIRouter(prefix="/profile", tags=["User Profile"])


@router.get("/me", status_code=status.HTTP_200_OK)
async def get_my_profile(
    profile_service: ProfileService = Depends(ProfileService),
    authorization_service: AuthorizationService = Depends(AuthorizationService),
):
    user_id = await authorization_service.get_current_identity()
    return await profile_service.get_profile_async(user_id)


@router.put("/me", status_code=status.HTTP_200_OK)
async def update_my_profile(
    profile_data: UpdateProfile,
    profile_service: ProfileService = Depends(ProfileService),
    authorization_service: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization_service.get_current_user()
    return await profile_service.update_profile_async(user.id, profile_data)
