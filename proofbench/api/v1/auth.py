from fastapi import APIRouter, Body, Depends, Response, status

from proofbench.core.deps import AuthorizationService
from proofbench.schemas.auth.user import GoogleLogin
from proofbench.services.shares.auth import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/google", status_code=status.HTTP_200_OK)
async def login_google(
    res: Response,
    schema: GoogleLogin = Body(),
    auth_service: AuthService = Depends(AuthService),
):
    return await auth_service.login_google_async(schema, res)


@router.get("/logout", status_code=status.HTTP_200_OK)
async def logout(
    res: Response,
    auth_service: AuthService = Depends(AuthService),
):
    return await auth_service.logout_async(res)


@router.get("/me")
async def me(
    auth_service: AuthService = Depends(AuthService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user_with_retry()
    return await auth_service.me_async(user)
