from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_identity, get_principal, get_settings
from api.schemas import UserOut, UserSync, UserUpdate
from core.config import Settings
from services.auth_service import Identity, Principal
from services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "",
    response_model=UserOut,
    summary="Sync profile",
    description="Creates the local user for a verified identity (201) or refreshes its profile (200).",
    responses={
        201: {"description": "User created"},
        400: {"description": "Invalid body or email already registered"},
        401: {"description": "Authentication required"},
    },
)
async def sync_user(
    body: UserSync,
    response: Response,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    service = UserService(db, admin_emails=settings.ADMIN_EMAILS)
    user, is_new = await service.sync_user(identity, body.email, body.display_name, body.avatar)
    response.status_code = 201 if is_new else 200
    return user


@router.get("", response_model=UserOut, summary="Current user profile")
async def get_me(principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)):
    return await UserService(db).get_user(principal.id)


@router.put("", response_model=UserOut, summary="Update profile")
async def update_me(
    body: UserUpdate,
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await UserService(db).update_profile(principal, body.display_name, body.avatar)
