from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.exceptions import Forbidden, Unauthorized
from services.auth_service import Identity, Principal


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.db.session() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request) -> Identity:
    """A verified credential, whether or not the caller has synced a profile yet."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise Unauthorized("Missing or invalid credentials")
    return identity


def get_principal(request: Request, identity: Identity = Depends(get_identity)) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise Unauthorized("User not found, sync the profile first")
    return principal


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise Forbidden("Admin access required")
    return principal
