from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models.user import User
from models.enums import Role
from core.exceptions import BadRequest, NotFound
from core.logger import logger
from services.auth_service import Identity, Principal

class UserService:
    def __init__(self, db: AsyncSession, admin_emails: Iterable[str] = ()):
        self.db = db
        self.admin_emails = {email.lower() for email in admin_emails}

    async def get_by_auth_uid(self, auth_uid: str) -> Optional[User]:
        result = await self.db.execute(select(User).filter(User.auth_uid == auth_uid))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def sync_user(
        self,
        identity: Identity,
        email: str,
        display_name: str,
        avatar: Optional[str] = None,
    ) -> tuple[User, bool]:
        """Create or refresh the local user for a verified identity.

        Role is decided once, at creation: configured admin emails get ADMIN.
        """
        result = await self.db.execute(select(User).filter(User.email == email))
        owner = result.scalar_one_or_none()
        if owner and owner.auth_uid != identity.uid:
            raise BadRequest("Email is already registered to another account")

        user = await self.get_by_auth_uid(identity.uid)
        is_new = False

        if not user:
            role = Role.ADMIN if email.lower() in self.admin_emails else Role.USER
            user = User(
                auth_uid=identity.uid,
                email=email,
                display_name=display_name,
                avatar=avatar,
                role=role,
            )
            self.db.add(user)
            is_new = True
        else:
            user.email = email
            user.display_name = display_name
            user.avatar = avatar

        await self.db.commit()
        await self.db.refresh(user)
        if is_new:
            logger.info("New user created", user_id=user.id, role=user.role.value)
        else:
            logger.info("User synced", user_id=user.id)
        return user, is_new

    async def update_profile(
        self,
        principal: Principal,
        display_name: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        user = await self.get_user(principal.id)
        if display_name:
            user.display_name = display_name
        if avatar:
            user.avatar = avatar
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User updated", user_id=user.id)
        return user
