from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from models.feedback import Feedback
from models.quiz import Quiz
from models.enums import FeedbackType
from core.exceptions import NotFound
from core.logger import logger
from services.auth_service import Principal

class FeedbackService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, feedback_id: int) -> Optional[Feedback]:
        result = await self.db.execute(
            select(Feedback)
            .options(selectinload(Feedback.user), selectinload(Feedback.quiz))
            .filter(Feedback.id == feedback_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        principal: Principal,
        message: str,
        type: FeedbackType,
        quiz_id: Optional[int] = None,
    ) -> Feedback:
        if quiz_id is not None and not await self.db.get(Quiz, quiz_id):
            raise NotFound("Quiz not found")

        feedback = Feedback(user_id=principal.id, quiz_id=quiz_id, message=message, type=type)
        self.db.add(feedback)
        await self.db.commit()
        logger.info("Feedback received", feedback_id=feedback.id, user_id=principal.id, type=type.value)
        return await self._load(feedback.id)

    async def list_feedback(
        self,
        type: Optional[FeedbackType] = None,
        is_read: Optional[bool] = None,
    ) -> List[Feedback]:
        query = select(Feedback).options(selectinload(Feedback.user), selectinload(Feedback.quiz))
        if type is not None:
            query = query.filter(Feedback.type == type)
        if is_read is not None:
            query = query.filter(Feedback.is_read.is_(is_read))

        result = await self.db.execute(query.order_by(Feedback.created_at.desc(), Feedback.id.desc()))
        return list(result.scalars().all())

    async def set_read(self, feedback_id: int, is_read: bool) -> Feedback:
        feedback = await self.db.get(Feedback, feedback_id)
        if not feedback:
            raise NotFound("Feedback not found")

        feedback.is_read = is_read
        await self.db.commit()
        logger.info("Feedback updated", feedback_id=feedback_id, is_read=is_read)
        return await self._load(feedback_id)

    async def delete(self, feedback_id: int) -> None:
        feedback = await self.db.get(Feedback, feedback_id)
        if not feedback:
            raise NotFound("Feedback not found")

        await self.db.delete(feedback)
        await self.db.commit()
        logger.info("Feedback deleted", feedback_id=feedback_id)
