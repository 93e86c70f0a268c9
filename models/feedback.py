from sqlalchemy import Column, Integer, Text, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin
from models.enums import FeedbackType

class Feedback(Base, TimestampMixin):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="SET NULL"), index=True, nullable=True)
    message = Column(Text, nullable=False)
    type = Column(Enum(FeedbackType, native_enum=False, length=16), nullable=False)
    is_read = Column(Boolean, default=False, index=True, nullable=False)

    user = relationship("User")
    quiz = relationship("Quiz")
