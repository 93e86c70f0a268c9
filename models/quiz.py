from sqlalchemy import Column, Integer, String, Text, JSON, Boolean, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin
from models.enums import Difficulty

class Quiz(Base, TimestampMixin):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    time_limit = Column(Integer, nullable=True)  # minutes
    difficulty = Column(Enum(Difficulty, native_enum=False, length=16), default=Difficulty.MEDIUM, nullable=False)
    category = Column(String(100), index=True, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    creator_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    creator = relationship("User", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        order_by="Question.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("quiz_id", "order", name="uq_questions_quiz_order"),)

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False)
    question = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # list of option strings
    correct_answer = Column(Integer, nullable=False)  # 0-based index into options
    explanation = Column(Text, nullable=True)
    points = Column(Integer, default=1, nullable=False)
    order = Column(Integer, nullable=False)

    quiz = relationship("Quiz", back_populates="questions")
