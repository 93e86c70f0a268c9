from sqlalchemy import Column, Integer, String, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base, utcnow

class Submission(Base):
    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    # Nulled when the quiz is deleted; quiz_title keeps the history readable
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="SET NULL"), index=True, nullable=True)
    quiz_title = Column(String(255), nullable=False)

    answers = Column(JSON, nullable=False)  # one int per question, -1 = unanswered
    score = Column(Integer, nullable=False)
    total_points = Column(Integer, nullable=False)
    time_spent = Column(Integer, default=0, nullable=False)  # seconds
    started_at = Column(DateTime, nullable=False)
    submitted_at = Column(DateTime, default=utcnow, index=True, nullable=False)

    user = relationship("User")
    quiz = relationship("Quiz")
