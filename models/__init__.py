from models.base import Base
from models.user import User
from models.quiz import Quiz, Question
from models.submission import Submission
from models.feedback import Feedback

__all__ = ["Base", "User", "Quiz", "Question", "Submission", "Feedback"]
