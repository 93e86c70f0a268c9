from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel

from models.enums import Difficulty, FeedbackType, Role


class ApiModel(BaseModel):
    """Base for every wire model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _upper(value):
    return value.upper() if isinstance(value, str) else value


# === Users ===

class UserSync(ApiModel):
    """Profile sent by the client right after it signs in with the identity provider."""
    email: EmailStr = Field(..., description="Email address from the identity provider")
    display_name: str = Field(..., min_length=1, max_length=255, description="Name shown to other users")
    avatar: Optional[str] = Field(None, max_length=1024, description="Avatar image URL")


class UserUpdate(ApiModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=255)
    avatar: Optional[str] = Field(None, max_length=1024)


class UserOut(ApiModel):
    id: int
    email: str
    display_name: str
    role: Role
    avatar: Optional[str] = None
    created_at: datetime


class UserRef(ApiModel):
    id: int
    display_name: str
    email: str


# === Quizzes ===

class QuestionIn(ApiModel):
    """A single quiz question with options."""
    question: str = Field(..., description="The question text", examples=["What is 2+2?"])
    options: List[str] = Field(..., description="Answer options, at least 2")
    correct_answer: StrictInt = Field(..., description="Index of the correct answer (0-based)")
    explanation: Optional[str] = Field(None, description="Shown after the quiz is graded")
    points: Optional[StrictInt] = Field(None, description="Points for a correct answer (default 1)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "What does the === operator do?",
                "options": ["Assignment", "Strict equality", "Loose equality", "Not equal"],
                "correctAnswer": 1,
                "explanation": "=== compares value and type without conversion.",
                "points": 1,
            }
        }
    )


class QuizCreate(ApiModel):
    """Request body for creating a quiz."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    time_limit: Optional[int] = Field(None, ge=1, description="Time limit in minutes")
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = Field(..., min_length=1, max_length=100)
    is_published: bool = False
    questions: List[QuestionIn] = Field(..., min_length=1)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return _upper(value)


class QuizUpdate(ApiModel):
    """Partial update; a present ``questions`` list replaces the whole set."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    time_limit: Optional[int] = Field(None, ge=1)
    difficulty: Optional[Difficulty] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    is_published: Optional[bool] = None
    questions: Optional[List[QuestionIn]] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value):
        return _upper(value)

    def changes(self) -> Dict[str, Any]:
        """Scalar fields present in the body. Only time_limit may be cleared with null."""
        data = self.model_dump(exclude_unset=True, exclude={"questions"})
        return {k: v for k, v in data.items() if v is not None or k == "time_limit"}

    def question_dicts(self) -> Optional[List[Dict[str, Any]]]:
        if self.questions is None:
            return None
        return [q.model_dump() for q in self.questions]


class QuizListItem(ApiModel):
    """Quiz item in list response. Never carries question bodies."""
    id: int
    title: str
    description: str
    time_limit: Optional[int] = None
    difficulty: Difficulty
    category: str
    is_published: bool
    created_at: datetime
    question_count: int
    submission_count: int
    creator: Optional[UserRef] = None


class QuestionOut(ApiModel):
    """Question as shown to quiz takers. Has no correctAnswer field."""
    id: int
    question: str
    options: List[str]
    explanation: Optional[str] = None
    points: int
    order: int


class AdminQuestionOut(QuestionOut):
    correct_answer: int


class QuizDetail(ApiModel):
    id: int
    title: str
    description: str
    time_limit: Optional[int] = None
    difficulty: Difficulty
    category: str
    is_published: bool
    created_at: datetime
    updated_at: datetime
    creator: Optional[UserRef] = None
    submission_count: int = 0
    questions: List[QuestionOut]


class AdminQuizDetail(QuizDetail):
    questions: List[AdminQuestionOut]


# === Submissions ===

class SubmissionCreate(ApiModel):
    quiz_id: StrictInt
    answers: List[Optional[StrictInt]] = Field(..., description="Selected option index per question, null or -1 if unanswered")
    time_spent: int = Field(0, ge=0, description="Seconds spent on the quiz")
    started_at: datetime


class QuizRef(ApiModel):
    id: int
    title: str
    category: str
    difficulty: Difficulty


class SubmissionOut(ApiModel):
    id: int
    user_id: int
    quiz_id: Optional[int] = None
    quiz_title: str
    answers: List[int]
    score: int
    total_points: int
    time_spent: int
    started_at: datetime
    submitted_at: datetime
    quiz: Optional[QuizRef] = None


# === Feedback ===

class FeedbackCreate(ApiModel):
    message: str = Field(..., min_length=1)
    type: FeedbackType
    quiz_id: Optional[StrictInt] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        return _upper(value)


class FeedbackUpdate(ApiModel):
    is_read: bool


class FeedbackQuizRef(ApiModel):
    id: int
    title: str


class FeedbackOut(ApiModel):
    id: int
    user_id: int
    quiz_id: Optional[int] = None
    message: str
    type: FeedbackType
    is_read: bool
    created_at: datetime
    user: Optional[UserRef] = None
    quiz: Optional[FeedbackQuizRef] = None


class MessageResponse(ApiModel):
    message: str
