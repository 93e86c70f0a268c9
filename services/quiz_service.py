from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from models.quiz import Quiz, Question
from models.submission import Submission
from models.feedback import Feedback
from models.enums import Difficulty
from core.exceptions import Forbidden, InvalidQuestion, NotFound
from core.logger import logger
from services.auth_service import Principal

# Scalar fields an admin may change through update_quiz
UPDATABLE_FIELDS = ("title", "description", "time_limit", "difficulty", "category", "is_published")


@dataclass
class QuizSummary:
    quiz: Quiz
    question_count: int
    submission_count: int


@dataclass
class QuizDetail:
    quiz: Quiz
    submission_count: int

    @property
    def questions(self) -> List[Question]:
        return list(self.quiz.questions)


def validate_questions(questions: List[Dict[str, Any]]) -> None:
    """Raise InvalidQuestion for the first question that cannot be graded."""
    for index, q in enumerate(questions):
        text = (q.get("question") or "").strip()
        if not text:
            raise InvalidQuestion(index, "question text is required")

        options = q.get("options") or []
        if len(options) < 2:
            raise InvalidQuestion(index, "at least 2 options are required")

        correct = q.get("correct_answer")
        if correct is None or not 0 <= correct < len(options):
            raise InvalidQuestion(index, f"correctAnswer must be between 0 and {len(options) - 1}")

        points = q.get("points")
        if points is not None and points < 1:
            raise InvalidQuestion(index, "points must be at least 1")


def build_questions(questions: List[Dict[str, Any]]) -> List[Question]:
    # Array position is the presentation order and the grading alignment
    return [
        Question(
            question=q["question"].strip(),
            options=list(q["options"]),
            correct_answer=q["correct_answer"],
            explanation=q.get("explanation"),
            points=q.get("points") or 1,
            order=index,
        )
        for index, q in enumerate(questions)
    ]


def _require_admin(principal: Principal):
    if not principal.is_admin:
        raise Forbidden("Admin access required")


class QuizService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _question_count(self):
        return (
            select(func.count(Question.id))
            .where(Question.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )

    def _submission_count(self):
        return (
            select(func.count(Submission.id))
            .where(Submission.quiz_id == Quiz.id)
            .correlate(Quiz)
            .scalar_subquery()
        )

    async def _load(self, quiz_id: int) -> Optional[Quiz]:
        result = await self.db.execute(
            select(Quiz)
            .options(selectinload(Quiz.questions), selectinload(Quiz.creator))
            .filter(Quiz.id == quiz_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _count_submissions(self, quiz_id: int) -> int:
        result = await self.db.execute(select(func.count(Submission.id)).filter(Submission.quiz_id == quiz_id))
        return int(result.scalar() or 0)

    async def list_quizzes(
        self,
        principal: Principal,
        category: Optional[str] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> List[QuizSummary]:
        """Quizzes visible to the caller, newest first, with aggregate counts."""
        query = select(
            Quiz,
            self._question_count().label("question_count"),
            self._submission_count().label("submission_count"),
        ).options(selectinload(Quiz.creator))

        # Non-admin users can only see published quizzes
        if not principal.is_admin:
            query = query.filter(Quiz.is_published.is_(True))
        if category:
            query = query.filter(Quiz.category == category)
        if difficulty:
            query = query.filter(Quiz.difficulty == difficulty)

        result = await self.db.execute(query.order_by(Quiz.created_at.desc(), Quiz.id.desc()))
        return [
            QuizSummary(quiz=quiz, question_count=int(q_count or 0), submission_count=int(s_count or 0))
            for quiz, q_count, s_count in result.all()
        ]

    async def get_quiz(self, principal: Principal, quiz_id: int) -> QuizDetail:
        quiz = await self._load(quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        if not principal.is_admin and not quiz.is_published:
            raise Forbidden("Quiz not available")
        return QuizDetail(quiz=quiz, submission_count=await self._count_submissions(quiz_id))

    async def create_quiz(
        self,
        principal: Principal,
        title: str,
        description: str,
        category: str,
        questions: List[Dict[str, Any]],
        time_limit: Optional[int] = None,
        difficulty: Optional[Difficulty] = None,
        is_published: bool = False,
    ) -> QuizDetail:
        _require_admin(principal)
        validate_questions(questions)

        quiz = Quiz(
            title=title,
            description=description,
            category=category,
            time_limit=time_limit,
            difficulty=difficulty or Difficulty.MEDIUM,
            is_published=bool(is_published),
            creator_id=principal.id,
            questions=build_questions(questions),
        )
        self.db.add(quiz)
        await self.db.commit()

        quiz = await self._load(quiz.id)
        logger.info("Quiz created", quiz_id=quiz.id, admin_id=principal.id, questions=len(questions))
        return QuizDetail(quiz=quiz, submission_count=0)

    async def update_quiz(
        self,
        principal: Principal,
        quiz_id: int,
        fields: Dict[str, Any],
        questions: Optional[List[Dict[str, Any]]] = None,
    ) -> QuizDetail:
        """Partially update a quiz; a given question list replaces the old one atomically."""
        _require_admin(principal)

        quiz = await self._load(quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")

        # Validate everything before touching any row
        if questions is not None:
            validate_questions(questions)

        try:
            for key, value in fields.items():
                if key in UPDATABLE_FIELDS:
                    setattr(quiz, key, value)

            if questions is not None:
                # Flush the deletes first so the (quiz_id, order) slots are free
                quiz.questions.clear()
                await self.db.flush()
                quiz.questions.extend(build_questions(questions))

            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.error("Quiz update rolled back", quiz_id=quiz_id, exc_info=True)
            raise

        quiz = await self._load(quiz_id)
        logger.info(
            "Quiz updated",
            quiz_id=quiz_id,
            admin_id=principal.id,
            fields=sorted(fields),
            replaced_questions=questions is not None,
        )
        return QuizDetail(quiz=quiz, submission_count=await self._count_submissions(quiz_id))

    async def delete_quiz(self, principal: Principal, quiz_id: int) -> None:
        _require_admin(principal)

        quiz = await self.db.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")

        try:
            # Keep graded history: detach submissions and feedback instead of deleting them
            await self.db.execute(
                update(Submission).where(Submission.quiz_id == quiz_id).values(quiz_id=None)
            )
            await self.db.execute(
                update(Feedback).where(Feedback.quiz_id == quiz_id).values(quiz_id=None)
            )
            await self.db.execute(delete(Question).where(Question.quiz_id == quiz_id))
            await self.db.execute(delete(Quiz).where(Quiz.id == quiz_id))
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.error("Quiz delete rolled back", quiz_id=quiz_id, exc_info=True)
            raise

        logger.info("Quiz deleted", quiz_id=quiz_id, admin_id=principal.id)
