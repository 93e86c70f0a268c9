from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from models.quiz import Quiz, Question
from models.submission import Submission
from core.exceptions import NotFound, Unavailable
from core.logger import logger
from services.auth_service import Principal

UNANSWERED = -1


@dataclass(frozen=True)
class GradeResult:
    score: int
    total_points: int


def _is_correct(question: Question, answer: Optional[int]) -> bool:
    if answer is None or not 0 <= answer < len(question.options):
        return False
    return answer == question.correct_answer


def grade_answers(questions: Sequence[Question], answers: Sequence[Optional[int]]) -> GradeResult:
    """
    Grade a positional answer vector against the quiz's questions.

    answers[i] is checked against the i-th question by ascending ``order``.
    Unanswered, out-of-range and missing trailing answers score nothing;
    extra trailing answers are ignored. Never raises.
    """
    score = 0
    total_points = 0
    for index, question in enumerate(sorted(questions, key=lambda q: q.order)):
        total_points += question.points
        answer = answers[index] if index < len(answers) else None
        if _is_correct(question, answer):
            score += question.points
    return GradeResult(score=score, total_points=total_points)


def normalize_answers(answers: Sequence[Optional[int]], question_count: int) -> List[int]:
    """One stored entry per question; gaps become UNANSWERED."""
    normalized = [UNANSWERED if a is None else a for a in answers[:question_count]]
    normalized.extend([UNANSWERED] * (question_count - len(normalized)))
    return normalized


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SubmissionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, submission_id: int) -> Submission:
        result = await self.db.execute(
            select(Submission)
            .options(selectinload(Submission.quiz))
            .filter(Submission.id == submission_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def submit(
        self,
        principal: Principal,
        quiz_id: int,
        answers: Sequence[Optional[int]],
        started_at: datetime,
        time_spent: int = 0,
    ) -> Submission:
        """Grade the answers server-side and store a new submission.

        Repeated calls are not de-duplicated: every call is a new attempt.
        """
        result = await self.db.execute(
            select(Quiz).options(selectinload(Quiz.questions)).filter(Quiz.id == quiz_id)
        )
        quiz = result.scalar_one_or_none()
        if not quiz:
            raise NotFound("Quiz not found")
        # Drafts are closed to everyone, admins included
        if not quiz.is_published:
            raise Unavailable("Quiz not available")

        questions = sorted(quiz.questions, key=lambda q: q.order)
        grade = grade_answers(questions, answers)

        submission = Submission(
            user_id=principal.id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            answers=normalize_answers(answers, len(questions)),
            score=grade.score,
            total_points=grade.total_points,
            time_spent=time_spent or 0,
            started_at=_naive_utc(started_at),
        )
        self.db.add(submission)
        await self.db.commit()

        logger.info(
            "Submission graded",
            submission_id=submission.id,
            quiz_id=quiz.id,
            user_id=principal.id,
            score=grade.score,
            total_points=grade.total_points,
        )
        return await self._load(submission.id)

    async def list_for_user(self, principal: Principal, quiz_id: Optional[int] = None) -> List[Submission]:
        query = (
            select(Submission)
            .options(selectinload(Submission.quiz))
            .filter(Submission.user_id == principal.id)
        )
        if quiz_id is not None:
            query = query.filter(Submission.quiz_id == quiz_id)

        result = await self.db.execute(query.order_by(Submission.submitted_at.desc(), Submission.id.desc()))
        return list(result.scalars().all())
