from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_principal, require_admin
from api.schemas import (
    AdminQuizDetail,
    MessageResponse,
    QuizCreate,
    QuizDetail,
    QuizListItem,
    QuizUpdate,
)
from core.exceptions import BadRequest
from models.enums import Difficulty
from services.auth_service import Principal
from services.quiz_service import QuizService, QuizDetail as QuizDetailResult, QuizSummary

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def _list_item(summary: QuizSummary) -> QuizListItem:
    item = QuizListItem.model_validate(
        {
            "id": summary.quiz.id,
            "title": summary.quiz.title,
            "description": summary.quiz.description,
            "time_limit": summary.quiz.time_limit,
            "difficulty": summary.quiz.difficulty,
            "category": summary.quiz.category,
            "is_published": summary.quiz.is_published,
            "created_at": summary.quiz.created_at,
            "question_count": summary.question_count,
            "submission_count": summary.submission_count,
            "creator": summary.quiz.creator,
        }
    )
    return item


def _detail(result: QuizDetailResult, include_answers: bool) -> QuizDetail:
    # The public model has no correctAnswer field, so it cannot leak
    model = AdminQuizDetail if include_answers else QuizDetail
    detail = model.model_validate(result.quiz)
    detail.submission_count = result.submission_count
    return detail


def _parse_difficulty(value: Optional[str]) -> Optional[Difficulty]:
    if not value:
        return None
    try:
        return Difficulty(value.upper())
    except ValueError:
        raise BadRequest(f"Unknown difficulty: {value}")


@router.get(
    "",
    response_model=List[QuizListItem],
    summary="List quizzes",
    description="Published quizzes for users, every quiz for admins. Question bodies are never included.",
    responses={401: {"description": "Authentication required"}},
)
async def list_quizzes(
    category: Optional[str] = Query(None, description="Exact category match"),
    difficulty: Optional[str] = Query(None, description="EASY, MEDIUM or HARD (case-insensitive)"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    service = QuizService(db)
    summaries = await service.list_quizzes(principal, category=category, difficulty=_parse_difficulty(difficulty))
    return [_list_item(s) for s in summaries]


@router.get(
    "/{quiz_id}",
    response_model=None,
    summary="Get quiz details",
    description="Questions ordered by position. correctAnswer is only included for admins.",
    responses={
        200: {"model": QuizDetail, "description": "Quiz with questions"},
        401: {"description": "Authentication required"},
        403: {"description": "Quiz not published"},
        404: {"description": "Quiz not found"},
    },
)
async def get_quiz(quiz_id: int, principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)):
    result = await QuizService(db).get_quiz(principal, quiz_id)
    return _detail(result, include_answers=principal.is_admin)


@router.post(
    "",
    response_model=AdminQuizDetail,
    status_code=201,
    summary="Create quiz",
    responses={
        400: {"description": "Invalid quiz or question"},
        403: {"description": "Admin access required"},
    },
)
async def create_quiz(body: QuizCreate, principal: Principal = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    result = await QuizService(db).create_quiz(
        principal,
        title=body.title,
        description=body.description,
        category=body.category,
        questions=[q.model_dump() for q in body.questions],
        time_limit=body.time_limit,
        difficulty=body.difficulty,
        is_published=body.is_published,
    )
    return _detail(result, include_answers=True)


@router.put(
    "/{quiz_id}",
    response_model=AdminQuizDetail,
    summary="Update quiz",
    description="Partial update. A questions array replaces every question atomically.",
    responses={
        400: {"description": "Invalid question; existing questions are left unchanged"},
        403: {"description": "Admin access required"},
        404: {"description": "Quiz not found"},
    },
)
async def update_quiz(
    quiz_id: int,
    body: QuizUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await QuizService(db).update_quiz(principal, quiz_id, body.changes(), body.question_dicts())
    return _detail(result, include_answers=True)


@router.delete(
    "/{quiz_id}",
    response_model=MessageResponse,
    summary="Delete quiz",
    description="Deletes the quiz and its questions. Past submissions are kept without a quiz reference.",
    responses={403: {"description": "Admin access required"}, 404: {"description": "Quiz not found"}},
)
async def delete_quiz(quiz_id: int, principal: Principal = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await QuizService(db).delete_quiz(principal, quiz_id)
    return {"message": "Quiz deleted successfully"}
