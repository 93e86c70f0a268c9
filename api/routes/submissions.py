from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_principal
from api.schemas import SubmissionCreate, SubmissionOut
from services.auth_service import Principal
from services.submission_service import SubmissionService

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post(
    "",
    response_model=SubmissionOut,
    status_code=201,
    summary="Submit answers",
    description=(
        "Grades the answers against the stored questions (answers[i] is the i-th question) "
        "and records a new submission. Repeated submissions create new rows."
    ),
    responses={
        400: {"description": "Missing or malformed fields"},
        403: {"description": "Quiz not published"},
        404: {"description": "Quiz not found"},
    },
)
async def submit(body: SubmissionCreate, principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)):
    return await SubmissionService(db).submit(
        principal,
        quiz_id=body.quiz_id,
        answers=body.answers,
        started_at=body.started_at,
        time_spent=body.time_spent,
    )


@router.get(
    "",
    response_model=List[SubmissionOut],
    summary="My submissions",
    description="The caller's own submissions, newest first.",
)
async def list_submissions(
    quiz_id: Optional[int] = Query(None, alias="quizId"),
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
):
    return await SubmissionService(db).list_for_user(principal, quiz_id=quiz_id)
