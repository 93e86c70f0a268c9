from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_db, get_principal, require_admin
from api.schemas import FeedbackCreate, FeedbackOut, FeedbackUpdate, MessageResponse
from core.exceptions import BadRequest
from models.enums import FeedbackType
from services.auth_service import Principal
from services.feedback_service import FeedbackService

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


def _parse_type(value: Optional[str]) -> Optional[FeedbackType]:
    if not value or value.lower() == "all":
        return None
    try:
        return FeedbackType(value.upper())
    except ValueError:
        raise BadRequest(f"Unknown feedback type: {value}")


def _parse_is_read(value: Optional[str]) -> Optional[bool]:
    if value is None or value.lower() == "all":
        return None
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    raise BadRequest("isRead must be true, false or all")


@router.post(
    "",
    response_model=FeedbackOut,
    status_code=201,
    summary="Send feedback",
    responses={400: {"description": "Missing or invalid fields"}, 404: {"description": "Quiz not found"}},
)
async def create_feedback(body: FeedbackCreate, principal: Principal = Depends(get_principal), db: AsyncSession = Depends(get_db)):
    return await FeedbackService(db).create(principal, body.message, body.type, quiz_id=body.quiz_id)


@router.get("", response_model=List[FeedbackOut], summary="List feedback")
async def list_feedback(
    type: Optional[str] = Query(None, description="QUESTION, SUGGESTION, BUG_REPORT or all"),
    is_read: Optional[str] = Query(None, alias="isRead", description="true, false or all"),
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await FeedbackService(db).list_feedback(type=_parse_type(type), is_read=_parse_is_read(is_read))


@router.put(
    "/{feedback_id}",
    response_model=FeedbackOut,
    summary="Mark feedback read or unread",
    responses={404: {"description": "Feedback not found"}},
)
async def update_feedback(
    feedback_id: int,
    body: FeedbackUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await FeedbackService(db).set_read(feedback_id, body.is_read)


@router.delete(
    "/{feedback_id}",
    response_model=MessageResponse,
    summary="Delete feedback",
    responses={404: {"description": "Feedback not found"}},
)
async def delete_feedback(feedback_id: int, principal: Principal = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    await FeedbackService(db).delete(feedback_id)
    return {"message": "Feedback deleted successfully"}
