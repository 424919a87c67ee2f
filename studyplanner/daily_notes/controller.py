from datetime import date
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Query, Request, Response
from starlette import status

from ..auth.service import CurrentUser
from ..database.core import DbSession
from ..rate_limiter import limiter, RATE_LIMITS
from .models import DailyNoteBody, DailyNoteCreate, DailyNoteItem, DailyNoteList, DailyNoteUpdate
from .service import DailyNoteService

router = APIRouter(prefix="/me/daily-notes", tags=["daily-notes"])


@router.get("", response_model=DailyNoteList)
@limiter.limit(RATE_LIMITS["planner_read"])
def list_daily_notes(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    note_date: Annotated[date | None, Query(alias="date")] = None,
    date_from: Annotated[date | None, Query(alias="from")] = None,
    date_to: Annotated[date | None, Query(alias="to")] = None,
):
    items = DailyNoteService.list_notes(db, current_user.user_id, note_date, date_from, date_to)
    return {"items": items}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DailyNoteItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def create_daily_note(request: Request, data: DailyNoteCreate, current_user: CurrentUser, db: DbSession):
    return {"item": DailyNoteService.create_note(db, current_user.user_id, data)}


@router.get("/{note_id}", response_model=DailyNoteItem)
@limiter.limit(RATE_LIMITS["planner_read"])
def get_daily_note(request: Request, note_id: UUID, current_user: CurrentUser, db: DbSession):
    return {"item": DailyNoteService.get_note(db, current_user.user_id, note_id)}


@router.patch("/{note_id}", response_model=DailyNoteItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def update_daily_note(request: Request, note_id: UUID, data: DailyNoteUpdate, current_user: CurrentUser, db: DbSession):
    return {"item": DailyNoteService.update_note(db, current_user.user_id, note_id, data)}


@router.put("/{note_date}", response_model=DailyNoteItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def put_daily_note(
    request: Request,
    response: Response,
    note_date: date,
    data: DailyNoteBody,
    current_user: CurrentUser,
    db: DbSession,
):
    """Create or replace the note of a given day (201 when created, 200 when replaced)."""
    note, created = DailyNoteService.upsert_note(db, current_user.user_id, note_date, data.body)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return {"item": note}


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMITS["planner_write"])
def delete_daily_note(request: Request, note_id: UUID, current_user: CurrentUser, db: DbSession):
    DailyNoteService.delete_note(db, current_user.user_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
