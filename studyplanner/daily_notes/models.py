from datetime import date, datetime
from uuid import UUID
from pydantic import Field

from ..auth.models import CamelModel
from ..categories.models import RequiredText


class DailyNoteCreate(CamelModel):
    note_date: date
    body: RequiredText = Field(..., max_length=10000)


class DailyNoteUpdate(CamelModel):
    note_date: date | None = None
    body: RequiredText | None = Field(default=None, max_length=10000)


class DailyNoteBody(CamelModel):
    body: RequiredText = Field(..., max_length=10000)


class DailyNoteResponse(CamelModel):
    id: UUID
    user_id: UUID
    note_date: date
    body: str
    updated_at: datetime


class DailyNoteItem(CamelModel):
    item: DailyNoteResponse


class DailyNoteList(CamelModel):
    items: list[DailyNoteResponse]
