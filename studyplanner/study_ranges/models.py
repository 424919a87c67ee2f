from datetime import date, datetime
from uuid import UUID
from pydantic import model_validator

from ..auth.models import CamelModel


class StudyRangeCreate(CamelModel):
    category_id: UUID
    start_date: date
    end_date: date

    @model_validator(mode='after')
    def validate_order(self):
        if self.end_date < self.start_date:
            raise ValueError('endDate must not be before startDate')
        return self


class StudyRangeUpdate(CamelModel):
    category_id: UUID | None = None
    start_date: date | None = None
    end_date: date | None = None


class StudyRangeResponse(CamelModel):
    id: UUID
    user_id: UUID
    category_id: UUID
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime


class StudyRangeItem(CamelModel):
    item: StudyRangeResponse


class StudyRangeList(CamelModel):
    items: list[StudyRangeResponse]
