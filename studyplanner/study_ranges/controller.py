from datetime import date
from typing import Annotated
from uuid import UUID
from fastapi import APIRouter, Query, Request, Response
from starlette import status

from ..auth.service import CurrentUser
from ..database.core import DbSession
from ..rate_limiter import limiter, RATE_LIMITS
from .models import StudyRangeCreate, StudyRangeItem, StudyRangeList, StudyRangeUpdate
from .service import StudyRangeService

router = APIRouter(prefix="/me/study-ranges", tags=["study-ranges"])


@router.get("", response_model=StudyRangeList)
@limiter.limit(RATE_LIMITS["planner_read"])
def list_study_ranges(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
    start: date | None = None,
    end: date | None = None,
    category_id: Annotated[UUID | None, Query(alias="categoryId")] = None,
):
    items = StudyRangeService.list_ranges(db, current_user.user_id, start, end, category_id)
    return {"items": items}


@router.post("", status_code=status.HTTP_201_CREATED, response_model=StudyRangeItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def create_study_range(request: Request, data: StudyRangeCreate, current_user: CurrentUser, db: DbSession):
    return {"item": StudyRangeService.create_range(db, current_user.user_id, data)}


@router.get("/{range_id}", response_model=StudyRangeItem)
@limiter.limit(RATE_LIMITS["planner_read"])
def get_study_range(request: Request, range_id: UUID, current_user: CurrentUser, db: DbSession):
    return {"item": StudyRangeService.get_range(db, current_user.user_id, range_id)}


@router.patch("/{range_id}", response_model=StudyRangeItem)
@limiter.limit(RATE_LIMITS["planner_write"])
def update_study_range(request: Request, range_id: UUID, data: StudyRangeUpdate, current_user: CurrentUser, db: DbSession):
    return {"item": StudyRangeService.update_range(db, current_user.user_id, range_id, data)}


@router.delete("/{range_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(RATE_LIMITS["planner_write"])
def delete_study_range(request: Request, range_id: UUID, current_user: CurrentUser, db: DbSession):
    StudyRangeService.delete_range(db, current_user.user_id, range_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
