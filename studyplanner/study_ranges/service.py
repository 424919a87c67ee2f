import logging
from datetime import date
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..categories.service import CategoryService
from ..entities.study_range import StudyRange
from ..exceptions import NotFoundError, StorageUnavailable, ValidationError
from .models import StudyRangeCreate, StudyRangeUpdate

logger = logging.getLogger(__name__)


class StudyRangeService:

    @staticmethod
    def list_ranges(
        db: Session,
        user_id: UUID,
        start: date | None = None,
        end: date | None = None,
        category_id: UUID | None = None,
    ) -> list[StudyRange]:
        """Ranges of a user, optionally limited to those lying inside [start, end]."""
        query = select(StudyRange).where(StudyRange.user_id == user_id)
        if start is not None:
            query = query.where(StudyRange.start_date >= start)
        if end is not None:
            query = query.where(StudyRange.end_date <= end)
        if category_id is not None:
            query = query.where(StudyRange.category_id == category_id)
        return list(db.execute(query.order_by(StudyRange.start_date)).scalars())

    @staticmethod
    def get_range(db: Session, user_id: UUID, range_id: UUID) -> StudyRange:
        study_range = db.execute(
            select(StudyRange).where(StudyRange.id == range_id, StudyRange.user_id == user_id)
        ).scalar_one_or_none()
        if not study_range:
            raise NotFoundError("Study range not found")
        return study_range

    @staticmethod
    def create_range(db: Session, user_id: UUID, data: StudyRangeCreate) -> StudyRange:
        _require_category(db, user_id, data.category_id)
        study_range = StudyRange(
            user_id=user_id,
            category_id=data.category_id,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        db.add(study_range)
        _commit(db, "create")
        db.refresh(study_range)
        return study_range

    @staticmethod
    def update_range(db: Session, user_id: UUID, range_id: UUID, data: StudyRangeUpdate) -> StudyRange:
        study_range = StudyRangeService.get_range(db, user_id, range_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        if 'category_id' in updates:
            _require_category(db, user_id, updates['category_id'])

        start_date = updates.get('start_date', study_range.start_date)
        end_date = updates.get('end_date', study_range.end_date)
        if end_date < start_date:
            raise ValidationError("endDate must not be before startDate")

        for field, value in updates.items():
            setattr(study_range, field, value)
        _commit(db, "update")
        db.refresh(study_range)
        return study_range

    @staticmethod
    def delete_range(db: Session, user_id: UUID, range_id: UUID) -> None:
        study_range = StudyRangeService.get_range(db, user_id, range_id)
        db.delete(study_range)
        _commit(db, "delete")


def _require_category(db: Session, user_id: UUID, category_id: UUID):
    try:
        CategoryService.get_category(db, user_id, category_id)
    except NotFoundError:
        raise NotFoundError("Category not found", error="category_not_found")


def _commit(db: Session, operation: str):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Study range {operation} failed: {e}")
        raise StorageUnavailable(f"Study range {operation} failed") from e
