import logging
from datetime import date
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..entities.daily_note import DailyNote
from ..exceptions import ConflictError, NotFoundError, StorageUnavailable
from .models import DailyNoteCreate, DailyNoteUpdate

logger = logging.getLogger(__name__)


class DailyNoteService:

    @staticmethod
    def list_notes(
        db: Session,
        user_id: UUID,
        note_date: date | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[DailyNote]:
        query = select(DailyNote).where(DailyNote.user_id == user_id)
        if note_date is not None:
            query = query.where(DailyNote.note_date == note_date)
        if date_from is not None:
            query = query.where(DailyNote.note_date >= date_from)
        if date_to is not None:
            query = query.where(DailyNote.note_date <= date_to)
        return list(db.execute(query.order_by(DailyNote.note_date)).scalars())

    @staticmethod
    def get_note(db: Session, user_id: UUID, note_id: UUID) -> DailyNote:
        note = db.execute(
            select(DailyNote).where(DailyNote.id == note_id, DailyNote.user_id == user_id)
        ).scalar_one_or_none()
        if not note:
            raise NotFoundError("Daily note not found")
        return note

    @staticmethod
    def get_note_by_date(db: Session, user_id: UUID, note_date: date) -> DailyNote | None:
        return db.execute(
            select(DailyNote).where(DailyNote.user_id == user_id, DailyNote.note_date == note_date)
        ).scalar_one_or_none()

    @staticmethod
    def create_note(db: Session, user_id: UUID, data: DailyNoteCreate) -> DailyNote:
        note = DailyNote(user_id=user_id, note_date=data.note_date, body=data.body)
        db.add(note)
        _commit(db, "create")
        db.refresh(note)
        return note

    @staticmethod
    def update_note(db: Session, user_id: UUID, note_id: UUID, data: DailyNoteUpdate) -> DailyNote:
        note = DailyNoteService.get_note(db, user_id, note_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(note, field, value)
        _commit(db, "update")
        db.refresh(note)
        return note

    @staticmethod
    def upsert_note(db: Session, user_id: UUID, note_date: date, body: str) -> tuple[DailyNote, bool]:
        """Write the note for ``note_date``. Returns (note, created)."""
        note = DailyNoteService.get_note_by_date(db, user_id, note_date)
        created = note is None
        if created:
            note = DailyNote(user_id=user_id, note_date=note_date, body=body)
            db.add(note)
        else:
            note.body = body
        _commit(db, "upsert")
        db.refresh(note)
        return note, created

    @staticmethod
    def delete_note(db: Session, user_id: UUID, note_id: UUID) -> None:
        note = DailyNoteService.get_note(db, user_id, note_id)
        db.delete(note)
        _commit(db, "delete")


def _commit(db: Session, operation: str):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("A note already exists for this date", error="note_exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Daily note {operation} failed: {e}")
        raise StorageUnavailable(f"Daily note {operation} failed") from e
