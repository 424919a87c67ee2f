from sqlalchemy import Column, Date, DateTime, ForeignKey, Text, Uuid, UniqueConstraint
import uuid
from ..database.core import Base
from .user import utcnow


class DailyNote(Base):
    __tablename__ = 'daily_notes'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    note_date = Column(Date, nullable=False)
    body = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # One note per user per day
    __table_args__ = (
        UniqueConstraint('user_id', 'note_date', name='daily_notes_user_date_unique'),
    )

    def __repr__(self):
        return f"<DailyNote(note_date='{self.note_date}')>"
