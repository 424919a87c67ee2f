from sqlalchemy import Column, Date, DateTime, ForeignKey, Uuid, CheckConstraint, Index
from sqlalchemy.orm import relationship
import uuid
from ..database.core import Base
from .category import Category
from .user import utcnow


class StudyRange(Base):
    __tablename__ = 'study_ranges'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(Uuid, ForeignKey('categories.id', ondelete='CASCADE'), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship(Category)

    __table_args__ = (
        CheckConstraint('end_date >= start_date', name='study_ranges_date_order'),
        Index('study_ranges_user_date_idx', 'user_id', 'start_date', 'end_date'),
    )

    def __repr__(self):
        return f"<StudyRange(category_id='{self.category_id}', start_date='{self.start_date}', end_date='{self.end_date}')>"
