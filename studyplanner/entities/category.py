from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
import uuid
from ..database.core import Base
from .user import utcnow


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    color = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Category(name='{self.name}', color='{self.color}')>"
