from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid
from ..database.core import Base
from .user import User, utcnow


class RefreshToken(Base):
    __tablename__ = 'refresh_tokens'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True)  # SHA-256 hex, never the plaintext
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)  # NULL while active, set once
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship(User)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def __repr__(self):
        return f"<RefreshToken(user_id='{self.user_id}', expires_at='{self.expires_at}', revoked_at='{self.revoked_at}')>"
