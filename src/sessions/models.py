# src/sessions/models.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from src.core.database import Base

class UserSession(Base):
    __tablename__ = "sessions"
    id = Column(String(36), primary_key=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ip = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"UserSession(id='{self.id[:8]}...', user_id='{self.user_id}', expires_at='{self.expires_at}')"
