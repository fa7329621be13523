"""Audit trail of changes to tracked records — maps to the 'activity_log' table."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func

from app.infrastructure.database import Base


class ActivityLog(Base):
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_type = Column(String(50), nullable=False)
    subject_id = Column(Integer, nullable=False, index=True)
    causer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    event = Column(String(20), nullable=False)
    # Only the fields that changed
    old_values = Column(JSON, nullable=False, default=dict)
    new_values = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ActivityLog {self.subject_type}:{self.subject_id} {self.event}>"
