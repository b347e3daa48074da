# models.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text
from database import Base

PENDING = "pending"
PROCESSING = "processing"
COMPLETED = "completed"
FAILED = "failed"

TERMINAL_STATUSES = {COMPLETED, FAILED}


def utcnow():
    return datetime.now(timezone.utc)


class Job(Base):
    """Job model for tracking video generation tasks."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True, index=True)
    status = Column(String, default=PENDING)  # pending, processing, completed, failed
    status_message = Column(String, default="")
    progress = Column(Integer, default=0)

    prompt = Column(Text, nullable=True)
    enhanced_prompt = Column(Text, nullable=True)
    source_code = Column(Text, nullable=True)
    config = Column(JSON, nullable=False)
    backend = Column(String, nullable=True)
    model = Column(String, nullable=True)

    plan = Column(JSON, default=list)
    scene_artifacts = Column(JSON, default=list)
    scene_statuses = Column(JSON, default=list)

    artifact_path = Column(String, nullable=True)
    error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_multi_segment(self) -> bool:
        return len(self.plan or []) > 1

    @property
    def segment_count(self) -> int:
        return max(len(self.plan or []), 1)
