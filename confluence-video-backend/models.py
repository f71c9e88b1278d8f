# models.py

from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func
from database import Base

class StorageEntry(Base):
    """Key/value row holding job records and the active-jobs list."""

    __tablename__ = "storage_entries"

    key = Column(String, primary_key=True, index=True)  # video-job-<id> | active-video-jobs
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
