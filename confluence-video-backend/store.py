"""
Persistent job bookkeeping shared by the submitter and the background poller.
Job records live under "video-job-<id>" and the ids still being polled under
"active-video-jobs", both in the storage_entries table.
"""

import logging
from typing import List, Optional

from pydantic import ValidationError

from config import ACTIVE_JOBS_KEY, JOB_KEY_PREFIX
from database import SessionLocal
from models import StorageEntry
from schemas import JobRecord


def job_key(job_id: str) -> str:
    return f"{JOB_KEY_PREFIX}{job_id}"


class JobStore:
    """Repository over the key/value table. SQLAlchemy errors propagate to the caller."""

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def _read(self, key: str):
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            return entry.value if entry else None
        finally:
            db.close()

    def _write(self, key: str, value):
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                entry.value = value
            else:
                db.add(StorageEntry(key=key, value=value))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _remove(self, key: str):
        db = self.session_factory()
        try:
            entry = db.get(StorageEntry, key)
            if entry:
                db.delete(entry)
                db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, job_id: str) -> Optional[JobRecord]:
        """Load a record. Rows that no longer decode are treated as missing."""
        value = self._read(job_key(job_id))
        if value is None:
            return None
        try:
            return JobRecord.model_validate(value)
        except ValidationError as e:
            logging.error(f"❌ Stored record for job {job_id} is unreadable: {e}")
            return None

    def put(self, record: JobRecord):
        self._write(job_key(record.job_id), record.model_dump(mode="json"))

    def delete(self, job_id: str):
        self._remove(job_key(job_id))

    def list_active(self) -> List[str]:
        value = self._read(ACTIVE_JOBS_KEY)
        return list(value) if isinstance(value, list) else []

    def set_active(self, job_ids: List[str]):
        unique = list(dict.fromkeys(job_ids))
        self._write(ACTIVE_JOBS_KEY, unique)

    def add_active(self, job_id: str):
        active = self.list_active()
        if job_id in active:
            logging.info(f"Job {job_id} is already being tracked.")
            return
        active.append(job_id)
        self.set_active(active)


def get_job_store() -> JobStore:
    """FastAPI dependency returning the default store."""
    return JobStore()
