"""
Keyed storage of job records.

The store is a passive container: it reads and writes rows and applies no
lifecycle rules. Records it returns are detached snapshots.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from models import Job, utcnow


class JobStore:
    """Job records backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def add(self, job: Job) -> Job:
        with self._session() as db:
            db.add(job)
            db.commit()
            db.refresh(job)
            db.expunge(job)
            return job

    def get(self, job_id: str) -> Optional[Job]:
        with self._session() as db:
            job = db.get(Job, job_id)
            if job is not None:
                db.expunge(job)
            return job

    def update(self, job_id: str, **fields) -> Optional[Job]:
        """Apply field changes to a job. Missing jobs are ignored."""
        with self._session() as db:
            job = db.get(Job, job_id)
            if job is None:
                return None
            for name, value in fields.items():
                setattr(job, name, value)
            job.updated_at = utcnow()
            db.commit()
            db.refresh(job)
            db.expunge(job)
            return job

    def delete(self, job_id: str) -> Optional[Job]:
        """Remove a job and return its last snapshot, or None if it was already gone."""
        with self._session() as db:
            job = db.get(Job, job_id)
            if job is None:
                return None
            db.expunge(job)
            deleted = db.query(Job).filter(Job.id == job_id).delete(synchronize_session=False)
            db.commit()
            return job if deleted else None

    def list_created_before(self, cutoff: datetime) -> List[Job]:
        with self._session() as db:
            jobs = db.query(Job).filter(Job.created_at < cutoff).order_by(Job.created_at).all()
            for job in jobs:
                db.expunge(job)
            return jobs
