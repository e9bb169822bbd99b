"""Batch-refresh job registry.

Job status is ephemeral and may be lost on restart. Handlers receive a JobStore
instead of reaching for module state.
"""
from __future__ import annotations

import datetime as dt
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from .config import RECENT_JOBS_LIMIT
from .errors import UpstreamUnavailable
from .store import risk_summary

QUEUED = "QUEUED"
RUNNING = "RUNNING"
COMPLETED = "COMPLETED"
FAILED = "FAILED"


@dataclass
class BatchJobStatus:
    job_id: str
    job_type: str
    status: str
    started_at: str
    completed_at: Optional[str] = None
    records_processed: Optional[int] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class JobStore(ABC):
    """Key-value interface for job status."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[BatchJobStatus]:
        ...

    @abstractmethod
    def put(self, job: BatchJobStatus) -> None:
        ...

    @abstractmethod
    def all(self) -> List[BatchJobStatus]:
        ...


class InMemoryJobStore(JobStore):
    def __init__(self):
        self._jobs: Dict[str, BatchJobStatus] = {}
        self._lock = threading.Lock()

    def get(self, job_id):
        with self._lock:
            return self._jobs.get(job_id)

    def put(self, job):
        with self._lock:
            self._jobs[job.job_id] = job

    def all(self):
        with self._lock:
            return list(self._jobs.values())


def _now() -> str:
    return dt.datetime.utcnow().isoformat() + "Z"


def recent_jobs(job_store: JobStore, limit: int = RECENT_JOBS_LIMIT) -> List[BatchJobStatus]:
    return sorted(job_store.all(), key=lambda j: j.started_at, reverse=True)[:limit]


def run_batch_refresh(session, job_store: JobStore, job_type: str = "FULL_REFRESH"):
    """Recompute the risk-level summary and track it as a job.

    Scoring itself happens upstream; this only refreshes the aggregate view.
    Returns the job and the summary (None when the job failed).
    """
    job = BatchJobStatus(
        job_id=f"batch_{uuid.uuid4().hex[:12]}",
        job_type=job_type,
        status=RUNNING,
        started_at=_now(),
    )
    job_store.put(job)

    try:
        summary = risk_summary(session)
    except UpstreamUnavailable as e:
        job.status = FAILED
        job.completed_at = _now()
        job.error_message = str(e)
        job_store.put(job)
        return job, None

    job.status = COMPLETED
    job.completed_at = _now()
    job.records_processed = summary["total_processed"]
    job_store.put(job)
    summary["last_updated"] = job.completed_at
    return job, summary
