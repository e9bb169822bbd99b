import pytest

from subsidy_audit.errors import UpstreamUnavailable
from subsidy_audit.jobs import (
    COMPLETED,
    FAILED,
    BatchJobStatus,
    InMemoryJobStore,
    JobStore,
    recent_jobs,
    run_batch_refresh,
)


def test_job_store_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        JobStore()


def test_partial_job_store_is_rejected():
    class GetOnly(JobStore):
        def get(self, job_id):
            return None

    with pytest.raises(TypeError):
        GetOnly()


def test_refresh_completes_with_summary(db_session):
    store = InMemoryJobStore()

    job, summary = run_batch_refresh(db_session, store)

    assert job.status == COMPLETED
    assert job.job_id.startswith("batch_")
    assert job.records_processed == 4
    assert summary["total_processed"] == 4
    assert summary["last_updated"] == job.completed_at
    assert store.get(job.job_id) is job


def test_refresh_failure_marks_job_failed(db_session, monkeypatch):
    import subsidy_audit.jobs as jobs

    def broken(session):
        raise UpstreamUnavailable("Data store unavailable")

    monkeypatch.setattr(jobs, "risk_summary", broken)
    store = InMemoryJobStore()

    job, summary = run_batch_refresh(db_session, store)

    assert summary is None
    assert job.status == FAILED
    assert job.error_message == "Data store unavailable"
    assert "records_processed" not in job.to_dict()


def test_recent_jobs_newest_first_and_limited():
    store = InMemoryJobStore()
    for i in range(15):
        store.put(BatchJobStatus(
            job_id=f"batch_{i:02d}",
            job_type="FULL_REFRESH",
            status=COMPLETED,
            started_at=f"2024-01-01T00:00:{i:02d}Z",
        ))

    jobs = recent_jobs(store)
    assert len(jobs) == 10
    assert jobs[0].job_id == "batch_14"
