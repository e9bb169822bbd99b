import asyncio
import datetime as dt
import sys
from pathlib import Path

import httpx
import pytest

# Ensure repo root is on sys.path so `import subsidy_audit.*` works when running
# pytest from any working directory.
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from subsidy_audit.db import init_db  # noqa: E402
from subsidy_audit.models import Beneficiary, RiskCase  # noqa: E402

TODAY = dt.date.today()

SEED_CASES = [
    # beneficiary_id, risk_level, mse, flags (activity, dealers, district, lifetime), district, days ago
    ("BEN001", "HIGH", 0.12, (True, False, False, False), "Pune", 0),
    ("BEN002", "MEDIUM", 0.08, (False, True, True, False), "Nagpur", 1),
    ("BEN003", "LOW", 0.01, (False, False, False, False), "Pune", 2),
    ("BEN004", "HIGH", 0.2, (True, True, True, True), "Nagpur", 10),
]


def _seed(session):
    for bid, level, mse, flags, district, days_ago in SEED_CASES:
        session.add(RiskCase(
            beneficiary_id=bid,
            risk_level=level,
            mean_squared_error=mse,
            flag_high_recent_activity=flags[0],
            flag_multiple_dealers=flags[1],
            flag_cross_district=flags[2],
            flag_high_lifetime_usage=flags[3],
            scored_on=TODAY - dt.timedelta(days=days_ago),
        ))
        session.add(Beneficiary(beneficiary_id=bid, residence_district=district))
    session.commit()


def _make_session(provision_audit):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine, provision_audit=provision_audit)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    _seed(session)
    return session


@pytest.fixture()
def db_session():
    session = _make_session(provision_audit=True)
    yield session
    session.close()


@pytest.fixture()
def bare_db_session():
    """Case tables only; the audit trail table was never provisioned."""
    session = _make_session(provision_audit=False)
    yield session
    session.close()


def service_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeService:
    """Stands in for the generation service behind an httpx mock transport."""

    def __init__(self, status_code=200, payload=None, body=None, exc=None, delay=0.0):
        self.status_code = status_code
        self.payload = payload
        self.body = body
        self.exc = exc
        self.delay = delay
        self.requests = []
        self.completed = False
        self.cancelled = False
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request):
        self.requests.append(request)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.exc is not None:
            raise self.exc
        self.completed = True
        if self.body is not None:
            return httpx.Response(self.status_code, content=self.body)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture()
def make_client():
    from fastapi.testclient import TestClient

    from subsidy_audit.db import get_db
    from subsidy_audit.jobs import InMemoryJobStore
    from subsidy_audit.llm import ExplanationGenerator
    from subsidy_audit.main import app, get_generator, get_job_store

    def _make(session, generator=None, job_store=None, raise_server_exceptions=True):
        generator = generator or ExplanationGenerator(api_key="")
        job_store = job_store or InMemoryJobStore()
        app.dependency_overrides[get_db] = lambda: session
        app.dependency_overrides[get_generator] = lambda: generator
        app.dependency_overrides[get_job_store] = lambda: job_store
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield _make
    app.dependency_overrides.clear()
