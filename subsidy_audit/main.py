import datetime as dt
import logging
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from .audit import list_audit_entries, record_action
from .config import (
    AUDIT_DEFAULT_LIMIT,
    CORS_ORIGINS,
    EXPORT_DEFAULT_LIMIT,
    EXPORT_MAX_LIMIT,
    LOG_LEVEL,
    SPIKE_LIMIT,
    TREND_DEFAULT_DAYS,
    TREND_MAX_DAYS,
)
from .db import get_db, init_db
from .errors import NotFound, UpstreamUnavailable, ValidationError
from .explainability import build_case_explanation
from .jobs import InMemoryJobStore, recent_jobs, run_batch_refresh
from .llm import ExplanationGenerator
from .metrics import metrics
from .report_formatter import export_record, rows_as_csv
from .spikes import detect_spikes
from .store import district_anomaly_counts, export_rows, get_case, risk_trend
from .validation import UNKNOWN_RISK, sanitize_language, sanitize_risk_level, validate_beneficiary_id

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Subsidy Audit Explanation Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.generator = ExplanationGenerator()
app.state.job_store = InMemoryJobStore()


@app.on_event("startup")
def startup():
    init_db()


@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    trace_id = uuid.uuid4().hex
    request.state.trace_id = trace_id
    logger.info("request start trace_id=%s method=%s path=%s", trace_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Trace-Id"] = trace_id
    return response


def get_generator(request: Request) -> ExplanationGenerator:
    return request.app.state.generator


def get_job_store(request: Request):
    return request.app.state.job_store


class AuditRequest(BaseModel):
    beneficiary_id: str
    action: str
    officer_name: Optional[str] = None
    officer_id: Optional[str] = None
    notes: Optional[str] = ""
    new_status: Optional[str] = None


class BatchRefreshRequest(BaseModel):
    job_type: str = "FULL_REFRESH"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "-")


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("BAD_REQUEST trace_id=%s error=%s", _trace_id(request), exc)
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(e.get("loc", ["?"])[-1]) for e in exc.errors()})
    logger.warning("BAD_REQUEST trace_id=%s fields=%s", _trace_id(request), fields)
    return _error(400, f"Missing or invalid fields: {', '.join(fields)}")


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(404, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(UpstreamUnavailable)
async def upstream_handler(request: Request, exc: UpstreamUnavailable):
    logger.error("UPSTREAM_UNAVAILABLE trace_id=%s error=%s", _trace_id(request), exc)
    return _error(500, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("INTERNAL_ERROR trace_id=%s type=%s", _trace_id(request), type(exc).__name__)
    return _error(500, "Internal server error")


def _clamp(value: Optional[int], default: int, maximum: int) -> int:
    if not value or value <= 0:
        return default
    return min(value, maximum)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def get_metrics():
    return metrics.snapshot()


@app.get("/api/beneficiaries/{beneficiary_id}")
async def beneficiary_detail(
    beneficiary_id: str,
    lang: Optional[str] = None,
    session=Depends(get_db),
    generator: ExplanationGenerator = Depends(get_generator),
):
    metrics.record_request()
    beneficiary_id = validate_beneficiary_id(beneficiary_id)
    case = await run_in_threadpool(get_case, session, beneficiary_id)
    return await build_case_explanation(case, sanitize_language(lang), generator)


@app.get("/api/audit")
def list_audit(beneficiary_id: Optional[str] = None, limit: Optional[int] = AUDIT_DEFAULT_LIMIT, session=Depends(get_db)):
    entries, initialized = list_audit_entries(session, beneficiary_id, limit)
    body = {"success": True, "audits": [e.to_dict() for e in entries]}
    if not initialized:
        body["message"] = "Audit trail not initialized"
    return body


@app.post("/api/audit")
def create_audit(payload: AuditRequest, session=Depends(get_db)):
    entry, durability = record_action(
        session,
        beneficiary_id=payload.beneficiary_id,
        action=payload.action,
        officer_name=payload.officer_name,
        notes=payload.notes,
        new_status=payload.new_status,
        officer_id=payload.officer_id,
    )
    return {
        "success": True,
        "message": f"Action '{entry.action}' recorded for beneficiary {entry.beneficiary_id}",
        "audit": entry.to_dict(),
        "durability": durability.value,
    }


@app.get("/api/audit/export")
def export_audit_report(
    risk_level: Optional[str] = None,
    district: Optional[str] = None,
    format: str = "json",
    limit: Optional[int] = EXPORT_DEFAULT_LIMIT,
    session=Depends(get_db),
):
    level = sanitize_risk_level(risk_level) if risk_level else None
    if level == UNKNOWN_RISK:
        level = None
    rows = export_rows(session, level, district, _clamp(limit, EXPORT_DEFAULT_LIMIT, EXPORT_MAX_LIMIT))

    if format == "csv":
        filename = f"audit_report_{_today_iso()}.csv"
        return Response(
            content=rows_as_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return {
        "success": True,
        "exported_at": _utc_now_iso(),
        "filters": {"risk_level": level, "district": district},
        "total_records": len(rows),
        "data": [export_record(r) for r in rows],
    }


@app.get("/api/geo/district-risk")
def district_risk(session=Depends(get_db)):
    counts = district_anomaly_counts(session)
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [{"residence_district": d, "anomaly_count": c} for d, c in ranked]


@app.get("/api/analytics/time-series")
def time_series(days: Optional[int] = TREND_DEFAULT_DAYS, session=Depends(get_db)):
    points = risk_trend(session, _clamp(days, TREND_DEFAULT_DAYS, TREND_MAX_DAYS))
    return [p.to_dict() for p in points]


@app.get("/api/analytics/temporal-spikes")
def temporal_spikes(session=Depends(get_db)):
    spikes = detect_spikes(district_anomaly_counts(session), limit=SPIKE_LIMIT)
    return [s.to_dict() for s in spikes]


@app.post("/api/batch/refresh")
def trigger_batch_refresh(payload: Optional[BatchRefreshRequest] = None, session=Depends(get_db), job_store=Depends(get_job_store)):
    metrics.record_batch()
    job_type = payload.job_type if payload else "FULL_REFRESH"
    job, summary = run_batch_refresh(session, job_store, job_type)
    if summary is None:
        return JSONResponse(
            status_code=500,
            content={"success": False, "job": job.to_dict(), "error": job.error_message},
        )
    return {
        "success": True,
        "message": "Batch refresh completed",
        "job": job.to_dict(),
        "summary": summary,
    }


@app.get("/api/batch/refresh")
def batch_status(job_id: Optional[str] = None, job_store=Depends(get_job_store)):
    if job_id:
        job = job_store.get(job_id)
        if job is None:
            return _error(404, "Job not found")
        return {"success": True, "job": job.to_dict()}

    jobs = recent_jobs(job_store)
    return {"success": True, "jobs": [j.to_dict() for j in jobs], "total": len(job_store.all())}


def _utc_now_iso() -> str:
    return dt.datetime.utcnow().isoformat() + "Z"


def _today_iso() -> str:
    return dt.date.today().isoformat()
