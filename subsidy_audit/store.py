"""Read access to the analytical store's case tables.

All queries return typed entities; raw rows do not leave this module.
"""
from __future__ import annotations

import datetime as dt
import functools
import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .entities import CaseRow, TrendPoint, case_from_row
from .errors import NotFound, UpstreamUnavailable
from .models import Beneficiary, RiskCase

logger = logging.getLogger(__name__)

ANOMALOUS_LEVELS = ("HIGH", "MEDIUM")


def _upstream(fn):
    @functools.wraps(fn)
    def wrapper(session, *args, **kwargs):
        try:
            return fn(session, *args, **kwargs)
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Data store query %s failed: %s", fn.__name__, type(e).__name__)
            raise UpstreamUnavailable("Data store unavailable") from e

    return wrapper


@_upstream
def get_case(session, beneficiary_id: str) -> CaseRow:
    row = (
        session.query(RiskCase, Beneficiary.residence_district)
        .outerjoin(Beneficiary, Beneficiary.beneficiary_id == RiskCase.beneficiary_id)
        .filter(RiskCase.beneficiary_id == beneficiary_id)
        .first()
    )
    if row is None:
        raise NotFound("Beneficiary not found")
    case_row, district = row
    return case_from_row(case_row, district)


@_upstream
def get_case_status(session, beneficiary_id: str) -> str:
    level = (
        session.query(RiskCase.risk_level)
        .filter(RiskCase.beneficiary_id == beneficiary_id)
        .scalar()
    )
    return level or "UNKNOWN"


@_upstream
def district_anomaly_counts(session) -> Dict[str, int]:
    rows = (
        session.query(Beneficiary.residence_district, func.count(RiskCase.beneficiary_id))
        .select_from(RiskCase)
        .join(Beneficiary, Beneficiary.beneficiary_id == RiskCase.beneficiary_id)
        .filter(RiskCase.risk_level.in_(ANOMALOUS_LEVELS))
        .group_by(Beneficiary.residence_district)
        .all()
    )
    counts: Dict[str, int] = {}
    for district, count in rows:
        key = district or "Unknown"
        counts[key] = counts.get(key, 0) + int(count)
    return counts


@_upstream
def export_rows(session, risk_level: Optional[str] = None, district: Optional[str] = None, limit: int = 500) -> List[CaseRow]:
    query = (
        session.query(RiskCase, Beneficiary.residence_district)
        .outerjoin(Beneficiary, Beneficiary.beneficiary_id == RiskCase.beneficiary_id)
    )
    if risk_level:
        query = query.filter(RiskCase.risk_level == risk_level)
    if district:
        query = query.filter(Beneficiary.residence_district == district)
    rows = query.order_by(RiskCase.mean_squared_error.desc()).limit(limit).all()
    return [case_from_row(case_row, d) for case_row, d in rows]


@_upstream
def risk_trend(session, days: int, today: Optional[dt.date] = None) -> List[TrendPoint]:
    """Daily risk-level counts for the window ``[today - days, today]``, zero-filled."""
    today = today or dt.date.today()
    start = today - dt.timedelta(days=days)
    rows = (
        session.query(RiskCase.scored_on, RiskCase.risk_level, func.count(RiskCase.beneficiary_id))
        .filter(RiskCase.scored_on >= start, RiskCase.scored_on <= today)
        .group_by(RiskCase.scored_on, RiskCase.risk_level)
        .all()
    )
    buckets: Dict[dt.date, Dict[str, int]] = {}
    for day, level, count in rows:
        buckets.setdefault(day, {})[level] = int(count)

    points = []
    for offset in range(days + 1):
        day = start + dt.timedelta(days=offset)
        counts = buckets.get(day, {})
        points.append(TrendPoint(
            date=day.isoformat(),
            high_risk_count=counts.get("HIGH", 0),
            medium_risk_count=counts.get("MEDIUM", 0),
            low_risk_count=counts.get("LOW", 0),
        ))
    return points


@_upstream
def risk_summary(session) -> Dict[str, int]:
    rows = (
        session.query(RiskCase.risk_level, func.count(RiskCase.beneficiary_id))
        .group_by(RiskCase.risk_level)
        .all()
    )
    by_level = {level: int(count) for level, count in rows}
    return {
        "total_processed": sum(by_level.values()),
        "high_risk": by_level.get("HIGH", 0),
        "medium_risk": by_level.get("MEDIUM", 0),
        "low_risk": by_level.get("LOW", 0),
    }
