"""Typed entities and the row mappers that produce them.

Rows coming out of the data store are mapped here and nowhere else; everything past
this module works with these dataclasses.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional


@dataclass(frozen=True)
class RiskFlags:
    high_recent_activity: bool = False
    multiple_dealers: bool = False
    cross_district: bool = False
    high_lifetime_usage: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class CaseRow:
    beneficiary_id: str
    risk_level: str
    mean_squared_error: float
    flags: RiskFlags
    residence_district: str = "Unknown"


@dataclass(frozen=True)
class AuditEntry:
    audit_id: str
    beneficiary_id: str
    action: str
    officer_id: str
    officer_name: str
    notes: str
    previous_status: str
    new_status: str
    created_at: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class DurabilityStatus(str, Enum):
    PERSISTED = "PERSISTED"
    DEGRADED = "DEGRADED"


@dataclass(frozen=True)
class GroupAnomalyStat:
    group_key: str
    count: int
    baseline_mean: float
    baseline_std_dev: float
    deviation_pct: Optional[float]
    severity: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class TrendPoint:
    date: str
    high_risk_count: int
    medium_risk_count: int
    low_risk_count: int

    @property
    def total_anomalies(self) -> int:
        return self.high_risk_count + self.medium_risk_count

    def to_dict(self) -> Dict[str, object]:
        out = asdict(self)
        out["total_anomalies"] = self.total_anomalies
        return out


def _iso_utc(value) -> str:
    if isinstance(value, dt.datetime):
        return value.isoformat() + "Z"
    return str(value or "")


def flags_from_row(row) -> RiskFlags:
    return RiskFlags(
        high_recent_activity=bool(row.flag_high_recent_activity),
        multiple_dealers=bool(row.flag_multiple_dealers),
        cross_district=bool(row.flag_cross_district),
        high_lifetime_usage=bool(row.flag_high_lifetime_usage),
    )


def case_from_row(row, residence_district: Optional[str] = None) -> CaseRow:
    return CaseRow(
        beneficiary_id=str(row.beneficiary_id),
        risk_level=str(row.risk_level or "UNKNOWN"),
        mean_squared_error=float(row.mean_squared_error or 0.0),
        flags=flags_from_row(row),
        residence_district=residence_district or "Unknown",
    )


def audit_from_row(row) -> AuditEntry:
    return AuditEntry(
        audit_id=str(row.audit_id),
        beneficiary_id=str(row.beneficiary_id),
        action=str(row.action),
        officer_id=str(row.officer_id or ""),
        officer_name=str(row.officer_name or ""),
        notes=row.notes or "",
        previous_status=str(row.previous_status or "UNKNOWN"),
        new_status=str(row.new_status or "UNKNOWN"),
        created_at=_iso_utc(row.created_at),
    )
