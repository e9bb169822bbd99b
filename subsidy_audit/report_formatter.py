"""Audit report export formatting (JSON rows and CSV)."""
from __future__ import annotations

import csv
import io
from typing import Dict, List

from .entities import CaseRow

CSV_HEADERS = [
    "Beneficiary ID",
    "Risk Level",
    "Anomaly Score (MSE)",
    "High Recent Activity",
    "Multiple Dealers",
    "Cross District",
    "High Lifetime Usage",
    "Residence District",
]


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def export_record(row: CaseRow) -> Dict[str, object]:
    return {
        "beneficiary_id": row.beneficiary_id,
        "risk_level": row.risk_level,
        "mean_squared_error": row.mean_squared_error,
        "flag_high_recent_activity": row.flags.high_recent_activity,
        "flag_multiple_dealers": row.flags.multiple_dealers,
        "flag_cross_district": row.flags.cross_district,
        "flag_high_lifetime_usage": row.flags.high_lifetime_usage,
        "residence_district": row.residence_district or "Unknown",
    }


def rows_as_csv(rows: List[CaseRow]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in rows:
        writer.writerow([
            r.beneficiary_id,
            r.risk_level,
            f"{r.mean_squared_error:.6f}",
            _yes_no(r.flags.high_recent_activity),
            _yes_no(r.flags.multiple_dealers),
            _yes_no(r.flags.cross_district),
            _yes_no(r.flags.high_lifetime_usage),
            r.residence_district or "Unknown",
        ])
    return buf.getvalue()
