"""Append-only ledger of officer actions against a case.

Entries are inserted and read back; nothing here updates or deletes a row.

``previous_status`` is read from the case table before the insert, outside any
transaction with it. Two concurrent actions on one case may therefore record the same
previous status. The ledger records officer intent and history; it is not a
state-transfer lock.
"""
import datetime as dt
import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import OperationalError, ProgrammingError, SQLAlchemyError

from .config import AUDIT_DEFAULT_LIMIT, AUDIT_MAX_LIMIT
from .entities import AuditEntry, DurabilityStatus, audit_from_row
from .errors import UpstreamUnavailable
from .metrics import metrics
from .models import AuditTrailEntry
from .review_workflow import check_preconditions, resolve_new_status
from .store import get_case_status
from .validation import validate_beneficiary_id

logger = logging.getLogger(__name__)

DEFAULT_OFFICER_ID = "SYSTEM"


def _mask_value(value):
    if not value:
        return value
    s = str(value)
    if len(s) <= 4:
        return "****"
    return s[:2] + "****" + s[-2:]


def ledger_provisioned(session) -> bool:
    try:
        return inspect(session.get_bind()).has_table(AuditTrailEntry.__tablename__)
    except SQLAlchemyError as e:
        logger.error("Could not inspect audit trail table: %s", type(e).__name__)
        raise UpstreamUnavailable("Data store unavailable") from e


def clamp_limit(limit) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = AUDIT_DEFAULT_LIMIT
    if value <= 0:
        value = AUDIT_DEFAULT_LIMIT
    return min(value, AUDIT_MAX_LIMIT)


def record_action(
    session,
    beneficiary_id,
    action,
    officer_name,
    notes="",
    new_status: Optional[str] = None,
    officer_id: Optional[str] = None,
) -> Tuple[AuditEntry, DurabilityStatus]:
    """Validate and append one officer action.

    Raises ValidationError before touching the store. Returns the entry together with
    its durability; an unprovisioned ledger yields DEGRADED instead of an error.
    """
    beneficiary_id = validate_beneficiary_id(beneficiary_id)
    action = check_preconditions(action, officer_name, notes)

    previous_status = get_case_status(session, beneficiary_id)
    resolved_status = resolve_new_status(action, previous_status, new_status)
    created_at = dt.datetime.utcnow()

    entry = AuditEntry(
        audit_id=str(uuid.uuid4()),
        beneficiary_id=beneficiary_id,
        action=action,
        officer_id=(officer_id or "").strip() or DEFAULT_OFFICER_ID,
        officer_name=officer_name.strip(),
        notes=(notes or "").strip(),
        previous_status=previous_status,
        new_status=resolved_status,
        created_at=created_at.isoformat() + "Z",
    )

    row = AuditTrailEntry(
        audit_id=entry.audit_id,
        beneficiary_id=entry.beneficiary_id,
        action=entry.action,
        officer_id=entry.officer_id,
        officer_name=entry.officer_name,
        notes=entry.notes,
        previous_status=entry.previous_status,
        new_status=entry.new_status,
        created_at=created_at,
    )

    try:
        session.add(row)
        session.commit()
        durability = DurabilityStatus.PERSISTED
    except (OperationalError, ProgrammingError) as e:
        session.rollback()
        if ledger_provisioned(session):
            logger.error("Audit write failed: %s", type(e).__name__)
            raise UpstreamUnavailable("Audit trail unavailable") from e
        durability = DurabilityStatus.DEGRADED
        logger.warning(
            "AUDIT ENTRY accepted but not persisted (audit_trail not provisioned): "
            "audit_id=%s beneficiary_id=%s action=%s officer=%s",
            entry.audit_id, entry.beneficiary_id, entry.action, _mask_value(entry.officer_name),
        )

    metrics.record_audit_write(durability.value)
    return entry, durability


def list_audit_entries(session, beneficiary_id=None, limit=AUDIT_DEFAULT_LIMIT) -> Tuple[List[AuditEntry], bool]:
    """Most recent entries first. The flag is False when the ledger table is missing."""
    limit = clamp_limit(limit)
    if not ledger_provisioned(session):
        return [], False

    query = session.query(AuditTrailEntry)
    if beneficiary_id:
        query = query.filter(AuditTrailEntry.beneficiary_id == validate_beneficiary_id(beneficiary_id))
    try:
        rows = query.order_by(AuditTrailEntry.created_at.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Audit trail query failed: %s", type(e).__name__)
        raise UpstreamUnavailable("Audit trail unavailable") from e
    return [audit_from_row(r) for r in rows], True
