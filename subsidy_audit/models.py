import datetime as dt

from sqlalchemy import Boolean, Column, Date, DateTime, Float, String, Text

from .db import Base


class RiskCase(Base):
    """Upstream-scored case row. Read-only from this service's point of view."""

    __tablename__ = "fraud_with_explanations"

    beneficiary_id = Column(String, primary_key=True, index=True)
    risk_level = Column(String, index=True)
    mean_squared_error = Column(Float, default=0.0)
    flag_high_recent_activity = Column(Boolean, default=False)
    flag_multiple_dealers = Column(Boolean, default=False)
    flag_cross_district = Column(Boolean, default=False)
    flag_high_lifetime_usage = Column(Boolean, default=False)
    scored_on = Column(Date, default=dt.date.today, index=True)


class Beneficiary(Base):
    __tablename__ = "beneficiaries"

    beneficiary_id = Column(String, primary_key=True, index=True)
    residence_district = Column(String, index=True)


class AuditTrailEntry(Base):
    """Append-only ledger row. Rows are inserted, never updated or deleted."""

    __tablename__ = "audit_trail"

    audit_id = Column(String, primary_key=True)
    beneficiary_id = Column(String, index=True)
    action = Column(String, index=True)
    officer_id = Column(String)
    officer_name = Column(String)
    notes = Column(Text, default="")
    previous_status = Column(String)
    new_status = Column(String)
    created_at = Column(DateTime, default=dt.datetime.utcnow, index=True)
