from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import AUDIT_AUTO_PROVISION, DB_URL

_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}

engine = create_engine(DB_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(bind=None, provision_audit=AUDIT_AUTO_PROVISION):
    """Create the case tables, and the audit trail table when provisioning is enabled.

    The audit trail is allowed to be missing; the ledger then runs in degraded mode.
    """
    from . import models  # noqa: F401

    bind = bind or engine
    tables = [models.RiskCase.__table__, models.Beneficiary.__table__]
    if provision_audit:
        tables.append(models.AuditTrailEntry.__table__)
    Base.metadata.create_all(bind=bind, tables=tables)


def get_db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
