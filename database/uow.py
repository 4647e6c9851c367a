import contextlib
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from database.database import SessionLocal
from database.repositories import SubsidyRepository, UsageRepository, ComplianceRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _session_scope(session_factory: Optional[Callable[[], Session]] = None):
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextlib.contextmanager
def catalog_uow(session_factory: Optional[Callable[[], Session]] = None):
    """Per-query read scope over the subsidy catalog.

    Yields a SubsidyRepository bound to a fresh Session. Each concurrent
    catalog query gets its own unit of work; sessions are not thread-safe.

    Usage:
        with catalog_uow() as repo:
            rows = repo.find_national_high_value(50000, limit=50)
    """
    with _session_scope(session_factory) as session:
        yield SubsidyRepository(session)


@contextlib.contextmanager
def usage_uow(session_factory: Optional[Callable[[], Session]] = None):
    """Transaction scope for usage accounting. Commits on success, rolls back on exception."""
    with _session_scope(session_factory) as session:
        yield UsageRepository(session)


@contextlib.contextmanager
def compliance_uow(session_factory: Optional[Callable[[], Session]] = None):
    with _session_scope(session_factory) as session:
        yield ComplianceRepository(session)
