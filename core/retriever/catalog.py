"""SQLAlchemy-backed CatalogReader."""
import logging
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from core.models import SubsidyCandidate
from core.retriever.interfaces import CatalogReader
from database.uow import catalog_uow

logger = logging.getLogger(__name__)


class SqlCatalogReader(CatalogReader):
    """
    Reads the catalog through SubsidyRepository, one unit of work per query.

    Rows are converted to SubsidyCandidate inside the session scope so no
    ORM instance escapes its session.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory

    @staticmethod
    def _to_candidates(rows) -> List[SubsidyCandidate]:
        return [SubsidyCandidate.model_validate(row) for row in rows]

    def by_region(self, region: Optional[str], limit: int) -> List[SubsidyCandidate]:
        with catalog_uow(self.session_factory) as repo:
            return self._to_candidates(repo.find_by_region(region, limit=limit))

    def by_sector(self, sector_terms: Sequence[str], limit: int) -> List[SubsidyCandidate]:
        with catalog_uow(self.session_factory) as repo:
            return self._to_candidates(repo.find_by_sector(sector_terms, limit=limit))

    def national_high_value(self, min_amount: float, limit: int) -> List[SubsidyCandidate]:
        with catalog_uow(self.session_factory) as repo:
            return self._to_candidates(repo.find_national_high_value(min_amount, limit=limit))

    def all_active(self, limit: int) -> List[SubsidyCandidate]:
        with catalog_uow(self.session_factory) as repo:
            return self._to_candidates(repo.find_active(limit=limit))
