"""
Catalog Reader Interface - read-only access to the subsidy catalog.

Each query must be satisfiable on its own so the retriever can run them
concurrently.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from core.models import SubsidyCandidate


class CatalogReader(ABC):
    """
    Abstract interface for subsidy catalog queries.

    All queries return only active, business-relevant programs.
    """

    @abstractmethod
    def by_region(self, region: Optional[str], limit: int) -> List[SubsidyCandidate]:
        """Programs whose region list contains the region, the nation-wide sentinel, or is unset."""
        pass

    @abstractmethod
    def by_sector(self, sector_terms: Sequence[str], limit: int) -> List[SubsidyCandidate]:
        """Programs whose primary sector textually matches one of the terms."""
        pass

    @abstractmethod
    def national_high_value(self, min_amount: float, limit: int) -> List[SubsidyCandidate]:
        """Nation-wide programs with amount_max >= min_amount, largest first."""
        pass

    @abstractmethod
    def all_active(self, limit: int) -> List[SubsidyCandidate]:
        """Unfiltered fallback query."""
        pass
