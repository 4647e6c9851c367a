import json
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select, or_, cast, Text, type_coerce
from sqlalchemy.dialects.postgresql import JSONB

from core.models import NATIONAL_REGION
from database.models import Subsidy
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class SubsidyRepository(BaseRepository):
    """Read-only queries over the subsidy catalog.

    Every method is independent of the others so they can run concurrently
    on separate sessions.
    """

    def _eligible(self):
        return select(Subsidy).where(
            Subsidy.is_active.is_(True),
            Subsidy.is_business_relevant.is_(True),
        )

    def _region_contains(self, region: str):
        if self.dialect_name == 'postgresql':
            return type_coerce(Subsidy.region, JSONB).contains([region])
        # Portable fallback: match the JSON-encoded element inside the array text
        return cast(Subsidy.region, Text).like(f"%{json.dumps(region)}%")

    def _region_unset(self):
        return or_(Subsidy.region.is_(None), cast(Subsidy.region, Text) == '[]')

    def find_by_region(self, region: Optional[str], limit: int = 100) -> List[Subsidy]:
        """Programs open in the region, nation-wide, or without a region restriction."""
        conditions = [self._region_contains(NATIONAL_REGION), self._region_unset()]
        if region:
            conditions.insert(0, self._region_contains(region))

        stmt = self._eligible().where(or_(*conditions)).order_by(Subsidy.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def find_by_sector(self, sector_terms: Sequence[str], limit: int = 60) -> List[Subsidy]:
        """Programs whose primary sector contains any of the given terms (case-insensitive)."""
        terms = [t for t in sector_terms if t]
        if not terms:
            return []
        stmt = (
            self._eligible()
            .where(or_(*[Subsidy.primary_sector.ilike(f"%{term}%") for term in terms]))
            .order_by(Subsidy.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def find_national_high_value(self, min_amount: float, limit: int = 50) -> List[Subsidy]:
        """Nation-wide programs above an award threshold, largest first."""
        stmt = (
            self._eligible()
            .where(
                self._region_contains(NATIONAL_REGION),
                Subsidy.amount_max >= min_amount,
            )
            .order_by(Subsidy.amount_max.desc(), Subsidy.id)
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def find_active(self, limit: int = 200) -> List[Subsidy]:
        """Unfiltered active, business-relevant programs."""
        stmt = self._eligible().order_by(Subsidy.id).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def add(self, subsidy: Subsidy) -> Subsidy:
        self.db.add(subsidy)
        self.db.flush()
        return subsidy
