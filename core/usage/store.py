"""
Usage stores - where cumulative spend is kept.

InMemoryUsageStore is process-local (tests, CLI). SqlUsageStore appends to
ai_usage_log and increments ai_usage_account atomically in the database.
"""
import threading
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core.usage.models import UsageRecord

logger = logging.getLogger(__name__)


class UsageStore(ABC):
    @abstractmethod
    def get_total_cents(self, account_id: str) -> float:
        """Cumulative cost of the account for the current period, in cents."""
        pass

    @abstractmethod
    def record(self, entry: UsageRecord) -> None:
        """Persist one attempt and add its cost to the running total."""
        pass


class InMemoryUsageStore(UsageStore):
    def __init__(self, initial_cents: Optional[Dict[str, float]] = None):
        self._lock = threading.Lock()
        self._totals: Dict[str, float] = dict(initial_cents or {})
        self.records: List[UsageRecord] = []

    def get_total_cents(self, account_id: str) -> float:
        with self._lock:
            return self._totals.get(account_id, 0.0)

    def record(self, entry: UsageRecord) -> None:
        with self._lock:
            self.records.append(entry)
            self._totals[entry.account_id] = self._totals.get(entry.account_id, 0.0) + entry.cost_cents


class SqlUsageStore(UsageStore):
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory

    def get_total_cents(self, account_id: str) -> float:
        from database.uow import usage_uow

        with usage_uow(self.session_factory) as repo:
            return repo.get_total_cents(account_id)

    def record(self, entry: UsageRecord) -> None:
        from database.uow import usage_uow

        with usage_uow(self.session_factory) as repo:
            repo.add_log(
                account_id=entry.account_id,
                function_name=entry.function_name,
                input_tokens=entry.input_tokens,
                output_tokens=entry.output_tokens,
                cached_tokens=entry.cached_tokens,
                cost_cents=entry.cost_cents,
                success=entry.success,
                model_provider=entry.model_provider,
                profile_id=entry.profile_id,
            )
            repo.increment_total(entry.account_id, entry.cost_cents)
