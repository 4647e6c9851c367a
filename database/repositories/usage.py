import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update, func

from database.models import AIUsageLog, AIUsageAccount
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UsageRepository(BaseRepository):
    def add_log(
        self,
        account_id: str,
        function_name: str,
        input_tokens: int,
        output_tokens: int,
        cached_tokens: int,
        cost_cents: float,
        success: bool,
        model_provider: Optional[str] = None,
        profile_id: Optional[str] = None,
    ) -> AIUsageLog:
        entry = AIUsageLog(
            account_id=account_id,
            profile_id=profile_id,
            function_name=function_name,
            model_provider=model_provider,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cached_tokens=cached_tokens,
            cost_cents=Decimal(str(cost_cents)),
            success=success,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def increment_total(self, account_id: str, cost_cents: float) -> None:
        """Add to the running total in a single UPDATE; creates the row on first use."""
        amount = Decimal(str(cost_cents))
        stmt = (
            update(AIUsageAccount)
            .where(AIUsageAccount.account_id == account_id)
            .values(
                total_cost_cents=AIUsageAccount.total_cost_cents + amount,
                call_count=AIUsageAccount.call_count + 1,
            )
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            self.db.add(AIUsageAccount(account_id=account_id, total_cost_cents=amount, call_count=1))
            self.db.flush()

    def get_total_cents(self, account_id: str) -> float:
        stmt = select(AIUsageAccount.total_cost_cents).where(AIUsageAccount.account_id == account_id)
        total = self.db.execute(stmt).scalar_one_or_none()
        return float(total) if total is not None else 0.0

    def sum_logged_cents(self, account_id: str) -> float:
        """Total recomputed from the append-only log (used to audit the running total)."""
        stmt = select(func.coalesce(func.sum(AIUsageLog.cost_cents), 0)).where(
            AIUsageLog.account_id == account_id
        )
        return float(self.db.execute(stmt).scalar_one())

    def count_logs(self, account_id: str) -> int:
        stmt = select(func.count(AIUsageLog.id)).where(AIUsageLog.account_id == account_id)
        return int(self.db.execute(stmt).scalar_one())
