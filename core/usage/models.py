from dataclasses import dataclass
from typing import Optional


@dataclass
class UsageState:
    """Spend of one account for the current billing period, in EUR."""
    account_id: str
    plan: str
    cumulative_cost: float
    ceiling: float

    @property
    def blocked(self) -> bool:
        return self.cumulative_cost >= self.ceiling

    @property
    def remaining(self) -> float:
        return max(0.0, self.ceiling - self.cumulative_cost)

    @property
    def percentage(self) -> float:
        if self.ceiling <= 0:
            return 100.0
        return min(100.0, self.cumulative_cost / self.ceiling * 100)


@dataclass
class UsageCheck:
    allowed: bool
    state: UsageState
    message: Optional[str] = None


@dataclass
class UsageRecord:
    """One billable refinement attempt."""
    account_id: str
    function_name: str
    input_tokens: int
    output_tokens: int
    cached_tokens: int
    cost_cents: float
    success: bool
    model_provider: Optional[str] = None
    profile_id: Optional[str] = None
