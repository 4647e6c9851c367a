#!/usr/bin/env python3
"""
Usage Meter - per-account spend tracking and quota gate for refinement calls.

check() is read-only. log() records one attempt and returns the refreshed
state. The gate is advisory: concurrent requests from one account may both
pass check() before either logs.
"""
import logging
from typing import Optional

from core.config_loader import UsageConfig
from core.usage.models import UsageCheck, UsageRecord, UsageState
from core.usage.pricing import TokenUsage, calculate_cost
from core.usage.store import UsageStore

logger = logging.getLogger(__name__)


class UsageMeter:
    def __init__(self, store: UsageStore, config: Optional[UsageConfig] = None):
        self.store = store
        self.config = config or UsageConfig()

    def resolve_plan(self, plan: Optional[str]) -> str:
        """Unknown or missing plans fall back to the default plan."""
        if plan and plan in self.config.plan_ceilings:
            return plan
        return self.config.default_plan

    def ceiling_for(self, plan: Optional[str]) -> float:
        return self.config.plan_ceilings.get(self.resolve_plan(plan), 0.0)

    def state(self, account_id: str, plan: Optional[str] = None) -> UsageState:
        total_cents = self.store.get_total_cents(account_id)
        return UsageState(
            account_id=account_id,
            plan=self.resolve_plan(plan),
            cumulative_cost=total_cents / 100.0,
            ceiling=self.ceiling_for(plan),
        )

    def check(self, account_id: str, plan: Optional[str] = None) -> UsageCheck:
        """Whether the account may spend on refinement. No mutation."""
        state = self.state(account_id, plan)
        if state.blocked:
            message = (
                f"AI budget exhausted for plan {state.plan}: "
                f"{state.cumulative_cost:.4f} EUR used of {state.ceiling:.2f} EUR"
            )
            logger.info(f"Account {account_id} blocked: {message}")
            return UsageCheck(allowed=False, state=state, message=message)
        return UsageCheck(allowed=True, state=state)

    def cost_of(self, tokens: TokenUsage) -> float:
        return calculate_cost(tokens, self.config.pricing)

    def log(
        self,
        account_id: str,
        tokens: TokenUsage,
        success: bool = True,
        plan: Optional[str] = None,
        profile_id: Optional[str] = None,
        function_name: Optional[str] = None,
        model_provider: Optional[str] = None,
    ) -> UsageState:
        """Record one refinement attempt and return the refreshed state."""
        cost_cents = self.cost_of(tokens)
        self.store.record(UsageRecord(
            account_id=account_id,
            function_name=function_name or self.config.function_name,
            input_tokens=tokens.input_tokens,
            output_tokens=tokens.output_tokens,
            cached_tokens=tokens.cached_tokens,
            cost_cents=cost_cents,
            success=success,
            model_provider=model_provider,
            profile_id=profile_id,
        ))
        logger.info(
            f"Logged AI usage for {account_id}: {tokens.total} tokens, "
            f"{cost_cents:.4f} cents, success={success}"
        )
        return self.state(account_id, plan)
