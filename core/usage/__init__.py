"""Usage Module - spend tracking and quota gate."""
from core.usage.meter import UsageMeter
from core.usage.models import UsageCheck, UsageRecord, UsageState
from core.usage.pricing import TokenUsage, calculate_cost, estimate_tokens
from core.usage.store import UsageStore, InMemoryUsageStore, SqlUsageStore

__all__ = [
    'UsageMeter',
    'UsageCheck',
    'UsageRecord',
    'UsageState',
    'TokenUsage',
    'calculate_cost',
    'estimate_tokens',
    'UsageStore',
    'InMemoryUsageStore',
    'SqlUsageStore',
]
