"""
Token pricing - converts token counts into a cost in euro cents.
"""
import math
from dataclasses import dataclass

from core.config_loader import PricingConfig

TOKENS_PER_UNIT = 1_000_000
CHARS_PER_TOKEN = 4


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cached_tokens: int = 0

    @property
    def total(self) -> int:
        return self.input_tokens + self.output_tokens + self.cached_tokens

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cached_tokens=self.cached_tokens + other.cached_tokens,
        )


def estimate_tokens(text: str) -> int:
    """Rough token count when the service does not report one (4 chars per token)."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def calculate_cost(tokens: TokenUsage, pricing: PricingConfig) -> float:
    """
    Cost in euro cents, rounded half-up to 4 decimals.

    Pricing is USD per 1M tokens, converted with pricing.usd_to_eur.
    """
    total_usd = (
        tokens.input_tokens / TOKENS_PER_UNIT * pricing.input
        + tokens.output_tokens / TOKENS_PER_UNIT * pricing.output
        + tokens.cached_tokens / TOKENS_PER_UNIT * pricing.cached
    )
    total_eur = total_usd * pricing.usd_to_eur
    return math.floor(total_eur * 100 * 10000 + 0.5) / 10000
