"""
Tests for the usage meter / quota gate and the token pricing model.
"""
import unittest

from core.config_loader import PricingConfig, UsageConfig
from core.usage import (
    InMemoryUsageStore,
    TokenUsage,
    UsageMeter,
    calculate_cost,
    estimate_tokens,
)


class TestPricing(unittest.TestCase):

    def test_01_estimate_tokens_rounds_up(self):
        self.assertEqual(estimate_tokens(""), 0)
        self.assertEqual(estimate_tokens("abcd"), 1)
        self.assertEqual(estimate_tokens("abcde"), 2)

    def test_02_cost_in_cents(self):
        pricing = PricingConfig(input=0.10, output=0.30, cached=0.03, usd_to_eur=1.0)
        tokens = TokenUsage(input_tokens=1_000_000, output_tokens=1_000_000, cached_tokens=1_000_000)

        # 0.10 + 0.30 + 0.03 USD = 43 cents
        self.assertAlmostEqual(calculate_cost(tokens, pricing), 43.0)

    def test_03_cost_is_currency_converted_and_rounded(self):
        pricing = PricingConfig(input=0.10, output=0.30, cached=0.03, usd_to_eur=0.92)
        tokens = TokenUsage(input_tokens=1234, output_tokens=567)

        cost = calculate_cost(tokens, pricing)

        # (1234 * 0.10 + 567 * 0.30) / 1e6 USD * 0.92 * 100 = 0.027002 cents
        self.assertEqual(cost, 0.027)

    def test_04_token_usage_addition(self):
        total = TokenUsage(10, 5, 1) + TokenUsage(1, 2, 3)

        self.assertEqual(total, TokenUsage(11, 7, 4))
        self.assertEqual(total.total, 22)


class TestUsageMeter(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryUsageStore()
        self.meter = UsageMeter(self.store, UsageConfig())

    def test_01_new_account_is_allowed(self):
        check = self.meter.check("acct", "business")

        self.assertTrue(check.allowed)
        self.assertEqual(check.state.ceiling, 10.0)
        self.assertEqual(check.state.cumulative_cost, 0.0)

    def test_02_spend_exactly_at_ceiling_is_blocked(self):
        store = InMemoryUsageStore(initial_cents={"acct": 100.0})
        meter = UsageMeter(store, UsageConfig())

        check = meter.check("acct", "decouverte")

        self.assertFalse(check.allowed)
        self.assertTrue(check.state.blocked)
        self.assertEqual(check.state.remaining, 0.0)
        self.assertIn("decouverte", check.message)

    def test_03_log_past_ceiling_blocks_next_check(self):
        config = UsageConfig(
            pricing=PricingConfig(input=1000.0, output=0.0, cached=0.0, usd_to_eur=1.0),
        )
        meter = UsageMeter(self.store, config)
        self.assertTrue(meter.check("acct", "decouverte").allowed)

        # 1000 tokens at 1000 USD per 1M = 1.00 EUR
        state = meter.log("acct", TokenUsage(input_tokens=1000))

        self.assertTrue(state.blocked)
        self.assertFalse(meter.check("acct", "decouverte").allowed)

    def test_04_check_does_not_mutate(self):
        self.meter.check("acct")
        self.meter.check("acct")

        self.assertEqual(self.store.records, [])
        self.assertEqual(self.store.get_total_cents("acct"), 0.0)

    def test_05_cumulative_cost_never_decreases(self):
        previous = 0.0
        for tokens in (500, 0, 1200, 10):
            state = self.meter.log("acct", TokenUsage(input_tokens=tokens, output_tokens=tokens))
            self.assertGreaterEqual(state.cumulative_cost, previous)
            previous = state.cumulative_cost

    def test_06_unknown_plan_uses_default(self):
        self.assertEqual(self.meter.resolve_plan("enterprise"), "decouverte")
        self.assertEqual(self.meter.ceiling_for(None), 1.0)
        self.assertEqual(self.meter.ceiling_for("premium"), 20.0)

    def test_07_log_records_attempt(self):
        self.meter.log("acct", TokenUsage(100, 50), success=False, profile_id="p1", model_provider="mistral")

        record = self.store.records[0]
        self.assertEqual(record.function_name, "v5-hybrid-calculate-matches")
        self.assertFalse(record.success)
        self.assertEqual(record.profile_id, "p1")
        self.assertEqual(record.input_tokens, 100)
