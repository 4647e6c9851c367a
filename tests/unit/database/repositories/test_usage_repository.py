"""
Tests for usage accounting persistence (UsageRepository, SqlUsageStore)
and the compliance event repository.
"""
import pytest

from core.audit import ComplianceEvent, SqlComplianceSink, RECOMMENDATION_EVENT
from core.config_loader import UsageConfig
from core.usage import SqlUsageStore, TokenUsage, UsageMeter
from database.uow import compliance_uow, usage_uow

pytestmark = pytest.mark.db


class TestUsageRepository:

    def test_increment_creates_then_accumulates(self, sqlite_session_factory):
        with usage_uow(sqlite_session_factory) as repo:
            repo.increment_total("acct", 12.5)
        with usage_uow(sqlite_session_factory) as repo:
            repo.increment_total("acct", 7.5)
        with usage_uow(sqlite_session_factory) as repo:
            assert repo.get_total_cents("acct") == pytest.approx(20.0)

    def test_unknown_account_has_zero_total(self, sqlite_session_factory):
        with usage_uow(sqlite_session_factory) as repo:
            assert repo.get_total_cents("nobody") == 0.0

    def test_log_rows_are_appended(self, sqlite_session_factory):
        with usage_uow(sqlite_session_factory) as repo:
            for cost in (1.25, 2.5):
                repo.add_log(
                    account_id="acct",
                    function_name="v5-hybrid-calculate-matches",
                    input_tokens=1000,
                    output_tokens=200,
                    cached_tokens=0,
                    cost_cents=cost,
                    success=True,
                )
        with usage_uow(sqlite_session_factory) as repo:
            assert repo.count_logs("acct") == 2
            assert repo.sum_logged_cents("acct") == pytest.approx(3.75)


class TestSqlUsageStore:

    def test_meter_blocks_after_logged_spend(self, sqlite_session_factory):
        config = UsageConfig(plan_ceilings={"decouverte": 0.01})
        meter = UsageMeter(SqlUsageStore(sqlite_session_factory), config)

        assert meter.check("acct", "decouverte").allowed

        state = meter.log("acct", TokenUsage(input_tokens=10_000_000, output_tokens=0))

        assert state.blocked
        assert not meter.check("acct", "decouverte").allowed
        with usage_uow(sqlite_session_factory) as repo:
            assert repo.count_logs("acct") == 1
            assert repo.sum_logged_cents("acct") == pytest.approx(repo.get_total_cents("acct"))


class TestSqlComplianceSink:

    def test_event_is_stored(self, sqlite_session_factory):
        sink = SqlComplianceSink(sqlite_session_factory)

        sink.emit(ComplianceEvent(
            event_type=RECOMMENDATION_EVENT,
            function_name="v5-hybrid-calculate-matches",
            profile_id="profile-1",
            payload={"matches_count": 3, "pipeline_version": "v5.1-prescored"},
        ))

        with compliance_uow(sqlite_session_factory) as repo:
            events = repo.list_for_profile("profile-1")
            assert len(events) == 1
            assert events[0].event_type == RECOMMENDATION_EVENT
            assert events[0].payload["matches_count"] == 3
