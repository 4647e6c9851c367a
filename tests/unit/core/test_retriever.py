"""
Tests for the candidate retriever fan-out, merge and failure handling.
"""
import pytest

from core.config_loader import RetrievalConfig
from core.exceptions import RetrievalError
from core.models import CompanyProfile, SubsidyCandidate
from core.normalizer import analyze_profile
from core.retriever import CandidateRetriever, merge_candidates
from core.retriever.service import sector_query_terms
from tests.mocks.fakes import FakeCatalog


@pytest.fixture
def subsidies():
    return [
        SubsidyCandidate(id="bzh-agri", title="Aide agricole", region=["Bretagne"],
                         primary_sector="Agriculture", amount_max=20000),
        SubsidyCandidate(id="nat-agri", title="Plan national agricole", region=["National"],
                         primary_sector="Agriculture", amount_max=2000000),
        SubsidyCandidate(id="nat-big", title="Programme d'investissement", region=["National"],
                         amount_max=10000000),
        SubsidyCandidate(id="corse", title="Aide corse", region=["Corse"]),
    ]


@pytest.fixture
def analyzed():
    return analyze_profile(CompanyProfile(id="p", sector="Agriculture", region="Bretagne"))


class TestMerge:

    def test_merge_dedupes_in_first_seen_order(self, subsidies):
        a, b, c, _ = subsidies

        merged = merge_candidates([[a, b], None, [b, c, a]])

        assert [s.id for s in merged] == ["bzh-agri", "nat-agri", "nat-big"]

    def test_sector_query_terms(self, analyzed):
        assert sector_query_terms(analyzed) == ["agriculture"]


class TestCandidateRetriever:

    def test_union_has_no_duplicates(self, subsidies, analyzed):
        catalog = FakeCatalog(subsidies)
        retriever = CandidateRetriever(catalog, RetrievalConfig())

        candidates = retriever.retrieve(analyzed)
        ids = [c.id for c in candidates]

        assert len(ids) == len(set(ids))
        assert set(ids) == {"bzh-agri", "nat-agri", "nat-big"}
        # region results first, then sector, then high value
        assert ids[0] == "bzh-agri"

    def test_sector_query_skipped_without_sector(self, subsidies):
        catalog = FakeCatalog(subsidies)
        analyzed = analyze_profile(CompanyProfile(id="p", region="Bretagne"))

        CandidateRetriever(catalog).retrieve(analyzed)

        assert "by_sector" not in catalog.calls

    def test_failing_query_contributes_nothing(self, subsidies, analyzed):
        catalog = FakeCatalog(subsidies, failing=["by_region"])

        ids = {c.id for c in CandidateRetriever(catalog).retrieve(analyzed)}

        assert ids == {"bzh-agri", "nat-agri", "nat-big"}
        assert "all_active" not in catalog.calls

    def test_all_queries_failing_uses_unfiltered_query(self, subsidies, analyzed):
        catalog = FakeCatalog(subsidies, failing=["by_region", "by_sector", "national_high_value"])

        candidates = CandidateRetriever(catalog).retrieve(analyzed)

        assert "all_active" in catalog.calls
        assert len(candidates) == 4

    def test_total_failure_raises_retrieval_error(self, subsidies, analyzed):
        catalog = FakeCatalog(
            subsidies, failing=["by_region", "by_sector", "national_high_value", "all_active"]
        )

        with pytest.raises(RetrievalError):
            CandidateRetriever(catalog).retrieve(analyzed)

    def test_empty_catalog_is_not_an_error(self, analyzed):
        assert CandidateRetriever(FakeCatalog([])).retrieve(analyzed) == []

    def test_high_value_threshold_applies(self, subsidies):
        catalog = FakeCatalog(subsidies, failing=["by_region"])
        analyzed = analyze_profile(CompanyProfile(id="p", region="Corse"))
        config = RetrievalConfig(high_value_min_amount=5000000)

        ids = [c.id for c in CandidateRetriever(catalog, config).retrieve(analyzed)]

        assert ids == ["nat-big"]
