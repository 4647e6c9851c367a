"""
Tests for the deterministic local scorer.

Tests verify:
- Component points (region, sector tiers, timing) and their reasons
- Clamping of the summed score into [0, 100]
- Exclusion down-ranking and entity incompatibility
- pre_filter and fallback_rank thresholds and ordering
"""
from datetime import date, timedelta

import pytest

from core.config_loader import ScorerConfig
from core.models import CompanyProfile, SubsidyCandidate
from core.normalizer import analyze_profile
from core.scorer import LocalScorer
from core.scorer import rules

TODAY = date(2025, 3, 1)


@pytest.fixture
def scorer():
    return LocalScorer(ScorerConfig(), clock=lambda: TODAY)


def _candidate(id, **fields):
    return SubsidyCandidate(id=id, title=fields.pop("title", f"Programme {id}"), **fields)


class TestScenarios:

    def test_breton_agriculture_scores_68(self, scorer, breton_farm, breton_farm_subsidy):
        analyzed = analyze_profile(breton_farm)

        result = scorer.score(analyzed, breton_farm_subsidy)

        assert result.components["region"] == 30
        assert result.components["sector"] == 30
        assert result.components["timing"] == 8
        assert result.pre_score == 68
        assert "Région: Bretagne" in result.reasons

    def test_no_region_against_unrestricted_candidate_scores_15(self):
        analyzed = analyze_profile(CompanyProfile(id="p"))
        candidate = _candidate("nat")

        points, reasons = rules.region_points(analyzed, candidate)

        assert points == 15
        assert reasons == ["Toutes régions"]

    def test_national_on_top_of_exact_region_adds_5(self):
        analyzed = analyze_profile(CompanyProfile(id="p", region="Bretagne"))
        candidate = _candidate("both", region=["Bretagne", "National"])

        points, reasons = rules.region_points(analyzed, candidate)

        assert points == 35
        assert reasons == ["Région: Bretagne", "Aide nationale"]


class TestComponents:

    def test_sector_tiers_do_not_stack(self):
        analyzed = analyze_profile(CompanyProfile(id="p", sector="Agriculture"))

        primary = _candidate("a", primary_sector="Agriculture", title="Aide agricole")
        category = _candidate("b", categories=["Agriculture"], title="Aide aux exploitations agricoles")
        content = _candidate("c", title="Soutien aux éleveurs", description="Modernisation de la ferme")

        assert rules.sector_points(analyzed, primary, primary.folded_text())[0] == 30
        assert rules.sector_points(analyzed, category, category.folded_text())[0] == 25
        assert rules.sector_points(analyzed, content, content.folded_text())[0] == 15

    def test_activity_terms_used_without_sector(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", naf_label="Fabrication de meubles en bois"))
        candidate = _candidate("wood", title="Fabrication de meubles", region=["Corse"])

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert result.components["sector"] == 0
        assert result.components["activity"] == 25

    def test_project_types_capped_at_20(self):
        analyzed = analyze_profile(CompanyProfile(
            id="p", project_types=["innovation", "export", "numerique"],
        ))
        candidate = _candidate("multi", title="Innovation, export et numérique")

        points, reasons = rules.project_type_points(analyzed, candidate, candidate.folded_text())

        assert points == 20
        assert reasons == ["3 type(s) de projet"]

    @pytest.mark.parametrize("days, expected", [
        (60, 10),
        (180, 10),
        (20, 7),
        (200, 5),
        (10, 0),
        (None, 8),
    ])
    def test_timing_points(self, days, expected):
        deadline = TODAY + timedelta(days=days) if days is not None else None
        candidate = _candidate("t", deadline=deadline)

        points, _ = rules.timing_points(candidate, TODAY)

        assert points == expected

    @pytest.mark.parametrize("intel, title, expected_points, expected_reasons", [
        ({"innovation": 0.8}, "Aide innovation", 5, ["Profil innovant"]),
        ({"innovation": 0.5}, "Aide innovation", 0, []),
        ({"innovation": 0.8}, "Aide commerce", 0, []),
        ({"sustainability": 0.6}, "Transition écologique", 5, ["Engagement durable"]),
        ({"export": 0.9}, "Prospection internationale", 5, ["Activité export"]),
        (
            {"innovation": 0.9, "sustainability": 0.9, "export": 0.9},
            "Innovation export durable",
            15,
            ["Profil innovant", "Engagement durable", "Activité export"],
        ),
    ])
    def test_web_intelligence_points(self, intel, title, expected_points, expected_reasons):
        analyzed = analyze_profile(CompanyProfile(id="p", website_intelligence=intel))
        candidate = _candidate("web", title=title)

        points, reasons = rules.web_intelligence_points(analyzed, candidate)

        assert points == expected_points
        assert reasons == expected_reasons


class TestScoreBounds:

    def test_score_is_clamped_to_100(self, scorer):
        analyzed = analyze_profile(CompanyProfile(
            id="p",
            sector="Agriculture",
            region="Bretagne",
            project_types=["innovation", "export"],
            website_intelligence={"innovation": 0.9, "sustainability": 0.9, "export": 0.9},
        ))
        candidate = _candidate(
            "max",
            title="Innovation export durable agricole",
            region=["Bretagne", "National"],
            primary_sector="agriculture",
            deadline=TODAY + timedelta(days=60),
        )

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert result.raw_score == 110
        assert result.pre_score == 100

    def test_exclusion_keyword_down_ranks(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", sector="Agriculture", region="Bretagne"))
        candidate = _candidate("garage", title="Aide garage automobile", region=["Bretagne"])

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert result.raw_score == 30 + 8 - 50
        assert result.pre_score == 0
        assert result.reasons[0] == "Secteur non pertinent (automobile)"
        assert not result.excluded

    def test_negated_exclusion_is_ignored(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", sector="Agriculture"))
        candidate = _candidate("open", title="Toutes entreprises sauf automobile")

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert "exclusion" not in result.components

    def test_company_only_program_excludes_associations(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", legal_form="Association"))
        candidate = _candidate("corp", title="Aide entreprise uniquement")

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert result.excluded
        assert result.pre_score == 0
        assert result.reasons == ["Réservé aux entreprises commerciales"]

    def test_ineligible_legal_entity_is_excluded(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", legal_form="SARL", employees="300"))
        candidate = _candidate("asso", legal_entities=["Association", "Fondation"])

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert result.excluded
        assert result.pre_score == 0
        assert result.reasons == ["Entités requises: Association, Fondation - Profil: ETI"]

    def test_exact_size_in_legal_entities_adds_bonus(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", legal_form="SARL", employees="12"))
        open_to_all = _candidate("a")
        pme_only = _candidate("b", legal_entities=["PME"])

        baseline = scorer.score(analyzed, open_to_all, today=TODAY)
        result = scorer.score(analyzed, pme_only, today=TODAY)

        assert "legal_entity" not in baseline.components
        assert result.components["legal_entity"] == 10
        assert result.raw_score == baseline.raw_score + 10
        assert "Taille PME éligible" in result.reasons

    def test_generic_legal_entity_has_no_bonus(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", legal_form="SARL", employees="12"))
        candidate = _candidate("a", legal_entities=["Entreprises"])

        result = scorer.score(analyzed, candidate, today=TODAY)

        assert not result.excluded
        assert "legal_entity" not in result.components

    def test_scores_are_deterministic(self, scorer, breton_farm, breton_farm_subsidy):
        analyzed = analyze_profile(breton_farm)

        first = scorer.score(analyzed, breton_farm_subsidy, today=TODAY)
        second = scorer.score(analyzed, breton_farm_subsidy, today=TODAY)

        assert first == second

    def test_positive_scores_have_reasons(self, scorer):
        analyzed = analyze_profile(CompanyProfile(id="p", region="Bretagne"))
        candidates = [
            _candidate("a", region=["Bretagne"]),
            _candidate("b", region=["National"], deadline=TODAY + timedelta(days=90)),
            _candidate("c", region=["Corse"], deadline=TODAY + timedelta(days=3)),
        ]

        for result in scorer.score_all(analyzed, candidates, today=TODAY):
            assert 0 <= result.pre_score <= 100
            if result.pre_score > 0:
                assert result.reasons


class TestFiltering:

    @pytest.fixture
    def analyzed(self):
        return analyze_profile(CompanyProfile(id="p", region="Bretagne"))

    @pytest.fixture
    def candidates(self):
        return [
            _candidate("corse", region=["Corse"]),        # 8
            _candidate("national", region=["National"]),  # 23
            _candidate("bretagne", region=["Bretagne"]),  # 38
        ]

    def test_pre_filter_respects_min_score_and_orders(self, scorer, analyzed, candidates):
        results = scorer.pre_filter(analyzed, candidates, today=TODAY)

        assert [r.subsidy_id for r in results] == ["bretagne", "national"]
        assert all(r.pre_score >= 10 for r in results)

    def test_pre_filter_caps_candidates(self, scorer, analyzed, candidates):
        results = scorer.pre_filter(analyzed, candidates, max_candidates=1, today=TODAY)

        assert [r.subsidy_id for r in results] == ["bretagne"]

    def test_pre_filter_custom_min_score(self, scorer, analyzed, candidates):
        results = scorer.pre_filter(analyzed, candidates, min_score=30, today=TODAY)

        assert [r.subsidy_id for r in results] == ["bretagne"]

    def test_ties_keep_retrieval_order(self, scorer, analyzed):
        candidates = [_candidate("first", region=["Bretagne"]), _candidate("second", region=["Bretagne"])]

        results = scorer.pre_filter(analyzed, candidates, today=TODAY)

        assert [r.subsidy_id for r in results] == ["first", "second"]
        assert [r.retrieval_rank for r in results] == [0, 1]

    def test_fallback_rank_strict_threshold(self, scorer, analyzed, candidates):
        results = scorer.fallback_rank(analyzed, candidates, today=TODAY)

        assert [r.subsidy_id for r in results] == ["bretagne"]

    def test_fallback_rank_relaxes_when_nothing_clears_strict(self, scorer, analyzed, candidates):
        results = scorer.fallback_rank(analyzed, candidates[:2], today=TODAY)

        assert [r.subsidy_id for r in results] == ["national"]

    def test_fallback_rank_can_be_empty(self, scorer, analyzed, candidates):
        assert scorer.fallback_rank(analyzed, candidates[:1], today=TODAY) == []
