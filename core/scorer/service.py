#!/usr/bin/env python3
"""
Local Scoring Service - deterministic, rule-based candidate scoring.

Used two ways:
- pre_filter: bound the candidate set sent to refinement
- fallback_rank: sole scorer when refinement is unavailable

Hard filters: eligible legal entities, association/company wording.

Components (see rules.py):
- Legal entity size match (10)
- Region (30 exact, 15 nation-wide, 5 nation-wide on top of exact)
- Sector tiers (30/25/15) or activity label (25/15)
- Project types (10 each, max 20)
- Web intelligence (5 per aligned dimension, max 15)
- Timing (max 10)

The sum is kept unclamped in raw_score and clamped into pre_score.
"""

from datetime import date
from typing import Callable, List, Optional
import logging

from core.config_loader import ScorerConfig
from core.models import SubsidyCandidate
from core.normalizer import AnalyzedProfile
from core.scorer.models import PreScoreResult
from core.scorer import rules
from core.utils import clamp_score

logger = logging.getLogger(__name__)


class LocalScorer:
    """
    Deterministic scorer. Same inputs (including today) always give the same output.
    """

    def __init__(
        self,
        config: Optional[ScorerConfig] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.config = config or ScorerConfig()
        self.clock = clock

    def score(
        self,
        analyzed: AnalyzedProfile,
        candidate: SubsidyCandidate,
        today: Optional[date] = None,
        retrieval_rank: int = 0,
    ) -> PreScoreResult:
        """Score one candidate against an analyzed profile."""
        today = today or self.clock()
        text = candidate.folded_text()

        eligible, size_bonus, eligibility_reason = rules.legal_entity_compatibility(analyzed, candidate)
        if not eligible:
            return PreScoreResult(
                candidate=candidate,
                pre_score=0.0,
                raw_score=0.0,
                reasons=[eligibility_reason],
                retrieval_rank=retrieval_rank,
                excluded=True,
            )

        compatible, entity_penalty, entity_reason = rules.entity_compatibility(analyzed, text)
        if not compatible:
            return PreScoreResult(
                candidate=candidate,
                pre_score=0.0,
                raw_score=0.0,
                reasons=[entity_reason],
                retrieval_rank=retrieval_rank,
                excluded=True,
            )

        components = {}
        reasons: List[str] = []
        if entity_reason and not entity_penalty:
            reasons.append(entity_reason)
        if size_bonus:
            components['legal_entity'] = size_bonus
            reasons.append(eligibility_reason)

        region, region_reasons = rules.region_points(analyzed, candidate)
        components['region'] = region
        reasons.extend(region_reasons)

        sector, sector_reasons = rules.sector_points(analyzed, candidate, text)
        components['sector'] = sector
        reasons.extend(sector_reasons)

        if not sector:
            activity, activity_reasons = rules.activity_points(analyzed, candidate, text)
            components['activity'] = activity
            reasons.extend(activity_reasons)

        project, project_reasons = rules.project_type_points(analyzed, candidate, text)
        components['project_types'] = project
        reasons.extend(project_reasons)

        web, web_reasons = rules.web_intelligence_points(analyzed, candidate)
        components['web_intelligence'] = web
        reasons.extend(web_reasons)

        timing, timing_reasons = rules.timing_points(candidate, today)
        components['timing'] = timing
        reasons.extend(timing_reasons)

        raw = sum(components.values())

        if entity_penalty:
            components['entity'] = -entity_penalty
            raw -= entity_penalty
            reasons.append(entity_reason)

        exclusion = rules.matched_exclusion(analyzed, text)
        if exclusion:
            components['exclusion'] = -self.config.exclusion_penalty
            raw -= self.config.exclusion_penalty
            reasons.insert(0, f"Secteur non pertinent ({exclusion})")

        return PreScoreResult(
            candidate=candidate,
            pre_score=clamp_score(raw),
            raw_score=raw,
            reasons=reasons,
            retrieval_rank=retrieval_rank,
            components=components,
        )

    def score_all(
        self,
        analyzed: AnalyzedProfile,
        candidates: List[SubsidyCandidate],
        today: Optional[date] = None,
    ) -> List[PreScoreResult]:
        today = today or self.clock()
        return [
            self.score(analyzed, candidate, today=today, retrieval_rank=rank)
            for rank, candidate in enumerate(candidates)
        ]

    @staticmethod
    def _rank(results: List[PreScoreResult]) -> List[PreScoreResult]:
        # Stable on retrieval order for equal scores
        return sorted(results, key=lambda r: (-r.pre_score, r.retrieval_rank))

    def pre_filter(
        self,
        analyzed: AnalyzedProfile,
        candidates: List[SubsidyCandidate],
        min_score: Optional[float] = None,
        max_candidates: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[PreScoreResult]:
        """Keep candidates scoring at least min_score, best first, capped."""
        min_score = self.config.pre_filter_min_score if min_score is None else min_score
        max_candidates = self.config.pre_filter_max_candidates if max_candidates is None else max_candidates

        scored = self.score_all(analyzed, candidates, today=today)
        kept = [r for r in scored if not r.excluded and r.pre_score >= min_score]
        ranked = self._rank(kept)[:max_candidates]

        logger.info(
            f"Pre-filter: {len(candidates)} candidates -> {len(kept)} above {min_score} "
            f"-> {len(ranked)} kept"
        )
        return ranked

    def fallback_rank(
        self,
        analyzed: AnalyzedProfile,
        candidates: List[SubsidyCandidate],
        limit: Optional[int] = None,
        today: Optional[date] = None,
    ) -> List[PreScoreResult]:
        """
        Rank candidates with the local scorer alone.

        Applies the strict threshold first and falls back to the relaxed one
        when nothing clears it.
        """
        scored = [r for r in self.score_all(analyzed, candidates, today=today) if not r.excluded]

        kept = [r for r in scored if r.pre_score >= self.config.fallback_min_score]
        if not kept:
            kept = [r for r in scored if r.pre_score >= self.config.fallback_relaxed_min_score]
            if kept:
                logger.info(
                    f"No candidate above {self.config.fallback_min_score}, "
                    f"relaxed threshold kept {len(kept)}"
                )

        ranked = self._rank(kept)
        if limit is not None:
            ranked = ranked[:limit]
        return ranked
