#!/usr/bin/env python3
"""
Matching Engine - runs the recommendation pipeline for one profile.

Stage order is fixed:
    cache read -> normalize -> retrieve -> pre-score -> quota gate
    -> refinement (or skip) -> finalize -> cache write -> compliance event

Only InvalidProfileError and RetrievalError reach the caller. Every other
problem degrades to heuristic-only matches with a fallback_reason.
"""
import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from core.audit import ComplianceEvent, ComplianceSink, RECOMMENDATION_EVENT
from core.cache import RecommendationCache
from core.config_loader import MatchingConfig
from core.exceptions import InvalidProfileError, RefinementError
from core.models import CompanyProfile, Match, MatchResult, PipelineStats
from core.normalizer import AnalyzedProfile, analyze_profile
from core.ranking import RankFinalizer
from core.refinement import RefinementStage
from core.retriever import CandidateRetriever
from core.scorer import LocalScorer, PreScoreResult
from core.usage import TokenUsage, UsageMeter

logger = logging.getLogger(__name__)

PIPELINE_VERSION_REFINED = 'v5.1-prescored'
PIPELINE_VERSION_FALLBACK = 'v5.1-fallback'
PIPELINE_VERSION_LOCAL = 'v5.1-local'

# Reason codes for designed skips; refinement failures use RefinementError.reason_code
REASON_NO_CANDIDATES = 'no_candidates'
REASON_QUOTA_BLOCKED = 'quota_blocked'
REASON_QUOTA_UNAVAILABLE = 'quota_unavailable'
REASON_NO_ACCOUNT = 'no_account'
REASON_DISABLED = 'refinement_disabled'
REASON_LOCAL_ONLY = 'local_only'

# Failures that are not billed: the service rejected the request
UNBILLED_REASONS = ('rate_limited',)

ProfileInput = Union[CompanyProfile, Dict[str, Any]]


class MatchingEngine:
    def __init__(
        self,
        retriever: CandidateRetriever,
        scorer: Optional[LocalScorer] = None,
        finalizer: Optional[RankFinalizer] = None,
        refinement: Optional[RefinementStage] = None,
        usage_meter: Optional[UsageMeter] = None,
        cache: Optional[RecommendationCache] = None,
        compliance_sink: Optional[ComplianceSink] = None,
        config: Optional[MatchingConfig] = None,
        model_provider: str = 'mistral',
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or MatchingConfig()
        self.retriever = retriever
        self.scorer = scorer or LocalScorer(self.config.scorer)
        self.finalizer = finalizer or RankFinalizer(self.config.ranking.agency_tiers)
        self.refinement = refinement
        self.usage_meter = usage_meter
        self.cache = cache
        self.compliance_sink = compliance_sink
        self.model_provider = model_provider
        self.clock = clock

        self._lock = threading.Lock()
        self._in_flight: Dict[Tuple[str, int, Optional[str], Optional[str], bool], Future] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def match(
        self,
        profile: ProfileInput,
        limit: Optional[int] = None,
        force_refresh: bool = False,
        account_id: Optional[str] = None,
        plan: Optional[str] = None,
    ) -> MatchResult:
        """
        Ranked, explained matches for a profile.

        Concurrent calls with identical arguments share one computation.

        Raises:
            InvalidProfileError: profile is malformed or has no identifier
            RetrievalError: the catalog could not be read at all
        """
        profile = self._coerce_profile(profile)
        limit = self._resolve_limit(limit)

        if not self.config.coalesce_requests:
            return self._run(profile, limit, force_refresh, account_id, plan)

        key = (profile.id, limit, account_id, plan, force_refresh)
        with self._lock:
            future = self._in_flight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[key] = future

        if not owner:
            logger.info(f"Joining in-flight matching run for profile {profile.id}")
            return future.result()

        try:
            result = self._run(profile, limit, force_refresh, account_id, plan)
        except BaseException as e:
            future.set_exception(e)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._in_flight.pop(key, None)

    def match_local(self, profile: ProfileInput, limit: Optional[int] = None) -> MatchResult:
        """
        Heuristic-only ranking with the strict/relaxed fallback thresholds.

        No cache, no refinement, no billing.
        """
        profile = self._coerce_profile(profile)
        limit = self._resolve_limit(limit)
        start = self.clock()

        analyzed = analyze_profile(profile)
        candidates = self.retriever.retrieve(analyzed)
        ranked = self.scorer.fallback_rank(analyzed, candidates, limit=limit)
        matches = self.finalizer.finalize_fallback(analyzed, ranked, limit)

        stats = PipelineStats(
            candidates_fetched=len(candidates),
            pre_scored_count=len(ranked),
            fallback_reason=REASON_LOCAL_ONLY,
            processing_time_ms=self._elapsed_ms(start),
            pipeline_version=PIPELINE_VERSION_LOCAL,
        )
        return MatchResult(matches=matches, was_ai_refined=False, pipeline_stats=stats)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(
        self,
        profile: CompanyProfile,
        limit: int,
        force_refresh: bool,
        account_id: Optional[str],
        plan: Optional[str],
    ) -> MatchResult:
        start = self.clock()

        if self.cache and not force_refresh:
            cached = self.cache.get(profile.id)
            if cached is not None:
                logger.info(f"Serving {len(cached.matches)} cached matches for profile {profile.id}")
                return MatchResult(
                    matches=cached.matches[:limit],
                    was_ai_refined=cached.was_refined,
                    pipeline_stats=PipelineStats(
                        from_cache=True,
                        processing_time_ms=self._elapsed_ms(start),
                        pipeline_version=PIPELINE_VERSION_REFINED if cached.was_refined else PIPELINE_VERSION_FALLBACK,
                    ),
                )

        analyzed = analyze_profile(profile)
        candidates = self.retriever.retrieve(analyzed)
        pre_scored = self.scorer.pre_filter(analyzed, candidates)

        stats = PipelineStats(candidates_fetched=len(candidates), pre_scored_count=len(pre_scored))
        usage = TokenUsage()
        model = None

        if not pre_scored:
            matches: List[Match] = []
            refined = False
            stats.fallback_reason = REASON_NO_CANDIDATES
        else:
            matches, refined, usage, model = self._refine_or_fallback(
                profile, analyzed, pre_scored, limit, account_id, plan, stats
            )

        stats.tokens_used = usage.total
        stats.pipeline_version = PIPELINE_VERSION_REFINED if refined else PIPELINE_VERSION_FALLBACK
        stats.processing_time_ms = self._elapsed_ms(start)

        if self.cache:
            self.cache.set(profile.id, matches, refined)

        self._emit_compliance_event(profile, analyzed, account_id, matches, stats, usage, model)

        logger.info(
            f"Matched profile {profile.id}: {len(matches)} matches "
            f"({'refined' if refined else 'fallback: ' + str(stats.fallback_reason)}) "
            f"in {stats.processing_time_ms}ms"
        )
        return MatchResult(matches=matches, was_ai_refined=refined, pipeline_stats=stats)

    def _refine_or_fallback(
        self,
        profile: CompanyProfile,
        analyzed: AnalyzedProfile,
        pre_scored: List[PreScoreResult],
        limit: int,
        account_id: Optional[str],
        plan: Optional[str],
        stats: PipelineStats,
    ) -> Tuple[List[Match], bool, TokenUsage, Optional[str]]:
        skip_reason = self._admission(account_id, plan)
        if skip_reason:
            stats.fallback_reason = skip_reason
            return self.finalizer.finalize_fallback(analyzed, pre_scored, limit), False, TokenUsage(), None

        stats.ai_evaluated = len(pre_scored)
        try:
            outcome = self.refinement.refine(profile, analyzed, pre_scored, limit)
        except RefinementError as e:
            logger.warning(f"Refinement failed ({e.reason_code}) for profile {profile.id}: {e}")
            stats.fallback_reason = e.reason_code
            usage = e.usage or TokenUsage()
            if e.reason_code not in UNBILLED_REASONS:
                self._bill(account_id, plan, profile.id, usage, success=False)
            return self.finalizer.finalize_fallback(analyzed, pre_scored, limit), False, usage, None

        self._bill(account_id, plan, profile.id, outcome.usage, success=True)
        matches = self.finalizer.finalize_refined(analyzed, outcome.entries, limit)
        return matches, True, outcome.usage, outcome.model

    def _admission(self, account_id: Optional[str], plan: Optional[str]) -> Optional[str]:
        """None when refinement may run, else the reason code for skipping it."""
        if self.refinement is None or not self.config.refinement.enabled:
            return REASON_DISABLED
        if self.usage_meter is None:
            return None
        if not account_id:
            return REASON_NO_ACCOUNT

        try:
            check = self.usage_meter.check(account_id, plan)
        except Exception as e:
            logger.error(f"Usage check failed for {account_id}, skipping refinement: {e}")
            return REASON_QUOTA_UNAVAILABLE

        if not check.allowed:
            return REASON_QUOTA_BLOCKED
        return None

    def _bill(
        self,
        account_id: Optional[str],
        plan: Optional[str],
        profile_id: str,
        usage: TokenUsage,
        success: bool,
    ) -> None:
        if self.usage_meter is None or not account_id:
            return
        try:
            self.usage_meter.log(
                account_id,
                usage,
                success=success,
                plan=plan,
                profile_id=profile_id,
                model_provider=self.model_provider,
            )
        except Exception as e:
            logger.error(f"Failed to log AI usage for {account_id}: {e}")

    def _emit_compliance_event(
        self,
        profile: CompanyProfile,
        analyzed: AnalyzedProfile,
        account_id: Optional[str],
        matches: List[Match],
        stats: PipelineStats,
        usage: TokenUsage,
        model: Optional[str],
    ) -> None:
        if self.compliance_sink is None:
            return

        function_name = self.usage_meter.config.function_name if self.usage_meter else 'v5-hybrid-calculate-matches'
        payload = {
            'profile_summary': {'company_name': profile.company_name, **analyzed.summary()},
            'subsidies_analyzed': stats.candidates_fetched,
            'pre_scored_count': stats.pre_scored_count,
            'matches_count': len(matches),
            'top_match_score': matches[0].match_score if matches else 0,
            'processing_time_ms': stats.processing_time_ms,
            'pipeline_version': stats.pipeline_version,
            'fallback_reason': stats.fallback_reason,
            'model_provider': self.model_provider,
            'model_version': model,
            'input_tokens': usage.input_tokens,
            'output_tokens': usage.output_tokens,
        }
        event = ComplianceEvent(
            event_type=RECOMMENDATION_EVENT,
            function_name=function_name,
            profile_id=profile.id,
            account_id=account_id,
            payload=payload,
        )
        try:
            self.compliance_sink.emit(event)
        except Exception as e:
            logger.error(f"Failed to store compliance event for profile {profile.id}: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce_profile(profile: ProfileInput) -> CompanyProfile:
        if profile is None:
            raise InvalidProfileError("No profile given")
        if not isinstance(profile, CompanyProfile):
            try:
                profile = CompanyProfile.model_validate(profile)
            except ValidationError as e:
                raise InvalidProfileError(f"Invalid profile: {e}") from e
        if not profile.id or not profile.id.strip():
            raise InvalidProfileError("Profile has no identifier")
        return profile

    def _resolve_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.config.default_limit
        return max(1, int(limit))

    def _elapsed_ms(self, start: float) -> int:
        return int((self.clock() - start) * 1000)
