import logging
import os
from dataclasses import dataclass
from typing import Optional

from core.audit import ComplianceSink, LoggingComplianceSink, SqlComplianceSink
from core.cache import RecommendationCache
from core.config_loader import AppConfig, LlmConfig, RefinementConfig
from core.engine import MatchingEngine
from core.llm.openai_service import OpenAIService
from core.ranking import RankFinalizer
from core.refinement import RefinementStage
from core.retriever import CandidateRetriever
from core.scorer import LocalScorer
from core.usage import UsageMeter, SqlUsageStore

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    DB access goes through the unit-of-work helpers in database.uow; nothing
    here holds a session.
    """
    config: AppConfig
    engine: MatchingEngine
    ai_service: Optional[OpenAIService] = None
    cache: Optional[RecommendationCache] = None

    @classmethod
    def build(cls, config: AppConfig) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration

        Returns:
            Fully wired AppContext instance
        """
        from core.retriever.catalog import SqlCatalogReader
        from database.database import configure_engine

        configure_engine(config.database.url)

        matching = config.matching
        retriever = CandidateRetriever(SqlCatalogReader(), matching.retrieval)

        ai_service = None
        refinement = None
        if matching.refinement.enabled and not (config.llm.api_key or os.environ.get("OPENAI_API_KEY")):
            logger.warning("Refinement is enabled but no reasoning API key is configured; running heuristic-only")
        elif matching.refinement.enabled:
            ai_service = cls._build_ai_service(config.llm, matching.refinement)
            refinement = RefinementStage(ai_service, matching.refinement)

        cache = None
        if config.cache.enabled:
            cache = RecommendationCache(
                redis_url=config.cache.redis_url,
                password=config.cache.password,
                ttl_seconds=config.cache.ttl_seconds,
            )

        engine = MatchingEngine(
            retriever=retriever,
            scorer=LocalScorer(matching.scorer),
            finalizer=RankFinalizer(matching.ranking.agency_tiers),
            refinement=refinement,
            usage_meter=UsageMeter(SqlUsageStore(), config.usage),
            cache=cache,
            compliance_sink=cls._build_compliance_sink(config),
            config=matching,
            model_provider=config.llm.model_provider,
        )

        return cls(config=config, engine=engine, ai_service=ai_service, cache=cache)

    @staticmethod
    def _build_ai_service(llm_config: LlmConfig, refinement_config: RefinementConfig) -> OpenAIService:
        """Build OpenAI service from LLM configuration."""
        model_config = {
            'model': llm_config.model,
            'temperature': llm_config.temperature,
            'max_tokens': llm_config.max_tokens,
        }
        retry_config = {
            'max_attempts': refinement_config.max_attempts,
            'timeout_seconds': refinement_config.timeout_seconds,
            'backoff_min_seconds': refinement_config.backoff_min_seconds,
            'backoff_max_seconds': refinement_config.backoff_max_seconds,
        }

        return OpenAIService(
            base_url=llm_config.base_url,
            api_key=llm_config.api_key,
            model_config=model_config,
            retry_config=retry_config,
        )

    @staticmethod
    def _build_compliance_sink(config: AppConfig) -> Optional[ComplianceSink]:
        if not config.compliance.enabled:
            return None
        if config.compliance.sink == "database":
            return SqlComplianceSink()
        return LoggingComplianceSink()
