"""
Refinement Stage - asks the reasoning service to adjust pre-scores.

Errors are raised as RefinementError subclasses carrying a reason code; the
engine turns them into fallback mode. Token usage is attached to the error
so that a failed but billable attempt can still be logged.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from core.config_loader import RefinementConfig
from core.exceptions import RefinementError
from core.llm.interfaces import LLMProvider
from core.models import CompanyProfile
from core.normalizer import AnalyzedProfile
from core.refinement.parser import RefinedEntry, classify_response, to_refined_entries
from core.refinement.payload import build_messages
from core.scorer import PreScoreResult
from core.usage.pricing import TokenUsage, estimate_tokens

logger = logging.getLogger(__name__)


@dataclass
class RefinementOutcome:
    entries: List[RefinedEntry] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""
    attempts: int = 1


class RefinementStage:
    def __init__(self, llm: LLMProvider, config: Optional[RefinementConfig] = None):
        self.llm = llm
        self.config = config or RefinementConfig()

    def refine(
        self,
        profile: CompanyProfile,
        analyzed: AnalyzedProfile,
        results: List[PreScoreResult],
        limit: int,
    ) -> RefinementOutcome:
        """
        Refine the pre-scored candidates.

        Raises:
            RefinementTimeout, RefinementRateLimited, RefinementParseError or
            RefinementError. The raised error has a `usage` attribute with the
            tokens to bill (estimated from the prompt when no reply arrived).
        """
        messages = build_messages(profile, analyzed, results, limit, self.config.max_adjustment)
        prompt_usage = TokenUsage(input_tokens=estimate_tokens("".join(m['content'] for m in messages)))

        logger.info(f"Refining {len(results)} pre-scored candidates for profile {analyzed.profile_id}")
        try:
            completion = self.llm.complete(messages, timeout=self.config.timeout_seconds)
        except RefinementError as e:
            e.usage = prompt_usage
            raise

        try:
            parsed = classify_response(completion.text)
            entries = to_refined_entries(parsed, results, self.config.max_adjustment)
        except RefinementError as e:
            logger.warning(f"Unusable refinement response: {e}")
            e.usage = completion.usage
            raise

        logger.info(f"Refinement returned {len(entries)} usable entries ({parsed.kind} format)")
        return RefinementOutcome(
            entries=entries,
            usage=completion.usage,
            model=completion.model,
            attempts=completion.attempts,
        )
