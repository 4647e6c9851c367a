#!/usr/bin/env python3
"""
Scoring Models - Data structures for local scoring results.
"""

from typing import List, Dict
from dataclasses import dataclass, field

from core.models import SubsidyCandidate


@dataclass
class PreScoreResult:
    """Deterministic score of one candidate against one analyzed profile."""
    candidate: SubsidyCandidate

    # Clamped into [0, 100]
    pre_score: float = 0.0
    # Unclamped sum of the components, kept for boosting and explanation
    raw_score: float = 0.0
    reasons: List[str] = field(default_factory=list)
    retrieval_rank: int = 0

    # Entity type incompatibility; never eligible whatever the score
    excluded: bool = False
    components: Dict[str, float] = field(default_factory=dict)

    @property
    def subsidy_id(self) -> str:
        return self.candidate.id
