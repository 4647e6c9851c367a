#!/usr/bin/env python3
"""
Scoring Module - deterministic local scoring.

Public API:
- LocalScorer: scores candidates, pre-filters for refinement, ranks in fallback mode
- PreScoreResult: dataclass for one scored candidate

- models.py: Data structures (PreScoreResult)
- rules.py: One function per score component
- service.py: LocalScorer orchestrator
"""

from core.scorer.models import PreScoreResult
from core.scorer.service import LocalScorer

__all__ = ['LocalScorer', 'PreScoreResult']
