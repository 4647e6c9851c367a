"""Refinement Module - reasoning-service adjustment of pre-scores."""
from core.refinement.parser import (
    CompactResponse,
    VerboseResponse,
    UnparseableResponse,
    RefinedEntry,
    classify_response,
    to_refined_entries,
)
from core.refinement.payload import build_messages, compact_candidates
from core.refinement.service import RefinementOutcome, RefinementStage

__all__ = [
    'CompactResponse',
    'VerboseResponse',
    'UnparseableResponse',
    'RefinedEntry',
    'classify_response',
    'to_refined_entries',
    'build_messages',
    'compact_candidates',
    'RefinementOutcome',
    'RefinementStage',
]
