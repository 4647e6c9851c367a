#!/usr/bin/env python3
"""
Matching exceptions.

Only RetrievalError and InvalidProfileError reach callers of the engine.
Refinement errors are caught inside the pipeline and turned into a
fallback reason code.
"""


class MatchingError(Exception):
    """Base exception for matching engine errors."""
    pass


class InvalidProfileError(MatchingError):
    """Raised when a profile cannot be matched (e.g. no identifier)."""
    pass


class RetrievalError(MatchingError):
    """Raised when every candidate query failed, including the unfiltered one."""
    pass


class RefinementError(MatchingError):
    """Base class for reasoning-service failures."""
    reason_code = "ai_error"
    # TokenUsage to bill for the failed attempt, set by the refinement stage
    usage = None


class RefinementTimeout(RefinementError):
    reason_code = "timeout"


class RefinementRateLimited(RefinementError):
    reason_code = "rate_limited"


class RefinementParseError(RefinementError):
    reason_code = "parse_error"
