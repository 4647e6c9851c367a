"""
Refinement response parsing.

The reasoning service returns free text that should contain one JSON object
with a "matches" list. Two key conventions are in use:

- compact: {"i", "adj", "score", "reasons", "ok", "missing"}
- verbose: {"subsidy_index", "ai_adjustment", "match_score", "match_reasons",
  "matching_criteria", "missing_criteria"}

classify_response() turns the text into exactly one of CompactResponse,
VerboseResponse or UnparseableResponse; to_refined_entries() maps each of
them explicitly.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.exceptions import RefinementParseError
from core.scorer import PreScoreResult

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


class CompactEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    i: int
    adj: Optional[float] = None
    score: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)
    ok: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)

    @field_validator("reasons", "ok", "missing", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[str]:
        return _string_list(value)


class VerboseEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subsidy_index: int
    ai_adjustment: Optional[float] = None
    match_score: Optional[float] = None
    match_reasons: List[str] = Field(default_factory=list)
    matching_criteria: List[str] = Field(default_factory=list)
    missing_criteria: List[str] = Field(default_factory=list)

    @field_validator("match_reasons", "matching_criteria", "missing_criteria", mode="before")
    @classmethod
    def _coerce_lists(cls, value: Any) -> List[str]:
        return _string_list(value)


class CompactResponse(BaseModel):
    kind: Literal["compact"] = "compact"
    matches: List[CompactEntry]


class VerboseResponse(BaseModel):
    kind: Literal["verbose"] = "verbose"
    matches: List[VerboseEntry]


class UnparseableResponse(BaseModel):
    kind: Literal["unparseable"] = "unparseable"
    detail: str


ParsedResponse = Union[CompactResponse, VerboseResponse, UnparseableResponse]


@dataclass
class RefinedEntry:
    """One candidate as judged by the reasoning service."""
    index: int
    result: PreScoreResult
    adjustment: float
    adjusted_score: float
    reasons: List[str] = field(default_factory=list)
    matching_criteria: List[str] = field(default_factory=list)
    missing_criteria: List[str] = field(default_factory=list)


def extract_json_object(text: str) -> Optional[dict]:
    """First {...} fragment of the text, decoded, or None."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _validate_entries(model, raw_entries: list) -> list:
    entries = []
    for raw in raw_entries:
        try:
            entries.append(model.model_validate(raw))
        except ValidationError as e:
            logger.debug(f"Skipping malformed refinement entry {raw!r}: {e.error_count()} error(s)")
    return entries


def classify_response(text: str) -> ParsedResponse:
    data = extract_json_object(text)
    if data is None:
        return UnparseableResponse(detail=f"No JSON object in response: {(text or '')[:200]!r}")

    raw_entries = data.get("matches", data.get("results"))
    if not isinstance(raw_entries, list):
        return UnparseableResponse(detail="Response has no matches list")

    dict_entries = [e for e in raw_entries if isinstance(e, dict)]
    if not dict_entries:
        return UnparseableResponse(detail="Matches list is empty")

    if "i" in dict_entries[0]:
        entries = _validate_entries(CompactEntry, dict_entries)
        if entries:
            return CompactResponse(matches=entries)
    elif "subsidy_index" in dict_entries[0]:
        entries = _validate_entries(VerboseEntry, dict_entries)
        if entries:
            return VerboseResponse(matches=entries)

    return UnparseableResponse(detail="Matches use neither the compact nor the verbose key names")


def _bounded_adjustment(adjustment: Optional[float], score: Optional[float], pre_score: float, max_adjustment: float) -> float:
    if adjustment is None:
        adjustment = (score - pre_score) if score is not None else 0.0
    return max(-max_adjustment, min(max_adjustment, adjustment))


def _refined(
    index: int,
    adjustment: Optional[float],
    score: Optional[float],
    reasons: List[str],
    ok: List[str],
    missing: List[str],
    results: List[PreScoreResult],
    max_adjustment: float,
) -> Optional[RefinedEntry]:
    if index < 0 or index >= len(results):
        logger.debug(f"Dropping refinement entry with out-of-range index {index}")
        return None
    result = results[index]
    bounded = _bounded_adjustment(adjustment, score, result.pre_score, max_adjustment)
    return RefinedEntry(
        index=index,
        result=result,
        adjustment=bounded,
        adjusted_score=result.pre_score + bounded,
        reasons=reasons or list(result.reasons),
        matching_criteria=ok,
        missing_criteria=missing,
    )


def to_refined_entries(
    response: ParsedResponse,
    results: List[PreScoreResult],
    max_adjustment: float = 25.0,
) -> List[RefinedEntry]:
    """
    Map a classified response onto the pre-scored list.

    Raises RefinementParseError when the response is unparseable or none of
    its entries refers to a known candidate.
    """
    if isinstance(response, CompactResponse):
        mapped = [
            _refined(e.i, e.adj, e.score, e.reasons, e.ok, e.missing, results, max_adjustment)
            for e in response.matches
        ]
    elif isinstance(response, VerboseResponse):
        mapped = [
            _refined(
                e.subsidy_index, e.ai_adjustment, e.match_score, e.match_reasons,
                e.matching_criteria, e.missing_criteria, results, max_adjustment,
            )
            for e in response.matches
        ]
    elif isinstance(response, UnparseableResponse):
        raise RefinementParseError(response.detail)
    else:
        raise TypeError(f"Unknown response variant: {type(response).__name__}")

    entries = []
    seen = set()
    for entry in mapped:
        # First entry per index wins
        if entry is None or entry.index in seen:
            continue
        seen.add(entry.index)
        entries.append(entry)

    if not entries:
        raise RefinementParseError("No refinement entry refers to a known candidate")
    return entries
