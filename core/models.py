#!/usr/bin/env python3
"""
Domain models shared across the matching pipeline.

CompanyProfile and SubsidyCandidate are validated inputs (pydantic).
Match and MatchResult are plain dataclasses produced by the pipeline.
"""
import re
from datetime import date
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.utils import fold_text

NATIONAL_REGION = "National"

LocalizedText = Union[str, Dict[str, Optional[str]]]


def localized(value: Optional[LocalizedText]) -> str:
    """Return the French text of a plain or {"fr", "en"} field."""
    if not value:
        return ""
    if isinstance(value, dict):
        return value.get("fr") or value.get("en") or ""
    return str(value)


class WebIntelligence(BaseModel):
    """Website analysis sub-scores in [0, 1]."""
    model_config = ConfigDict(extra="ignore")

    innovation: Optional[float] = None
    sustainability: Optional[float] = None
    export: Optional[float] = None
    digital: Optional[float] = None
    company_description: Optional[str] = None
    business_activities: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _flatten_nested_scores(cls, data: Any) -> Any:
        # Accept the crawler shape {"innovations": {"score": 0.8}, "businessActivities": [...]}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        aliases = {
            "innovations": "innovation",
            "companyDescription": "company_description",
            "businessActivities": "business_activities",
        }
        for source, target in aliases.items():
            if source in data and target not in data:
                data[target] = data.pop(source)
        for key in ("innovation", "sustainability", "export", "digital"):
            value = data.get(key)
            if isinstance(value, dict):
                data[key] = value.get("score")
        return data

    @field_validator("innovation", "sustainability", "export", "digital")
    @classmethod
    def _normalize_scale(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        # Some producers report 0-100 instead of 0-1
        if value > 1:
            value = value / 100.0
        return max(0.0, min(1.0, value))


class CompanyProfile(BaseModel):
    """Company record being matched. Read-only to the engine."""
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    id: str
    company_name: Optional[str] = None
    siret: Optional[str] = None
    naf_code: Optional[str] = None
    naf_label: Optional[str] = None
    sector: Optional[str] = None
    sub_sector: Optional[str] = None
    region: Optional[str] = None
    department: Optional[str] = None
    employees: Optional[str] = None
    annual_turnover: Optional[float] = None
    legal_form: Optional[str] = None
    company_category: Optional[str] = None
    year_created: Optional[int] = None
    description: Optional[str] = None
    project_types: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)
    website_intelligence: Optional[WebIntelligence] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator("employees", mode="before")
    @classmethod
    def _coerce_employees(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator("project_types", "certifications", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []

    def employee_count(self) -> Optional[int]:
        """Leading integer of the employee bucket ("10-49" -> 10)."""
        if not self.employees:
            return None
        match = re.search(r"\d+", self.employees.replace(" ", ""))
        return int(match.group(0)) if match else None


class SubsidyCandidate(BaseModel):
    """Catalog entry under consideration. Immutable from the engine's side."""
    model_config = ConfigDict(extra="ignore", from_attributes=True, frozen=True)

    id: str
    title: Optional[LocalizedText] = None
    description: Optional[LocalizedText] = None
    agency: Optional[str] = None
    region: Optional[List[str]] = None
    funding_type: Optional[str] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    deadline: Optional[date] = None
    categories: List[str] = Field(default_factory=list)
    primary_sector: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    eligibility_criteria: Optional[LocalizedText] = None
    legal_entities: List[str] = Field(default_factory=list)
    is_universal_sector: bool = False
    is_business_relevant: bool = True
    is_active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("categories", "keywords", "legal_entities", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []

    @field_validator("amount_min", "amount_max", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Any:
        # Numeric columns come back as Decimal
        return float(value) if value is not None else None

    @field_validator("is_universal_sector", "is_business_relevant", "is_active", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Any:
        return bool(value) if value is not None else False

    @property
    def title_text(self) -> str:
        return localized(self.title)

    @property
    def description_text(self) -> str:
        return localized(self.description)

    @property
    def eligibility_text(self) -> str:
        return localized(self.eligibility_criteria)

    @property
    def is_unrestricted_region(self) -> bool:
        return not self.region

    @property
    def is_national(self) -> bool:
        return self.is_unrestricted_region or NATIONAL_REGION in self.region

    def folded_text(self) -> str:
        """Title and description, lower-cased and accent-folded."""
        return fold_text(f"{self.title_text} {self.description_text}")

    def folded_categories(self) -> List[str]:
        return [c for c in (fold_text(cat) for cat in self.categories) if c]


@dataclass
class Match:
    """Final output unit for one subsidy."""
    subsidy_id: str
    match_score: float
    success_probability: float
    match_reasons: List[str] = field(default_factory=list)
    matching_criteria: List[str] = field(default_factory=list)
    missing_criteria: List[str] = field(default_factory=list)
    refined: bool = False
    title: str = ""
    agency: Optional[str] = None
    amount_max: Optional[float] = None
    pre_score: float = 0.0
    amount_boost: float = 0.0
    agency_boost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Match":
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class PipelineStats:
    candidates_fetched: int = 0
    pre_scored_count: int = 0
    ai_evaluated: int = 0
    fallback_reason: Optional[str] = None
    from_cache: bool = False
    tokens_used: int = 0
    processing_time_ms: int = 0
    pipeline_version: str = ""


@dataclass
class MatchResult:
    """Public result of a matching run."""
    matches: List[Match] = field(default_factory=list)
    was_ai_refined: bool = False
    pipeline_stats: PipelineStats = field(default_factory=PipelineStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "was_ai_refined": self.was_ai_refined,
            "pipeline_stats": asdict(self.pipeline_stats),
        }
