"""
Refinement payload - compact projection of pre-scored candidates and prompt building.

Each candidate is reduced to a handful of short keys to keep the request
small. The index `i` is the position in the pre-scored list and is the only
way the response refers back to a candidate.
"""
import json
from typing import Any, Dict, List

from core.models import CompanyProfile, NATIONAL_REGION
from core.normalizer import AnalyzedProfile
from core.scorer import PreScoreResult
from core.llm.system_prompts import (
    SUBSIDY_MATCHING_SYSTEM_PROMPT,
    COMPACT_FORMAT_LEGEND,
    RESPONSE_FORMAT_EXAMPLE,
    REFINEMENT_USER_PROMPT_TEMPLATE,
)

TITLE_MAX_CHARS = 60
SECTOR_MAX_CHARS = 20
REGION_MAX_CHARS = 15
TOP_REASONS = 2


def amount_bucket(amount_max) -> str:
    if not amount_max:
        return "?"
    return f"{round(amount_max / 1000)}k€"


def compact_candidate(index: int, result: PreScoreResult) -> Dict[str, Any]:
    candidate = result.candidate
    regions = candidate.region or []
    return {
        'i': index,
        'id': candidate.id,
        't': candidate.title_text[:TITLE_MAX_CHARS],
        's': (candidate.primary_sector or '')[:SECTOR_MAX_CHARS],
        'r': (regions[0] if regions else NATIONAL_REGION)[:REGION_MAX_CHARS],
        'a': amount_bucket(candidate.amount_max),
        'p': round(result.pre_score),
        'rs': result.reasons[:TOP_REASONS],
    }


def compact_candidates(results: List[PreScoreResult]) -> List[Dict[str, Any]]:
    return [compact_candidate(i, r) for i, r in enumerate(results)]


def profile_context(profile: CompanyProfile, analyzed: AnalyzedProfile) -> str:
    """A few labelled lines describing the company, empty fields omitted."""
    lines = []
    if profile.company_name:
        lines.append(f"Nom: {profile.company_name}")
    sector = profile.sector or analyzed.sector_label or analyzed.sector
    if sector:
        lines.append(f"Secteur: {sector}")
    if profile.naf_label:
        lines.append(f"Activité: {profile.naf_label}")
    if analyzed.region:
        lines.append(f"Région: {analyzed.region}")
    if profile.employees:
        lines.append(f"Effectif: {profile.employees}")
    if profile.annual_turnover:
        lines.append(f"CA: {round(profile.annual_turnover / 1000)}k€")
    if profile.legal_form:
        lines.append(f"Forme juridique: {profile.legal_form}")
    if profile.year_created:
        lines.append(f"Création: {profile.year_created}")
    if analyzed.project_types:
        lines.append(f"Projets: {', '.join(analyzed.project_types)}")
    if analyzed.certifications:
        lines.append(f"Certifications: {', '.join(analyzed.certifications)}")

    intelligence = profile.website_intelligence
    if intelligence and intelligence.business_activities:
        lines.append(f"Activités web: {', '.join(intelligence.business_activities[:5])}")
    return "\n".join(lines)


def build_messages(
    profile: CompanyProfile,
    analyzed: AnalyzedProfile,
    results: List[PreScoreResult],
    limit: int,
    max_adjustment: float,
) -> List[Dict[str, str]]:
    user_prompt = REFINEMENT_USER_PROMPT_TEMPLATE.format(
        count=len(results),
        profile_context=profile_context(profile, analyzed),
        size_category=analyzed.size_category,
        legend=COMPACT_FORMAT_LEGEND,
        candidates_json=json.dumps(compact_candidates(results), ensure_ascii=False, separators=(',', ':')),
        max_adjustment=int(max_adjustment),
        limit=min(limit, len(results)),
        response_format=RESPONSE_FORMAT_EXAMPLE,
    )
    return [
        {'role': 'system', 'content': SUBSIDY_MATCHING_SYSTEM_PROMPT},
        {'role': 'user', 'content': user_prompt},
    ]
