#!/usr/bin/env python3
"""
Profile analysis - turns a raw CompanyProfile into the signals used for matching.

Pure functions, no I/O. Every field of the profile is optional; an empty
profile resolves to permissive defaults (no exclusions, no region, PME).
"""
import re
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from core.models import CompanyProfile
from core.utils import fold_text, dedupe, contains_term
from core.normalizer.vocabulary import (
    NAF_SECTOR_MAP,
    SECTOR_ALIASES,
    SECTOR_SYNONYMS,
    SECTOR_EXCLUSIONS,
    SIZE_EXCLUSIONS,
    YOUNG_COMPANY_MAX_AGE,
    YOUNG_COMPANY_EXCLUSIONS,
    STOP_WORDS,
    CERTIFICATION_EXPANSIONS,
    ASSOCIATION_LEGAL_FORMS,
    LEGAL_FORM_ENTITY_TYPES,
    DEFAULT_ENTITY_TYPES,
    UNKNOWN_FORM_ENTITY_TYPES,
    MAX_SEARCH_TERMS,
)

logger = logging.getLogger(__name__)

SIZE_CATEGORIES = ('TPE', 'PME', 'ETI', 'GE')
DEFAULT_SIZE_CATEGORY = 'PME'

_SECTOR_KEY_RE = re.compile(r"^([a-z0-9&]+)")
_WORD_SPLIT_RE = re.compile(r"[\s,;.()/'’-]+")


@dataclass
class AnalyzedProfile:
    """Matching signals derived from a profile. Computed once per request."""
    profile_id: str
    sector: Optional[str] = None
    sector_label: Optional[str] = None
    search_terms: List[str] = field(default_factory=list)
    activity_terms: List[str] = field(default_factory=list)
    exclusion_keywords: List[str] = field(default_factory=list)
    project_types: List[str] = field(default_factory=list)
    certifications: List[str] = field(default_factory=list)
    size_category: str = DEFAULT_SIZE_CATEGORY
    region: Optional[str] = None
    entity_kind: str = 'company'
    entity_types: List[str] = field(default_factory=lambda: list(DEFAULT_ENTITY_TYPES))
    company_age: Optional[int] = None
    innovation_score: float = 0.0
    sustainability_score: float = 0.0
    export_score: float = 0.0
    digital_score: float = 0.0

    @property
    def is_association(self) -> bool:
        return self.entity_kind == 'association'

    def summary(self) -> dict:
        """Short, non-identifying description used in audit events."""
        return {
            'sector': self.sector,
            'region': self.region,
            'size_category': self.size_category,
            'entity_kind': self.entity_kind,
            'project_types': list(self.project_types),
        }


def normalize_sector(sector: Optional[str]) -> Optional[str]:
    """
    Reduce a sector label to its lookup key.

    "Agriculture / Agroalimentaire" -> "agriculture", "BTP" -> "construction".
    """
    folded = fold_text(sector)
    if not folded:
        return None
    match = _SECTOR_KEY_RE.match(folded)
    key = match.group(1) if match else folded
    return SECTOR_ALIASES.get(key, key)


def sector_from_naf_code(naf_code: Optional[str]) -> Optional[str]:
    if not naf_code:
        return None
    return NAF_SECTOR_MAP.get(naf_code.strip()[:2])


def size_category(profile: CompanyProfile) -> str:
    """Explicit company_category wins, then employee count, then PME."""
    if profile.company_category:
        explicit = profile.company_category.strip().upper()
        if explicit in SIZE_CATEGORIES:
            return explicit
    count = profile.employee_count()
    if count is None:
        return DEFAULT_SIZE_CATEGORY
    if count < 10:
        return 'TPE'
    if count < 250:
        return 'PME'
    if count < 5000:
        return 'ETI'
    return 'GE'


def entity_kind(profile: CompanyProfile) -> str:
    legal_form = fold_text(profile.legal_form)
    if not legal_form:
        return 'company'
    for form in ASSOCIATION_LEGAL_FORMS:
        if legal_form == form or (len(form) > 4 and form in legal_form):
            return 'association'
    return 'company'


def legal_entity_types(legal_form: Optional[str]) -> List[str]:
    """Entity types a legal form qualifies as. Longest form wins ('SASU' over 'SAS')."""
    folded = fold_text(legal_form)
    if not folded:
        return list(DEFAULT_ENTITY_TYPES)
    for form in sorted(LEGAL_FORM_ENTITY_TYPES, key=len, reverse=True):
        if contains_term(folded, form):
            return list(LEGAL_FORM_ENTITY_TYPES[form])
    return list(UNKNOWN_FORM_ENTITY_TYPES)


def activity_terms(naf_label: Optional[str]) -> List[str]:
    """Words of the detailed activity label that are at least 4 characters long."""
    words = _WORD_SPLIT_RE.split(fold_text(naf_label))
    return dedupe(w for w in words if len(w) >= 4 and w not in STOP_WORDS)


def _certification_terms(certifications: List[str]) -> List[str]:
    terms = []
    for cert in certifications:
        folded = fold_text(cert)
        if not folded:
            continue
        terms.append(folded)
        for fragment, expansions in CERTIFICATION_EXPANSIONS.items():
            if fragment in folded:
                terms.extend(expansions)
    return terms


def search_terms(
    profile: CompanyProfile,
    sector_key: Optional[str],
    activity: List[str],
) -> List[str]:
    """Ranked, de-duplicated search terms, strongest signals first."""
    terms: List[str] = []
    if sector_key:
        terms.append(sector_key)
    if profile.sub_sector:
        terms.append(fold_text(profile.sub_sector))
    terms.extend(activity)
    terms.extend(fold_text(p) for p in profile.project_types)
    terms.extend(_certification_terms(profile.certifications))
    if sector_key:
        terms.extend(SECTOR_SYNONYMS.get(sector_key, []))

    intel = profile.website_intelligence
    if intel and intel.business_activities:
        terms.extend(fold_text(a) for a in intel.business_activities)

    return dedupe(terms)[:MAX_SEARCH_TERMS]


def exclusion_keywords(
    sector_key: Optional[str],
    size: str,
    company_age: Optional[int],
    explicit_category: bool,
) -> List[str]:
    exclusions: List[str] = []
    if sector_key:
        exclusions.extend(SECTOR_EXCLUSIONS.get(sector_key, []))
    # Size-based exclusions only apply when the size was actually declared
    if explicit_category:
        exclusions.extend(SIZE_EXCLUSIONS.get(size, []))
    if company_age is not None and company_age > YOUNG_COMPANY_MAX_AGE:
        exclusions.extend(YOUNG_COMPANY_EXCLUSIONS)
    return dedupe(exclusions)


def analyze_profile(profile: CompanyProfile, today: Optional[date] = None) -> AnalyzedProfile:
    """Derive the matching signals for a profile."""
    today = today or date.today()

    sector_label = profile.sector or sector_from_naf_code(profile.naf_code)
    sector_key = normalize_sector(sector_label)

    size = size_category(profile)
    declared_size = bool(profile.company_category or profile.employee_count() is not None)

    company_age = None
    if profile.year_created and profile.year_created <= today.year:
        company_age = today.year - profile.year_created

    activity = activity_terms(profile.naf_label)

    intel = profile.website_intelligence
    analyzed = AnalyzedProfile(
        profile_id=profile.id,
        sector=sector_key,
        sector_label=sector_label,
        search_terms=search_terms(profile, sector_key, activity),
        activity_terms=activity,
        exclusion_keywords=exclusion_keywords(sector_key, size, company_age, declared_size),
        project_types=dedupe(fold_text(p) for p in profile.project_types),
        certifications=dedupe(fold_text(c) for c in profile.certifications),
        size_category=size,
        region=profile.region.strip() if profile.region and profile.region.strip() else None,
        entity_kind=entity_kind(profile),
        entity_types=legal_entity_types(profile.legal_form),
        company_age=company_age,
        innovation_score=(intel.innovation or 0.0) if intel else 0.0,
        sustainability_score=(intel.sustainability or 0.0) if intel else 0.0,
        export_score=(intel.export or 0.0) if intel else 0.0,
        digital_score=(intel.digital or 0.0) if intel else 0.0,
    )
    logger.debug(
        f"Analyzed profile {profile.id}: sector={analyzed.sector} size={analyzed.size_category} "
        f"region={analyzed.region} terms={len(analyzed.search_terms)} exclusions={len(analyzed.exclusion_keywords)}"
    )
    return analyzed
