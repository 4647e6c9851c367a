#!/usr/bin/env python3
"""
Scoring Rules - one function per score component.

Each rule returns (points, reasons). Rules never clamp; the service sums
the components and clamps the total.
"""

from datetime import date
from typing import List, Optional, Tuple
import logging

from core.models import SubsidyCandidate, NATIONAL_REGION
from core.normalizer import AnalyzedProfile
from core.normalizer.vocabulary import SECTOR_SYNONYMS, PROJECT_TYPE_KEYWORDS, GENERIC_ENTITY_TERMS
from core.utils import fold_text, contains_term, first_matching_term

logger = logging.getLogger(__name__)

RuleResult = Tuple[float, List[str]]

REGION_EXACT_POINTS = 30
REGION_NATIONAL_POINTS = 15
REGION_NATIONAL_AFTER_EXACT_POINTS = 5

SECTOR_PRIMARY_POINTS = 30
SECTOR_CATEGORY_POINTS = 25
SECTOR_CONTENT_POINTS = 15

ACTIVITY_STRONG_POINTS = 25
ACTIVITY_WEAK_POINTS = 15

PROJECT_TYPE_POINTS = 10
PROJECT_TYPE_MAX = 20

WEB_INTELLIGENCE_POINTS = 5
WEB_INTELLIGENCE_THRESHOLD = 0.5

# Wording around an exclusion term that means the opposite ("sauf musique")
EXCLUSION_CONTEXT_MARKERS = ['sauf', 'hors', "a l'exception", 'excepte', 'exclu', 'non eligible']
EXCLUSION_CONTEXT_WINDOW = 50

ENTITY_KEYWORDS = {
    'entreprise': ['entreprise', 'societe', 'pme', 'tpe', 'eti', 'startup'],
    'association': [
        'association', 'associatif', 'associative', 'loi 1901', 'organisme a but non lucratif',
        'organisation non gouvernementale', 'ong', 'fondation', 'cooperative',
        'economie sociale et solidaire', 'ess', 'utilite sociale', 'interet general',
    ],
    'collectivite': ['collectivite', 'commune', 'mairie', 'departement', 'region', 'epci'],
    'etablissement_public': ['etablissement public', 'epic', 'epa'],
    'particulier': ['particulier', 'individuel', 'personne physique'],
}

COMPANY_ONLY_KEYWORDS = [
    'entreprise uniquement', 'societes commerciales', 'hors associations', 'hors asso',
    'entreprises commerciales', 'societes a but lucratif',
]

ASSOCIATION_UNCERTAIN_PENALTY = 15

LEGAL_ENTITY_SIZE_BONUS = 10


def has_sector_keywords(text: str, sector: Optional[str]) -> bool:
    """True when a folded text mentions the sector or one of its synonyms."""
    if not sector or not text:
        return False
    if contains_term(text, sector):
        return True
    return first_matching_term(text, SECTOR_SYNONYMS.get(sector, [])) is not None


def region_points(analyzed: AnalyzedProfile, candidate: SubsidyCandidate) -> RuleResult:
    """
    Exact region 30. Nation-wide 15, or 5 on top of an exact match.

    An unset region list is unrestricted and counts as nation-wide.
    """
    regions = [fold_text(r) for r in (candidate.region or [])]
    points = 0.0
    reasons: List[str] = []

    exact = bool(analyzed.region) and fold_text(analyzed.region) in regions
    if exact:
        points += REGION_EXACT_POINTS
        reasons.append(f"Région: {analyzed.region}")

    if not regions or fold_text(NATIONAL_REGION) in regions:
        points += REGION_NATIONAL_AFTER_EXACT_POINTS if exact else REGION_NATIONAL_POINTS
        reasons.append('Aide nationale' if regions else 'Toutes régions')

    return points, reasons


def sector_points(analyzed: AnalyzedProfile, candidate: SubsidyCandidate, text: str) -> RuleResult:
    """Highest qualifying tier only: primary sector 30, category + content 25, content 15."""
    sector = analyzed.sector
    if not sector:
        return 0.0, []

    label = analyzed.sector_label or sector
    primary = fold_text(candidate.primary_sector)
    categories = candidate.folded_categories()

    in_primary = len(primary) > 2 and (primary == sector or has_sector_keywords(primary, sector))
    if in_primary:
        return float(SECTOR_PRIMARY_POINTS), [f"Secteur: {label}"]

    in_content = has_sector_keywords(text, sector)
    in_categories = any(c == sector or has_sector_keywords(c, sector) for c in categories)
    if in_categories and in_content:
        return float(SECTOR_CATEGORY_POINTS), [f"Catégorie: {label}"]
    if in_content:
        return float(SECTOR_CONTENT_POINTS), ['Secteur compatible']
    return 0.0, []


def activity_points(analyzed: AnalyzedProfile, candidate: SubsidyCandidate, text: str) -> RuleResult:
    """Activity label terms found in the candidate. Only used when no sector tier matched."""
    if not analyzed.activity_terms:
        return 0.0, []

    categories = candidate.folded_categories()
    matched = [
        term for term in analyzed.activity_terms
        if term in text or any(term in c for c in categories)
    ]
    if len(matched) >= 2:
        return float(ACTIVITY_STRONG_POINTS), ['Activité NAF correspondante']
    if len(matched) == 1 and len(fold_text(candidate.primary_sector)) > 2:
        return float(ACTIVITY_WEAK_POINTS), ['Secteur NAF proche']
    return 0.0, []


def project_type_points(analyzed: AnalyzedProfile, candidate: SubsidyCandidate, text: str) -> RuleResult:
    if not analyzed.project_types:
        return 0.0, []

    categories = candidate.folded_categories()
    matched = 0
    for project_type in analyzed.project_types:
        keywords = PROJECT_TYPE_KEYWORDS.get(project_type, [project_type])
        if any(contains_term(text, kw) or any(contains_term(c, kw) for c in categories) for kw in keywords):
            matched += 1

    if not matched:
        return 0.0, []
    return float(min(PROJECT_TYPE_MAX, matched * PROJECT_TYPE_POINTS)), [f"{matched} type(s) de projet"]


def web_intelligence_points(analyzed: AnalyzedProfile, candidate: SubsidyCandidate) -> RuleResult:
    title = fold_text(candidate.title_text)
    description = fold_text(candidate.description_text)
    categories = candidate.folded_categories()
    points = 0.0
    reasons: List[str] = []

    if analyzed.innovation_score > WEB_INTELLIGENCE_THRESHOLD:
        if 'innovation' in title or 'r&d' in description or any('innovation' in c for c in categories):
            points += WEB_INTELLIGENCE_POINTS
            reasons.append('Profil innovant')

    if analyzed.sustainability_score > WEB_INTELLIGENCE_THRESHOLD:
        if ('ecolog' in title or 'durable' in title or 'environnement' in description
                or any('vert' in c for c in categories)):
            points += WEB_INTELLIGENCE_POINTS
            reasons.append('Engagement durable')

    if analyzed.export_score > WEB_INTELLIGENCE_THRESHOLD:
        if 'export' in title or 'international' in title or any('export' in c for c in categories):
            points += WEB_INTELLIGENCE_POINTS
            reasons.append('Activité export')

    return points, reasons


def timing_points(candidate: SubsidyCandidate, today: date) -> RuleResult:
    """31-180 days 10, 15-30 days 7, beyond 180 days 5, under 15 days 0, open-ended 8."""
    if candidate.deadline is None:
        return 8.0, ['Programme permanent']

    days = (candidate.deadline - today).days
    if 30 < days <= 180:
        return 10.0, ['Deadline favorable']
    if 14 < days <= 30:
        return 7.0, ['À candidater bientôt']
    if days > 180:
        return 5.0, ['Échéance lointaine']
    return 0.0, []


def _has_exclusion_context(text: str, term: str) -> bool:
    index = text.find(term)
    if index == -1:
        return False
    before = text[max(0, index - EXCLUSION_CONTEXT_WINDOW):index]
    return any(marker in before for marker in EXCLUSION_CONTEXT_MARKERS)


def matched_exclusion(analyzed: AnalyzedProfile, text: str) -> Optional[str]:
    """First exclusion keyword the candidate text really mentions."""
    for keyword in analyzed.exclusion_keywords:
        if contains_term(text, keyword) and not _has_exclusion_context(text, keyword):
            return keyword
    return None


def _eligible_entity_kinds(text: str) -> Tuple[set, bool]:
    kinds = set()
    for kind, keywords in ENTITY_KEYWORDS.items():
        if first_matching_term(text, keywords):
            kinds.add(kind)

    company_only = first_matching_term(text, COMPANY_ONLY_KEYWORDS) is not None
    if company_only:
        kinds.discard('association')
    if not kinds:
        kinds.add('entreprise')
    return kinds, company_only


def entity_compatibility(analyzed: AnalyzedProfile, text: str) -> Tuple[bool, float, Optional[str]]:
    """
    Association/company compatibility from the candidate wording.

    Returns (compatible, penalty, reason).
    """
    kinds, company_only = _eligible_entity_kinds(text)

    if analyzed.is_association:
        if company_only:
            return False, 0.0, 'Réservé aux entreprises commerciales'
        if 'association' in kinds:
            return True, 0.0, 'Ouvert aux associations'
        if kinds == {'entreprise'}:
            return True, float(ASSOCIATION_UNCERTAIN_PENALTY), 'Principalement pour entreprises'
        return True, 0.0, None

    if kinds == {'association'}:
        return False, 0.0, 'Réservé aux associations'
    return True, 0.0, None


def _entity_requirement_met(requirement: str, size: str, entity_types: List[str]) -> bool:
    if contains_term(requirement, size):
        return True
    if any(contains_term(requirement, t) or contains_term(t, requirement) for t in entity_types):
        return True
    return requirement in GENERIC_ENTITY_TERMS


def legal_entity_compatibility(analyzed: AnalyzedProfile, candidate: SubsidyCandidate) -> Tuple[bool, float, Optional[str]]:
    """
    Check the program's eligible-entity list against the profile's legal form and size.

    An empty list accepts everyone. Returns (compatible, bonus, reason); the
    bonus applies when the list names the profile's size category exactly.
    """
    requirements = [fold_text(e) for e in candidate.legal_entities if e and e.strip()]
    if not requirements:
        return True, 0.0, None

    size = analyzed.size_category.lower()
    if not any(_entity_requirement_met(r, size, analyzed.entity_types) for r in requirements):
        required = ', '.join(e for e in candidate.legal_entities if e and e.strip())
        return False, 0.0, f"Entités requises: {required} - Profil: {analyzed.size_category}"

    if size in requirements:
        return True, float(LEGAL_ENTITY_SIZE_BONUS), f"Taille {analyzed.size_category} éligible"
    return True, 0.0, None
