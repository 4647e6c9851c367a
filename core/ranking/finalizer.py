#!/usr/bin/env python3
"""
Rank Finalizer - deterministic boosts on top of refined or pre-scored candidates.

Boosts are added to the unclamped score and the sum is clamped once:

    final = clamp(adjusted + amount_boost + agency_boost)

Refined matches are sorted by final score (ties keep retrieval order).
Fallback matches keep the pre-score order they arrived in.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import logging

from core.models import Match, SubsidyCandidate
from core.normalizer import AnalyzedProfile
from core.refinement.parser import RefinedEntry
from core.scorer import PreScoreResult
from core.scorer.rules import has_sector_keywords
from core.utils import clamp_score, fold_text

logger = logging.getLogger(__name__)

FALLBACK_MISSING_CRITERIA = "Évaluation IA non disponible"
STRATEGIC_AGENCY_MIN_BOOST = 4

# (minimum amount_max in EUR, boost), highest first
AMOUNT_TIERS: Sequence[Tuple[float, float]] = (
    (10_000_000, 12),
    (1_000_000, 8),
    (500_000, 5),
    (100_000, 3),
)
LARGE_COMPANY_CATEGORIES = ('ETI', 'GE')
LARGE_COMPANY_HALVED_BELOW = 1_000_000

# Substring patterns, case-sensitive, first hit wins
AGENCY_TIERS: Sequence[Tuple[str, float]] = (
    # National strategic agencies
    ('Bpifrance', 5), ('BPI France', 5), ('BPI', 5), ('ADEME', 5),
    ('France 2030', 5), ('ANR', 5), ('Agence Nationale de la Recherche', 5),
    ('Caisse des Dépôts', 5), ('CDC', 5), ('Banque des Territoires', 5),
    # European Union
    ('Commission européenne', 5), ('Union européenne', 5), ('European Commission', 5),
    ('Horizon Europe', 5), ('Horizon 2020', 5), ('LIFE', 5), ('FEDER', 5), ('FSE', 5),
    ('FEADER', 5), ('FEAMP', 5), ('ERASMUS', 5), ('Digital Europe', 5), ('CEF', 5),
    ('EIC', 5), ('EIT', 5),
    # Sectoral agencies
    ('FranceAgriMer', 4), ('FRANCEAGRIMER', 4), ('ASP', 4), ("Agence de l'eau", 4),
    ('AESN', 4), ('AERMC', 4), ('Agence Bio', 4), ('ANACT', 4), ('ANAH', 4), ('ANIL', 4),
    ('AGEFIPH', 4), ('FIPHFP', 4), ('OSÉO', 4), ('Business France', 4), ('Atout France', 4),
    ('CNC', 4), ('CNM', 4), ('IFCIC', 4), ('INPI', 4),
    # Regional authorities
    ('Région', 3), ('Conseil Régional', 3), ('Île-de-France', 3), ('Nouvelle-Aquitaine', 3),
    ('Auvergne-Rhône-Alpes', 3), ('Occitanie', 3), ('Hauts-de-France', 3), ('Grand Est', 3),
    ('Bretagne', 3), ('Normandie', 3), ('Pays de la Loire', 3), ('Centre-Val de Loire', 3),
    ('Bourgogne-Franche-Comté', 3), ('PACA', 3), ("Provence-Alpes-Côte d'Azur", 3),
    ('Corse', 3), ('Guadeloupe', 3), ('Martinique', 3), ('Guyane', 3), ('Réunion', 3),
    ('Mayotte', 3),
    # Local authorities and business networks
    ('Département', 2), ('Conseil Départemental', 2), ('Métropole', 2),
    ('Communauté urbaine', 2), ("Communauté d'agglomération", 2), ('CCI', 2),
    ('Chambre de Commerce', 2), ('CMA', 2), ('Chambre des Métiers', 2),
    ("Chambre d'Agriculture", 2), ('France Active', 2), ('Initiative France', 2),
    ('Réseau Entreprendre', 2), ('BGE', 2), ('ADIE', 2), ('Pôle emploi', 2),
    ('France Travail', 2), ('OPCO', 2), ('DIRECCTE', 2), ('DREETS', 2), ('DDT', 2),
    ('DREAL', 2),
    # Local level
    ('Communauté de Communes', 1), ('Commune', 1), ('Mairie', 1), ('Ville', 1), ('EPCI', 1),
    ('Syndicat mixte', 1), ('Pays', 1), ('PETR', 1), ('GAL', 1), ('LEADER', 1),
    # Innovation ecosystem
    ('French Tech', 3), ('La French Tech', 3), ('Pôle de compétitivité', 3),
    ('Technopole', 2), ('Incubateur', 2), ('Accélérateur', 2), ('Station F', 2),
)


def has_sector_relevance(candidate: SubsidyCandidate, analyzed: AnalyzedProfile) -> bool:
    """Universal programs, a primary sector naming the profile's sector, or a sector keyword in the text."""
    if candidate.is_universal_sector:
        return True
    if not analyzed.sector:
        return False
    if analyzed.sector in fold_text(candidate.primary_sector):
        return True
    return has_sector_keywords(candidate.folded_text(), analyzed.sector)


def amount_boost(candidate: SubsidyCandidate, analyzed: AnalyzedProfile) -> float:
    if not candidate.amount_max or not has_sector_relevance(candidate, analyzed):
        return 0.0

    for threshold, boost in AMOUNT_TIERS:
        if candidate.amount_max >= threshold:
            if (analyzed.size_category in LARGE_COMPANY_CATEGORIES
                    and candidate.amount_max < LARGE_COMPANY_HALVED_BELOW):
                return boost / 2
            return float(boost)
    return 0.0


def agency_boost(agency: Optional[str], tiers: Sequence[Tuple[str, float]] = AGENCY_TIERS) -> float:
    if not agency:
        return 0.0
    for pattern, boost in tiers:
        if pattern in agency:
            return float(boost)
    return 0.0


def refined_success_probability(score: float) -> float:
    if score >= 90:
        return 70.0
    if score >= 70:
        return 50.0
    if score >= 50:
        return 30.0
    return 15.0


def fallback_success_probability(score: float) -> float:
    """Never above 40: heuristic-only matches must stay distinguishable."""
    if score >= 70:
        return 40.0
    if score >= 50:
        return 25.0
    return 15.0


def with_boost_reasons(reasons: List[str], amount: float, agency: float) -> List[str]:
    combined = list(reasons)
    if amount > 0:
        combined.append(f"Montant élevé (+{amount:g} pts)")
    if agency >= STRATEGIC_AGENCY_MIN_BOOST:
        combined.append(f"Programme stratégique (+{agency:g} pts)")
    return combined


class RankFinalizer:
    def __init__(self, agency_tiers: Optional[Dict[str, float]] = None):
        self.agency_tiers = tuple(agency_tiers.items()) if agency_tiers else AGENCY_TIERS

    def _boosts(self, candidate: SubsidyCandidate, analyzed: AnalyzedProfile) -> Tuple[float, float]:
        return amount_boost(candidate, analyzed), agency_boost(candidate.agency, self.agency_tiers)

    def finalize_refined(
        self,
        analyzed: AnalyzedProfile,
        entries: List[RefinedEntry],
        limit: int,
    ) -> List[Match]:
        scored = []
        for entry in entries:
            candidate = entry.result.candidate
            amount, agency = self._boosts(candidate, analyzed)
            final = clamp_score(entry.adjusted_score + amount + agency)
            match = Match(
                subsidy_id=candidate.id,
                match_score=final,
                success_probability=refined_success_probability(final),
                match_reasons=with_boost_reasons(entry.reasons, amount, agency),
                matching_criteria=list(entry.matching_criteria),
                missing_criteria=list(entry.missing_criteria),
                refined=True,
                title=candidate.title_text,
                agency=candidate.agency,
                amount_max=candidate.amount_max,
                pre_score=entry.result.pre_score,
                amount_boost=amount,
                agency_boost=agency,
            )
            scored.append((match, entry.result.retrieval_rank))

        scored.sort(key=lambda pair: (-pair[0].match_score, pair[1]))
        return [match for match, _ in scored[:limit]]

    def finalize_fallback(
        self,
        analyzed: AnalyzedProfile,
        results: List[PreScoreResult],
        limit: int,
    ) -> List[Match]:
        """Heuristic-only matches, in the order the pre-scored list arrived."""
        matches = []
        for result in results[:limit]:
            candidate = result.candidate
            amount, agency = self._boosts(candidate, analyzed)
            final = clamp_score(result.raw_score + amount + agency)
            matches.append(Match(
                subsidy_id=candidate.id,
                match_score=final,
                success_probability=fallback_success_probability(final),
                match_reasons=with_boost_reasons(result.reasons, amount, agency),
                matching_criteria=dedupe_labels(result.reasons),
                missing_criteria=[FALLBACK_MISSING_CRITERIA],
                refined=False,
                title=candidate.title_text,
                agency=candidate.agency,
                amount_max=candidate.amount_max,
                pre_score=result.pre_score,
                amount_boost=amount,
                agency_boost=agency,
            ))
        return matches


def dedupe_labels(reasons: List[str]) -> List[str]:
    """Reason labels without their detail ("Région: Bretagne" -> "Région")."""
    labels = []
    for reason in reasons:
        label = reason.split(':')[0].strip()
        if label and label not in labels:
            labels.append(label)
    return labels
