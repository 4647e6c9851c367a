#!/usr/bin/env python3
"""
Candidate Retrieval Service - narrow catalog fan-out.

Three independent queries run concurrently:
1. Region-scoped (profile region, nation-wide, or unrestricted)
2. Sector-scoped (skipped when the sector is unknown)
3. High-value nation-wide programs, largest first

A failing query contributes nothing. If every issued query fails, one
unfiltered query with a larger limit is tried before giving up.
"""
import re
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from core.config_loader import RetrievalConfig
from core.exceptions import RetrievalError
from core.models import SubsidyCandidate
from core.normalizer import AnalyzedProfile
from core.retriever.interfaces import CatalogReader
from core.utils import dedupe

logger = logging.getLogger(__name__)

_LABEL_WORD_RE = re.compile(r"^([^\s/(,]+)")


def merge_candidates(result_sets: List[Optional[List[SubsidyCandidate]]]) -> List[SubsidyCandidate]:
    """Union of result sets, deduplicated by id, in first-seen order."""
    seen = set()
    merged: List[SubsidyCandidate] = []
    for results in result_sets:
        for candidate in results or []:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            merged.append(candidate)
    return merged


def sector_query_terms(analyzed: AnalyzedProfile) -> List[str]:
    """Normalized sector key plus the first word of the original label (accents kept)."""
    terms = [analyzed.sector] if analyzed.sector else []
    if analyzed.sector_label:
        match = _LABEL_WORD_RE.match(analyzed.sector_label.strip().lower())
        if match:
            terms.append(match.group(1))
    return dedupe(terms)


class CandidateRetriever:
    """Builds the candidate set for one matching request."""

    def __init__(self, catalog: CatalogReader, config: Optional[RetrievalConfig] = None):
        self.catalog = catalog
        self.config = config or RetrievalConfig()

    def _queries(self, analyzed: AnalyzedProfile) -> Dict[str, Callable[[], List[SubsidyCandidate]]]:
        cfg = self.config
        queries: Dict[str, Callable[[], List[SubsidyCandidate]]] = {
            'region': lambda: self.catalog.by_region(analyzed.region, cfg.region_query_limit),
        }
        terms = sector_query_terms(analyzed)
        if terms:
            queries['sector'] = lambda: self.catalog.by_sector(terms, cfg.sector_query_limit)
        queries['high_value'] = lambda: self.catalog.national_high_value(
            cfg.high_value_min_amount, cfg.high_value_query_limit
        )
        return queries

    def retrieve(self, analyzed: AnalyzedProfile) -> List[SubsidyCandidate]:
        """
        Return the deduplicated candidate set.

        An empty list is a valid outcome. Raises RetrievalError only when
        every query, including the unfiltered fallback, failed.
        """
        queries = self._queries(analyzed)
        results: Dict[str, Optional[List[SubsidyCandidate]]] = {}
        failures = 0

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {name: executor.submit(query) for name, query in queries.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                    logger.debug(f"Query {name} returned {len(results[name])} candidates")
                except Exception as e:
                    failures += 1
                    results[name] = None
                    logger.error(f"Catalog query {name} failed: {e}")

        if failures == len(queries):
            logger.warning("All catalog queries failed, using unfiltered fallback query")
            try:
                candidates = merge_candidates([self.catalog.all_active(self.config.fallback_query_limit)])
            except Exception as e:
                logger.error(f"Fallback catalog query failed: {e}")
                raise RetrievalError(f"Candidate retrieval failed: {e}") from e
        else:
            # Merge in a fixed order so retrieval rank does not depend on completion order
            candidates = merge_candidates([results.get(name) for name in ('region', 'sector', 'high_value')])

        logger.info(f"Fetched {len(candidates)} unique candidates for profile {analyzed.profile_id}")
        return candidates
