"""Retriever Module - candidate retrieval from the subsidy catalog."""
from core.retriever.interfaces import CatalogReader
from core.retriever.service import CandidateRetriever, merge_candidates

__all__ = ['CatalogReader', 'CandidateRetriever', 'merge_candidates']
