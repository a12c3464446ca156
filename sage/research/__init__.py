"""Fetch-driven pipelines: single scanned URL and multi-source research."""

from .fetcher import FetchedPage, PageFetcher
from .research import IngredientResearcher, ResearchResult, SourceCandidate, research_ingredients
from .resolver import ResolvedProduct, resolve_product

__all__ = [
    "FetchedPage",
    "IngredientResearcher",
    "PageFetcher",
    "ResearchResult",
    "ResolvedProduct",
    "SourceCandidate",
    "research_ingredients",
    "resolve_product",
]
