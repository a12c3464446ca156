"""
Source-specific ingredient extractors.

Every extractor exposes `extract(ParsedDocument) -> list[CandidateBlock] | None`
and ranks its own candidates through `best()`. The registry decides which
extractors run for a host and in what order.
"""

from .amazon import AmazonExtractor
from .base import Extractor, ParsedDocument, host_of
from .dailymed import DailyMedExtractor
from .generic import GenericExtractor
from .incidecoder import IncidecoderExtractor
from .openfoodfacts import OpenFoodFactsExtractor
from .plaintext import PlainTextExtractor, extract_until_non_ingredient
from .registry import ExtractorRegistry, RegistryEntry, build_default_registry
from .retail import SephoraExtractor, UltaExtractor
from .skinsort import SkinsortExtractor
from .walmart import WalmartExtractor

__all__ = [
    "Extractor",
    "ParsedDocument",
    "host_of",
    "ExtractorRegistry",
    "RegistryEntry",
    "build_default_registry",
    "AmazonExtractor",
    "DailyMedExtractor",
    "GenericExtractor",
    "IncidecoderExtractor",
    "OpenFoodFactsExtractor",
    "PlainTextExtractor",
    "SephoraExtractor",
    "SkinsortExtractor",
    "UltaExtractor",
    "WalmartExtractor",
    "extract_until_non_ingredient",
]
