"""
Priority-ordered extractor registry.

Each entry pairs an extractor with a host predicate. The router walks the
entries in order and stops at the first accepted result, so adding a source
means registering one entry rather than growing a conditional.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional

from .amazon import AmazonExtractor
from .base import Extractor
from .dailymed import DailyMedExtractor
from .generic import GenericExtractor
from .incidecoder import IncidecoderExtractor
from .openfoodfacts import OpenFoodFactsExtractor
from .plaintext import PlainTextExtractor
from .retail import SephoraExtractor, UltaExtractor
from .skinsort import SkinsortExtractor
from .walmart import WalmartExtractor

HostPredicate = Callable[[str], bool]


def specialized_extractors() -> List[Extractor]:
    """Host-bound extractors in priority order."""
    return [
        DailyMedExtractor(),
        IncidecoderExtractor(),
        SkinsortExtractor(),
        OpenFoodFactsExtractor(),
        WalmartExtractor(),
        SephoraExtractor(),
        UltaExtractor(),
        AmazonExtractor(),
    ]


@dataclass(frozen=True)
class RegistryEntry:
    extractor: Extractor
    applies: HostPredicate
    host_bound: bool = False

    @property
    def name(self) -> str:
        return self.extractor.name


class ExtractorRegistry:
    """Ordered (extractor, host predicate) entries."""

    def __init__(self, entries: Optional[List[RegistryEntry]] = None):
        self._entries: List[RegistryEntry] = list(entries or [])

    def register(self, extractor: Extractor, applies: Optional[HostPredicate] = None,
                 position: Optional[int] = None) -> None:
        """Add an extractor; without a predicate it uses its own host patterns."""
        entry = RegistryEntry(extractor, applies or extractor.matches_host, host_bound=applies is None)
        if position is None:
            self._entries.append(entry)
        else:
            self._entries.insert(position, entry)

    def for_host(self, host: str) -> List[Extractor]:
        return [e.extractor for e in self._entries if e.applies(host)]

    def is_specialized(self, host: str) -> bool:
        """True if a host-bound extractor claims this host."""
        return any(e.host_bound and e.applies(host) for e in self._entries)

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


def build_default_registry() -> ExtractorRegistry:
    """
    Order:
    1. plain-text scan, generic hosts only (specialized sources have better extractors)
    2. government drug labels
    3. ingredient databases and food database
    4. retailers
    5. generic heading fallback
    6. plain-text scan as last resort for every host
    """
    registry = ExtractorRegistry()
    specialized = specialized_extractors()

    def generic_host(host: str) -> bool:
        return not any(e.matches_host(host) for e in specialized)

    registry.register(PlainTextExtractor(), applies=generic_host)
    for extractor in specialized:
        registry.register(extractor)
    registry.register(GenericExtractor(), applies=lambda host: True)
    registry.register(PlainTextExtractor(name="plaintext-fallback"), applies=lambda host: True)
    return registry
