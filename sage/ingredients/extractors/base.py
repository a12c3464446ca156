"""
Shared extractor plumbing.

ParsedDocument parses the HTML once per request and hands every extractor the
same read-only trees. Extractors that read visible text use `text_soup`
(script/style/noscript removed); extractors that need embedded scripts use
`soup`. Nothing here mutates a tree after construction.
"""

import logging
import re
from functools import cached_property
from typing import List, Optional, Pattern, Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..confidence import rank_blocks, score_block
from ..models import CandidateBlock, RawDocument
from ..tokenizer import norm, split_and_filter_tokens, strip_after_markers

logger = logging.getLogger(__name__)

INVISIBLE_TAGS = ["script", "style", "noscript"]


def host_of(url: Optional[str]) -> str:
    """Lowercased host without a leading www."""
    if not url:
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return re.sub(r"^www\.", "", host.lower())


class ParsedDocument:
    """A page parsed for extraction."""

    def __init__(self, html: str, url: Optional[str] = None):
        self.html = html or ""
        self.url = url
        self.host = host_of(url)

    @classmethod
    def from_raw(cls, raw: RawDocument) -> "ParsedDocument":
        return cls(raw.html, raw.url)

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "html.parser")

    @cached_property
    def text_soup(self) -> BeautifulSoup:
        """Separate tree without script/style/noscript. Hidden accordions stay."""
        soup = BeautifulSoup(self.html, "html.parser")
        for tag in soup(INVISIBLE_TAGS):
            tag.decompose()
        return soup

    @cached_property
    def visible_text(self) -> str:
        body = self.text_soup.body or self.text_soup
        return body.get_text(" ", strip=True)


def element_text(el: Tag) -> str:
    """Normalized visible text of one element."""
    return norm(el.get_text(" ", strip=True))


def own_text(el: Tag) -> str:
    """Text of the element's direct string children only."""
    return norm(" ".join(s for s in el.find_all(string=True, recursive=False)))


def first_matching(elements: Sequence[Tag], pattern: Pattern, max_len: int = 80) -> Optional[Tag]:
    """First element whose short text matches the pattern (skips containers like body)."""
    for el in elements:
        text = element_text(el)
        if text and len(text) <= max_len and pattern.search(text):
            return el
    return None


def has_ancestor(el: Tag, attr_fragments: dict) -> bool:
    """
    True if el or any ancestor carries an attribute containing one of the fragments.

    attr_fragments maps attribute name to substrings, e.g.
    {"id": ["review"], "class": ["review"]}.
    """
    for parent in [el, *el.parents]:
        if not isinstance(parent, Tag):
            continue
        for attr, fragments in attr_fragments.items():
            value = parent.get(attr)
            if not value:
                continue
            if isinstance(value, list):
                value = " ".join(value)
            if any(f in value for f in fragments):
                return True
    return False


class Extractor:
    """
    One source-family strategy.

    Subclasses set `name`, optional `host_patterns` and `origin_priority`,
    and implement `extract(doc)` returning candidate blocks or None.
    """

    name = "base"
    host_patterns: List[str] = []
    # Tier used when ranking this extractor's own candidates
    origin_priority: dict = {}
    min_tokens = 3

    def __init__(self, name: Optional[str] = None):
        if name:
            self.name = name
        self._host_res = [re.compile(p, re.I) for p in self.host_patterns]

    def matches_host(self, host: str) -> bool:
        return any(p.search(host) for p in self._host_res)

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        raise NotImplementedError

    def block(self, text: str, origin: str = "", has_heading: bool = False,
              clean: bool = True) -> Optional[CandidateBlock]:
        """Clean one raw span into a scored CandidateBlock, or None if nothing survives."""
        cleaned = strip_after_markers(text) if clean else norm(text)
        if not cleaned:
            return None
        split = split_and_filter_tokens(cleaned)
        if not split.ingredients:
            return None
        candidate = CandidateBlock(
            source_extractor=self.name,
            raw_text=cleaned,
            has_heading=has_heading,
            origin=origin,
        )
        return score_block(candidate, cleaned, len(split.ingredients))

    def best(self, blocks: List[CandidateBlock]) -> Optional[CandidateBlock]:
        """Highest ranked block with enough tokens."""
        for candidate in rank_blocks(blocks, self.origin_priority):
            if candidate.token_count >= self.min_tokens:
                return candidate
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
