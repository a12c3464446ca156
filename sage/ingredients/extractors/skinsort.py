"""Skinsort: separate Active and Inactive ingredient sections."""

import logging
import re
from typing import List, Optional

from bs4 import Tag

from ..models import CandidateBlock
from ..tokenizer import dedupe_join, filter_token, norm
from ..vocabulary import TOOLTIP_MARKERS, TOOLTIP_NOISE
from .base import Extractor, ParsedDocument, element_text

logger = logging.getLogger(__name__)

ACTIVE_HEADING = re.compile(r"^Active\s+Ingredients?\s*:?\s*$", re.I)
INACTIVE_HEADING = re.compile(r"^Inactive\s+Ingredients?\s*:?\s*$", re.I)
NEXT_SECTION = re.compile(r"^(reviews?|details?|how to use|description|about|product info)", re.I)
UI_ONLY = re.compile(r"^(show|read|more|click|learn|copy)$", re.I)
ANCHOR = "a[data-ingredient-id]"


def _innermost_heading(doc: ParsedDocument, pattern: re.Pattern) -> Optional[Tag]:
    """Deepest div whose whole text is the heading, so wrappers are skipped."""
    matches = [d for d in doc.text_soup.find_all("div") if pattern.match(element_text(d))]
    for div in matches:
        if not any(pattern.match(element_text(child)) for child in div.find_all("div")):
            return div
    return None


def _anchor_name(anchor: Tag) -> Optional[str]:
    """First line of an ingredient anchor; the second line is its function label."""
    first_line = anchor.get_text("\n", strip=True).split("\n")[0]
    cleaned = re.sub(r"\bCopy\b", "", first_line, flags=re.I)
    for noise in TOOLTIP_NOISE:
        cleaned = noise.sub("", cleaned)
    cleaned = norm(cleaned)
    if UI_ONLY.match(cleaned) or TOOLTIP_MARKERS.search(cleaned):
        return None
    if not re.search(r"[A-Z]", cleaned) or not 2 <= len(cleaned) <= 80:
        return None
    return cleaned


def _collect(elements: List[Tag]) -> List[str]:
    names: List[str] = []
    for el in elements:
        anchors = [el] if el.name == "a" and el.has_attr("data-ingredient-id") else el.select(ANCHOR)
        for anchor in anchors:
            name = _anchor_name(anchor)
            if name and name not in names:
                names.append(name)
    return names


def _siblings_until(start: Tag, stop) -> List[Tag]:
    out = []
    for sibling in start.find_next_siblings():
        if stop(sibling):
            break
        out.append(sibling)
    return out


class SkinsortExtractor(Extractor):
    """
    Active ingredients are read between the two headings, inactive ones after
    the Inactive heading until the next section. Actives always come first.
    """

    name = "skinsort"
    host_patterns = [r"skinsort\.com$"]

    def extract(self, doc: ParsedDocument) -> Optional[List[CandidateBlock]]:
        active_heading = _innermost_heading(doc, ACTIVE_HEADING)
        inactive_heading = _innermost_heading(doc, INACTIVE_HEADING)
        logger.debug(
            f"[Skinsort] headings: active={active_heading is not None} "
            f"inactive={inactive_heading is not None}"
        )

        def is_next_section(el: Tag) -> bool:
            return NEXT_SECTION.match(element_text(el)) is not None

        active: List[str] = []
        inactive: List[str] = []
        if active_heading is not None:
            if inactive_heading is not None:
                active = _collect(_siblings_until(
                    active_heading,
                    lambda el: el is inactive_heading
                    or any(d is inactive_heading for d in el.find_all("div")),
                ))
            else:
                active = _collect(_siblings_until(active_heading, is_next_section))
        if inactive_heading is not None:
            inactive = _collect(_siblings_until(inactive_heading, is_next_section))

        if not active and not inactive:
            active, inactive = self._inline_fallback(doc)

        filtered_active = self._filter(active)
        filtered_inactive = self._filter(inactive)
        combined = filtered_active + filtered_inactive
        if len(combined) < self.min_tokens:
            logger.debug(f"[Skinsort] too few tokens ({len(combined)})")
            return None

        logger.info(
            f"[Skinsort] {len(combined)} ingredients "
            f"({len(filtered_active)} active, {len(filtered_inactive)} inactive)"
        )
        candidate = self.block(dedupe_join(combined), origin="sections", has_heading=True, clean=False)
        return [candidate] if candidate else None

    def _inline_fallback(self, doc: ParsedDocument):
        """<p data-ingredient-list-copy-target="list"> with inline section labels."""
        paragraphs = doc.text_soup.select('p[data-ingredient-list-copy-target="list"]')
        if not paragraphs:
            return [], []
        full_text = norm(" ".join(p.get_text(" ", strip=True) for p in paragraphs))
        active_match = re.search(r"Active\s+Ingredients?:\s*(.*?)(?=Inactive\s+Ingredients?:|$)", full_text, re.I | re.S)
        inactive_match = re.search(r"Inactive\s+Ingredients?:\s*(.*)", full_text, re.I | re.S)

        names = []
        for p in paragraphs:
            for anchor in p.select(ANCHOR):
                first_line = anchor.get_text("\n", strip=True).split("\n")[0]
                name = norm(re.sub(r"\s*Copy\s*$", "", first_line, flags=re.I))
                if len(name) > 1:
                    names.append(name)

        active, inactive = [], []
        if active_match:
            section = active_match.group(1)
            active = [n for n in dict.fromkeys(names) if n in section]
        if inactive_match:
            section = inactive_match.group(1)
            inactive = [n for n in dict.fromkeys(names) if n in section]
        logger.debug(f"[Skinsort] inline fallback: {len(active)} active, {len(inactive)} inactive")
        return active, inactive

    @staticmethod
    def _filter(tokens: List[str]) -> List[str]:
        kept = []
        for token in tokens:
            value, reason = filter_token(token)
            if value:
                kept.append(value)
            else:
                logger.debug(f"[Skinsort] dropped {token!r} ({reason})")
        return kept
