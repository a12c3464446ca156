"""Confidence scoring and ranking of candidate blocks."""

import re
from dataclasses import replace
from typing import Dict, List, Optional

from .models import CandidateBlock
from .tokenizer import count_ingredient_hints, has_list_delimiters, is_marketing_sentence


def calculate_confidence(block: str, has_heading: bool) -> int:
    """
    Heuristic confidence of a cleaned block.

    +2 preceded by a real ingredients heading
    +1 twelve or more delimiters
    +1 eight or more chemical/botanical hints
    -2 no list delimiters and reads like a marketing sentence
    """
    score = 0
    if has_heading:
        score += 2
    if len(re.findall(r"[,;\n]", block)) >= 12:
        score += 1
    if count_ingredient_hints(block) >= 8:
        score += 1
    if not has_list_delimiters(block) and is_marketing_sentence(block):
        score -= 2
    return score


def score_block(block: CandidateBlock, cleaned_text: str, token_count: int) -> CandidateBlock:
    """New block carrying the confidence of its cleaned text."""
    return replace(
        block,
        derived_confidence=calculate_confidence(cleaned_text, block.has_heading),
        token_count=token_count,
    )


def rank_blocks(
    blocks: List[CandidateBlock],
    origin_priority: Optional[Dict[str, int]] = None,
) -> List[CandidateBlock]:
    """Order by origin tier, then confidence, then token count (all descending)."""
    priority = origin_priority or {}
    return sorted(
        blocks,
        key=lambda b: (priority.get(b.origin, 0), b.derived_confidence, b.token_count),
        reverse=True,
    )
