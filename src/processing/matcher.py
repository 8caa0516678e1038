"""
Ranks taxonomy categories against a piece of content
"""
import logging
import re
from datetime import datetime
from typing import Any, List, Optional, Sequence

from core.entities import CategoryDefinition, CategoryMatch, WILDCARD, clamp_score
from core.scoring import (
    DEFAULT_THRESHOLD,
    DateLike,
    Scorer,
    calculate_accuracy_score,
    calculate_combined_score,
    calculate_credibility_score,
    calculate_relevance_score,
    meets_threshold,
)
from processing.keywords import match_keywords

logger = logging.getLogger(__name__)


KEYWORD_SCORE_SCALE = 20
COMBINED_WEIGHT = 0.7
CATEGORY_WEIGHT = 0.3


def match_categories(
    content: Any,
    categories: Sequence[CategoryDefinition],
    query: Optional[str] = "",
    sources: Optional[Sequence[Any]] = None,
    content_date: DateLike = None,
    scorer: Optional[Scorer] = None,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    now: Optional[datetime] = None,
) -> List[CategoryMatch]:
    """
    Score every category for one piece of content.

    Relevance, credibility and accuracy describe the content itself and are
    shared by all rows; the category-specific part comes from the category's
    own scorer or from its keyword hit ratio.

    Returns:
        Matches sorted by descending final score; ties keep taxonomy order.
    """
    if not isinstance(content, str) or not content or not categories:
        return []

    sources = list(sources or [])
    if scorer is not None:
        metrics = scorer.score(content, query or "", sources)
        relevance, credibility, accuracy = metrics.relevance, metrics.credibility, metrics.accuracy
    else:
        relevance = calculate_relevance_score(content, query, content_date, now)
        credibility = calculate_credibility_score(sources)
        accuracy = calculate_accuracy_score(content, sources)

    combined = calculate_combined_score(relevance, credibility, accuracy)
    passes = meets_threshold(relevance, credibility, accuracy, threshold)

    matches = []
    for category in categories:
        try:
            keyword_match = match_keywords(content, list(category.match_keywords))
            if category.get_score is not None:
                category_score = category.get_score(content, query or "")
            else:
                category_score = keyword_match.score * KEYWORD_SCORE_SCALE
        except Exception as e:
            logger.warning(f"Skipping category {category.id} while matching: {e}")
            continue

        matches.append(CategoryMatch(
            category=category,
            keyword_matches=keyword_match,
            relevance_score=relevance,
            credibility_score=credibility,
            accuracy_score=accuracy,
            combined_score=combined,
            category_score=category_score,
            final_score=clamp_score(COMBINED_WEIGHT * combined + CATEGORY_WEIGHT * category_score),
            meets_threshold=passes,
        ))

    matches.sort(key=lambda m: m.final_score, reverse=True)
    return matches


def get_primary_category(
    content: Any,
    categories: Sequence[CategoryDefinition],
    query: Optional[str] = "",
    sources: Optional[Sequence[Any]] = None,
    **kwargs,
) -> Optional[CategoryMatch]:
    matches = match_categories(content, categories, query, sources, **kwargs)
    return matches[0] if matches else None


def select_categories(
    matches: Sequence[CategoryMatch],
    *,
    primary_threshold: float = 70,
    fallback_threshold: float = 65,
    min_categories: int = 3,
    max_categories: int = 6,
) -> List[CategoryMatch]:
    """
    Pick the categories worth showing for a piece of content.

    Matches at or above ``primary_threshold`` are kept; when that leaves
    fewer than ``min_categories`` the lower ``fallback_threshold`` is used.
    Always-evaluated categories join whenever their relevance clears the
    fallback threshold and are listed first.
    """
    selected = [m for m in matches if m.final_score >= primary_threshold]
    if len(selected) < min_categories:
        logger.debug(
            f"Only {len(selected)} categories above {primary_threshold}, "
            f"falling back to {fallback_threshold}"
        )
        selected = [m for m in matches if m.final_score >= fallback_threshold]

    selected_ids = {m.id for m in selected}
    for match in matches:
        if (
            match.category.always_evaluate
            and match.id not in selected_ids
            and match.relevance_score >= fallback_threshold
        ):
            selected.append(match)
            selected_ids.add(match.id)

    selected.sort(key=lambda m: (not m.category.always_evaluate, -m.final_score))
    return selected[:max_categories]


# Item-level relevance, used when bucketing many items at once

STEM_MIN_LENGTH = 6


def item_relevance(text: Any, keywords: Sequence[str], query: Optional[str] = "") -> float:
    """
    Positional/frequency weighted keyword score for a single item.

    Per keyword:
        exact containment             +30
          ...equal to the whole query +20
          ...at the start of the text +10
          ...each extra occurrence    +5 (at most +20)
        all of its words on word boundaries   +15
        shortened stem (6+ char keywords)     +5

    Returns:
        Score in [0, 100]; the item qualifies for the category when > 0.
    """
    if not isinstance(text, str) or not text or not keywords:
        return 0.0

    text_lower = text.lower()
    query_lower = query.lower().strip() if isinstance(query, str) else ""
    score = 0.0

    for keyword in keywords:
        if not isinstance(keyword, str) or not keyword or keyword == WILDCARD:
            continue
        k = keyword.lower()

        if k in text_lower:
            score += 30
            if query_lower and k == query_lower:
                score += 20
            if text_lower.startswith(k):
                score += 10
            extra = text_lower.count(k) - 1
            score += min(5 * extra, 20)
            continue

        words = k.split()
        if words and all(re.search(rf"\b{re.escape(w)}\b", text_lower) for w in words):
            score += 15
            continue

        if len(k) >= STEM_MIN_LENGTH and k[:-2] in text_lower:
            score += 5

    return clamp_score(score)
