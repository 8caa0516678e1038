"""
Insight extraction for categories and LLM answers
"""
import logging
import re
from typing import Dict, Iterable, List, Optional

from core.entities import Category

logger = logging.getLogger(__name__)


MAX_INSIGHTS = 5
MIN_INSIGHT_LENGTH = 10
MIN_STRUCTURED_INSIGHTS = 3
SENTENCE_MIN_LENGTH = 20
SENTENCE_MAX_LENGTH = 150
MIN_DESCRIPTION_LENGTH = 50

DEFAULT_KEY_TERMS = ("important", "significant", "key", "major", "critical", "essential", "primary")

BUSINESS_INSIGHT_BUCKETS = {
    "market": ("market", "industry", "sector", "trend", "growth", "demand", "supply"),
    "financial": ("revenue", "profit", "financial", "earnings", "margin", "cost", "price", "sales"),
    "strategy": ("strategy", "plan", "goal", "objective", "initiative", "mission", "vision"),
    "competitive": ("competitor", "competition", "advantage", "position", "market share", "differentiation"),
    "risk": ("risk", "challenge", "threat", "uncertainty", "issue", "problem", "concern"),
}
UNCATEGORIZED = "uncategorized"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_INSIGHTS_HEADING = re.compile(r"^\s*(?:#{1,6}\s*)?(?:\*\*)?\s*key\s+(?:insights?|takeaways?)\b", re.IGNORECASE)
_HEADING = re.compile(r"^\s*(?:#{1,6}\s+\S|\*\*[^*]+\*\*\s*:?\s*$|[A-Z][A-Z \-]{3,}:?\s*$)")
_BULLET = re.compile(r"^\s*(?:[•*-]|\d+[.)])\s+(.*)$")


def _clean_insights(entries: Iterable[object]) -> List[str]:
    insights: List[str] = []
    for entry in entries:
        if isinstance(entry, str):
            entry = entry.strip()
            if len(entry) > MIN_INSIGHT_LENGTH and entry not in insights:
                insights.append(entry)
    return insights


def _structured_insights(category: Category) -> List[str]:
    return _clean_insights(
        entry for item in category.items for entry in list(item.key_insights) + list(item.key_points)
    )


def _sentence_terms(category: Category, query: str) -> List[str]:
    keywords = [k.lower() for k in category.definition.match_keywords]
    if keywords:
        return keywords
    query_terms = [t for t in query.lower().split() if len(t) > 2]
    return query_terms + list(DEFAULT_KEY_TERMS)


def _description_sentences(category: Category, terms: Iterable[str]) -> List[str]:
    terms = list(terms)
    sentences = []
    for item in category.items:
        if not item.description or len(item.description) <= MIN_DESCRIPTION_LENGTH:
            continue
        for sentence in _SENTENCE_SPLIT.split(item.description):
            sentence = sentence.strip()
            if not SENTENCE_MIN_LENGTH < len(sentence) < SENTENCE_MAX_LENGTH:
                continue
            lowered = sentence.lower()
            if any(term in lowered for term in terms) and sentence not in sentences:
                sentences.append(sentence)
    return sentences


def extract_insights(category: Category, query: Optional[str] = "", limit: int = MAX_INSIGHTS) -> List[str]:
    """
    Short noteworthy statements for a category.

    Insights already attached to the category are reused, filtered and
    capped the same way as extracted ones.
    Otherwise the items' keyInsights/keyPoints come first, topped up from
    description sentences mentioning the category's keywords when there
    are fewer than three.

    Returns:
        At most five de-duplicated strings, each longer than ten characters.
    """
    limit = max(0, min(limit, MAX_INSIGHTS))
    if category.insights:
        return _clean_insights(category.insights)[:limit]

    try:
        insights = _structured_insights(category)
        if len(insights) < MIN_STRUCTURED_INSIGHTS:
            for sentence in _description_sentences(category, _sentence_terms(category, query or "")):
                if sentence not in insights:
                    insights.append(sentence)
    except Exception as e:
        logger.exception(f"Insight extraction failed for {category.id}: {e}")
        return []

    return insights[:limit]


def categorize_business_insights(insights: Optional[Iterable[str]]) -> Dict[str, List[str]]:
    """
    Sort insights into business buckets; the first matching bucket wins.
    """
    buckets: Dict[str, List[str]] = {name: [] for name in BUSINESS_INSIGHT_BUCKETS}
    buckets[UNCATEGORIZED] = []

    for insight in insights or ():
        if not isinstance(insight, str) or not insight.strip():
            continue
        lowered = insight.lower()
        bucket = next(
            (name for name, terms in BUSINESS_INSIGHT_BUCKETS.items() if any(t in lowered for t in terms)),
            UNCATEGORIZED,
        )
        buckets[bucket].append(insight)

    return buckets


def _strip_markup(text: str) -> str:
    return re.sub(r"\*\*|__", "", text).strip()


def extract_llm_insights(text: Optional[str], limit: int = MAX_INSIGHTS) -> List[str]:
    """
    Bullet points listed under a "Key insights" heading in LLM markdown.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    insights: List[str] = []
    in_section = False
    for line in text.splitlines():
        if _INSIGHTS_HEADING.match(line):
            in_section = True
            continue
        if not in_section:
            continue

        bullet = _BULLET.match(line)
        if bullet:
            insight = _strip_markup(bullet.group(1))
            if len(insight) > MIN_INSIGHT_LENGTH and insight not in insights:
                insights.append(insight)
            continue

        if not line.strip():
            if insights:
                break
            continue

        if _HEADING.match(line):
            break

    return insights[:min(limit, MAX_INSIGHTS)]
