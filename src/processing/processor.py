"""
Buckets normalized content into taxonomy categories
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from core.entities import (
    CategorizationReport,
    Category,
    CategoryDefinition,
    Metrics,
    ScoredItem,
    ScoringError,
)
from core.schemas import ContentItem
from core.scoring import DEFAULT_THRESHOLD, Scorer, calculate_category_metrics, calculate_metrics
from core.taxonomy import DEFAULT_TAXONOMY
from ingestion.source_factory import normalize_content
from processing.deduplicator import SeenItems, is_duplicate
from processing.matcher import item_relevance

logger = logging.getLogger(__name__)


WILDCARD_RELEVANCE = 100.0
DEFAULT_MAX_ITEMS = 15

_TEXT_FIELDS = ("text", "content", "title", "description", "snippet", "summary")


def _is_search_result(item: ContentItem) -> bool:
    return item.type == "search_result" or (bool(item.title) and (item.has_url or bool(item.snippet)))


def extract_item_text(item: ContentItem) -> str:
    """
    Text used for keyword matching.

    Search hits contribute "title description"; other items their first
    non-empty text field, falling back to a stable JSON rendering.
    """
    if _is_search_result(item):
        body = item.snippet or item.description
        if not body and isinstance(item.content, str):
            body = item.content
        return f"{item.title or ''} {body or ''}".strip()

    for name in _TEXT_FIELDS:
        value = getattr(item, name)
        if isinstance(value, str) and value.strip():
            return value

    return json.dumps(item.to_payload(), sort_keys=True, default=str)


class _Bucket:
    def __init__(self, definition: CategoryDefinition, max_items: int):
        self.definition = definition
        self.max_items = max_items
        self.content: List[ScoredItem] = []
        self.seen = SeenItems()

    def attach(self, scored: ScoredItem) -> bool:
        if self.definition.is_wildcard:
            self.content.append(scored)
            return True

        if len(self.content) >= self.max_items:
            return False

        duplicate, key = is_duplicate(item=scored.item, seen=self.seen)
        if duplicate:
            logger.debug(f"Skipping duplicate ({key}) in {self.definition.id}: item {scored.index}")
            return False

        self.seen.add(scored.item)
        self.content.append(scored)
        return True


def _item_metrics(
    item: ContentItem,
    text: str,
    query: str,
    scorer: Optional[Scorer],
    now: Optional[datetime],
) -> Metrics:
    if scorer is not None:
        return scorer.score(text, query, [item] if item.has_url else [])
    return calculate_metrics(item, query, text=text, now=now)


def categorize(
    content: Any,
    query: Optional[str] = "",
    *,
    categories: Sequence[CategoryDefinition] = DEFAULT_TAXONOMY,
    sources: Optional[Sequence[Any]] = None,
    max_items_per_category: int = DEFAULT_MAX_ITEMS,
    structural_relevance: Optional[float] = None,
    threshold: float = DEFAULT_THRESHOLD,
    scorer: Optional[Scorer] = None,
    now: Optional[datetime] = None,
) -> CategorizationReport:
    """
    Normalize content and bucket every item into the categories it qualifies for.

    Args:
        content: Raw content in any supported shape.
        query: Search query driving relevance.
        categories: Taxonomy to bucket into, in display order.
        sources: Sources for category credibility; defaults to the linked items.
        max_items_per_category: Cap for non-wildcard categories.
        structural_relevance: Overrides the per-category relevance of structural matches.
        threshold: Pass mark for category metrics.
        scorer: Optional replacement for the heuristic per-item scorer.
        now: Reference time for recency bonuses.

    Returns:
        CategorizationReport with non-empty categories in taxonomy order and
        every recovered scoring error.
    """
    try:
        return _categorize(
            content,
            query or "",
            categories=categories,
            sources=sources,
            max_items=max_items_per_category,
            structural_relevance=structural_relevance,
            threshold=threshold,
            scorer=scorer,
            now=now,
        )
    except Exception as e:
        logger.exception(f"Categorization failed: {e}")
        return CategorizationReport(errors=[ScoringError(stage="categorize", message=str(e))])


def _categorize(
    content: Any,
    query: str,
    *,
    categories: Sequence[CategoryDefinition],
    sources: Optional[Sequence[Any]],
    max_items: int,
    structural_relevance: Optional[float],
    threshold: float,
    scorer: Optional[Scorer],
    now: Optional[datetime],
) -> CategorizationReport:
    items = normalize_content(content)
    report = CategorizationReport(item_count=len(items))
    if not items or not categories:
        return report

    texts: Dict[int, str] = {}
    metrics: Dict[int, Optional[Metrics]] = {}
    for index, item in enumerate(items):
        try:
            texts[index] = extract_item_text(item)
        except Exception as e:
            logger.warning(f"Could not extract text from item {index}: {e}")
            report.errors.append(ScoringError(stage="extract", message=str(e), item_index=index))
            continue

        try:
            metrics[index] = _item_metrics(item, texts[index], query, scorer, now)
        except Exception as e:
            logger.warning(f"Could not score item {index}: {e}")
            report.errors.append(ScoringError(stage="item_metrics", message=str(e), item_index=index))
            metrics[index] = None

    buckets = {c.id: _Bucket(c, max_items) for c in categories}
    claimed = set()

    def relevance_for(category: CategoryDefinition, index: int) -> float:
        item = items[index]
        if category.is_wildcard:
            return WILDCARD_RELEVANCE
        if category.is_structural:
            if not category.predicate(item):
                return 0.0
            return structural_relevance if structural_relevance is not None else category.structural_relevance
        return item_relevance(texts[index], category.match_keywords, query)

    def bucket_items(category: CategoryDefinition, indexes: List[int]) -> None:
        for index in indexes:
            try:
                relevance = relevance_for(category, index)
            except Exception as e:
                logger.warning(f"Failed to match item {index} against {category.id}: {e}")
                report.errors.append(ScoringError(
                    stage="match",
                    message=str(e),
                    item_index=index,
                    category_id=category.id,
                ))
                continue

            if relevance <= 0:
                continue

            if not (category.is_wildcard or category.is_structural):
                claimed.add(index)
            scored = ScoredItem(item=items[index], relevance=relevance, index=index, metrics=metrics[index])
            buckets[category.id].attach(scored)

    indexes = sorted(texts)
    for category in categories:
        if not category.fallback_only:
            bucket_items(category, indexes)

    unclaimed = [i for i in indexes if i not in claimed]
    for category in categories:
        if category.fallback_only and unclaimed:
            bucket_items(category, unclaimed)

    for category in categories:
        bucket = buckets[category.id]
        if not bucket.content:
            continue

        ordered = sorted(bucket.content, key=lambda s: s.relevance, reverse=True)
        try:
            category_sources = sources if sources is not None else [s.item for s in ordered if s.item.has_url]
            category_metrics = calculate_category_metrics(
                (texts[s.index] for s in ordered),
                query,
                category_sources,
                threshold=threshold,
            )
        except Exception as e:
            logger.warning(f"Could not compute metrics for {category.id}: {e}")
            report.errors.append(ScoringError(stage="category_metrics", message=str(e), category_id=category.id))
            continue

        report.categories.append(Category(
            definition=category,
            content=tuple(ordered),
            metrics=category_metrics,
        ))

    logger.info(
        f"Categorized {len(items)} items into {len(report.categories)} categories "
        f"({len(report.errors)} errors)"
    )
    return report


def process_categories(content: Any, query: Optional[str] = "", **kwargs) -> List[Category]:
    """Categories only; see categorize() for the error report."""
    return categorize(content, query, **kwargs).categories


def sort_categories(categories: Sequence[Category], by: str = "priority") -> List[Category]:
    """
    Order by ascending priority (ties by final score) or by final score alone.

    Raises:
        ValueError: If ``by`` is not a known ordering
    """
    if by == "priority":
        return sorted(categories, key=lambda c: (c.priority, -c.metrics.final_score))
    if by == "final_score":
        return sorted(categories, key=lambda c: c.metrics.final_score, reverse=True)
    raise ValueError(f"Unknown category ordering: {by}")


def select_for_display(categories: Sequence[Category], max_categories: int = 6) -> List[Category]:
    """
    Always-evaluated categories (Key Insights) first, then the best scoring ones.
    """
    ordered = sorted(
        categories,
        key=lambda c: (not c.definition.always_evaluate, -c.metrics.final_score),
    )
    return ordered[:max_categories]
