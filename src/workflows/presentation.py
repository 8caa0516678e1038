"""
Presentation pipeline - turns raw search results (and optional LLM text)
into ranked categories with insights and a displayable answer.
"""
import logging
from datetime import datetime
from typing import Any, List, Optional, Sequence

from core.entities import Category, CategoryDefinition, PresentationResult, ScoringError
from core.schemas import ContentItem
from core.scoring import Scorer
from core.taxonomy import DEFAULT_TAXONOMY, detect_query_context
from ingestion.base import text_item
from ingestion.source_factory import normalize_content
from processing.deduplicator import merge_insights
from processing.formatter import generate_inline_links
from processing.insights import extract_insights, extract_llm_insights
from processing.keywords import KeywordMatcher
from processing.matcher import match_categories, select_categories
from processing.processor import categorize, extract_item_text, select_for_display
from processing.synthesizer import synthesize_from_results
from services.config import Settings
from workflows.base import ResultsPipeline

logger = logging.getLogger(__name__)


class PresentationPipeline(ResultsPipeline):
    """
    Settings-driven pipeline; every tunable comes from the Settings passed in.
    """

    name = "presentation"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        taxonomy: Sequence[CategoryDefinition] = DEFAULT_TAXONOMY,
        scorer: Optional[Scorer] = None,
        *,
        keyword_matcher: Optional[KeywordMatcher] = None,
        now: Optional[datetime] = None,
    ):
        self.settings = settings or Settings()
        self.taxonomy = tuple(taxonomy)
        self.scorer = scorer
        self.keyword_matcher = keyword_matcher or KeywordMatcher()
        self.now = now

    def run(self, query: str, results: Any, llm_output: Optional[str] = None) -> PresentationResult:
        query = query if isinstance(query, str) else ""
        try:
            return self._run(query, results, llm_output)
        except Exception as e:
            logger.exception(f"[{self.name}] Pipeline error: {e}")
            return PresentationResult(
                query=query,
                errors=[ScoringError(stage="pipeline", message=str(e))],
            )

    def _run(self, query: str, results: Any, llm_output: Optional[str]) -> PresentationResult:
        settings = self.settings
        items = normalize_content(results)
        llm_text = llm_output.strip() if isinstance(llm_output, str) else ""

        content: List[ContentItem] = list(items)
        if llm_text:
            content.append(text_item(llm_text))

        logger.info(f"[{self.name}] '{query}': {len(items)} results, llm output: {bool(llm_text)}")

        report = categorize(
            content,
            query,
            categories=self.taxonomy,
            max_items_per_category=settings.max_items_per_category,
            structural_relevance=settings.structural_relevance,
            threshold=settings.relevance_threshold,
            scorer=self.scorer,
            now=self.now,
        )

        llm_insights = extract_llm_insights(llm_text, limit=settings.max_insights)
        categories = [self._with_insights(c, query, llm_insights) for c in report.categories]
        displayed = select_for_display(categories, max_categories=settings.max_categories)

        linked_sources = [i for i in items if i.has_url]
        document = llm_text or " ".join(extract_item_text(i) for i in items)
        ranking = select_categories(
            match_categories(
                document,
                [c for c in self.taxonomy if c.tier != "broad"],
                query,
                [{"url": i.resolved_url} for i in linked_sources],
                scorer=self.scorer,
                threshold=settings.relevance_threshold,
                now=self.now,
            ),
            primary_threshold=settings.relevance_threshold,
            fallback_threshold=settings.fallback_threshold,
            min_categories=settings.min_categories,
            max_categories=settings.max_categories,
        )

        _, primary_set = self.keyword_matcher.match_all(document)

        synthetic = None
        if not llm_text and settings.enable_fallback_synthesis:
            synthetic = synthesize_from_results(query, self._search_hits(results, items), now=self.now)

        answer_text = llm_text or (synthetic.content if synthetic else "")
        answer = generate_inline_links(
            answer_text,
            [{"title": i.title, "url": i.resolved_url} for i in linked_sources],
            max_links=settings.max_inline_links,
        )

        logger.info(
            f"[{self.name}] Displaying {len(displayed)} of {len(categories)} categories "
            f"({len(report.errors)} scoring errors)"
        )

        return PresentationResult(
            query=query,
            categories=displayed,
            answer=answer or "",
            synthetic_response=synthetic,
            ranking=ranking,
            context=detect_query_context(query),
            keyword_profile=primary_set.set_name if primary_set else None,
            item_count=report.item_count,
            errors=list(report.errors),
        )

    def _with_insights(self, category: Category, query: str, llm_insights: List[str]) -> Category:
        insights = extract_insights(category, query, limit=self.settings.max_insights)
        if category.definition.always_evaluate and llm_insights:
            insights = merge_insights(llm_insights, insights, limit=self.settings.max_insights)
        return category.with_insights(insights)

    @staticmethod
    def _search_hits(results: Any, items: List[ContentItem]) -> List[Any]:
        # Raw dicts keep their snippet; normalized items are the fallback
        if isinstance(results, list):
            return results
        if isinstance(results, dict):
            for key in ("results", "items", "data"):
                if isinstance(results.get(key), list):
                    return results[key]
        return items
