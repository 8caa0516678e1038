from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Optional, Tuple

from core.schemas import ContentItem, SyntheticResponse


WILDCARD = "*"


@dataclass(frozen=True)
class CategoryDefinition:
    """
    Static taxonomy entry. Lower priority means more important.
    """
    id: str
    name: str
    keywords: Tuple[str, ...]
    color: str = "#6c757d"
    icon: str = "folder"
    priority: int = 5
    description: str = ""
    tier: str = "specific"
    always_evaluate: bool = False
    get_score: Optional[Callable[[str, str], float]] = None
    format_content: Optional[Callable[[str], str]] = None
    predicate: Optional[Callable[[ContentItem], bool]] = None
    structural_relevance: float = 90.0
    fallback_only: bool = False

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.keywords

    @property
    def is_structural(self) -> bool:
        return self.predicate is not None

    @property
    def match_keywords(self) -> Tuple[str, ...]:
        """Keywords without the wildcard marker."""
        return tuple(k for k in self.keywords if k != WILDCARD)

    def format(self, text: str) -> str:
        if not isinstance(text, str) or not text:
            return ""
        if self.format_content is None:
            return text
        return self.format_content(text)


@dataclass(frozen=True)
class KeywordMatch:
    matched: bool
    score: float
    matches: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Metrics:
    """
    Three quality axes plus their blend, integers in [0, 100].
    """
    relevance: int
    accuracy: int
    credibility: int
    overall: int

    @classmethod
    def from_scores(
        cls,
        relevance: float,
        accuracy: float,
        credibility: float,
        *,
        weighted: bool = False,
    ) -> "Metrics":
        r, a, c = (int(round(clamp_score(v))) for v in (relevance, accuracy, credibility))
        if weighted:
            overall = (2 * r + a + c) / 4
        else:
            overall = (r + a + c) / 3
        return cls(relevance=r, accuracy=a, credibility=c, overall=int(round(overall)))


@dataclass(frozen=True)
class CategoryMetrics:
    relevance_score: float
    credibility_score: float
    accuracy_score: float
    final_score: float
    passes_threshold: bool


@dataclass(frozen=True)
class ScoredItem:
    """
    A content item attached to a category. The wrapped item is left untouched.
    """
    item: ContentItem
    relevance: float
    index: int
    metrics: Optional[Metrics] = None


@dataclass(frozen=True)
class CategoryMatch:
    """
    One row of the category ranking for a piece of content.
    """
    category: CategoryDefinition
    keyword_matches: KeywordMatch
    relevance_score: float
    credibility_score: float
    accuracy_score: float
    combined_score: float
    category_score: float
    final_score: float
    meets_threshold: bool

    @property
    def id(self) -> str:
        return self.category.id


@dataclass(frozen=True)
class Category:
    """
    A category definition bound to the items that qualified for it in one query.
    """
    definition: CategoryDefinition
    content: Tuple[ScoredItem, ...]
    metrics: CategoryMetrics
    insights: Tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def priority(self) -> int:
        return self.definition.priority

    @property
    def keywords(self) -> Tuple[str, ...]:
        return self.definition.keywords

    @property
    def items(self) -> List[ContentItem]:
        return [scored.item for scored in self.content]

    def with_insights(self, insights: List[str]) -> "Category":
        return replace(self, insights=tuple(insights))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.definition.id,
            "name": self.definition.name,
            "description": self.definition.description,
            "color": self.definition.color,
            "icon": self.definition.icon,
            "priority": self.definition.priority,
            "content": [
                {
                    **scored.item.to_payload(),
                    "relevance": scored.relevance,
                    "index": scored.index,
                    "computed_metrics": scored.metrics.__dict__ if scored.metrics else None,
                }
                for scored in self.content
            ],
            "metrics": self.metrics.__dict__,
            "insights": list(self.insights),
            "formatted_insights": self.definition.format("\n".join(self.insights)),
        }


@dataclass(frozen=True)
class ScoringError:
    """
    A recovered failure inside one scoring step.
    """
    stage: str
    message: str
    item_index: Optional[int] = None
    category_id: Optional[str] = None


@dataclass
class CategorizationReport:
    categories: List[Category] = field(default_factory=list)
    errors: List[ScoringError] = field(default_factory=list)
    item_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


@dataclass
class PresentationResult:
    """
    Everything a front end needs to render one search.
    """
    query: str
    categories: List[Category] = field(default_factory=list)
    answer: str = ""
    synthetic_response: Optional[SyntheticResponse] = None
    ranking: List[CategoryMatch] = field(default_factory=list)
    context: str = "GENERAL"
    keyword_profile: Optional[str] = None
    item_count: int = 0
    errors: List[ScoringError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "context": self.context,
            "keyword_profile": self.keyword_profile,
            "item_count": self.item_count,
            "answer": self.answer,
            "categories": [c.to_dict() for c in self.categories],
            "ranking": [
                {
                    "id": m.id,
                    "final_score": m.final_score,
                    "meets_threshold": m.meets_threshold,
                }
                for m in self.ranking
            ],
            "synthetic_response": (
                self.synthetic_response.model_dump() if self.synthetic_response else None
            ),
            "errors": [e.__dict__ for e in self.errors],
        }
