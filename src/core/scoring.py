"""
Heuristic relevance / credibility / accuracy scoring
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol, Sequence, Union
from urllib.parse import urlparse

from core.entities import CategoryMetrics, Metrics, clamp_score
from core.schemas import ContentItem

logger = logging.getLogger(__name__)


BASELINE_RELEVANCE = 50.0
BASELINE_CREDIBILITY = 75.0
BASELINE_ACCURACY = 75.0
DEFAULT_THRESHOLD = 70.0

_NUMBER_RE = re.compile(r"\d+(\.\d+)?%?")
_CITATION_RE = re.compile(r"\(\d{4}\)|\[\d+\]|(\s(et al\.|et\. al\.)|(\d{4},\s)|(\d{4}))")

FACTUAL_MARKERS = (
    "according to",
    "study shows",
    "research indicates",
    "data suggests",
    "report finds",
    "analysis shows",
    "statistics show",
    "evidence suggests",
    "survey results",
    "findings indicate",
)

DateLike = Union[datetime, str, None]


class Scorer(Protocol):
    """
    Anything able to rate a piece of text for a query.
    The heuristic below is the default; a model-backed scorer can replace it.
    """

    def score(self, text: str, query: str, sources: Sequence[Any]) -> Metrics:
        ...


def _parse_date(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Ignoring unparseable content date: {value!r}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _recency_bonus(content_date: DateLike, now: Optional[datetime]) -> float:
    published = _parse_date(content_date)
    if published is None:
        return 0.0

    reference = _parse_date(now) if now is not None else datetime.now(timezone.utc)
    age_days = (reference - published).total_seconds() / 86400

    if age_days < 30:
        return 10.0
    if age_days < 90:
        return 5.0
    if age_days < 365:
        return 2.0
    return 0.0


def calculate_relevance_score(
    content: Any,
    query: Optional[str],
    content_date: DateLike = None,
    now: Optional[datetime] = None,
) -> float:
    """
    Rate how well content answers a query.

    Args:
        content: Text to rate. Anything that is not a non-empty string scores 0.
        query: Free-text query. Missing or trivial queries give the baseline.
        content_date: Optional publication date used for a recency bonus.
        now: Reference time for the recency bonus.

    Returns:
        Score in [0, 100].
    """
    if not isinstance(content, str) or not content:
        return 0.0

    if not isinstance(query, str) or not query.strip():
        return BASELINE_RELEVANCE

    content_lower = content.lower()
    query_lower = query.lower().strip()
    terms = [t for t in query_lower.split() if len(t) > 2]
    if not terms:
        return BASELINE_RELEVANCE

    score = BASELINE_RELEVANCE
    first_line = content_lower.split("\n")[0]

    matched = 0
    for term in terms:
        if term in content_lower:
            matched += 1
            if term in first_line:
                score += 5

    score += 0.5 * (matched / len(terms) * 100)
    score += _recency_bonus(content_date, now)

    if query_lower in content_lower:
        score += 15

    return clamp_score(score)


def _source_url(source: Any) -> Optional[str]:
    if isinstance(source, str):
        return source
    if isinstance(source, ContentItem):
        return source.resolved_url or None
    if isinstance(source, dict):
        return source.get("url") or source.get("link")
    return getattr(source, "url", None)


def _hostname(url: Optional[str]) -> Optional[str]:
    if not url or not isinstance(url, str):
        return None
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return parsed.hostname


def calculate_credibility_score(sources: Optional[Sequence[Any]]) -> float:
    """
    More sources and more distinct domains make a result more credible.
    Sources without a parseable URL still count as sources.
    """
    if not sources:
        return BASELINE_CREDIBILITY

    score = BASELINE_CREDIBILITY
    if len(sources) > 1:
        score += min(2 * len(sources), 10)

    domains = {host for host in (_hostname(_source_url(s)) for s in sources) if host}
    if len(domains) > 1:
        score += min(2 * len(domains), 10)

    return clamp_score(score)


def calculate_accuracy_score(content: Any, sources: Optional[Sequence[Any]] = None) -> float:
    """
    Reward numeric facts, citations and factual phrasing.
    """
    if not isinstance(content, str):
        return BASELINE_ACCURACY

    score = BASELINE_ACCURACY
    numbers = sum(1 for _ in _NUMBER_RE.finditer(content))
    score += min(numbers, 10)

    if _CITATION_RE.search(content):
        score += 5

    content_lower = content.lower()
    markers = sum(1 for marker in FACTUAL_MARKERS if marker in content_lower)
    score += min(2 * markers, 10)

    return clamp_score(score)


def calculate_combined_score(relevance: float, credibility: float, accuracy: float) -> float:
    """Relevance counts double."""
    return (2 * relevance + credibility + accuracy) / 4


def meets_threshold(
    relevance: float,
    credibility: float,
    accuracy: float,
    threshold: float = DEFAULT_THRESHOLD,
) -> bool:
    return relevance >= threshold and credibility >= threshold and accuracy >= threshold


def calculate_category_metrics(
    texts: Iterable[str],
    query: Optional[str],
    sources: Optional[Sequence[Any]] = None,
    *,
    threshold: float = DEFAULT_THRESHOLD,
) -> CategoryMetrics:
    """
    Score the joined text of a category's items as one document.
    """
    combined = " ".join(t for t in texts if isinstance(t, str) and t)

    relevance = calculate_relevance_score(combined, query)
    credibility = calculate_credibility_score(sources)
    accuracy = calculate_accuracy_score(combined, sources)

    return CategoryMetrics(
        relevance_score=relevance,
        credibility_score=credibility,
        accuracy_score=accuracy,
        final_score=calculate_combined_score(relevance, credibility, accuracy),
        passes_threshold=meets_threshold(relevance, credibility, accuracy, threshold),
    )


class HeuristicScorer:
    """
    Default Scorer built from the keyword/recency/citation heuristics.
    """

    def __init__(self, *, now: Optional[datetime] = None):
        self._now = now

    def score(
        self,
        text: str,
        query: str,
        sources: Sequence[Any] = (),
        content_date: DateLike = None,
    ) -> Metrics:
        relevance = calculate_relevance_score(text, query, content_date, self._now)
        credibility = calculate_credibility_score(sources)
        accuracy = calculate_accuracy_score(text, sources)
        return Metrics.from_scores(relevance, accuracy, credibility, weighted=True)


def calculate_metrics(
    item: ContentItem,
    query: Optional[str],
    *,
    text: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Metrics:
    """
    Per-item metrics; the item itself is its only source.
    """
    if text is None:
        text = " ".join(
            part for part in (item.title, item.snippet or item.description or item.text) if part
        )
    sources = [item] if item.has_url else []

    relevance = calculate_relevance_score(text, query, item.date, now)
    credibility = calculate_credibility_score(sources)
    accuracy = calculate_accuracy_score(text, sources)
    return Metrics.from_scores(relevance, accuracy, credibility)


def metric_label(score: float) -> str:
    if score >= 85:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 55:
        return "Average"
    if score >= 35:
        return "Fair"
    return "Poor"
