import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.entities import KeywordMatch

logger = logging.getLogger(__name__)


def match_keywords(text: Any, keywords: Any) -> KeywordMatch:
    """
    Case-insensitive containment check.

    Returns:
        KeywordMatch whose score is the fraction of keywords found in the text.
    """
    if not isinstance(text, str) or not text:
        return KeywordMatch(matched=False, score=0.0)
    if not isinstance(keywords, (list, tuple)) or not keywords:
        return KeywordMatch(matched=False, score=0.0)

    text_lower = text.lower()
    matches = tuple(
        k for k in keywords
        if isinstance(k, str) and k and k.lower() in text_lower
    )

    return KeywordMatch(
        matched=bool(matches),
        score=len(matches) / len(keywords),
        matches=matches,
    )


TIER_WEIGHTS = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class WeightedKeywordSet:
    name: str
    high: Tuple[str, ...] = ()
    medium: Tuple[str, ...] = ()
    low: Tuple[str, ...] = ()

    def tiers(self) -> Iterable[Tuple[str, Tuple[str, ...]]]:
        yield "high", self.high
        yield "medium", self.medium
        yield "low", self.low


@dataclass(frozen=True)
class WeightedKeywordHit:
    keyword: str
    tier: str
    weight: int


@dataclass(frozen=True)
class WeightedMatch:
    set_name: str
    matched: bool
    score: int
    hits: Tuple[WeightedKeywordHit, ...] = ()


def _keyword_set(name: str, high: Sequence[str], medium: Sequence[str], low: Sequence[str]) -> WeightedKeywordSet:
    return WeightedKeywordSet(
        name=name,
        high=tuple(dict.fromkeys(high)),
        medium=tuple(dict.fromkeys(medium)),
        low=tuple(dict.fromkeys(low)),
    )


BUSINESS_KEYWORDS = _keyword_set(
    "business",
    high=[
        "company", "business", "enterprise", "corporation", "organization",
        "firm", "startup", "venture", "industry", "corporate",
        "management", "executive", "leadership", "CEO", "chief",
        "strategy", "strategic", "operation", "operational", "business model",
        "competitive", "competitiveness", "advantage", "differentiation",
    ],
    medium=[
        "market", "customer", "client", "consumer", "supplier",
        "vendor", "partner", "stakeholder", "shareholder", "investor",
        "product", "service", "solution", "offering", "value proposition",
        "sales", "revenue", "profit", "growth", "expansion",
        "acquisition", "merger", "partnership", "alliance", "collaboration",
        "industry", "sector", "vertical", "segment", "niche",
    ],
    low=[
        "employee", "workforce", "talent", "team", "staff",
        "department", "division", "unit", "function", "role",
        "process", "procedure", "policy", "standard", "guideline",
        "performance", "efficiency", "effectiveness", "productivity", "output",
        "resource", "asset", "capability", "competency", "skill",
    ],
)

MARKET_KEYWORDS = _keyword_set(
    "market",
    high=[
        "market", "marketplace", "industry", "sector", "vertical",
        "segment", "niche", "competition", "competitor", "competitive landscape",
        "market share", "market size", "market growth", "market trend", "market analysis",
        "market forecast", "market research", "market report", "market study",
        "demand", "supply", "consumer", "customer", "buyer behavior",
    ],
    medium=[
        "target market", "market opportunity", "market entry", "market expansion",
        "market penetration", "market development", "market position", "market dynamics",
        "market segmentation", "market maturity", "market saturation", "market disruption",
        "market leader", "market follower", "market challenger", "market nicher",
        "market consolidation", "market fragmentation", "market concentration",
        "pricing", "price point", "price sensitivity", "price elasticity",
    ],
    low=[
        "market conditions", "market forces", "market factors", "market environment",
        "market cycle", "market stage", "market phase", "market performance",
        "market access", "market barrier", "market entry barrier", "market exit barrier",
        "market intelligence", "market insight", "market data", "market statistics",
        "market survey", "market poll", "market focus group", "market interview",
        "demographic", "psychographic", "geographic", "behavioral",
    ],
)

FINANCIAL_KEYWORDS = _keyword_set(
    "financial",
    high=[
        "financial", "finance", "revenue", "profit", "earnings",
        "income", "loss", "balance sheet", "cash flow", "statement",
        "quarterly", "annual", "fiscal", "report", "EPS",
        "P/E", "ROI", "ROE", "EBITDA", "margin", "profitability",
        "income statement", "cash flow statement",
    ],
    medium=[
        "dividend", "yield", "debt", "asset", "liability",
        "equity", "valuation", "market cap", "stock price", "shareholder",
        "investor", "investment", "return", "capital", "funding",
        "financing", "loan", "credit", "debt-to-equity", "leverage",
        "liquidity", "solvency", "gross margin", "net margin", "operating margin",
    ],
    low=[
        "budget", "forecast", "projection", "estimate", "target",
        "financial performance", "financial health", "financial condition", "financial position",
        "financial stability", "financial strength", "financial weakness", "financial risk",
        "cash", "cash reserves", "cash position", "cash balance", "cash management",
        "cost", "expense", "expenditure", "spending", "cost structure",
    ],
)

DEFAULT_KEYWORD_SETS = (BUSINESS_KEYWORDS, MARKET_KEYWORDS, FINANCIAL_KEYWORDS)


class KeywordMatcher:
    """
    Scores text against named keyword sets whose tiers weigh 3/2/1.
    """

    def __init__(self, additional_sets: Optional[Iterable[WeightedKeywordSet]] = None):
        self._sets: Dict[str, WeightedKeywordSet] = {s.name: s for s in DEFAULT_KEYWORD_SETS}
        for keyword_set in additional_sets or ():
            if keyword_set.name in self._sets:
                logger.info(f"Overriding keyword set '{keyword_set.name}'")
            self._sets[keyword_set.name] = keyword_set

    @property
    def set_names(self) -> List[str]:
        return list(self._sets)

    def match_set(self, text: Any, name: str) -> WeightedMatch:
        keyword_set = self._sets.get(name)
        if keyword_set is None:
            logger.debug(f"Unknown keyword set: {name}")
            return WeightedMatch(set_name=name, matched=False, score=0)
        return self._score(text, keyword_set)

    def match_all(self, text: Any) -> Tuple[List[WeightedMatch], Optional[WeightedMatch]]:
        """
        Returns:
            Tuple of (matching sets by descending score, primary set or None)
        """
        results = [self._score(text, s) for s in self._sets.values()]
        matched = sorted((r for r in results if r.matched), key=lambda r: r.score, reverse=True)
        primary = matched[0] if matched else None
        return matched, primary

    @staticmethod
    def _score(text: Any, keyword_set: WeightedKeywordSet) -> WeightedMatch:
        if not isinstance(text, str) or not text:
            return WeightedMatch(set_name=keyword_set.name, matched=False, score=0)

        text_lower = text.lower()
        hits = []
        for tier, keywords in keyword_set.tiers():
            weight = TIER_WEIGHTS[tier]
            for keyword in keywords:
                if keyword.lower() in text_lower:
                    hits.append(WeightedKeywordHit(keyword=keyword, tier=tier, weight=weight))

        score = sum(h.weight for h in hits)
        return WeightedMatch(
            set_name=keyword_set.name,
            matched=score > 0,
            score=score,
            hits=tuple(hits),
        )
