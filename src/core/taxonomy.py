"""
Category taxonomy: special, specific (business/finance) and broad categories
"""
import re
from typing import Dict, Iterable, Optional, Tuple

from core.entities import WILDCARD, CategoryDefinition
from core.schemas import ContentItem
from processing.formatter import emphasize_financial_figures, format_key_insights


_HAS_NUMBER = re.compile(r"\d+(\.\d+)?%?")
_HAS_BULLETS = re.compile(r"•|-|\*|\d+\.")

KEY_INSIGHTS_KEYWORDS = (
    "key insight", "important finding", "critical information", "takeaway",
    "highlight", "crucial", "significant", "essential", "primary", "main point",
    "notable", "insight", "key finding", "core concept", "fundamental",
)


def _key_insights_score(content: str, query: str = "") -> float:
    if not content or not isinstance(content, str):
        return 0.0

    content_lower = content.lower()
    score = 70
    if _HAS_NUMBER.search(content):
        score += 10
    if _HAS_BULLETS.search(content):
        score += 10
    if any(k in content_lower for k in KEY_INSIGHTS_KEYWORDS):
        score += 10
    return float(min(score, 100))


KEY_INSIGHTS = CategoryDefinition(
    id="key-insights",
    name="Key Insights",
    description="Most important insights related to your search",
    keywords=KEY_INSIGHTS_KEYWORDS,
    color="#673AB7",
    icon="lightbulb",
    priority=0,
    tier="special",
    always_evaluate=True,
    get_score=_key_insights_score,
    format_content=format_key_insights,
)

SPECIAL_CATEGORIES: Tuple[CategoryDefinition, ...] = (KEY_INSIGHTS,)


def _specific(id, name, description, keywords, *, color, icon, priority, **extra):
    return CategoryDefinition(
        id=id,
        name=name,
        description=description,
        keywords=tuple(keywords),
        color=color,
        icon=icon,
        priority=priority,
        tier="specific",
        **extra,
    )


SPECIFIC_CATEGORIES: Tuple[CategoryDefinition, ...] = (
    _specific(
        "market-intelligence",
        "Market Intelligence",
        "Insights on industry trends, competitive dynamics, and market positioning",
        [
            "industry trends", "market trends", "disruption", "competitive dynamics",
            "market positioning", "competitive landscape", "market intelligence",
            "strategic positioning", "market opportunity", "market threat",
            "competitive analysis", "competitor analysis", "market maturity",
            "emerging trends", "market shift", "industry evolution",
        ],
        color="#4285F4", icon="binoculars", priority=3,
    ),
    _specific(
        "growth-strategy",
        "Growth Strategy",
        "Approaches to customer acquisition, market expansion, and business growth",
        [
            "TAM", "total addressable market", "market segmentation", "customer acquisition",
            "retention", "growth levers", "growth strategy", "expansion strategy",
            "market penetration", "market development", "product development",
            "diversification", "user acquisition", "customer retention",
            "churn reduction", "expansion", "scaling", "growth tactics",
        ],
        color="#0F9D58", icon="chart-line", priority=3,
    ),
    _specific(
        "investment-strategy",
        "Investment Strategy",
        "Approaches to capital allocation, value creation, and portfolio management",
        [
            "value creation", "strategic investment", "portfolio construction",
            "risk-adjusted return", "investment strategy", "capital allocation",
            "investment thesis", "investment approach", "portfolio management",
            "diversification strategy", "asset allocation", "investment focus",
            "investment criteria", "investment philosophy", "alpha generation",
        ],
        color="#F4B400", icon="money-bill-trend-up", priority=3,
    ),
    _specific(
        "financial-performance",
        "Financial Performance",
        "Revenue, unit economics, cost structure, and profitability metrics",
        [
            "revenue", "unit economics", "cost structure", "cash flow", "profitability",
            "gross margin", "operating margin", "net margin", "earnings", "EBITDA",
            "financial results", "financial metrics", "financial performance",
            "profit and loss", "income statement", "balance sheet", "cash flow statement",
        ],
        color="#DB4437", icon="chart-simple", priority=3,
        format_content=emphasize_financial_figures,
    ),
    _specific(
        "valuation-benchmarking",
        "Valuation & Benchmarking",
        "Valuation methodologies, comparable analysis, and performance benchmarks",
        [
            "DCF", "comparables", "multiples", "benchmarks", "Rule of 40", "CAC/LTV",
            "valuation", "enterprise value", "market cap", "EV/EBITDA", "P/E",
            "discounted cash flow", "terminal value", "growth rate", "discount rate",
            "comparable companies", "trading multiples", "valuation metrics",
        ],
        color="#4285F4", icon="scale-balanced", priority=4,
    ),
    _specific(
        "exit-liquidity",
        "Exit & Liquidity",
        "Exit pathways, M&A opportunities, and liquidity options",
        [
            "M&A", "exit pathways", "strategic buyer", "IPO readiness",
            "secondary transactions", "liquidity event", "exit strategy",
            "acquisition target", "merger", "public offering", "exit valuation",
            "exit multiples", "exit timing", "buyer landscape", "exit options",
        ],
        color="#F4B400", icon="door-open", priority=4,
    ),
    _specific(
        "ma-consolidation",
        "M&A & Consolidation",
        "Market consolidation, roll-up strategies, and deal structures",
        [
            "fragmentation", "roll-up", "consolidation", "deal structures", "synergy",
            "acquisition", "merger", "integration", "transaction", "deal value",
            "deal multiples", "acquisition strategy", "buy-and-build", "add-on acquisition",
            "platform acquisition", "acquisition target", "buyer", "seller",
        ],
        color="#DB4437", icon="handshake", priority=4,
    ),
    _specific(
        "technology-digital",
        "Technology & Digital",
        "Digital transformation, technology adoption, and innovation",
        [
            "AI", "automation", "digitization", "data-driven", "analytics", "infrastructure",
            "digital transformation", "technology adoption", "technology stack",
            "innovation", "machine learning", "cloud computing", "SaaS",
            "digital strategy", "tech enablement", "emerging technology",
        ],
        color="#0F9D58", icon="microchip", priority=4,
    ),
    _specific(
        "operational-efficiency",
        "Operational Efficiency",
        "Cost optimization, margin expansion, and operational improvement",
        [
            "cost optimization", "margin expansion", "scalability", "execution", "supply chain",
            "operational excellence", "process improvement", "efficiency gains",
            "productivity improvement", "cost reduction", "economies of scale",
            "lean operations", "operating model", "resource allocation",
        ],
        color="#F4B400", icon="gears", priority=5,
    ),
    _specific(
        "data-strategy",
        "Data Strategy",
        "Data governance, infrastructure, and monetization approaches",
        [
            "data governance", "interoperability", "infrastructure", "monetization", "AI",
            "data management", "data architecture", "data security", "data privacy",
            "data analytics", "big data", "data platform", "data lake", "data warehouse",
            "data visualization", "business intelligence", "data-driven decision making",
        ],
        color="#4285F4", icon="database", priority=5,
    ),
    _specific(
        "platform-economics",
        "Platform Economics",
        "Network effects, platform strategies, and value chain positioning",
        [
            "network effects", "virality", "defensibility", "partnerships", "value chain",
            "platform strategy", "platform business model", "ecosystem", "marketplace",
            "multi-sided platform", "supply-side", "demand-side", "platform governance",
            "platform regulation", "platform monetization", "platform adoption",
        ],
        color="#0F9D58", icon="network-wired", priority=5,
    ),
    _specific(
        "customer-market",
        "Customer & Market",
        "Brand strategy, customer engagement, and market differentiation",
        [
            "brand strategy", "customer engagement", "differentiation", "pricing", "market share",
            "customer experience", "customer journey", "customer loyalty", "customer satisfaction",
            "brand positioning", "brand equity", "market positioning", "value proposition",
            "competitive advantage", "price positioning", "target market", "customer segment",
        ],
        color="#DB4437", icon="users", priority=5,
    ),
    _specific(
        "risk-compliance",
        "Risk & Compliance",
        "Regulatory considerations, compliance requirements, and risk management",
        [
            "regulatory", "compliance", "downside protection", "risk hedging", "governance",
            "risk management", "regulatory compliance", "legal requirements",
            "enterprise risk", "operational risk", "financial risk", "reputational risk",
            "risk assessment", "risk mitigation", "internal controls",
        ],
        color="#F4B400", icon="shield-halved", priority=6,
    ),
    _specific(
        "sustainability-esg",
        "Sustainability & ESG",
        "Environmental, social, and governance considerations and reporting",
        [
            "ESG compliance", "reporting", "stakeholder", "sustainability", "impact investing",
            "environmental impact", "social responsibility", "corporate governance",
            "carbon footprint", "carbon neutral", "green initiatives", "social impact",
            "board diversity", "executive compensation", "shareholder rights",
        ],
        color="#0F9D58", icon="leaf", priority=6,
    ),
    _specific(
        "capital-markets",
        "Capital Markets",
        "Fundraising, investor targeting, and financing strategies",
        [
            "fundraising", "investor targeting", "financing", "debt", "equity", "leverage",
            "capital raising", "investor relations", "private placement", "public offering",
            "venture capital", "private equity", "growth equity", "debt financing",
            "equity financing", "capital structure", "cost of capital",
        ],
        color="#4285F4", icon="landmark", priority=6,
    ),
    _specific(
        "economic-trends",
        "Economic Trends",
        "Macroeconomic factors, business cycles, and economic environment",
        [
            "macroeconomic", "business cycle", "interest rate", "inflation", "economic environment",
            "GDP growth", "recession", "economic expansion", "monetary policy", "fiscal policy",
            "economic outlook", "economic forecast", "economic indicators", "leading indicators",
            "consumer confidence", "business sentiment", "unemployment",
        ],
        color="#DB4437", icon="chart-line", priority=6,
    ),
    _specific(
        "performance-metrics",
        "Performance Metrics",
        "KPIs, return metrics, and performance measurement",
        [
            "KPIs", "IRR", "MOIC", "J-curve", "capital deployment", "attribution analysis",
            "key performance indicators", "internal rate of return", "multiple on invested capital",
            "performance measurement", "performance attribution", "fund performance",
            "investment performance", "benchmarking", "performance evaluation",
        ],
        color="#F4B400", icon="gauge-high", priority=6,
    ),
    _specific(
        "competitive-advantage",
        "Competitive Advantage",
        "Strategic moats, barriers to entry, and differentiation factors",
        [
            "moats", "barriers to entry", "first-mover", "unique selling proposition",
            "category leadership", "competitive advantage", "competitive differentiation",
            "sustainable advantage", "market leadership", "innovation advantage",
            "cost advantage", "scale advantage", "network effects", "switching costs",
            "intellectual property", "brand equity",
        ],
        color="#0F9D58", icon="trophy", priority=6,
    ),
)


# Broad categories: structural buckets used when nothing more specific applies

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")
_CODE_PATTERN = re.compile(
    r"```|^\s*(def|class|function|import|const|let|var|public|private)\s",
    re.MULTILINE,
)


def _body(item: ContentItem) -> str:
    parts = [item.text, item.snippet, item.description]
    if isinstance(item.content, str):
        parts.append(item.content)
    return "\n".join(p for p in parts if p)


def is_web_item(item: ContentItem) -> bool:
    return item.has_url


def is_text_item(item: ContentItem) -> bool:
    return not item.has_url and bool(_body(item) or item.title)


def is_code_item(item: ContentItem) -> bool:
    if item.type == "code":
        return True
    return bool(_CODE_PATTERN.search(_body(item)))


def is_image_item(item: ContentItem) -> bool:
    if item.type == "image":
        return True
    extra = item.model_extra or {}
    if extra.get("image") or extra.get("thumbnail"):
        return True
    url = item.resolved_url.lower().split("?")[0]
    return url.endswith(_IMAGE_EXTENSIONS)


BROAD_CATEGORIES: Tuple[CategoryDefinition, ...] = (
    CategoryDefinition(
        id="all-results",
        name="All Results",
        description="Every result returned for the search",
        keywords=(WILDCARD,),
        color="#6c757d",
        icon="list",
        priority=7,
        tier="broad",
    ),
    CategoryDefinition(
        id="web",
        name="Web",
        description="Results that link to a web page",
        keywords=(),
        color="#1a73e8",
        icon="globe",
        priority=8,
        tier="broad",
        predicate=is_web_item,
        fallback_only=True,
    ),
    CategoryDefinition(
        id="text",
        name="Text",
        description="Plain text answers without a source link",
        keywords=(),
        color="#5f6368",
        icon="file-lines",
        priority=8,
        tier="broad",
        predicate=is_text_item,
        fallback_only=True,
    ),
    CategoryDefinition(
        id="code",
        name="Code",
        description="Snippets containing source code",
        keywords=(),
        color="#24292e",
        icon="code",
        priority=9,
        tier="broad",
        predicate=is_code_item,
        fallback_only=True,
    ),
    CategoryDefinition(
        id="images",
        name="Images",
        description="Image results",
        keywords=(),
        color="#e37400",
        icon="image",
        priority=9,
        tier="broad",
        predicate=is_image_item,
        fallback_only=True,
    ),
)


def validate_taxonomy(categories: Iterable[CategoryDefinition]) -> None:
    """
    Raise ValueError on duplicate ids or keyword-less categories
    that are neither wildcard nor structural.
    """
    seen = set()
    for category in categories:
        if category.id in seen:
            raise ValueError(f"Duplicate category id: {category.id}")
        seen.add(category.id)

        if not category.keywords and not category.is_structural:
            raise ValueError(f"Category {category.id} has no keywords and no predicate")


DEFAULT_TAXONOMY: Tuple[CategoryDefinition, ...] = (
    SPECIAL_CATEGORIES + SPECIFIC_CATEGORIES + BROAD_CATEGORIES
)

validate_taxonomy(DEFAULT_TAXONOMY)

_BY_ID: Dict[str, CategoryDefinition] = {c.id: c for c in DEFAULT_TAXONOMY}


def get_category(
    category_id: str,
    categories: Optional[Iterable[CategoryDefinition]] = None,
) -> Optional[CategoryDefinition]:
    if categories is None:
        return _BY_ID.get(category_id)
    return next((c for c in categories if c.id == category_id), None)


def categories_by_tier(
    tier: str,
    categories: Iterable[CategoryDefinition] = DEFAULT_TAXONOMY,
) -> Tuple[CategoryDefinition, ...]:
    return tuple(c for c in categories if c.tier == tier)


# Query context detection

QUERY_CONTEXT_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "FINANCIAL": (
        "stock", "market", "invest", "trading", "finance", "dividend", "portfolio",
        "bond", "equity", "fund", "etf", "mutual fund", "reit", "asset", "allocation",
        "hedge", "return", "yield", "interest rate", "inflation", "recession", "gdp",
        "earnings", "revenue", "profit", "loss", "balance sheet", "income statement",
        "cash flow", "valuation", "p/e ratio", "market cap", "ipo", "merger", "acquisition",
    ),
    "MEDICAL": (
        "health", "medical", "disease", "treatment", "symptom", "diagnosis", "therapy",
        "drug", "vaccine", "medication", "patient", "doctor", "hospital", "clinic",
        "surgery", "cancer", "diabetes", "heart disease", "blood pressure", "cholesterol",
        "infection", "virus", "bacteria", "immune", "antibody", "chronic", "acute",
        "prescription", "clinical trial", "fda", "pharmaceutical", "side effect",
    ),
    "NEWS": (
        "news", "report", "latest", "update", "breaking", "headline", "story",
        "coverage", "press", "media", "journalist", "reporter", "editor", "broadcast",
        "publication", "article", "column", "editorial", "opinion", "analysis",
        "interview", "statement", "announcement", "press release", "conference",
        "event", "incident", "development", "situation", "crisis", "scandal",
    ),
    "TECHNICAL": (
        "code", "programming", "software", "hardware", "developer", "engineer",
        "algorithm", "database", "api", "framework", "library", "function", "method",
        "class", "object", "variable", "parameter", "interface", "implementation",
        "architecture", "design pattern", "system", "network", "server", "client",
        "cloud", "deployment", "container", "kubernetes", "docker", "devops", "ci/cd",
        "git", "version control", "agile", "scrum", "sprint", "backlog", "user story",
    ),
    "ACADEMIC": (
        "research", "study", "paper", "journal", "publication", "peer review",
        "thesis", "dissertation", "hypothesis", "theory", "experiment", "data",
        "analysis", "methodology", "results", "conclusion", "findings", "evidence",
        "literature review", "citation", "reference", "bibliography", "abstract",
        "introduction", "discussion", "limitation", "implication", "future research",
        "academic", "scholar", "professor", "faculty", "university", "college",
        "department", "discipline", "field", "subject", "course", "curriculum",
    ),
}

CONTEXT_WEIGHTS: Dict[str, Dict[str, float]] = {
    "FINANCIAL": {"relevance": 0.30, "accuracy": 0.40, "credibility": 0.30},
    "MEDICAL": {"relevance": 0.25, "accuracy": 0.40, "credibility": 0.35},
    "NEWS": {"relevance": 0.40, "accuracy": 0.30, "credibility": 0.30},
    "TECHNICAL": {"relevance": 0.35, "accuracy": 0.40, "credibility": 0.25},
    "ACADEMIC": {"relevance": 0.25, "accuracy": 0.35, "credibility": 0.40},
    "GENERAL": {"relevance": 0.33, "accuracy": 0.33, "credibility": 0.34},
}


def detect_query_context(query: Optional[str]) -> str:
    """
    Context with the most keyword hits in the query; GENERAL below two hits.
    Ties keep the first context in declaration order.
    """
    if not query or not isinstance(query, str):
        return "GENERAL"

    query_lower = query.lower()
    best, best_count = "GENERAL", 0
    for context, keywords in QUERY_CONTEXT_KEYWORDS.items():
        count = sum(1 for k in keywords if k in query_lower)
        if count > best_count:
            best, best_count = context, count

    return best if best_count >= 2 else "GENERAL"


def context_weights(query: Optional[str]) -> Dict[str, float]:
    return dict(CONTEXT_WEIGHTS[detect_query_context(query)])


def is_business_query(query: Optional[str]) -> bool:
    """True when the query mentions any financial keyword."""
    if not query or not isinstance(query, str):
        return False
    query_lower = query.lower()
    return any(k in query_lower for k in QUERY_CONTEXT_KEYWORDS["FINANCIAL"])
