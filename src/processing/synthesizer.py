"""
Builds a markdown answer from raw search hits when no LLM output exists
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from core.schemas import (
    ContentItem,
    SourceRef,
    SynthesisMetadata,
    SyntheticCategory,
    SyntheticResponse,
)

logger = logging.getLogger(__name__)


MAX_FOLLOW_UPS = 4
MAX_KEY_POINTS = 4

TECHNICAL_TERMS = ("how", "build", "create", "develop", "implement", "code")
BUSINESS_TERMS = ("business", "company", "enterprise", "cost", "roi", "profit")
ETHICAL_TERMS = ("ethics", "privacy", "safety", "security", "risk")
HOW_TO_TERMS = ("how", "guide", "tutorial", "documentation")

RELATED_TOPICS = {
    "ai": ["machine learning", "neural networks", "deep learning", "artificial intelligence applications"],
    "data": ["data science", "data engineering", "big data", "data analytics"],
    "programming": ["development", "software engineering", "coding languages", "software development"],
    "security": ["cybersecurity", "data protection", "information security", "privacy"],
    "business": ["enterprise", "strategy", "management", "operations"],
}


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class _Hit:
    """Read-only view over one usable search result."""

    def __init__(self, position: int, raw: Dict[str, Any]):
        self.position = position
        self.title: str = raw["title"]
        self.snippet: str = raw["snippet"]
        self.url: str = _text(raw.get("url")) or _text(raw.get("link")) or "#"
        self.type: str = _text(raw.get("type")) or "web"

    @property
    def source(self) -> str:
        return f"[Source {self.position}]"

    @property
    def label(self) -> str:
        return self.title.split(" - ")[0].strip()

    def title_has(self, term: str) -> bool:
        return term in self.title.lower()

    def snippet_has(self, *terms: str) -> bool:
        lowered = self.snippet.lower()
        return any(t in lowered for t in terms)

    def lead_sentence(self, min_length: int = 0) -> str:
        for sentence in self.snippet.split("."):
            if len(sentence.strip()) > min_length:
                return sentence.strip()
        return ""


def _as_mapping(result: Any) -> Optional[Dict[str, Any]]:
    if isinstance(result, ContentItem):
        return result.model_dump(by_alias=True)
    if isinstance(result, dict):
        return result
    return None


def _usable_hits(results: Optional[Sequence[Any]]) -> List[_Hit]:
    hits = []
    for result in results or ():
        raw = _as_mapping(result)
        if not raw:
            continue
        if not isinstance(raw.get("title"), str) or not raw["title"].strip():
            continue
        if not isinstance(raw.get("snippet"), str) or not raw["snippet"].strip():
            continue
        hits.append(_Hit(len(hits) + 1, raw))
    return hits


def _is_reference(hit: _Hit) -> bool:
    return hit.title_has("wikipedia")


def _is_educational(hit: _Hit) -> bool:
    return hit.title_has("university") or hit.snippet_has("education")


def _is_platform(hit: _Hit) -> bool:
    return not hit.title_has("wikipedia") and not hit.title_has("university")


def _institution(hit: _Hit, default: str = "educational institutions") -> str:
    parts = hit.title.split(" | ")
    if "University" in hit.title and len(parts) > 1:
        return parts[1].strip()
    return default


# Sections

def _summary(query: str, hits: List[_Hit]) -> str:
    platforms = [h.label for h in hits if " " not in h.label and len(h.label) > 2][:3]
    topics = [s.strip() for h in hits for s in h.snippet.split(".") if len(s) > 20][:3]

    if platforms:
        first = (
            f'Based on the search results for "{query}", several platforms and resources cover this topic. '
            f"Notable names include {', '.join(platforms)}. [Source 1, Source 2]"
        )
    else:
        first = (
            f'Based on the search results for "{query}", a variety of resources address this topic. '
            f"[Source 1]"
        )

    if topics:
        second = f"The results indicate that {topics[0][0].lower()}{topics[0][1:]}. {hits[0].source}"
    else:
        second = "The results span several domains, from practical guides to background material. [Source 1]"

    return f"{first}\n\n{second}"


KEY_POINT_TEMPLATES = (
    (
        lambda h: h.title_has("google"),
        lambda h: "Google focuses on reimagining mobile experiences and helping users be more creative "
        "while maintaining safety and protection.",
    ),
    (
        lambda h: h.title_has("openai"),
        lambda h: "OpenAI is working toward artificial general intelligence with a focus on safety "
        "and beneficial outcomes.",
    ),
    (
        lambda h: h.title_has("chat"),
        lambda h: f"Chatbots like {h.label} provide conversational capabilities for writing text, stories, "
        "and even programming code.",
    ),
    (
        lambda h: h.title_has("image"),
        lambda h: "Image generation tools can create images from text prompts, with "
        f"{'Canva' if 'Canva' in h.title else 'various platforms'} offering this capability.",
    ),
    (
        _is_educational,
        lambda h: f"Educational institutions like {_institution(h, 'various universities')} are integrating "
        "this topic across disciplines from healthcare to agriculture.",
    ),
)


def _key_points(hits: List[_Hit]) -> str:
    points = []
    cited = set()
    for matches, template in KEY_POINT_TEMPLATES:
        hit = next((h for h in hits if matches(h)), None)
        if hit is not None:
            points.append(f"• {template(hit)} {hit.source}")
            cited.add(hit.position)

    for hit in hits:
        if len(points) >= MAX_KEY_POINTS:
            break
        lead = hit.lead_sentence()
        if lead and hit.position not in cited:
            points.append(f"• {lead}. {hit.source}")
    return "\n".join(points)


def _detailed_analysis(query: str, hits: List[_Hit]) -> str:
    platforms = [h for h in hits if _is_platform(h)]
    educational = [h for h in hits if _is_educational(h)]
    technical = [h for h in hits if any(h.title_has(t) or h.snippet_has(t) for t in HOW_TO_TERMS)]
    reference = [h for h in hits if _is_reference(h)]

    blocks = []
    if platforms:
        names = ", ".join(h.label for h in platforms[:3])
        block = (
            "### Industry Overview\n\n"
            f"The landscape includes several providers, among them {names}. "
            f"{platforms[0].source}"
        )
        lead = next((h.lead_sentence(15) for h in platforms[:2] if h.lead_sentence(15)), "")
        if lead:
            block += f"\n\n{lead}. {platforms[0].source}"
        blocks.append(block)

    if educational:
        block = (
            "### Educational Applications\n\n"
            f"Institutions such as {_institution(educational[0])} are working with this topic "
            f"in teaching and research. {educational[0].source}"
        )
        lead = next((h.lead_sentence(15) for h in educational[:2] if h.lead_sentence(15)), "")
        if lead:
            block += f"\n\n{lead}. {educational[0].source}"
        blocks.append(block)

    if technical:
        lead = next((h.lead_sentence(15) for h in technical[:2] if h.lead_sentence(15)), "")
        if lead:
            blocks.append(
                "### Technical Considerations\n\n"
                f"{lead}. Implementation details vary across platforms and use cases. {technical[0].source}"
            )

    if reference:
        blocks.append(
            "### Background Information\n\n"
            f"Reference material provides general background on the subject. {reference[0].source}"
        )

    if not blocks:
        return (
            f'The search results for "{query}" point to a diverse set of resources. '
            "Specific technical details are limited in the snippets returned. [Source 1]"
        )
    return "\n\n".join(blocks)


_PERSPECTIVES = (
    (
        "Business Perspective",
        ("business", "company", "enterprise"),
        "From a business standpoint, the topic offers room for efficiency gains and new offerings.",
        "From a business standpoint, this can improve productivity and open new revenue opportunities.",
        0,
    ),
    (
        "User Perspective",
        ("consumer", "user", "personal"),
        "End users tend to focus on practical benefits and ease of use.",
        "End users typically care about convenience, accessibility and tangible everyday benefits.",
        0,
    ),
    (
        "Technical Perspective",
        ("developer", "technical", "engineering"),
        "Developers and engineers weigh implementation details and infrastructure needs.",
        "Developers and engineers tend to focus on accuracy, performance and scalability.",
        2,
    ),
    (
        "Ethical Considerations",
        ("ethics", "privacy", "concerns"),
        "There are ongoing discussions about responsibility and impact.",
        "Open questions remain about privacy, responsible use and societal impact.",
        3,
    ),
)


def _perspectives(hits: List[_Hit]) -> str:
    viewpoints = []
    for name, terms, with_source, generic, min_hits in _PERSPECTIVES:
        hit = next((h for h in hits if h.snippet_has(*terms)), None)
        if hit is not None:
            viewpoints.append(f"• **{name}**: {with_source} {hit.lead_sentence()}. {hit.source}")
        elif len(hits) > min_hits:
            viewpoints.append(f"• **{name}**: {generic}")
    return "\n\n".join(viewpoints)


def _follow_up_questions(query: str, hits: List[_Hit]) -> List[str]:
    terms = query.lower().split()

    if any(t in terms for t in TECHNICAL_TERMS):
        questions = [
            "What are the latest technical advancements in this field?",
            "Which programming languages or frameworks are most commonly used for this?",
        ]
    elif any(t in terms for t in BUSINESS_TERMS):
        questions = [
            "How are organizations measuring ROI for investments in this area?",
            "What business models are emerging around it?",
        ]
    elif any(t in terms for t in ETHICAL_TERMS):
        questions = [
            "What regulatory frameworks are being developed to address these concerns?",
            "How are stakeholders balancing innovation with ethical considerations?",
        ]
    else:
        questions = [
            "What are the key factors driving development in this area?",
            "How might this evolve over the next 2-3 years?",
            "What challenges are currently being addressed in this field?",
        ]

    if any(h.title_has("image") or h.snippet_has("image") for h in hits):
        questions.append("How are image generation capabilities changing creative workflows?")
    if any(h.title_has("university") or h.snippet_has("education", "student") for h in hits):
        questions.append("How are educational institutions incorporating this into their curricula?")
    if any(h.snippet_has("security", "privacy") for h in hits):
        questions.append("What security measures are in place to protect users and their data?")

    return questions[:MAX_FOLLOW_UPS]


def _categories(hits: List[_Hit]) -> List[SyntheticCategory]:
    def entry(hit: _Hit) -> Dict[str, Optional[str]]:
        return {"title": hit.title, "content": hit.snippet, "url": hit.url}

    return [
        SyntheticCategory(id="key-insights", name="Key Insights", items=[entry(h) for h in hits[:3]]),
        SyntheticCategory(
            id="platforms",
            name="Platforms",
            items=[entry(h) for h in hits if _is_platform(h)][:4],
        ),
    ]


def _related_topics(query: str) -> List[str]:
    topics: List[str] = []
    for term in query.lower().split():
        for topic in RELATED_TOPICS.get(term, []):
            if topic not in topics:
                topics.append(topic)
    return topics[:3]


def _empty_response(query: str, timestamp: datetime) -> SyntheticResponse:
    related = _related_topics(query)
    if related:
        related_lines = "\n".join(f'• Try exploring "{t}" as a related area' for t in related)
    else:
        related_lines = (
            "• Consider breaking your query down into more specific aspects\n"
            "• Try using industry-standard terminology if applicable"
        )

    content = f"""## SUMMARY
No specific information about "{query}" was found in the provided search results.

## KEY POINTS
• No specific data points were found in the search results for this query.
• Consider refining your search terms to get more targeted information.
• Related topics might provide useful context for your question.
• More specific keywords or phrases may help narrow down results.

## DETAILED ANALYSIS
Without search results there is no detailed analysis for "{query}".

### Related Topics to Explore
{related_lines}

### Refining Your Search
Focus on particular aspects or applications of a broad concept.

## DIFFERENT PERSPECTIVES
• From a research standpoint, the lack of results might indicate an emerging or specialized topic.
• From a practical perspective, specialized databases may cover it better than general search.
• From a technical view, industry-specific terminology may yield better results.

## FOLLOW-UP QUESTIONS
• Which specific aspects of "{query}" are you interested in?
• Are there related topics you would like to explore instead?
• Would alternative search terms help?"""

    questions = [
        f'Which specific aspects of "{query}" are you interested in?',
        f"Would you like to learn more about {related[0]} in relation to your search?"
        if related else "Are there related topics you would like to explore instead?",
        f'How does {related[1]} relate to your question about "{query}"?'
        if len(related) > 1 else "Would alternative search terms help?",
    ]

    return SyntheticResponse(
        content=content,
        query=query,
        follow_up_questions=questions,
        source_map={},
        categories=[],
        metadata=SynthesisMetadata(timestamp=timestamp.isoformat(), total_sources=0),
    )


def synthesize_from_results(
    query: Optional[str],
    results: Optional[Sequence[Any]],
    now: Optional[datetime] = None,
) -> SyntheticResponse:
    """
    Templated stand-in for an LLM answer built purely from search snippets.

    Only results with both a title and a snippet are used. Without any the
    response explains that nothing was found and echoes the query.

    Args:
        query: The user's search query.
        results: Raw search hits (dicts or ContentItems).
        now: Timestamp recorded in the metadata.

    Returns:
        SyntheticResponse flagged as synthesized.
    """
    query = query if isinstance(query, str) else ""
    timestamp = now or datetime.now(timezone.utc)

    try:
        hits = _usable_hits(results)
        if not hits:
            logger.info(f"No usable results for '{query}', returning empty synthesis")
            return _empty_response(query, timestamp)

        questions = _follow_up_questions(query, hits)
        footer = (
            f"*Results synthesized from {len(hits)} sources on {timestamp.strftime('%b %d, %Y %H:%M')}*\n\n"
            "*Note: verify important details with the original sources*"
        )
        content = "\n\n".join([
            f"## SUMMARY\n{_summary(query, hits)}",
            f"## KEY POINTS\n{_key_points(hits)}",
            f"## DETAILED ANALYSIS\n{_detailed_analysis(query, hits)}",
            f"## DIFFERENT PERSPECTIVES\n{_perspectives(hits)}",
            "## FOLLOW-UP QUESTIONS\n" + "\n".join(f"• {q}" for q in questions),
            f"---\n{footer}",
        ])

        source_map = {
            str(h.position): SourceRef(title=h.title, url=h.url, type=h.type)
            for h in hits
        }

        logger.info(f"Synthesized fallback answer for '{query}' from {len(hits)} results")
        return SyntheticResponse(
            content=content,
            query=query,
            follow_up_questions=questions,
            source_map=source_map,
            categories=_categories(hits),
            metadata=SynthesisMetadata(timestamp=timestamp.isoformat(), total_sources=len(hits)),
        )
    except Exception as e:
        logger.exception(f"Fallback synthesis failed: {e}")
        return _empty_response(query, timestamp)
