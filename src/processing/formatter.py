"""
Markdown formatting helpers for category content
"""
import logging
import re
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


BULLET = "•"

_NUMBER_RE = re.compile(r"(\d+(?:\.\d+)?%?)")
_FINANCIAL_FIGURE_RE = re.compile(r"(\$\d+(?:\.\d+)?[MBK]?|\d+(?:\.\d+)?%)")
_LIST_MARKER_RE = re.compile(r"^\s*(?:[•*-]|\d+\.)\s+", re.MULTILINE)
_PROTECTED_RE = re.compile(r"\[[^\]]*\]\([^)]*\)|https?://\S+|^[ \t]*#{1,6}[ \t].*$", re.MULTILINE)

COMMON_WORDS = frozenset({
    "about", "after", "again", "also", "another", "back", "because", "before",
    "between", "come", "could", "does", "during", "each", "even", "every",
    "find", "first", "from", "give", "have", "here", "just", "know", "like",
    "look", "make", "many", "more", "most", "much", "must", "never", "next",
    "only", "other", "over", "same", "some", "such", "take", "than", "that",
    "their", "them", "then", "there", "these", "they", "thing", "this", "those",
    "through", "time", "under", "very", "well", "were", "what", "when", "where",
    "which", "while", "will", "with", "would", "your",
})


def highlight_numbers(text: str) -> str:
    if not isinstance(text, str) or not text:
        return ""
    return _NUMBER_RE.sub(r"**\1**", text)


def emphasize_financial_figures(text: str) -> str:
    """Bold dollar amounts ($12.5M) and percentages (40%)."""
    if not isinstance(text, str) or not text:
        return ""
    return _FINANCIAL_FIGURE_RE.sub(r"**\1**", text)


def format_key_insights(text: str) -> str:
    """
    Render text as a bullet list with every number in bold.
    """
    if not isinstance(text, str) or not text:
        return ""

    normalized = _LIST_MARKER_RE.sub(f"{BULLET} ", text)

    lines = []
    for line in normalized.split("\n"):
        line = line.strip()
        if line and not line.startswith(BULLET):
            line = f"{BULLET} {line}"
        lines.append(line)

    return highlight_numbers("\n".join(lines))


# Inline links

def _source_field(source: Any, name: str) -> Optional[str]:
    if isinstance(source, dict):
        value = source.get(name)
    else:
        value = getattr(source, name, None)
    return value if isinstance(value, str) else None


def _domain(url: str) -> Optional[str]:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def link_keywords(source: Any) -> List[str]:
    """
    Candidate anchor words for a source: significant title words plus the
    first label of its domain.
    """
    keywords: List[str] = []

    title = _source_field(source, "title") or ""
    for word in title.split():
        word = re.sub(r"[^\w\s]", "", word).strip()
        if len(word) > 3 and word.lower() not in COMMON_WORDS:
            keywords.append(word)

    url = _source_field(source, "url") or _source_field(source, "link")
    domain = _domain(url) if url else None
    if domain:
        label = domain.split(".")[0]
        if len(label) > 3 and label.lower() not in COMMON_WORDS:
            keywords.append(label)

    return list(dict.fromkeys(keywords))


def generate_inline_links(text: str, sources: Optional[Sequence[Any]], max_links: int = 5) -> str:
    """
    Turn the first non-overlapping mentions of source keywords into
    markdown links pointing at that source. Text inside existing links,
    bare urls and heading lines is never linked.

    Args:
        text: Markdown or plain text to enrich.
        sources: Search results (dicts or objects) carrying title and url.
        max_links: Upper bound on inserted links.

    Returns:
        The text with at most ``max_links`` links; unchanged when there are no usable sources.
    """
    if not isinstance(text, str) or not text.strip() or not sources:
        return text

    protected = [(m.start(), m.end()) for m in _PROTECTED_RE.finditer(text)]

    candidates: List[Tuple[int, int, str]] = []
    for source in sources:
        url = _source_field(source, "url") or _source_field(source, "link")
        if not url or not _domain(url):
            logger.debug(f"Skipping source without usable url: {url!r}")
            continue
        for keyword in link_keywords(source):
            pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
            for match in pattern.finditer(text):
                start, end = match.span()
                # existing links, bare urls and headings stay as written
                if any(start < p_end and end > p_start for p_start, p_end in protected):
                    continue
                candidates.append((start, end, url))

    candidates.sort(key=lambda c: (c[0], -c[1]))

    chosen: List[Tuple[int, int, str]] = []
    for start, end, url in candidates:
        if len(chosen) >= max_links:
            break
        if chosen and start < chosen[-1][1]:
            continue
        chosen.append((start, end, url))

    if not chosen:
        return text

    parts = []
    last = 0
    for start, end, url in chosen:
        parts.append(text[last:start])
        parts.append(f"[{text[start:end]}]({url})")
        last = end
    parts.append(text[last:])

    return "".join(parts)
