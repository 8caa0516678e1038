from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set, Tuple

from core.schemas import ContentItem


@dataclass
class SeenItems:
    """
    Identity keys already attached to one category.
    """
    ids: Set[str] = field(default_factory=set)
    urls: Set[str] = field(default_factory=set)
    titles: Set[str] = field(default_factory=set)

    def add(self, item: ContentItem) -> None:
        if item.id is not None:
            self.ids.add(str(item.id))
        if item.resolved_url:
            self.urls.add(item.resolved_url)
        if item.title:
            self.titles.add(item.title)


def is_duplicate(*, item: ContentItem, seen: SeenItems) -> Tuple[bool, Optional[str]]:
    """
    Returns (is_duplicate, matching_key) where matching_key is id, url or title
    """
    if item.id is not None and str(item.id) in seen.ids:
        return True, "id"
    if item.resolved_url and item.resolved_url in seen.urls:
        return True, "url"
    if item.title and item.title in seen.titles:
        return True, "title"
    return False, None


def dedupe_items(items: Iterable[ContentItem]) -> List[ContentItem]:
    seen = SeenItems()
    unique = []
    for item in items:
        duplicate, _ = is_duplicate(item=item, seen=seen)
        if duplicate:
            continue
        seen.add(item)
        unique.append(item)
    return unique


def _insight_key(text: str) -> str:
    return " ".join(text.lower().split())


def merge_insights(*insight_lists: Iterable[str], limit: Optional[int] = None) -> List[str]:
    """
    Merge insight lists in order, dropping repeats that differ only in
    case or whitespace.
    """
    merged = []
    seen = set()
    for insights in insight_lists:
        for insight in insights or ():
            if not isinstance(insight, str) or not insight.strip():
                continue
            key = _insight_key(insight)
            if key in seen:
                continue
            seen.add(key)
            merged.append(insight.strip())
            if limit is not None and len(merged) >= limit:
                return merged
    return merged
