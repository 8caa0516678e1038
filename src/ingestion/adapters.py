import logging
from typing import Any, Callable, List, Optional

from core.schemas import ContentItem
from ingestion.base import InputAdapter, InputKind, build_item, text_item

logger = logging.getLogger(__name__)


CHAT_ROLES = ("user", "assistant")
SEARCH_RESULT_KEYS = ("title", "snippet", "link", "url")
WRAPPER_KEYS = ("results", "items", "data")


def _collect(entries: List[Any]) -> List[ContentItem]:
    items = []
    for entry in entries:
        item = build_item(entry)
        if item is not None:
            items.append(item)
    return items


def chat_role(entry: Any) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    role = entry.get("type") or entry.get("role")
    return role if role in CHAT_ROLES else None


class EmptyAdapter(InputAdapter):
    kind = InputKind.EMPTY

    def to_items(self, raw: Any) -> List[ContentItem]:
        return []


class UnsupportedAdapter(InputAdapter):
    kind = InputKind.UNSUPPORTED

    def to_items(self, raw: Any) -> List[ContentItem]:
        logger.warning(f"Unsupported content of type {type(raw).__name__}, nothing to categorize")
        return []


class TextAdapter(InputAdapter):
    kind = InputKind.TEXT

    def to_items(self, raw: Any) -> List[ContentItem]:
        return [text_item(raw)]


class ChatHistoryAdapter(InputAdapter):
    """
    Uses the content of the most recent assistant message.
    """
    kind = InputKind.CHAT_HISTORY

    def to_items(self, raw: Any) -> List[ContentItem]:
        latest = next(
            (entry for entry in reversed(raw) if chat_role(entry) == "assistant"),
            None,
        )
        if latest is None:
            logger.debug("Chat history has no assistant message")
            return []

        content = latest.get("content")
        if isinstance(content, list):
            return _collect(content)
        if isinstance(content, str):
            return [text_item(content)] if content.strip() else []
        if isinstance(content, dict):
            return _collect([content])

        logger.warning("Assistant message has no usable content")
        return []


class SearchResultsAdapter(InputAdapter):
    """
    Maps web search hits onto the common item shape:
    link -> url, snippet/content -> description.
    """
    kind = InputKind.SEARCH_RESULTS

    def to_items(self, raw: Any) -> List[ContentItem]:
        items = []
        for entry in raw:
            if isinstance(entry, dict):
                entry = self._map_result(entry)
            item = build_item(entry)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _map_result(entry: dict) -> dict:
        mapped = dict(entry)
        description = entry.get("snippet") or entry.get("description") or entry.get("content")
        if isinstance(description, str):
            mapped["description"] = description
        url = entry.get("link") or entry.get("url")
        if isinstance(url, str):
            mapped["url"] = url
        mapped["type"] = "search_result"
        return mapped


class ItemArrayAdapter(InputAdapter):
    kind = InputKind.ITEM_ARRAY

    def to_items(self, raw: Any) -> List[ContentItem]:
        return _collect(list(raw))


class WrappedObjectAdapter(InputAdapter):
    """
    Objects carrying a results/items/data array are unwrapped and the
    array goes back through normalization.
    """
    kind = InputKind.WRAPPED_OBJECT

    def __init__(self, normalize: Callable[[Any], List[ContentItem]]):
        self._normalize = normalize

    def to_items(self, raw: Any) -> List[ContentItem]:
        for key in WRAPPER_KEYS:
            inner = raw.get(key)
            if isinstance(inner, list):
                return self._normalize(inner)
        return []


class SingleObjectAdapter(InputAdapter):
    kind = InputKind.SINGLE_OBJECT

    def to_items(self, raw: Any) -> List[ContentItem]:
        return _collect([raw])
