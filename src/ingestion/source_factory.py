"""
Source Factory - Classifies raw content and picks the matching input adapter.
"""
import logging
from typing import Any, List

from core.schemas import ContentItem
from ingestion.adapters import (
    SEARCH_RESULT_KEYS,
    WRAPPER_KEYS,
    ChatHistoryAdapter,
    EmptyAdapter,
    ItemArrayAdapter,
    SearchResultsAdapter,
    SingleObjectAdapter,
    TextAdapter,
    UnsupportedAdapter,
    WrappedObjectAdapter,
    chat_role,
)
from ingestion.base import InputAdapter, InputKind

logger = logging.getLogger(__name__)


def classify_input(raw: Any) -> InputKind:
    """
    Decide the shape of raw content by explicit tag inspection.
    Chat history wins over search results when an array looks like both.
    """
    if raw is None:
        return InputKind.EMPTY

    if isinstance(raw, str):
        return InputKind.TEXT if raw.strip() else InputKind.EMPTY

    if isinstance(raw, ContentItem):
        return InputKind.SINGLE_OBJECT

    if isinstance(raw, (list, tuple)):
        if not raw:
            return InputKind.EMPTY
        if any(chat_role(entry) for entry in raw):
            return InputKind.CHAT_HISTORY
        if any(
            isinstance(entry, dict) and any(k in entry for k in SEARCH_RESULT_KEYS)
            for entry in raw
        ):
            return InputKind.SEARCH_RESULTS
        return InputKind.ITEM_ARRAY

    if isinstance(raw, dict):
        if any(isinstance(raw.get(k), list) for k in WRAPPER_KEYS):
            return InputKind.WRAPPED_OBJECT
        return InputKind.SINGLE_OBJECT

    return InputKind.UNSUPPORTED


def create_input_adapter(kind: InputKind) -> InputAdapter:
    """
    Create the adapter for an input kind.

    Raises:
        ValueError: If the kind is unknown
    """
    if kind == InputKind.EMPTY:
        return EmptyAdapter()
    elif kind == InputKind.TEXT:
        return TextAdapter()
    elif kind == InputKind.CHAT_HISTORY:
        return ChatHistoryAdapter()
    elif kind == InputKind.SEARCH_RESULTS:
        return SearchResultsAdapter()
    elif kind == InputKind.ITEM_ARRAY:
        return ItemArrayAdapter()
    elif kind == InputKind.WRAPPED_OBJECT:
        return WrappedObjectAdapter(normalize_content)
    elif kind == InputKind.SINGLE_OBJECT:
        return SingleObjectAdapter()
    elif kind == InputKind.UNSUPPORTED:
        return UnsupportedAdapter()
    else:
        raise ValueError(f"Unknown input kind: {kind}")


def normalize_content(raw: Any) -> List[ContentItem]:
    """
    Convert any supported raw content into a flat list of content items.
    Never raises; malformed input yields an empty list.
    """
    kind = classify_input(raw)
    adapter = create_input_adapter(kind)

    try:
        items = adapter.to_items(raw)
    except Exception as e:
        logger.warning(f"Failed to normalize {kind.value} input: {e}")
        return []

    logger.debug(f"Normalized {kind.value} input into {len(items)} items")
    return items
