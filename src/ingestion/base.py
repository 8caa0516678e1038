"""
Base classes for input normalization
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional

from pydantic import ValidationError

from core.schemas import ContentItem

logger = logging.getLogger(__name__)


class InputKind(str, Enum):
    """
    Shape of the raw content handed to the categorizer, resolved once.
    """
    EMPTY = "empty"
    TEXT = "text"
    CHAT_HISTORY = "chat_history"
    SEARCH_RESULTS = "search_results"
    ITEM_ARRAY = "item_array"
    WRAPPED_OBJECT = "wrapped_object"
    SINGLE_OBJECT = "single_object"
    UNSUPPORTED = "unsupported"


def text_item(text: str) -> ContentItem:
    return ContentItem(text=text, type="text")


def build_item(entry: Any) -> Optional[ContentItem]:
    """
    Validate one raw entry into a ContentItem.
    Strings become text items; anything unusable is logged and dropped.
    """
    if isinstance(entry, ContentItem):
        return entry
    if isinstance(entry, str):
        return text_item(entry) if entry.strip() else None
    if not isinstance(entry, dict):
        logger.warning(f"Skipping unsupported entry of type {type(entry).__name__}")
        return None

    try:
        return ContentItem.model_validate(entry)
    except ValidationError as e:
        logger.warning(f"Skipping malformed entry: {e.error_count()} validation errors")
        return None


class InputAdapter(ABC):
    """
    Base interface for every raw input shape.
    """

    kind: InputKind

    @abstractmethod
    def to_items(self, raw: Any) -> List[ContentItem]:
        """
        Convert raw input into content items.
        Must NEVER raise uncaught exceptions.
        """
        raise NotImplementedError
