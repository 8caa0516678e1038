"""
Pydantic schemas for content crossing the library boundary
"""
import datetime as dt
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


_TEXT_FIELDS = ("title", "url", "link", "snippet", "description", "text", "summary", "date", "type")


class ContentItem(BaseModel):
    """
    One unit of search or LLM output after normalization.
    Unknown keys from the collaborator are kept as extras.
    """
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    id: Optional[Union[str, int]] = None
    title: Optional[str] = None
    url: Optional[str] = None
    link: Optional[str] = None
    snippet: Optional[str] = None
    description: Optional[str] = None
    content: Any = None
    text: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[Union[str, Dict[str, Any]]] = None
    date: Optional[str] = None
    type: Optional[str] = None
    metrics: Optional[Dict[str, Any]] = None
    key_insights: List[Any] = Field(default_factory=list, alias="keyInsights")
    key_points: List[Any] = Field(default_factory=list, alias="keyPoints")

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (dt.date, dt.datetime)):
            return value.isoformat()
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> Any:
        if value is None or isinstance(value, (str, dict)):
            return value
        return str(value)

    @field_validator("metrics", mode="before")
    @classmethod
    def _coerce_metrics(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @field_validator("key_insights", "key_points", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[Any]:
        return list(value) if isinstance(value, (list, tuple)) else []

    @property
    def resolved_url(self) -> str:
        return self.url or self.link or ""

    @property
    def has_url(self) -> bool:
        return bool(self.resolved_url)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)


class SourceRef(BaseModel):
    """
    Citation target for a numbered source in a synthesized answer.
    """
    title: str
    url: str = "#"
    type: str = "web"


class SyntheticCategory(BaseModel):
    id: str
    name: str
    items: List[Dict[str, Optional[str]]] = Field(default_factory=list)


class SynthesisMetadata(BaseModel):
    synthesized: bool = True
    timestamp: str
    total_sources: int = Field(..., ge=0)


class SyntheticResponse(BaseModel):
    """
    Templated stand-in for an LLM answer, built only from raw search hits
    """
    content: str
    query: str
    follow_up_questions: List[str] = Field(default_factory=list)
    source_map: Dict[str, SourceRef] = Field(default_factory=dict)
    categories: List[SyntheticCategory] = Field(default_factory=list)
    metadata: SynthesisMetadata
    synthesized: bool = True
    fallback_synthesized: bool = True
    is_llm_result: bool = True
