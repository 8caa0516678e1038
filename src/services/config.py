"""
Loads and handles config from config.yml
Environment variables prefixed SEARCH_INSIGHTS_ (or a .env file) override the YAML values
"""
import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)


ENV_PREFIX = "SEARCH_INSIGHTS_"


class Settings(BaseModel):
    """
    Tunables for categorization, insight extraction and synthesis.
    """
    relevance_threshold: float = Field(70, ge=0, le=100)
    fallback_threshold: float = Field(65, ge=0, le=100)
    min_categories: int = Field(3, ge=0)
    max_categories: int = Field(6, ge=1)
    max_items_per_category: int = Field(15, ge=1)
    max_insights: int = Field(5, ge=0, le=5)
    max_inline_links: int = Field(5, ge=0)
    structural_relevance: float = Field(90, ge=0, le=100)
    enable_fallback_synthesis: bool = True
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.fallback_threshold > self.relevance_threshold:
            raise ValueError("fallback_threshold must not exceed relevance_threshold")
        if self.min_categories > self.max_categories:
            raise ValueError("min_categories must not exceed max_categories")
        return self


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    # Try relative path first
    if os.path.exists("resources/config.yml"):
        return "resources/config.yml"

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, "resources", "config.yml")
    if os.path.exists(config_path):
        return config_path

    raise FileNotFoundError("Cannot find resources/config.yml")


def _env_overrides() -> Dict[str, Any]:
    overrides = {}
    for name in Settings.model_fields:
        value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if value is not None:
            overrides[name] = value
    return overrides


def load_config(path: Optional[str] = None) -> Settings:
    """
    Load settings from config.yml, then apply environment overrides.

    Raises:
        FileNotFoundError: If no config file can be found
        pydantic.ValidationError: If a value is out of range
    """
    load_dotenv()

    config_path = path or _get_config_path()
    with open(config_path, "r") as file:
        config = yaml.safe_load(file) or {}

    unknown = set(config) - set(Settings.model_fields)
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    values = {k: v for k, v in config.items() if k in Settings.model_fields}
    values.update(_env_overrides())

    return Settings(**values)
