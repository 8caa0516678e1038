"""
Contains base class for result pipelines
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from core.entities import PresentationResult


class ResultsPipeline(ABC):
    """
    Orchestrates normalization → categorization → insights → synthesis
    for one search.
    """

    name: str

    @abstractmethod
    def run(self, query: str, results: Any, llm_output: Optional[str] = None) -> PresentationResult:
        """
        Execute the pipeline and return the presentation result.
        Must never raise uncaught exceptions.
        """
        raise NotImplementedError
