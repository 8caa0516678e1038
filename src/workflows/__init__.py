"""
Workflows module - Pipeline orchestration for search result presentation.
"""
from workflows.base import ResultsPipeline
from workflows.presentation import PresentationPipeline

__all__ = [
    "ResultsPipeline",
    "PresentationPipeline",
]
