"""Record sources for the report pipeline."""

from .base import BaseExtractor
from .deals_extractor import DealsExtractor

__all__ = [
    "BaseExtractor",
    "DealsExtractor",
]
