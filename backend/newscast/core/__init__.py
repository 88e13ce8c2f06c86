"""
Core utilities for backend services.
"""

from .extraction_service import ArticleExtractor, derive_title, truncate_at_sentence
from .errors import NewscastError, PipelineError

__all__ = ['ArticleExtractor', 'derive_title', 'truncate_at_sentence', 'NewscastError', 'PipelineError']
