# ragchat/utils/__init__.py
"""
Utilities package.

Contains logging, formatting, and other utility functions.
"""

from ragchat.utils.formatters import describe_documents, format_response_with_citations
from ragchat.utils.logger import get_app_logger, setup_logger

__all__ = [
    "describe_documents",
    "format_response_with_citations",
    "setup_logger",
    "get_app_logger",
]
