# ragchat/core/__init__.py
"""
Core business logic package.

Contains the File Search client, upload pipeline, query executor,
suggestion generator, session manager and progress state machine.
"""

from ragchat.core.client import RagServiceClient
from ragchat.core.models import (
    AccuracyMode,
    ContextWindow,
    QueryRequest,
    QueryResult,
    SourceFile,
    Store,
)
from ragchat.core.progress import AppStatus, ProgressState
from ragchat.core.query import QueryExecutor
from ragchat.core.session import Session, SessionManager
from ragchat.core.suggestions import SuggestionGenerator
from ragchat.core.unload import UnloadGuard, unload_guard
from ragchat.core.upload import UploadPipeline

__all__ = [
    "AccuracyMode",
    "AppStatus",
    "ContextWindow",
    "ProgressState",
    "QueryExecutor",
    "QueryRequest",
    "QueryResult",
    "RagServiceClient",
    "Session",
    "SessionManager",
    "SourceFile",
    "Store",
    "SuggestionGenerator",
    "UnloadGuard",
    "UploadPipeline",
    "unload_guard",
]
