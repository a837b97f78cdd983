# ragchat/core/models.py
"""
Data model for an ephemeral RAG chat session.

Plain dataclasses and enums shared by the upload pipeline, query executor,
suggestion generator and session manager.
"""

# imports built-in modules
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional


class StoreStatus(str, Enum):
    """Lifecycle of a remote File Search store."""

    EMPTY = "empty"
    POPULATING = "populating"
    READY = "ready"
    DELETING = "deleting"
    DELETED = "deleted"


class UploadState(str, Enum):
    """Lifecycle of a single file upload operation."""

    PENDING = "pending"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


class AccuracyMode(str, Enum):
    """How strictly an answer must stay within retrieved content."""

    VERY_ACCURATE = "very-accurate"
    MODERATE = "moderate"
    CREATIVE = "creative"


class ContextWindow(str, Enum):
    """Retrieval breadth, trading brevity against completeness."""

    SHORT = "short"
    MEDIUM = "medium"
    HIGH = "high"


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass
class Store:
    """A remote File Search store owned by one session.

    ``name`` is the opaque resource name returned by the service
    (``fileSearchStores/...``) and is the handle every remote call uses.
    """

    name: str
    display_name: str
    created_at: datetime = field(default_factory=datetime.now)
    document_names: List[str] = field(default_factory=list)
    status: StoreStatus = StoreStatus.EMPTY


@dataclass
class SourceFile:
    """A document supplied by the UI shell: a file name plus its bytes."""

    name: str
    data: bytes
    mime_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.mime_type:
            guessed, _ = mimetypes.guess_type(self.name)
            self.mime_type = guessed or "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path, name: Optional[str] = None) -> "SourceFile":
        """Read a local file into memory.

        Parameters
        ----------
        path : str | Path
            Location of the file on disk.
        name : Optional[str], default None
            Display name to use instead of the file's own name. Chat shells
            often store uploads under a temporary path.

        Returns
        -------
        SourceFile
            The file contents ready for upload.
        """
        path = Path(path)
        return cls(name=name or path.name, data=path.read_bytes())

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class UploadTask:
    """Transient bookkeeping for one file while it is ingested."""

    source: SourceFile
    store: Store
    operation: Any = None
    state: UploadState = UploadState.PENDING
    polls: int = 0


@dataclass(frozen=True)
class QueryRequest:
    text: str
    accuracy_mode: AccuracyMode = AccuracyMode.MODERATE
    context_window: ContextWindow = ContextWindow.MEDIUM


@dataclass(frozen=True)
class Citation:
    """A grounding chunk returned alongside an answer."""

    source_text: str
    source_ref: str = ""


@dataclass
class QueryResult:
    answer_text: str
    citations: List[Citation] = field(default_factory=list)


@dataclass
class ConversationTurn:
    role: Role
    text: str
    citations: List[Citation] = field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> "ConversationTurn":
        return cls(role=Role.USER, text=text)

    @classmethod
    def model(cls, result: QueryResult) -> "ConversationTurn":
        return cls(
            role=Role.MODEL, text=result.answer_text, citations=list(result.citations)
        )
