# ragchat/core/session.py
"""
RAG session manager.

Owns the single active File Search store of a chat session and composes the
upload pipeline, query executor and suggestion generator around it.
"""

# imports built-in modules
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

# imports local modules
from ragchat.config import config
from ragchat.core.background import spawn_detached
from ragchat.core.client import RagServiceClient, is_credential_failure
from ragchat.core.models import (
    AccuracyMode,
    ContextWindow,
    ConversationTurn,
    QueryRequest,
    QueryResult,
    Role,
    SourceFile,
    Store,
    StoreStatus,
)
from ragchat.core.progress import ProgressState
from ragchat.core.query import QueryExecutor
from ragchat.core.suggestions import SuggestionGenerator
from ragchat.core.upload import ProgressCallback, UploadPipeline
from ragchat.exceptions import CredentialError, NoActiveSessionError
from ragchat.utils.formatters import describe_documents
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

ERROR_REPLY = "Sorry, I encountered an error. Please try again."


class SessionPhase(str, Enum):
    NO_STORE = "no_store"
    CREATING = "creating"
    POPULATING = "populating"
    READY = "ready"


@dataclass
class Session:
    """Everything that lives and dies with one remote store."""

    store: Store
    suggestions: List[str] = field(default_factory=list)
    history: List[ConversationTurn] = field(default_factory=list)

    @property
    def document_label(self) -> str:
        return describe_documents(self.store.document_names)


class SessionManager:
    """Manage the lifecycle of one ephemeral RAG session.

    Parameters
    ----------
    client : RagServiceClient
        Remote service client shared by all components.
    uploader : Optional[UploadPipeline], default None
    executor : Optional[QueryExecutor], default None
    suggester : Optional[SuggestionGenerator], default None
        Components to use; built from ``client`` when omitted.
    """

    def __init__(
        self,
        client: RagServiceClient,
        uploader: Optional[UploadPipeline] = None,
        executor: Optional[QueryExecutor] = None,
        suggester: Optional[SuggestionGenerator] = None,
    ):
        self.client = client
        self.uploader = uploader or UploadPipeline(client)
        self.executor = executor or QueryExecutor(client)
        self.suggester = suggester or SuggestionGenerator(client)
        self.session: Optional[Session] = None
        self.phase = SessionPhase.NO_STORE

    @property
    def active_store(self) -> Optional[Store]:
        return self.session.store if self.session else None

    def _require_session(self) -> Session:
        if self.session is None:
            raise NoActiveSessionError()
        return self.session

    async def start_session(self, display_name: Optional[str] = None) -> Session:
        """Create a remote store and make it the active session.

        Any previously active session is ended first.

        Raises
        ------
        CredentialError
            If the service rejects the API key.
        RAGAppError
            Any other classified creation failure.
        """
        self.end_session()

        display_name = display_name or (
            f"{config.STORE_NAME_PREFIX}-{int(time.time() * 1000)}"
        )
        self.phase = SessionPhase.CREATING
        logger.info(f"Creating RAG store {display_name}...")

        try:
            store_name = await self.client.create_store(display_name)
        except Exception as e:
            self.phase = SessionPhase.NO_STORE
            if is_credential_failure(e) and not isinstance(e, CredentialError):
                raise CredentialError("API key not valid", str(e)) from e
            raise

        self.session = Session(store=Store(name=store_name, display_name=display_name))
        self.phase = SessionPhase.POPULATING
        return self.session

    async def add_documents(
        self,
        files: Sequence[SourceFile],
        on_progress: Optional[ProgressCallback] = None,
        on_generating_suggestions: Optional[Callable[[], None]] = None,
        progress: Optional[ProgressState] = None,
    ) -> List[str]:
        """Upload files into the active store and refresh suggestions.

        ``on_progress`` is forwarded to :meth:`UploadPipeline.upload_all`;
        ``on_generating_suggestions`` is called once all files are in.
        When ``progress`` is given a failure moves it to ERROR. A store that
        already held documents stays READY after a failed batch.

        Returns
        -------
        List[str]
            Names of the newly uploaded files.

        Raises
        ------
        NoActiveSessionError
            If no session is active.
        UploadFailureError
            If a file fails; earlier files of the batch stay uploaded.
        """
        session = self._require_session()
        if not files:
            return []

        had_documents = bool(session.store.document_names)
        self.phase = SessionPhase.POPULATING
        try:
            names = await self.uploader.upload_all(session.store, files, on_progress)

            if on_generating_suggestions is not None:
                on_generating_suggestions()
            session.suggestions = await self.suggester.generate(session.store)
        except Exception as e:
            if had_documents and self.session is session:
                session.store.status = StoreStatus.READY
                self.phase = SessionPhase.READY
            if progress is not None:
                progress.fail("Failed to add files", e)
            raise

        session.store.status = StoreStatus.READY
        self.phase = SessionPhase.READY
        logger.info(
            f"Added {len(names)} document(s); store now holds "
            f"{len(session.store.document_names)}"
        )
        return names

    async def start_chat(
        self,
        files: Sequence[SourceFile],
        progress: ProgressState,
        display_name: Optional[str] = None,
    ) -> Optional[Session]:
        """Create a store, ingest ``files`` and enter the chat phase.

        Progress is reported through ``progress``. On failure the partly
        built session is torn down, ``progress`` is moved to WELCOME (bad
        API key) or ERROR, and the error is re-raised.
        """
        if not files:
            return None

        progress.begin_upload(len(files))
        try:
            session = await self.start_session(display_name)
            progress.store_created()

            names = await self.add_documents(
                files, progress.file_uploaded, progress.generating_suggestions
            )
        except Exception as e:
            self.end_session()
            progress.fail_start(e)
            raise

        logger.info(f"Chat session ready with {len(names)} document(s)")
        progress.ready()
        return session

    async def ask(
        self,
        text: str,
        accuracy_mode: AccuracyMode = AccuracyMode.MODERATE,
        context_window: ContextWindow = ContextWindow.MEDIUM,
        progress: Optional[ProgressState] = None,
    ) -> QueryResult:
        """Answer a question and record both turns in the session history.

        On failure an apology turn is recorded, ``progress`` (if given) is
        moved to ERROR and the error is re-raised.
        """
        session = self._require_session()
        request = QueryRequest(
            text=text,
            accuracy_mode=AccuracyMode(accuracy_mode),
            context_window=ContextWindow(context_window),
        )
        session.history.append(ConversationTurn.user(text))

        try:
            result = await self.executor.execute(session.store, request)
        except Exception as e:
            session.history.append(ConversationTurn(role=Role.MODEL, text=ERROR_REPLY))
            if progress is not None:
                progress.fail("Failed to get response", e)
            raise

        session.history.append(ConversationTurn.model(result))
        return result

    def end_session(self) -> None:
        """Forget the active session and delete its store in the background.

        Safe to call at any time; deletion failures are only logged.
        """
        session, self.session = self.session, None
        self.phase = SessionPhase.NO_STORE
        if session is None:
            return

        store = session.store
        store.status = StoreStatus.DELETING
        logger.info(f"Ending session, deleting store {store.name} in background")

        async def _delete() -> None:
            await self.client.delete_store(store.name, force=True)
            store.status = StoreStatus.DELETED

        spawn_detached(_delete, f"delete RAG store {store.name}")
