# ragchat/core/progress.py
"""
UI-visible progress state machine.

Tracks which screen the chat shell should show (welcome, upload progress,
chat, error) and the step counter shown while a session is being prepared.
"""

# imports built-in modules
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional

# imports local modules
from ragchat.core.client import is_credential_failure
from ragchat.exceptions import StateTransitionError
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

CREATING_INDEX = "Creating document index..."
GENERATING_EMBEDDINGS = "Generating embeddings..."
GENERATING_SUGGESTIONS = "Generating suggestions..."
ALL_SET = "All set!"

INVALID_API_KEY_MESSAGE = (
    "The selected API key is invalid. "
    "Please select a different one and try again."
)


class AppStatus(str, Enum):
    WELCOME = "welcome"
    UPLOADING = "uploading"
    CHATTING = "chatting"
    ERROR = "error"


@dataclass(frozen=True)
class UploadProgress:
    current: int
    total: int
    message: str
    file_name: str = ""


@dataclass(frozen=True)
class ProgressSnapshot:
    """What a listener sees after each transition."""

    status: AppStatus
    progress: Optional[UploadProgress]
    error: Optional[str]
    api_key_error: Optional[str]


Listener = Callable[[ProgressSnapshot], None]


class ProgressState:
    """Drive the shell's phase from session events.

    Transitions::

        WELCOME --begin_upload--> UPLOADING --ready--> CHATTING
        UPLOADING --credential_failure--> WELCOME (api_key_error set)
        any --fail--> ERROR --dismiss_error--> WELCOME
        CHATTING --end_session--> WELCOME

    While uploading, ``total`` is the file count plus two: one step for
    creating the store and one for generating suggestions.
    """

    def __init__(self):
        self.status = AppStatus.WELCOME
        self.progress: Optional[UploadProgress] = None
        self.error: Optional[str] = None
        self.api_key_error: Optional[str] = None
        self._file_count = 0
        self._listeners: List[Listener] = []

    @property
    def is_api_key_selected(self) -> bool:
        return self.api_key_error is None

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            status=self.status,
            progress=self.progress,
            error=self.error,
            api_key_error=self.api_key_error,
        )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in self._listeners:
            listener(snapshot)

    def _require(self, target: str, *allowed: AppStatus) -> None:
        if self.status not in allowed:
            raise StateTransitionError(self.status.value, target)

    def _step(self, **changes) -> None:
        self._require("upload step", AppStatus.UPLOADING)
        self.progress = replace(self.progress, **changes)
        self._notify()

    def begin_upload(self, file_count: int) -> None:
        self._require(AppStatus.UPLOADING.value, AppStatus.WELCOME)
        self._file_count = file_count
        self.api_key_error = None
        self.status = AppStatus.UPLOADING
        self.progress = UploadProgress(
            current=0, total=file_count + 2, message=CREATING_INDEX
        )
        self._notify()

    def store_created(self) -> None:
        self._step(current=1, message=GENERATING_EMBEDDINGS)

    def file_uploaded(self, index: int, total: int, file_name: str) -> None:
        """Record that the ``index``-th of ``total`` files finished."""
        self._step(
            current=1 + index,
            message=GENERATING_EMBEDDINGS,
            file_name=f"({index}/{total}) {file_name}",
        )

    def generating_suggestions(self) -> None:
        self._step(
            current=self._file_count + 1,
            message=GENERATING_SUGGESTIONS,
            file_name="",
        )

    def ready(self) -> None:
        self._step(current=self._file_count + 2, message=ALL_SET, file_name="")
        self.status = AppStatus.CHATTING
        self.progress = None
        self._notify()

    def fail(self, context: str, exc: Optional[BaseException] = None) -> None:
        """Move to ERROR with ``"<context>: <exc>"`` as the display text."""
        self.error = f"{context}: {exc}" if exc is not None else context
        logger.error(self.error)
        self.status = AppStatus.ERROR
        self.progress = None
        self._notify()

    def credential_failure(self) -> None:
        """Return to WELCOME with the API key flagged as unusable."""
        self._require(AppStatus.WELCOME.value, AppStatus.UPLOADING, AppStatus.WELCOME)
        self.api_key_error = INVALID_API_KEY_MESSAGE
        self.status = AppStatus.WELCOME
        self.progress = None
        self._notify()

    def fail_start(self, exc: BaseException) -> None:
        """Route a failure of the upload-and-chat flow.

        A rejected or unknown API key sends the user back to the welcome
        screen; anything else is shown as an application error.
        """
        if is_credential_failure(exc):
            logger.warning(f"Credential failure while starting session: {exc}")
            self.credential_failure()
        else:
            self.fail("Failed to start chat session", exc)

    def dismiss_error(self) -> None:
        self._require(AppStatus.WELCOME.value, AppStatus.ERROR)
        self.error = None
        self.status = AppStatus.WELCOME
        self._notify()

    def end_session(self) -> None:
        self._require(AppStatus.WELCOME.value, AppStatus.CHATTING, AppStatus.WELCOME)
        self.status = AppStatus.WELCOME
        self.progress = None
        self._notify()
