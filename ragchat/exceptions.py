# ragchat/exceptions.py
"""
Custom exception classes for the RAG session core.

Provides structured error handling with specific exception types
for the remote File Search service and the local session lifecycle.
"""


class RAGAppError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# Remote service Exceptions
class RemoteServiceError(RAGAppError):
    """Base exception for errors raised by the remote RAG service."""

    pass


class CredentialError(RemoteServiceError):
    """The API key is missing or rejected by the service."""

    pass


class TransientNetworkError(RemoteServiceError):
    """A connection-level failure that may succeed when retried."""

    pass


class RemoteNotFoundError(RemoteServiceError):
    """The store or operation no longer exists on the remote side."""

    pass


class MalformedResponseError(RemoteServiceError):
    """The model returned output that could not be parsed."""

    pass


class UnknownRemoteError(RemoteServiceError):
    """Any other remote failure."""

    pass


# File Processing Exceptions
class UploadFailureError(RAGAppError):
    """A file could not be ingested into the store."""

    def __init__(self, file_name: str, details: str | None = None):
        self.file_name = file_name
        super().__init__(f"Failed to upload {file_name}", details)


# Session Exceptions
class SessionError(RAGAppError):
    """Base exception for session-related errors."""

    pass


class NoActiveSessionError(SessionError):
    """An operation needed an active store but none is open."""

    def __init__(self):
        super().__init__("No active session. Please upload documents to begin")


class StateTransitionError(SessionError):
    """The progress state machine was asked for an illegal transition."""

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move from {current} to {target}")
