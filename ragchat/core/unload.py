# ragchat/core/unload.py
"""
Best-effort store teardown on process exit.

Registered with :func:`atexit.register`, like the cleanup of temporary
upload folders, so remote stores do not outlive the process that created
them when it exits without ending its sessions.
"""

# imports built-in modules
import atexit
from typing import List

# imports local modules
from ragchat.core.session import SessionManager
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()


class UnloadGuard:
    """End every watched session when the interpreter exits."""

    def __init__(self):
        self._managers: List[SessionManager] = []
        self._installed = False

    def watch(self, manager: SessionManager) -> None:
        if manager not in self._managers:
            self._managers.append(manager)

    def forget(self, manager: SessionManager) -> None:
        if manager in self._managers:
            self._managers.remove(manager)

    def install(self) -> None:
        """Register the exit hook. Calling it again has no effect."""
        if self._installed:
            return
        atexit.register(self.on_exit)
        self._installed = True

    def on_exit(self) -> None:
        """Trigger ``end_session`` on each watched manager; errors are logged."""
        for manager in list(self._managers):
            if manager.session is None:
                continue
            try:
                manager.end_session()
            except Exception as e:
                logger.error(f"Error deleting RAG store on exit: {e}")
        self._managers.clear()


# Process-wide guard used by the chat shell
unload_guard = UnloadGuard()
