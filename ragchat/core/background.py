# ragchat/core/background.py
"""
Best-effort detached tasks.

Used for teardown work whose outcome nobody waits for: failures are logged
and never reach the caller.
"""

# imports built-in modules
import asyncio
from typing import Awaitable, Callable, Optional, Set

# imports local modules
from ragchat.config import config
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

# Strong references so the event loop does not garbage-collect running tasks
_background_tasks: Set[asyncio.Task] = set()


def _log_outcome(task: asyncio.Task, description: str) -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        logger.warning(f"Background task cancelled: {description}")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task failed ({description}): {exc}")


def spawn_detached(
    factory: Callable[[], Awaitable[None]],
    description: str,
    timeout: Optional[float] = None,
) -> Optional[asyncio.Task]:
    """Start ``factory()`` without waiting for its result.

    Inside a running event loop the coroutine is scheduled as a task and the
    task is returned. Without one (typically at interpreter exit) it is run
    once on a fresh loop, bounded by ``timeout`` seconds
    (``config.TEARDOWN_TIMEOUT`` by default), and ``None`` is returned.
    Errors are logged in both cases.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop is not None:
        task = loop.create_task(factory())
        _background_tasks.add(task)
        task.add_done_callback(lambda t: _log_outcome(t, description))
        return task

    limit = config.TEARDOWN_TIMEOUT if timeout is None else timeout

    async def _bounded() -> None:
        await asyncio.wait_for(factory(), timeout=limit)

    try:
        asyncio.run(_bounded())
    except Exception as e:
        logger.error(f"Background task failed ({description}): {e}")
    return None
