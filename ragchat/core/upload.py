# ragchat/core/upload.py
"""
Sequential document ingestion into a File Search store.

Each file is uploaded, then its long-running operation is polled until the
service reports it done. Files are processed strictly one after another so
progress reporting and remote ingestion order follow the caller's order.
"""

# imports built-in modules
import asyncio
import inspect
from typing import Awaitable, Callable, List, Optional, Sequence

# imports local modules
from ragchat.config import config
from ragchat.core.client import RagServiceClient
from ragchat.core.models import SourceFile, Store, StoreStatus, UploadState, UploadTask
from ragchat.exceptions import RAGAppError, UploadFailureError
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

Sleep = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[[int, int, str], Optional[Awaitable[None]]]


class UploadPipeline:
    """Upload a batch of files into a store, one at a time.

    Parameters
    ----------
    client : RagServiceClient
        Remote service client.
    poll_interval : Optional[float], default None
        Seconds between operation polls. Defaults to
        ``config.UPLOAD_POLL_INTERVAL``.
    sleep : Sleep, default asyncio.sleep
        Delay source used between polls.
    """

    def __init__(
        self,
        client: RagServiceClient,
        poll_interval: Optional[float] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.poll_interval = (
            config.UPLOAD_POLL_INTERVAL if poll_interval is None else poll_interval
        )
        self._sleep = sleep

    async def upload_all(
        self,
        store: Store,
        files: Sequence[SourceFile],
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[str]:
        """Upload every file into ``store`` in order.

        Parameters
        ----------
        store : Store
            Target store. Its ``document_names`` grows as each file commits.
        files : Sequence[SourceFile]
            Files in the order they should be ingested.
        on_progress : Optional[ProgressCallback], default None
            Called as ``(index, total, file_name)`` after each file is done;
            ``index`` is 1-based. May be a coroutine function.

        Returns
        -------
        List[str]
            Names of the files uploaded by this call.

        Raises
        ------
        UploadFailureError
            On the first file that fails. Remaining files are skipped and
            files already committed stay in the store.
        """
        if not files:
            return []

        total = len(files)
        uploaded: List[str] = []
        store.status = StoreStatus.POPULATING

        for index, source in enumerate(files, start=1):
            task = UploadTask(source=source, store=store)
            await self._run(task)

            store.document_names.append(source.name)
            uploaded.append(source.name)
            logger.info(f"Completed upload {index}/{total}: {source.name}")

            if on_progress is not None:
                result = on_progress(index, total, source.name)
                if inspect.isawaitable(result):
                    await result

        return uploaded

    async def _run(self, task: UploadTask) -> None:
        """Drive one task through PENDING → POLLING → DONE or FAILED."""
        name = task.source.name
        try:
            task.operation = await self.client.upload_file(task.store.name, task.source)
            task.state = UploadState.POLLING

            while not task.operation.done:
                await self._sleep(self.poll_interval)
                task.polls += 1
                logger.debug(f"File {name} still processing (poll {task.polls})...")
                task.operation = await self.client.poll_operation(task.operation)
        except RAGAppError as e:
            task.state = UploadState.FAILED
            logger.error(f"Upload of {name} failed: {e}")
            raise UploadFailureError(name, str(e)) from e

        if task.operation.error:
            task.state = UploadState.FAILED
            logger.error(f"File {name} failed to process: {task.operation.error}")
            raise UploadFailureError(name, str(task.operation.error))

        task.state = UploadState.DONE
