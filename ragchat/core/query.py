# ragchat/core/query.py
"""
Retrieval-augmented query execution.

Builds the answer instruction from the caller's accuracy and context
settings, runs it against a File Search store and retries connection-level
failures with a linear backoff.
"""

# imports built-in modules
import asyncio
from typing import Awaitable, Callable, Optional

# imports local modules
from ragchat.config import config
from ragchat.core.client import RagServiceClient
from ragchat.core.models import (
    AccuracyMode,
    ContextWindow,
    QueryRequest,
    QueryResult,
    Store,
)
from ragchat.exceptions import TransientNetworkError
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

BASE_INSTRUCTION = (
    "DO NOT ASK THE USER TO READ THE MANUAL, pinpoint the relevant sections "
    "in the response itself. "
)

ACCURACY_INSTRUCTIONS = {
    AccuracyMode.VERY_ACCURATE: (
        "IMPORTANT: Only provide information that is explicitly stated in the "
        "uploaded documents. If the answer is not in the documents, clearly "
        "state that you don't have that information in the provided materials."
    ),
    AccuracyMode.MODERATE: (
        "Primarily use information from the uploaded documents, but you may "
        "supplement with general knowledge when appropriate."
    ),
    AccuracyMode.CREATIVE: (
        "Use the uploaded documents as a reference, but feel free to provide "
        "comprehensive answers using your general knowledge when helpful."
    ),
}

CONTEXT_INSTRUCTIONS = {
    ContextWindow.SHORT: " Keep the response concise and focused.",
    ContextWindow.MEDIUM: "",
    ContextWindow.HIGH: " Provide a comprehensive and detailed response.",
}


def build_instruction(request: QueryRequest) -> str:
    """Combine the base, accuracy and context clauses for a request."""
    return (
        BASE_INSTRUCTION
        + ACCURACY_INSTRUCTIONS[AccuracyMode(request.accuracy_mode)]
        + CONTEXT_INSTRUCTIONS[ContextWindow(request.context_window)]
    )


def build_prompt(request: QueryRequest) -> str:
    return f"{request.text} {build_instruction(request)}"


class QueryExecutor:
    """Execute grounded queries with bounded retry.

    Parameters
    ----------
    client : RagServiceClient
        Remote service client.
    max_attempts : Optional[int], default None
        Total attempts including the first. Defaults to
        ``config.QUERY_MAX_ATTEMPTS``.
    base_delay : Optional[float], default None
        Attempt ``n`` waits ``n * base_delay`` seconds before the next one.
        Defaults to ``config.QUERY_RETRY_BASE_DELAY``.
    sleep : Callable[[float], Awaitable[None]], default asyncio.sleep
        Delay source used between attempts.
    """

    def __init__(
        self,
        client: RagServiceClient,
        max_attempts: Optional[int] = None,
        base_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.max_attempts = (
            config.QUERY_MAX_ATTEMPTS if max_attempts is None else max_attempts
        )
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.base_delay = (
            config.QUERY_RETRY_BASE_DELAY if base_delay is None else base_delay
        )
        self._sleep = sleep

    async def execute(self, store: Store, request: QueryRequest) -> QueryResult:
        """Answer ``request`` from the documents in ``store``.

        Parameters
        ----------
        store : Store
            The active store. Only its name is used, for this call only.
        request : QueryRequest
            Question text plus accuracy and context settings.

        Returns
        -------
        QueryResult
            Answer text and the ordered grounding chunks, possibly empty.

        Raises
        ------
        TransientNetworkError
            If every attempt failed at the connection level.
        RAGAppError
            Any other classified failure, raised on first occurrence.
        """
        prompt = build_prompt(request)
        store_name = store.name

        attempt = 0
        while True:
            attempt += 1
            try:
                answer = await self.client.generate_answer(store_name, prompt)
            except TransientNetworkError as e:
                logger.warning(f"Attempt {attempt} failed: {e}")
                if attempt >= self.max_attempts:
                    raise
                await self._sleep(self.base_delay * attempt)
                continue

            logger.info(
                f"Answered query on attempt {attempt} "
                f"with {len(answer.grounding_chunks)} grounding chunk(s)"
            )
            return QueryResult(
                answer_text=answer.text, citations=list(answer.grounding_chunks)
            )
