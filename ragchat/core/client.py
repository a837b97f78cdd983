# ragchat/core/client.py
"""
Gemini File Search client.

Thin async wrapper around the ``google-genai`` SDK exposing the four
primitives the session core needs (create store, upload file and poll its
operation, generate a grounded answer, delete store), with every SDK or
transport failure translated into the application's exception taxonomy.
"""

# imports built-in modules
import functools
import io
from dataclasses import dataclass, field
from typing import Any, List, Optional

# imports third-party modules
import aiohttp
import httpx
from google import genai
from google.genai import errors, types

# imports local modules
from ragchat.config import config
from ragchat.core.models import Citation, SourceFile
from ragchat.exceptions import (
    CredentialError,
    RAGAppError,
    RemoteNotFoundError,
    TransientNetworkError,
    UnknownRemoteError,
)
from ragchat.utils.logger import get_app_logger

# Application logger
logger = get_app_logger()

INVALID_API_KEY_MARKER = "api key not valid"
NOT_FOUND_MARKER = "requested entity was not found"

# Connection-level failures of either SDK transport (aiohttp when installed,
# httpx otherwise)
TRANSIENT_ERRORS = (
    aiohttp.ClientConnectionError,
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


@dataclass
class GeneratedAnswer:
    """Text and grounding chunks extracted from a generation response."""

    text: str
    grounding_chunks: List[Citation] = field(default_factory=list)


def classify_error(exc: BaseException) -> RAGAppError:
    """Map an SDK or transport exception onto the application taxonomy.

    The SDK exposes the HTTP status on :class:`google.genai.errors.APIError`
    so "not found" is dispatched on ``code``. Rejected keys come back as a
    plain 400 and are only recognisable by their message.

    Parameters
    ----------
    exc : BaseException
        The exception raised by the SDK or the HTTP transport.

    Returns
    -------
    RAGAppError
        The classified error. Application errors are returned unchanged.
    """
    if isinstance(exc, RAGAppError):
        return exc

    detail = str(exc) or exc.__class__.__name__

    if INVALID_API_KEY_MARKER in detail.lower():
        return CredentialError("API key not valid", detail)

    if isinstance(exc, TRANSIENT_ERRORS):
        return TransientNetworkError("Network error while contacting Gemini", detail)

    if isinstance(exc, errors.APIError) and exc.code == 404:
        return RemoteNotFoundError("Requested entity was not found", detail)

    return UnknownRemoteError("Gemini request failed", detail)


def is_credential_failure(exc: BaseException) -> bool:
    """Return True when an error means the API key cannot be used."""
    if isinstance(exc, CredentialError):
        return True
    text = str(exc).lower()
    return INVALID_API_KEY_MARKER in text or NOT_FOUND_MARKER in text


def _translate_errors(func):
    """Re-raise anything a remote call throws as a classified error."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except RAGAppError:
            raise
        except Exception as e:
            raise classify_error(e) from e

    return wrapper


def extract_citations(response: types.GenerateContentResponse) -> List[Citation]:
    """Collect grounding chunks from the first candidate, in order."""
    if not response.candidates:
        return []

    metadata = response.candidates[0].grounding_metadata
    if not metadata or not metadata.grounding_chunks:
        return []

    citations = []
    for chunk in metadata.grounding_chunks:
        context = chunk.retrieved_context or chunk.web
        if context is None:
            continue
        citations.append(
            Citation(
                source_text=getattr(context, "text", None) or "",
                source_ref=context.title or context.uri or "",
            )
        )
    return citations


class RagServiceClient:
    """Async client for Gemini File Search stores.

    Parameters
    ----------
    api_key : Optional[str], default None
        Gemini API key. Falls back to ``config.GOOGLE_API_KEY``.
    model : Optional[str], default None
        Model used for answers and suggestions. Falls back to
        ``config.GEMINI_MODEL``.
    client : Optional[genai.Client], default None
        Pre-built SDK client, mainly for tests.

    Raises
    ------
    CredentialError
        If no client is given and no API key is configured.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[genai.Client] = None,
    ):
        if client is None:
            api_key = api_key or config.GOOGLE_API_KEY
            if not api_key:
                raise CredentialError(
                    "API key not found", "set GOOGLE_API_KEY in the .env file"
                )
            client = genai.Client(api_key=api_key)

        self._client = client
        self.model = model or config.GEMINI_MODEL

    @_translate_errors
    async def create_store(self, display_name: str) -> str:
        """Create an empty File Search store and return its resource name."""
        store = await self._client.aio.file_search_stores.create(
            config={"display_name": display_name}
        )
        if not store.name:
            raise UnknownRemoteError("Failed to create RAG store", "name is missing")
        logger.info(f"Created File Search store {store.name} ({display_name})")
        return store.name

    @_translate_errors
    async def upload_file(self, store_name: str, source: SourceFile) -> Any:
        """Start ingesting a file and return the long-running operation."""
        logger.info(f"Uploading file: {source.name} ({source.size} bytes)...")
        return await self._client.aio.file_search_stores.upload_to_file_search_store(
            file_search_store_name=store_name,
            file=io.BytesIO(source.data),
            config={"display_name": source.name, "mime_type": source.mime_type},
        )

    @_translate_errors
    async def poll_operation(self, operation: Any) -> Any:
        """Fetch the latest state of an upload operation."""
        return await self._client.aio.operations.get(operation)

    @_translate_errors
    async def generate_answer(self, store_name: str, prompt: str) -> GeneratedAnswer:
        """Run one generation request grounded on the given store."""
        response = await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                tools=[
                    types.Tool(
                        file_search=types.FileSearch(
                            file_search_store_names=[store_name]
                        )
                    )
                ]
            ),
        )
        return GeneratedAnswer(
            text=response.text or "", grounding_chunks=extract_citations(response)
        )

    @_translate_errors
    async def delete_store(self, store_name: str, force: bool = True) -> None:
        """Delete a store, including its documents when ``force`` is set."""
        await self._client.aio.file_search_stores.delete(
            name=store_name, config={"force": force}
        )
        logger.info(f"Deleted File Search store {store_name}")
