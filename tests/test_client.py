"""Tests for the Gemini File Search client wrapper and error classification."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import httpx
import pytest
from google import genai
from google.genai import errors, types

from ragchat.config import config
from ragchat.core.client import (
    RagServiceClient,
    classify_error,
    extract_citations,
    is_credential_failure,
)
from ragchat.core.models import Citation, QueryRequest, SourceFile, Store
from ragchat.core.query import QueryExecutor
from ragchat.exceptions import (
    CredentialError,
    RemoteNotFoundError,
    TransientNetworkError,
    UnknownRemoteError,
)


def _api_error(code: int, status: str, message: str) -> errors.APIError:
    return errors.APIError(
        code, {"error": {"code": code, "status": status, "message": message}}
    )


@pytest.fixture
def sdk_client() -> MagicMock:
    sdk = MagicMock()
    sdk.aio.file_search_stores.create = AsyncMock(
        return_value=SimpleNamespace(name="fileSearchStores/abc")
    )
    sdk.aio.file_search_stores.upload_to_file_search_store = AsyncMock(
        return_value=SimpleNamespace(name="operations/1", done=False, error=None)
    )
    sdk.aio.file_search_stores.delete = AsyncMock(return_value=None)
    sdk.aio.operations.get = AsyncMock(
        return_value=SimpleNamespace(name="operations/1", done=True, error=None)
    )
    sdk.aio.models.generate_content = AsyncMock()
    return sdk


def test_classify_invalid_api_key():
    error = _api_error(400, "INVALID_ARGUMENT", "API key not valid. Please pass a valid API key.")

    assert isinstance(classify_error(error), CredentialError)


def test_classify_not_found_by_status_code():
    error = _api_error(404, "NOT_FOUND", "Requested entity was not found.")

    classified = classify_error(error)

    assert isinstance(classified, RemoteNotFoundError)
    assert is_credential_failure(classified)


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        ConnectionResetError("reset by peer"),
        aiohttp.ServerDisconnectedError(),
        aiohttp.ClientConnectionError("connection refused"),
    ],
)
def test_classify_connection_failures_as_transient(error):
    assert isinstance(classify_error(error), TransientNetworkError)


@pytest.mark.asyncio
async def test_unreachable_endpoint_is_retried_as_transient(recording_sleep):
    sdk = genai.Client(
        api_key="test-key",
        http_options=types.HttpOptions(
            base_url="http://127.0.0.1:1/",
            retry_options=types.HttpRetryOptions(attempts=1),
        ),
    )
    executor = QueryExecutor(
        RagServiceClient(client=sdk),
        max_attempts=3,
        base_delay=1.0,
        sleep=recording_sleep,
    )
    store = Store(name="fileSearchStores/unreachable", display_name="unreachable")

    with pytest.raises(TransientNetworkError):
        await executor.execute(store, QueryRequest(text="Anything?"))

    assert recording_sleep.calls == [1.0, 2.0]


def test_classify_server_errors_as_unknown():
    error = _api_error(500, "INTERNAL", "Internal error encountered.")

    assert isinstance(classify_error(error), UnknownRemoteError)


def test_application_errors_pass_through():
    error = RemoteNotFoundError("gone")

    assert classify_error(error) is error


def test_missing_api_key_raises_credential_error(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_API_KEY", None)

    with pytest.raises(CredentialError):
        RagServiceClient()


@pytest.mark.asyncio
async def test_create_store_returns_resource_name(sdk_client):
    client = RagServiceClient(client=sdk_client)

    assert await client.create_store("chat-session-1") == "fileSearchStores/abc"
    sdk_client.aio.file_search_stores.create.assert_awaited_once_with(
        config={"display_name": "chat-session-1"}
    )


@pytest.mark.asyncio
async def test_create_store_without_name_fails(sdk_client):
    sdk_client.aio.file_search_stores.create.return_value = SimpleNamespace(name=None)
    client = RagServiceClient(client=sdk_client)

    with pytest.raises(UnknownRemoteError):
        await client.create_store("chat")


@pytest.mark.asyncio
async def test_upload_sends_bytes_with_name_and_mime_type(sdk_client):
    client = RagServiceClient(client=sdk_client)
    source = SourceFile(name="manual.pdf", data=b"%PDF-1.4")

    operation = await client.upload_file("fileSearchStores/abc", source)

    assert operation.name == "operations/1"
    kwargs = sdk_client.aio.file_search_stores.upload_to_file_search_store.await_args.kwargs
    assert kwargs["file_search_store_name"] == "fileSearchStores/abc"
    assert kwargs["file"].read() == b"%PDF-1.4"
    assert kwargs["config"] == {"display_name": "manual.pdf", "mime_type": "application/pdf"}


@pytest.mark.asyncio
async def test_sdk_errors_are_translated(sdk_client):
    sdk_client.aio.operations.get.side_effect = httpx.ConnectError("connection refused")
    client = RagServiceClient(client=sdk_client)

    with pytest.raises(TransientNetworkError) as excinfo:
        await client.poll_operation(SimpleNamespace(name="operations/1"))

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_generate_answer_uses_file_search_tool(sdk_client):
    sdk_client.aio.models.generate_content.return_value = types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part(text="Answer.")])
            )
        ]
    )
    client = RagServiceClient(client=sdk_client, model="gemini-2.5-flash")

    answer = await client.generate_answer("fileSearchStores/abc", "Question?")

    assert answer.text == "Answer."
    assert answer.grounding_chunks == []
    kwargs = sdk_client.aio.models.generate_content.await_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["contents"] == "Question?"
    tool = kwargs["config"].tools[0]
    assert tool.file_search.file_search_store_names == ["fileSearchStores/abc"]


@pytest.mark.asyncio
async def test_delete_store_forces_removal(sdk_client):
    client = RagServiceClient(client=sdk_client)

    await client.delete_store("fileSearchStores/abc")

    sdk_client.aio.file_search_stores.delete.assert_awaited_once_with(
        name="fileSearchStores/abc", config={"force": True}
    )


def test_extract_citations_keeps_chunk_order():
    response = types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                grounding_metadata=types.GroundingMetadata(
                    grounding_chunks=[
                        types.GroundingChunk(
                            retrieved_context=types.GroundingChunkRetrievedContext(
                                text="Step one.", title="manual.pdf"
                            )
                        ),
                        types.GroundingChunk(
                            retrieved_context=types.GroundingChunkRetrievedContext(
                                text="Step two.", uri="fileSearchStores/abc/documents/d1"
                            )
                        ),
                        types.GroundingChunk(),
                    ]
                )
            )
        ]
    )

    assert extract_citations(response) == [
        Citation(source_text="Step one.", source_ref="manual.pdf"),
        Citation(source_text="Step two.", source_ref="fileSearchStores/abc/documents/d1"),
    ]


def test_extract_citations_without_candidates():
    assert extract_citations(types.GenerateContentResponse()) == []
