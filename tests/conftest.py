# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from ragchat.core.client import GeneratedAnswer  # noqa: E402
from ragchat.core.models import SourceFile, Store  # noqa: E402


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that only records delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_operation(done: bool = True, error=None, name: str = "operations/op-1"):
    """Build a minimal long-running operation object."""
    return SimpleNamespace(name=name, done=done, error=error)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_client() -> MagicMock:
    """Remote service client with every primitive mocked.

    By default: store creation returns ``fileSearchStores/test-store``,
    uploads complete immediately, and answers are empty.
    """
    client = MagicMock()
    client.create_store = AsyncMock(return_value="fileSearchStores/test-store")
    client.upload_file = AsyncMock(return_value=make_operation(done=True))
    client.poll_operation = AsyncMock(return_value=make_operation(done=True))
    client.generate_answer = AsyncMock(return_value=GeneratedAnswer(text=""))
    client.delete_store = AsyncMock(return_value=None)
    return client


@pytest.fixture
def store() -> Store:
    return Store(name="fileSearchStores/test-store", display_name="chat-session-1")


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Provide sample PDF content for testing.

    Returns
    -------
    bytes
        Minimal valid PDF content.
    """
    return b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] >>
endobj
trailer
<< /Size 4 /Root 1 0 R >>
%%EOF"""


@pytest.fixture
def make_files(sample_pdf_content: bytes):
    """Factory building ``SourceFile`` objects from names."""

    def _make(*names: str) -> List[SourceFile]:
        return [SourceFile(name=name, data=sample_pdf_content) for name in names]

    return _make


@pytest.fixture
def make_op():
    """Factory for fake upload operations."""
    return make_operation
