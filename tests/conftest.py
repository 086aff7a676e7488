"""Pytest configuration and fixtures."""

import asyncio
import os
import sys
import tempfile
import pytest
from typing import Generator, List, Optional

# Add project root to Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from services.errors import GenerationError, StoreError
from services.file_overview_store import FileOverviewStore
from services.mock_llm import MockGenerator
from services.models import ChatTurn, OverviewDocument, new_overview_id


class FailingGenerator:
    """Generator whose upstream call always fails."""

    def __init__(self, message: str = "model unavailable"):
        self.message = message
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        raise GenerationError(self.message)

    async def close(self):
        pass


class BrokenWriteStore(FileOverviewStore):
    """File store whose writes fail after reads succeed."""

    async def create_overview(self, document):
        raise StoreError("Failed to write to Firestore. Status: 503", status_code=503)

    async def save_chat_history(self, overview_id, turns, expected_version=None):
        raise StoreError("Failed to save chat history: unavailable", status_code=503)


@pytest.fixture
def temp_data_dir() -> Generator[str, None, None]:
    """Create a temporary data directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def mock_env(monkeypatch):
    """Set up mock environment variables."""
    monkeypatch.setenv("MOCK_LLM", "1")
    monkeypatch.setenv("STORE_BACKEND", "file")
    return monkeypatch


@pytest.fixture
def file_store(temp_data_dir) -> FileOverviewStore:
    """Create a file overview store with temporary directory."""
    return FileOverviewStore(base_path=temp_data_dir)


@pytest.fixture
def generator() -> MockGenerator:
    """Create a mock generator that records prompts."""
    return MockGenerator()


@pytest.fixture
def failing_generator() -> FailingGenerator:
    return FailingGenerator()


@pytest.fixture
def seed_overview(file_store):
    """Store an overview document from a synchronous test."""

    def _seed(text: str = "Adds a helper.", chat_history: Optional[List[ChatTurn]] = None) -> OverviewDocument:
        document = OverviewDocument(
            overview_id=new_overview_id(),
            text=text,
            chat_history=chat_history or [],
        )
        return asyncio.run(file_store.create_overview(document))

    return _seed


@pytest.fixture
def broken_store(file_store) -> BrokenWriteStore:
    """File store sharing file_store's directory whose writes fail."""
    return BrokenWriteStore(base_path=str(file_store.base_path))
