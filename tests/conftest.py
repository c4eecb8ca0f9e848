"""Pytest configuration and fixtures for context engine testing."""

import pytest
from pathlib import Path

from docsmith.testing.fixtures import create_test_records, load_records_fixture
from docsmith.testing.mock_embeddings import ScriptedEmbeddings
from docsmith.testing.mock_llm import create_mock_llm


@pytest.fixture
def mock_llm_factory():
    """Factory for creating mock LLMs with scripted responses.

    Returns:
        Function that takes a list of responses and returns a ScriptedToolChatModel

    Example:
        >>> def test_orchestrator(mock_llm_factory):
        ...     llm = mock_llm_factory([tool_call_message(("signal_complete", {}))])
    """
    def _factory(responses):
        return create_mock_llm(responses)
    return _factory


@pytest.fixture
def embeddings_factory():
    """Factory for ScriptedEmbeddings.

    Example:
        >>> def test_retrieve(embeddings_factory):
        ...     emb = embeddings_factory({"q": [1.0, 0.0]})
    """
    def _factory(vectors=None, **kwargs):
        return ScriptedEmbeddings(vectors, **kwargs)
    return _factory


@pytest.fixture
def test_records():
    """Three single-paragraph files."""
    return create_test_records(count=3)


@pytest.fixture
def sample_corpus():
    """Small realistic corpus loaded from tests/fixtures/sample_corpus.json."""
    fixture_path = Path(__file__).parent / "fixtures" / "sample_corpus.json"
    return load_records_fixture(str(fixture_path))


@pytest.fixture
def test_repo_root(tmp_path):
    """A temporary repository directory.

    Returns:
        Path to temporary directory
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    return repo
