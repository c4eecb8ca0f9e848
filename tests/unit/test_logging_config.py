"""Unit tests for logging_config.py - docsmith logger naming."""

from docsmith.logging_config import get_logger


class TestGetLogger:
    """Test that loggers land under the docsmith namespace."""

    def test_prefixes_foreign_names(self):
        assert get_logger("scripts.reindex").name == "docsmith.scripts.reindex"

    def test_keeps_package_names(self):
        assert get_logger("docsmith.rag.indexer").name == "docsmith.rag.indexer"
        assert get_logger("docsmith").name == "docsmith"
