"""Scripted engine fakes and builders used by the test suite."""

from .mock_llm import ScriptedToolChatModel, create_mock_llm, tool_call_message
from .mock_embeddings import ScriptedEmbeddings

__all__ = [
    "ScriptedToolChatModel",
    "create_mock_llm",
    "tool_call_message",
    "ScriptedEmbeddings",
]
