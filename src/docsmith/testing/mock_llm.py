"""Mock chat models for testing without real API calls.

Uses LangChain's FakeMessagesListChatModel to provide scripted responses
for deterministic orchestration and drafting tests.
"""

import json
from typing import Any, Sequence

from langchain_core.language_models.fake_chat_models import FakeMessagesListChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.utils.function_calling import convert_to_openai_tool
from pydantic import Field


class ScriptedToolChatModel(FakeMessagesListChatModel):
    """Fake chat model that accepts tool bindings and records every call.

    Responses are replayed in order; after the last one the script starts
    over, so a one-message script repeats forever.
    """

    bound_tools: list[dict] = Field(default_factory=list)
    received: list[list[BaseMessage]] = Field(default_factory=list)
    fail_on_call: int | None = None  # 1-based call number that raises

    def bind_tools(self, tools: Sequence[Any], **kwargs: Any) -> "ScriptedToolChatModel":
        self.bound_tools = [convert_to_openai_tool(t) for t in tools]
        return self

    def _generate(self, messages, stop=None, run_manager=None, **kwargs):
        self.received.append(list(messages))
        if self.fail_on_call is not None and len(self.received) == self.fail_on_call:
            raise ConnectionError("engine unavailable")
        return super()._generate(messages, stop=stop, run_manager=run_manager, **kwargs)

    @property
    def call_count(self) -> int:
        return len(self.received)


def tool_call_message(*calls: tuple[str, dict], content: str = "") -> AIMessage:
    """Build an AIMessage invoking capabilities.

    Example:
        >>> tool_call_message(("commit_workflows", {"workflows": ["login"]}), ("signal_complete", {}))
    """
    return AIMessage(
        content=content,
        tool_calls=[
            {"name": name, "args": args, "id": f"call_{i}_{name}"}
            for i, (name, args) in enumerate(calls)
        ],
    )


def create_mock_llm(responses: list[str | dict | list | AIMessage]) -> ScriptedToolChatModel:
    """Create a mock LLM with scripted responses.

    Args:
        responses: List of responses. Can be:
            - str: Raw text response
            - dict / list: Will be JSON-stringified inside a ```json block
            - AIMessage: Direct message object (e.g. with tool_calls)

    Returns:
        ScriptedToolChatModel configured with the responses
    """
    messages = []
    for resp in responses:
        if isinstance(resp, AIMessage):
            messages.append(resp)
        elif isinstance(resp, (dict, list)):
            content = f"```json\n{json.dumps(resp, indent=2)}\n```"
            messages.append(AIMessage(content=content))
        else:
            messages.append(AIMessage(content=str(resp)))

    return ScriptedToolChatModel(responses=messages)
