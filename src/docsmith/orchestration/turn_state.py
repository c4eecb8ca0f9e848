"""Serializable conversation state for one orchestration session."""

from dataclasses import dataclass, field
from enum import Enum

from langchain_core.messages import BaseMessage, messages_from_dict, messages_to_dict


class TurnPhase(str, Enum):
    """Where the session is in the turn protocol."""
    AWAITING_RESPONSE = "awaiting_response"  # Next step is an engine call
    MERGING = "merging"  # Applying the capabilities invoked by the last response
    DONE = "done"


@dataclass
class TurnState:
    """Conversation history plus protocol bookkeeping.

    Created at session start, mutated once per turn, discarded at the end.
    """

    messages: list[BaseMessage] = field(default_factory=list)
    phase: TurnPhase = TurnPhase.AWAITING_RESPONSE
    turns_taken: int = 0
    terminal_signaled: bool = False

    @property
    def is_done(self) -> bool:
        return self.phase == TurnPhase.DONE

    def to_dict(self) -> dict:
        return {
            "messages": messages_to_dict(self.messages),
            "phase": self.phase.value,
            "turns_taken": self.turns_taken,
            "terminal_signaled": self.terminal_signaled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TurnState":
        return cls(
            messages=messages_from_dict(data.get("messages", [])),
            phase=TurnPhase(data.get("phase", TurnPhase.AWAITING_RESPONSE.value)),
            turns_taken=data.get("turns_taken", 0),
            terminal_signaled=data.get("terminal_signaled", False),
        )
