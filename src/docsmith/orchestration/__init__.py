"""Multi-turn context orchestration against a tool-calling reasoning engine."""

from .capabilities import CAPABILITIES, Capability, get_capability
from .orchestrator import ContextOrchestrator, DEFAULT_TURN_BUDGET
from .turn_state import TurnPhase, TurnState

__all__ = [
    "CAPABILITIES",
    "Capability",
    "get_capability",
    "ContextOrchestrator",
    "DEFAULT_TURN_BUDGET",
    "TurnPhase",
    "TurnState",
]
