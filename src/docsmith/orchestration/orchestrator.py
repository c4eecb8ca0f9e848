"""Bounded multi-turn analysis of a repository through commit capabilities.

The reasoning engine is asked to analyse a corpus and save its findings by
invoking commit capabilities. Each turn:

1. the accumulated conversation is sent to the engine (AWAITING_RESPONSE)
2. every capability it invoked is validated and merged into the
   ResultContext, then acknowledged so the engine can keep going (MERGING)
3. the session ends once ``signal_complete`` has been merged (DONE)

A session that never signals completion stops at the turn budget and returns
what it has. Engine/transport errors propagate to the caller untouched.
"""

import json
import threading
import uuid
from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage
from pydantic import ValidationError

from ..events import ProgressEvent, ProgressStream
from ..logging_config import get_logger
from ..models import CompletionState, ResultContext, SourceRecord
from .capabilities import CAPABILITIES, Capability, commit_capabilities
from .turn_state import TurnPhase, TurnState

logger = get_logger(__name__)

DEFAULT_TURN_BUDGET = 15

ProgressCallback = Callable[[ProgressEvent], None]
PartialCallback = Callable[[ResultContext], None]


ANALYSIS_SYSTEM_PROMPT = """
## ROLE
You are a Principal Software Architect conducting a deep-dive audit of a codebase.

## GOAL
Analyze the provided source code to build a comprehensive mental model of the system.
Populate the system report progressively using the provided tools.

## INSTRUCTIONS
1. Iterative discovery: analyze one aspect, then call the relevant tool to save it.
2. Deep dive: for architecture, look for data flow, state management patterns and external integrations.
3. Strict grounding: do NOT invent features that are not in the code. If a file mentions a config
   that is not present, note it as "inferred".

## REQUIRED STEPS (call these tools in any logical order, but ALL must be called)
{required_steps}

When everything has been committed, call `{terminal}`.

## BENCHMARK RULES
- Avoid generic questions like "How does the code work?".
- Questions MUST reference specific file names, variable names, or logic pathways in the provided files.
"""


def render_corpus(records: Iterable[SourceRecord]) -> str:
    """Render the grounding corpus as one text block."""
    return "\n---\n".join(f"File: {r.path}\nContent:\n{r.content}" for r in records)


def build_seed_messages(records: Sequence[SourceRecord], capabilities: Sequence[Capability]) -> list:
    """Initial conversation: instructions naming the capabilities, then the corpus."""
    required = "\n".join(f"- `{c.name}`: {c.description}" for c in commit_capabilities(tuple(capabilities)))
    terminal = next((c.name for c in capabilities if c.terminal), "signal_complete")
    return [
        SystemMessage(content=ANALYSIS_SYSTEM_PROMPT.format(required_steps=required, terminal=terminal)),
        HumanMessage(content=f"## FILES PROVIDED\n{render_corpus(records)}"),
    ]


def _acknowledgement(call_id: str, name: str, error: Optional[str] = None) -> ToolMessage:
    payload = {"result": "ok"} if error is None else {"result": "error", "detail": error}
    return ToolMessage(content=json.dumps(payload), tool_call_id=call_id, name=name)


class ContextOrchestrator:
    """Runs the commit-capability protocol against a chat model.

    The orchestrator holds no per-session state, so one instance can serve
    independent sessions; each ``build`` owns its ResultContext and TurnState.
    """

    def __init__(
        self,
        llm: BaseChatModel,
        turn_budget: int = DEFAULT_TURN_BUDGET,
        capabilities: Sequence[Capability] = CAPABILITIES,
    ):
        if turn_budget <= 0:
            raise ValueError(f"turn_budget must be positive, got {turn_budget}")
        self.llm = llm
        self.turn_budget = turn_budget
        self.capabilities = tuple(capabilities)
        self._by_name = {c.name: c for c in self.capabilities}

    def declarations(self) -> list[dict]:
        return [c.declaration() for c in self.capabilities]

    def build(
        self,
        records: Sequence[SourceRecord],
        on_progress: Optional[ProgressCallback] = None,
        on_partial: Optional[PartialCallback] = None,
        progress_stream: Optional[ProgressStream] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ResultContext:
        """Analyse a corpus and return the populated ResultContext.

        Args:
            records: Grounding corpus
            on_progress: Called with each ProgressEvent, in merge order
            on_partial: Called with an immutable ResultContext after each merge
            progress_stream: Optional event history that also receives every event
            cancel_event: Checked before each engine call

        Returns:
            ResultContext whose ``completion`` tells how the session ended

        Raises:
            Whatever the chat model raises; there is no retry.
        """
        session = _Session(self, list(records), on_progress, on_partial, progress_stream)
        engine = self.llm.bind_tools(self.declarations())

        logger.info("Starting analysis of %s files (turn budget %s)", len(session.records), self.turn_budget)

        while not session.state.is_done:
            if session.state.turns_taken >= self.turn_budget:
                logger.warning("Turn budget of %s exhausted without completion", self.turn_budget)
                return session.finish(CompletionState.TURN_BUDGET_EXHAUSTED)
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Analysis cancelled after %s turns", session.state.turns_taken)
                return session.finish(CompletionState.CANCELLED)
            session.step(engine)

        logger.info("Analysis complete after %s turns", session.state.turns_taken)
        return session.finish(CompletionState.COMPLETE)


class _Session:
    """State owned by a single ``build`` call."""

    def __init__(
        self,
        orchestrator: ContextOrchestrator,
        records: list[SourceRecord],
        on_progress: Optional[ProgressCallback],
        on_partial: Optional[PartialCallback],
        progress_stream: Optional[ProgressStream],
    ):
        self.orchestrator = orchestrator
        self.records = records
        self.on_progress = on_progress
        self.on_partial = on_partial
        self.progress_stream = progress_stream
        self.context = ResultContext()
        self.percent = 0
        self.state = TurnState(messages=build_seed_messages(records, orchestrator.capabilities))

    def step(self, engine) -> None:
        """Run one turn: engine call, then merge whatever it invoked."""
        state = self.state
        response = engine.invoke(state.messages)
        state.turns_taken += 1
        state.messages.append(response)

        tool_calls = list(getattr(response, "tool_calls", None) or [])
        invalid_calls = list(getattr(response, "invalid_tool_calls", None) or [])
        logger.debug(
            "Turn %s: %s capability call(s), %s unparseable",
            state.turns_taken, len(tool_calls), len(invalid_calls),
        )

        if not tool_calls and not invalid_calls:
            state.phase = TurnPhase.DONE if state.terminal_signaled else TurnPhase.AWAITING_RESPONSE
            return

        state.phase = TurnPhase.MERGING
        for call in tool_calls:
            self._merge_call(call.get("name", ""), call.get("args") or {}, call.get("id"))
        for call in invalid_calls:
            self._reject_unparseable(call)

        state.phase = TurnPhase.DONE if state.terminal_signaled else TurnPhase.AWAITING_RESPONSE

    def _merge_call(self, name: str, args: dict, call_id: Optional[str]) -> None:
        call_id = call_id or f"call_{uuid.uuid4().hex[:12]}"
        capability = self.orchestrator._by_name.get(name)

        if capability is None:
            logger.warning("Engine invoked unknown capability %r", name)
            self.state.messages.append(_acknowledgement(call_id, name, f"Unknown capability: {name}"))
            self._emit_partial()
            return

        try:
            parsed = capability.args_model.model_validate(args)
        except ValidationError as e:
            logger.warning("Malformed %s arguments, keeping previous value: %s", name, e)
            self.state.messages.append(_acknowledgement(call_id, name, str(e)))
            self._emit_progress(ProgressEvent(
                status=f"Rejected malformed {name}",
                percent=self.percent,
                log_line=f"{name}: {e.error_count()} validation error(s)",
            ))
            self._emit_partial()
            return

        if capability.terminal:
            self.state.terminal_signaled = True
        elif capability.apply is not None:
            self.context = capability.apply(self.context, parsed)

        # Last write wins: a repeated commit replaces its field group
        logger.info("Merged %s", name)
        self.percent = max(self.percent, capability.checkpoint)
        self.state.messages.append(_acknowledgement(call_id, name))
        self._emit_progress(ProgressEvent(status=capability.status, percent=self.percent, log_line=capability.status))
        self._emit_partial()

    def _reject_unparseable(self, call: dict) -> None:
        name = call.get("name") or "unknown"
        call_id = call.get("id") or f"call_{uuid.uuid4().hex[:12]}"
        error = call.get("error") or "Arguments could not be parsed"
        logger.warning("Unparseable %s invocation: %s", name, error)
        self.state.messages.append(_acknowledgement(call_id, name, error))
        self._emit_partial()

    def _emit_progress(self, event: ProgressEvent) -> None:
        if self.progress_stream is not None:
            self.progress_stream.append(event)
        if self.on_progress:
            try:
                self.on_progress(event)
            except Exception as e:
                logger.warning("Progress callback failed: %s", e)

    def _emit_partial(self) -> None:
        if self.on_partial:
            try:
                self.on_partial(self.context)
            except Exception as e:
                logger.warning("Partial-result callback failed: %s", e)

    def finish(self, completion: CompletionState) -> ResultContext:
        self.state.phase = TurnPhase.DONE
        self.context = replace(self.context, completion=completion)
        return self.context
