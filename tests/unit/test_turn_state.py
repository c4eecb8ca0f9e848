"""Unit tests for orchestration/turn_state.py."""

from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage

from docsmith.orchestration import TurnPhase, TurnState
from docsmith.testing.mock_llm import tool_call_message


class TestTurnState:
    """Test TurnState bookkeeping and serialization."""

    def test_defaults(self):
        state = TurnState()
        assert state.phase == TurnPhase.AWAITING_RESPONSE
        assert state.turns_taken == 0
        assert not state.terminal_signaled
        assert not state.is_done

    def test_done_phase(self):
        assert TurnState(phase=TurnPhase.DONE).is_done

    def test_serialization_preserves_conversation(self):
        state = TurnState(
            messages=[
                SystemMessage(content="instructions"),
                HumanMessage(content="## FILES PROVIDED"),
                tool_call_message(("commit_workflows", {"workflows": ["a"]})),
                ToolMessage(content='{"result": "ok"}', tool_call_id="call_0_commit_workflows"),
            ],
            phase=TurnPhase.MERGING,
            turns_taken=1,
        )

        data = state.to_dict()
        assert data["phase"] == "merging"

        restored = TurnState.from_dict(data)
        assert restored.phase == TurnPhase.MERGING
        assert restored.turns_taken == 1
        assert [m.type for m in restored.messages] == ["system", "human", "ai", "tool"]
        assert restored.messages[2].tool_calls[0]["name"] == "commit_workflows"
