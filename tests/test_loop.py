"""
Tests for the Agent Loop
========================

Covers:
- Fresh start (announce, starting URL, goal sent without continuation)
- Execute / generate cycle until a message arrives
- Screenshot actions answered inside generate
- Reasoning-only turns fed back until an action arrives
- Resuming from a checkpoint with a user reply
- Checkpointing the answering step
- Step limit
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.agent.items import Step
from app.agent.loop import LoopConfig, OperatorLoop
from app.agent.starting_url import StartingUrl
from app.agent.state import AgentState
from app.errors import LoopLimitError
from app.storage.state_store import InMemoryStateStore
from tests.conftest import (
    PNG_B64,
    call_output_item,
    computer_call_item,
    message_item,
    reasoning_item,
)

SESSION_ID = "sess-123"
GOAL = "Find the weather in Paris"

CLICK = {"type": "click", "x": 10, "y": 20, "button": "left"}


def make_loop(computer, agent, reporter, **kwargs) -> OperatorLoop:
    return OperatorLoop(computer, agent, GOAL, SESSION_ID, reporter=reporter, **kwargs)


class TestFreshStart:
    @pytest.mark.asyncio
    async def test_runs_until_message(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = [
            Step(output=[reasoning_item(), computer_call_item(CLICK)], response_id="r1"),
            Step(output=[message_item("It is sunny")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        result = await loop.run()

        assert result == "It is sunny"
        mock_reporter.started.assert_awaited_once_with(SESSION_ID)
        mock_computer.goto.assert_awaited_once_with("https://www.google.com")

        first_call = mock_agent.get_action.await_args_list[0]
        assert first_call.args == ([{"role": "user", "content": GOAL}], None)

        second_call = mock_agent.get_action.await_args_list[1]
        assert second_call.args[0] == [call_output_item("call_1")]
        assert second_call.args[1] == "r1"

        mock_agent.take_action.assert_awaited_once()
        mock_reporter.reasoning.assert_awaited_once_with("Looking at the page")
        mock_reporter.action.assert_awaited_once_with(CLICK)
        mock_reporter.finished.assert_awaited_once_with("It is sunny", SESSION_ID)

    @pytest.mark.asyncio
    async def test_screenshots_reported_when_reasoning_present(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = [
            Step(output=[reasoning_item(), computer_call_item(CLICK)], response_id="r1"),
            Step(output=[message_item("Done")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.run()

        # One for the action result, one for the final state of the browser
        assert mock_reporter.screenshot.await_count == 2
        mock_reporter.screenshot.assert_awaited_with(PNG_B64)

    @pytest.mark.asyncio
    async def test_no_intermediate_screenshot_without_reasoning(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = [
            Step(output=[computer_call_item(CLICK)], response_id="r1"),
            Step(output=[message_item("Done")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.run()

        assert mock_reporter.screenshot.await_count == 1
        mock_reporter.reasoning.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_reasoning_summary_not_reported(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = [
            Step(output=[reasoning_item(None), computer_call_item(CLICK)], response_id="r1"),
            Step(output=[message_item("Done")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.run()

        mock_reporter.reasoning.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_selected_starting_url(self, mock_computer, mock_agent, mock_reporter):
        url_client = AsyncMock()
        loop = make_loop(mock_computer, mock_agent, mock_reporter, url_client=url_client)

        with patch(
            "app.agent.loop.select_starting_url",
            AsyncMock(return_value=StartingUrl(url="https://weather.com", reasoning="weather site")),
        ) as select:
            await loop.run()

        select.assert_awaited_once()
        assert select.await_args.args == (url_client, GOAL)
        mock_computer.goto.assert_awaited_once_with("https://weather.com")

    @pytest.mark.asyncio
    async def test_connects_before_navigating(self, mock_computer, mock_agent, mock_reporter):
        order = []
        mock_computer.connect.side_effect = lambda: order.append("connect")
        mock_computer.goto.side_effect = lambda url: order.append("goto")
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.run()

        assert order[:2] == ["connect", "goto"]


class TestGenerate:
    @pytest.mark.asyncio
    async def test_screenshot_action_short_circuit(self, mock_computer, mock_agent, mock_reporter):
        screenshot_call = computer_call_item({"type": "screenshot"}, call_id="call_2")
        final = Step(output=[computer_call_item(CLICK, call_id="call_3")], response_id="r3")
        mock_agent.get_action.side_effect = [
            Step(output=[screenshot_call], response_id="r2"),
            final,
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        result = await loop.generate([{"role": "user", "content": GOAL}], "r1")

        assert result is final
        mock_agent.take_action.assert_awaited_once_with([screenshot_call])
        followup = mock_agent.get_action.await_args_list[1]
        assert followup.args == ([call_output_item("call_2")], "r2")
        mock_computer.connect.assert_awaited()

    @pytest.mark.asyncio
    async def test_screenshot_short_circuit_drops_messages(self, mock_computer, mock_agent, mock_reporter):
        screenshot_call = computer_call_item({"type": "screenshot"}, call_id="call_2")
        mock_agent.get_action.side_effect = [
            Step(output=[message_item("Let me look"), screenshot_call], response_id="r2"),
            Step(output=[message_item("Done")], response_id="r3"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.generate([], "r1")

        followup_input = mock_agent.get_action.await_args_list[1].args[0]
        assert [item["type"] for item in followup_input] == ["computer_call_output"]

    @pytest.mark.asyncio
    async def test_reasoning_only_turns_are_fed_back(self, mock_computer, mock_agent, mock_reporter):
        first = reasoning_item("thinking 1")
        second = reasoning_item("thinking 2")
        actionable = Step(output=[reasoning_item("thinking 3"), computer_call_item(CLICK)], response_id="r4")
        mock_agent.get_action.side_effect = [
            Step(output=[first], response_id="r2"),
            Step(output=[second], response_id="r3"),
            actionable,
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        result = await loop.generate([], "r1")

        assert result is actionable
        calls = mock_agent.get_action.await_args_list
        assert calls[1].args == ([first], "r2")
        assert calls[2].args == ([second], "r3")

    @pytest.mark.asyncio
    async def test_plain_action_returned_as_is(self, mock_computer, mock_agent, mock_reporter):
        step = Step(output=[computer_call_item(CLICK)], response_id="r2")
        mock_agent.get_action.side_effect = [step]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        assert await loop.generate([], "r1") is step
        mock_agent.take_action.assert_not_awaited()


class TestResume:
    @pytest.mark.asyncio
    async def test_resume_with_user_response(self, mock_computer, mock_agent, mock_reporter):
        saved = AgentState(
            goal=GOAL,
            current_step=Step(output=[message_item("Which city do you mean?")], response_id="r0"),
        )
        mock_agent.get_action.side_effect = [
            Step(output=[computer_call_item(CLICK)], response_id="r1"),
            Step(output=[message_item("It is sunny in Paris, France")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        result = await loop.run(saved_state=saved, user_response="Paris, France")

        assert result == "It is sunny in Paris, France"
        mock_reporter.started.assert_not_awaited()
        mock_computer.goto.assert_not_awaited()
        first_call = mock_agent.get_action.await_args_list[0]
        assert first_call.args == (
            [
                {"role": "assistant", "content": "Which city do you mean?"},
                {"role": "user", "content": "Paris, France"},
            ],
            "r0",
        )

    @pytest.mark.asyncio
    async def test_resume_without_message_sends_empty_assistant_turn(self, mock_computer, mock_agent, mock_reporter):
        saved = AgentState(
            goal=GOAL,
            current_step=Step(output=[computer_call_item(CLICK)], response_id="r0"),
        )
        mock_agent.get_action.side_effect = [
            Step(output=[message_item("Done")], response_id="r1"),
            Step(output=[message_item("Done")], response_id="r2"),
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter)

        await loop.run(saved_state=saved, user_response="go on")

        first_input = mock_agent.get_action.await_args_list[0].args[0]
        assert first_input[0] == {"role": "assistant", "content": ""}


class TestCheckpoint:
    @pytest.mark.asyncio
    async def test_answering_step_is_checkpointed(self, mock_computer, mock_agent, mock_reporter):
        store = InMemoryStateStore()
        answer = Step(output=[message_item("Which city?")], response_id="r2")
        mock_agent.get_action.side_effect = [
            Step(output=[computer_call_item(CLICK)], response_id="r1"),
            answer,
        ]
        loop = make_loop(mock_computer, mock_agent, mock_reporter, state_store=store)

        await loop.run()

        saved = await store.get_state(SESSION_ID)
        assert saved is not None
        assert saved.goal == GOAL
        assert saved.current_step == answer

    @pytest.mark.asyncio
    async def test_checkpoint_precedes_final_report(self, mock_computer, mock_agent, mock_reporter):
        store = InMemoryStateStore()
        order = []
        original_save = store.save_state

        async def save_state(session_id, state):
            order.append("save")
            return await original_save(session_id, state)

        store.save_state = save_state
        mock_reporter.finished.side_effect = lambda text, sid: order.append("finished")
        loop = make_loop(mock_computer, mock_agent, mock_reporter, state_store=store)

        await loop.run()

        assert order == ["save", "finished"]


class TestStepLimit:
    @pytest.mark.asyncio
    async def test_raises_when_limit_exceeded(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = None
        mock_agent.get_action.return_value = Step(output=[computer_call_item(CLICK)], response_id="r1")
        loop = make_loop(mock_computer, mock_agent, mock_reporter, config=LoopConfig(max_steps=3))

        with pytest.raises(LoopLimitError):
            await loop.run()

        assert mock_agent.take_action.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_means_unbounded(self, mock_computer, mock_agent, mock_reporter):
        mock_agent.get_action.side_effect = [
            Step(output=[computer_call_item(CLICK)], response_id=f"r{i}") for i in range(5)
        ] + [Step(output=[message_item("Done")], response_id="r5")]
        loop = make_loop(mock_computer, mock_agent, mock_reporter, config=LoopConfig(max_steps=0))

        assert await loop.run() == "Done"
        assert mock_agent.take_action.await_count == 5
