"""
Agent Loop
==========

Goal-driven loop that drives a browser with the computer-use model.

The loop follows this cycle:
1. Start: pick a starting URL, navigate, and send the goal to the model
   (skipped when resuming from a checkpoint)
2. Execute: run the pending computer action and capture a screenshot
3. Generate: send the result back and get the model's next step
4. Repeat until the model answers with a message

Screenshot requests are answered immediately inside ``generate`` so they
never cost a loop iteration, and reasoning-only turns are fed back until
the model commits to an action.

Usage:
    from app.agent import Agent, OperatorLoop

    loop = OperatorLoop(computer, agent, goal, session_id, url_client=openai_client)
    answer = await loop.run()
"""

from dataclasses import dataclass
from typing import Optional

from openai import AsyncOpenAI

from app.agent.agent import Agent
from app.agent.items import (
    Item,
    ItemType,
    Step,
    action_type,
    find_item,
    is_reasoning_only,
    message_text,
    reasoning_summary,
    screenshot_data,
)
from app.agent.starting_url import FALLBACK_URL, select_starting_url
from app.agent.state import AgentState
from app.browser.computer import Computer
from app.chat.reporter import LogReporter, ProgressReporter
from app.errors import LoopLimitError
from app.storage.state_store import StateStore
from app.utils.logger import LogContext, get_logger

logger = get_logger(__name__)


@dataclass
class LoopConfig:
    """
    Configuration for the agent loop.

    Attributes:
        max_steps: Maximum loop iterations (0 = until the model answers).
        starting_url_model: Model used to pick the starting URL.
        starting_url_timeout: Seconds before falling back to the default URL.
        fallback_url: Starting URL used when selection fails.
    """

    max_steps: int = 0
    starting_url_model: str = "gpt-4o"
    starting_url_timeout: float = 5.0
    fallback_url: str = FALLBACK_URL


class OperatorLoop:
    """
    Alternates model inference and browser actions until the model answers.

    Progress goes to the reporter; when a state store is configured the
    final step is checkpointed so a later reply can resume the loop.
    """

    def __init__(
        self,
        computer: Computer,
        agent: Agent,
        goal: str,
        session_id: str,
        url_client: Optional[AsyncOpenAI] = None,
        reporter: Optional[ProgressReporter] = None,
        state_store: Optional[StateStore] = None,
        config: Optional[LoopConfig] = None,
    ) -> None:
        """
        Initialize the loop.

        Args:
            computer: Browser the actions run against.
            agent: Computer-use model adapter.
            goal: The user's goal.
            session_id: Browser session ID, also the checkpoint key.
            url_client: OpenAI client for starting URL selection.
            reporter: Progress reporter (defaults to the log reporter).
            state_store: Checkpoint store for message-bearing steps.
            config: Loop configuration.
        """
        self.computer = computer
        self.agent = agent
        self.goal = goal
        self.session_id = session_id
        self.url_client = url_client
        self.reporter = reporter or LogReporter()
        self.state_store = state_store
        self.config = config or LoopConfig()

    async def run(
        self,
        saved_state: Optional[AgentState] = None,
        user_response: Optional[str] = None,
    ) -> Optional[str]:
        """
        Run the loop until the model answers.

        Args:
            saved_state: Checkpoint to resume from instead of starting fresh.
            user_response: The user's reply to the model's last message.

        Returns:
            The model's final message, or None if there was no step to run.

        Raises:
            LoopLimitError: If ``max_steps`` is exceeded.
        """
        with LogContext(session_id=self.session_id):
            if saved_state:
                current_step: Optional[Step] = saved_state.current_step
                logger.info("Resuming from saved state", goal=self.goal)
            else:
                current_step = await self._start()

            if user_response and current_step:
                current_step = await self.generate(
                    [
                        {
                            "role": "assistant",
                            "content": message_text(current_step.find(ItemType.MESSAGE)),
                        },
                        {"role": "user", "content": user_response},
                    ],
                    current_step.response_id,
                )

            steps_taken = 0
            while current_step:
                if self.config.max_steps and steps_taken >= self.config.max_steps:
                    logger.error("Step limit reached", max_steps=self.config.max_steps)
                    raise LoopLimitError(self.config.max_steps)
                steps_taken += 1

                reasoning = current_step.find(ItemType.REASONING)
                if reasoning and reasoning_summary(reasoning):
                    await self.reporter.reasoning(reasoning_summary(reasoning))

                computer_call = current_step.find(ItemType.COMPUTER_CALL)
                if computer_call:
                    await self.reporter.action(computer_call.get("action") or {})

                next_output = await self.execute(current_step)

                call_output = find_item(next_output, ItemType.COMPUTER_CALL_OUTPUT)
                if reasoning and call_output:
                    await self.reporter.screenshot(screenshot_data(call_output))

                next_step = await self.generate(next_output, current_step.response_id)
                current_step = next_step

                message = next_step.find(ItemType.MESSAGE)
                if message:
                    text = message_text(message)
                    await self._finish(next_step, text)
                    logger.info("Task completed", steps_taken=steps_taken, api_calls=self.agent.get_api_call_count())
                    return text

            return None

    async def _start(self) -> Step:
        """Announce the run, open the starting URL and send the goal."""
        await self.reporter.started(self.session_id)
        await self.computer.connect()

        starting_url = await self._select_starting_url()
        await self.computer.goto(starting_url)

        return await self.agent.get_action([{"role": "user", "content": self.goal}], None)

    async def _select_starting_url(self) -> str:
        if self.url_client is None:
            return self.config.fallback_url
        result = await select_starting_url(
            self.url_client,
            self.goal,
            model=self.config.starting_url_model,
            timeout=self.config.starting_url_timeout,
            fallback_url=self.config.fallback_url,
        )
        return result.url

    async def _finish(self, step: Step, text: str) -> None:
        """Checkpoint the answering step and report the answer."""
        if self.state_store is not None:
            await self.state_store.save_state(
                self.session_id,
                AgentState(goal=self.goal, current_step=step),
            )
        await self.reporter.screenshot(await self.computer.screenshot())
        await self.reporter.finished(text, self.session_id)

    async def execute(self, step: Step) -> list[Item]:
        """Run the step's pending computer action."""
        await self.computer.connect()
        return await self.agent.take_action(step.output)

    async def generate(self, input_items: list[Item], response_id: Optional[str]) -> Step:
        """
        Get the model's next actionable step.

        A screenshot request is answered right away and reasoning-only
        turns are fed back until the model produces something else.
        """
        result = await self.agent.get_action(input_items, response_id)

        computer_call = result.find(ItemType.COMPUTER_CALL)
        if computer_call and action_type(computer_call) == "screenshot":
            await self.computer.connect()
            screenshot_output = await self.agent.take_action(result.output)
            result = await self.agent.get_action(
                [item for item in screenshot_output if item.get("type") != ItemType.MESSAGE.value],
                result.response_id,
            )

        while is_reasoning_only(result.output):
            result = await self.agent.get_action([result.output[0]], result.response_id)

        return result
