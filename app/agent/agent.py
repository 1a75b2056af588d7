"""
Computer-Use Agent
==================

Adapter between the agent loop and the OpenAI computer-use model.

``get_action`` asks the model for its next turn through the Responses API,
chaining turns with ``previous_response_id``. ``take_action`` runs the
computer calls of a turn against the browser and builds the
``computer_call_output`` items (screenshot + current URL) the model expects
as its next input.

Usage:
    agent = Agent("computer-use-preview", computer)
    step = await agent.get_action([{"role": "user", "content": goal}], None)
    outputs = await agent.take_action(step.output)
    step = await agent.get_action(outputs, step.response_id)
"""

from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from app.agent.items import Item, ItemType, Step
from app.browser.computer import Computer
from app.errors import ActionError, ModelError
from app.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "computer-use-preview"


class Agent:
    """
    Computer-use model client bound to one computer.

    Attributes:
        model: Model identifier.
        computer: Environment the model's actions run against.
        verbose: Log every request and response item.
    """

    def __init__(
        self,
        model: str,
        computer: Computer,
        verbose: bool = False,
        client: Optional[AsyncOpenAI] = None,
        api_key: Optional[str] = None,
    ) -> None:
        self.model = model
        self.computer = computer
        self.verbose = verbose
        self._client = client or AsyncOpenAI(api_key=api_key or None)

        # Counter for API calls
        self.api_call_count = 0

    @property
    def tools(self) -> list[dict[str, Any]]:
        width, height = self.computer.dimensions
        return [
            {
                "type": "computer_use_preview",
                "display_width": width,
                "display_height": height,
                "environment": self.computer.environment,
            }
        ]

    async def get_action(self, input_items: list[Item], response_id: Optional[str]) -> Step:
        """
        Ask the model for its next turn.

        Args:
            input_items: New input items for this turn.
            response_id: Continuation token of the previous turn, if any.

        Returns:
            The model's step.

        Raises:
            ModelError: On API or network errors.
        """
        request: dict[str, Any] = {
            "model": self.model,
            "input": input_items,
            "tools": self.tools,
            "truncation": "auto",
            "reasoning": {"summary": "concise"},
        }
        if response_id:
            request["previous_response_id"] = response_id

        if self.verbose:
            logger.debug("Model request", input=input_items, previous_response_id=response_id)

        try:
            self.api_call_count += 1
            response = await self._client.responses.create(**request)
        except openai.APIStatusError as e:
            logger.error("Model API error", status_code=e.status_code, error=str(e))
            raise ModelError(f"API error: {e}") from e
        except openai.APIConnectionError as e:
            logger.error("Model API connection error", error=str(e))
            raise ModelError(f"Connection error: {e}") from e

        output = [item.model_dump(exclude_none=True) for item in response.output]

        if self.verbose:
            logger.debug("Model response", response_id=response.id, output=output)

        return Step(output=output, response_id=response.id)

    async def take_action(self, output: list[Item]) -> list[Item]:
        """
        Execute the computer calls of a model turn.

        Message items are passed through unchanged so the caller can see
        them; other non-action items are dropped.

        Args:
            output: Items of the model turn.

        Returns:
            ``computer_call_output`` items, plus any message items.
        """
        results: list[Item] = []
        for item in output:
            kind = item.get("type")
            if kind == ItemType.COMPUTER_CALL.value:
                results.append(await self._run_computer_call(item))
            elif kind == ItemType.MESSAGE.value:
                results.append(item)
        return results

    async def _run_computer_call(self, item: Item) -> Item:
        action = item.get("action") or {}
        await self.execute_action(action)

        screenshot = await self.computer.screenshot()
        call_output: Item = {
            "type": ItemType.COMPUTER_CALL_OUTPUT.value,
            "call_id": item.get("call_id"),
            "acknowledged_safety_checks": [
                {key: check[key] for key in ("id", "code", "message") if key in check}
                for check in item.get("pending_safety_checks") or []
            ],
            "output": {
                "type": "input_image",
                "image_url": f"data:image/png;base64,{screenshot}",
            },
        }
        if self.computer.environment == "browser":
            call_output["output"]["current_url"] = self.computer.get_current_url()
        return call_output

    async def execute_action(self, action: dict[str, Any]) -> None:
        """
        Dispatch one computer-use action to the computer.

        Raises:
            ActionError: If the action type is unknown or malformed.
        """
        action_type = action.get("type", "")
        logger.debug("Executing action", action_type=action_type)
        computer = self.computer

        try:
            if action_type == "click":
                await computer.click(action["x"], action["y"], action.get("button", "left"))
            elif action_type == "double_click":
                await computer.double_click(action["x"], action["y"])
            elif action_type == "scroll":
                await computer.scroll(
                    action["x"],
                    action["y"],
                    action.get("scroll_x", 0),
                    action.get("scroll_y", 0),
                )
            elif action_type == "type":
                await computer.type(action["text"])
            elif action_type == "wait":
                await computer.wait(action.get("ms", 1000))
            elif action_type == "move":
                await computer.move(action["x"], action["y"])
            elif action_type == "keypress":
                await computer.keypress(action["keys"])
            elif action_type == "drag":
                await computer.drag(action["path"])
            elif action_type == "screenshot":
                pass
            else:
                raise ActionError(f"Unknown action type: {action_type}", action_type)
        except KeyError as e:
            raise ActionError(f"Action {action_type} is missing field {e}", action_type) from e

    def get_api_call_count(self) -> int:
        """Get the total number of API calls made."""
        return self.api_call_count

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._client.close()
