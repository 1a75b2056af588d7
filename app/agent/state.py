"""
Agent State
===========

Checkpointed loop state.

A checkpoint holds the goal and the last model step. It is enough to
resume the loop later, for example when a user answers the operator's
question in a chat thread.
"""

import json
from dataclasses import dataclass
from typing import Any

from app.agent.items import Step


@dataclass
class AgentState:
    """
    Persisted state of an agent loop.

    Attributes:
        goal: The user's goal, immutable for the loop's lifetime.
        current_step: The latest model step.
    """

    goal: str
    current_step: Step

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "goal": self.goal,
            "currentStep": self.current_step.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentState":
        """
        Build state from a deserialized checkpoint.

        Raises:
            ValueError: If the checkpoint has no goal or step.
        """
        if not isinstance(data, dict):
            raise ValueError("State checkpoint must be a JSON object")
        goal = data.get("goal")
        step = data.get("currentStep")
        if not isinstance(goal, str) or not isinstance(step, dict):
            raise ValueError("State checkpoint is missing goal or currentStep")
        return cls(goal=goal, current_step=Step.from_dict(step))

    @classmethod
    def from_json(cls, text: str) -> "AgentState":
        return cls.from_dict(json.loads(text))
