"""
Agent Module
============

Computer-use agent loop for browser automation.

This package contains:
    - loop: Goal-driven agent loop
    - agent: Computer-use model adapter
    - items: Response item helpers and the Step type
    - state: Checkpointed loop state
    - starting_url: First-page selection
"""

from app.agent.agent import Agent
from app.agent.items import ItemType, Step
from app.agent.loop import LoopConfig, OperatorLoop
from app.agent.starting_url import StartingUrl, select_starting_url
from app.agent.state import AgentState

__all__ = [
    "Agent",
    "AgentState",
    "ItemType",
    "LoopConfig",
    "OperatorLoop",
    "StartingUrl",
    "Step",
    "select_starting_url",
]
