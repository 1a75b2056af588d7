"""
Response Items
==============

Helpers over the items exchanged with the computer-use model.

Items are kept as plain dicts in the JSON shape the Responses API emits,
so they can be fed back as model input and written to state blobs
unchanged. Only the ``type`` discriminator and the fields needed by the
current branch are ever inspected.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

Item = dict[str, Any]

_DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")


class ItemType(str, Enum):
    """Item kinds the agent loop branches on."""

    MESSAGE = "message"
    REASONING = "reasoning"
    COMPUTER_CALL = "computer_call"
    COMPUTER_CALL_OUTPUT = "computer_call_output"


@dataclass
class Step:
    """
    One model turn.

    Attributes:
        output: Items produced by the model for this turn.
        response_id: Continuation token for the next model call.
    """

    output: list[Item] = field(default_factory=list)
    response_id: Optional[str] = None

    def find(self, kind: ItemType) -> Optional[Item]:
        return find_item(self.output, kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted wire format."""
        return {"output": self.output, "responseId": self.response_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        return cls(
            output=list(data.get("output") or []),
            response_id=data.get("responseId"),
        )


def find_item(output: list[Item], kind: ItemType) -> Optional[Item]:
    """Return the first item of the given kind, or None."""
    for item in output:
        if item.get("type") == kind.value:
            return item
    return None


def is_reasoning_only(output: list[Item]) -> bool:
    """True when the model produced a lone reasoning item and no action."""
    return len(output) == 1 and output[0].get("type") == ItemType.REASONING.value


def message_text(item: Optional[Item]) -> str:
    """Return the first output text of a message item."""
    if not item:
        return ""
    for part in item.get("content") or []:
        if part.get("type") == "output_text":
            return part.get("text", "")
    return ""


def reasoning_summary(item: Optional[Item]) -> str:
    """Return the first summary text of a reasoning item."""
    if not item:
        return ""
    summary = item.get("summary") or []
    if not summary:
        return ""
    return summary[0].get("text", "")


def action_type(item: Optional[Item]) -> str:
    """Return the action type of a computer call, or an empty string."""
    if not item:
        return ""
    return (item.get("action") or {}).get("type", "")


def strip_data_uri(image: str) -> str:
    """Remove a ``data:image/...;base64,`` prefix if present."""
    return _DATA_URI_PREFIX.sub("", image)


def screenshot_data(item: Optional[Item]) -> str:
    """Return the base64 image payload of a computer call output."""
    if not item:
        return ""
    image_url = (item.get("output") or {}).get("image_url", "")
    return strip_data_uri(image_url)
