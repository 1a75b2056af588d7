"""
Error Types
===========

Exception hierarchy shared by the agent loop, the model adapter,
the browser and the HTTP layer.
"""


class OperatorError(Exception):
    """Base class for all operator errors."""

    pass


class ConfigurationError(OperatorError):
    """Raised when required configuration is missing."""

    pass


class ModelError(OperatorError):
    """Raised when the computer-use model call fails."""

    pass


class ActionError(OperatorError):
    """Raised when a computer action cannot be executed."""

    def __init__(self, message: str, action_type: str = ""):
        super().__init__(message)
        self.action_type = action_type


class BrowserError(OperatorError):
    """Raised when the remote browser cannot be reached or driven."""

    pass


class LoopLimitError(OperatorError):
    """Raised when the agent loop exceeds its configured step budget."""

    def __init__(self, max_steps: int):
        super().__init__(f"Agent loop exceeded {max_steps} steps without a final answer")
        self.max_steps = max_steps
