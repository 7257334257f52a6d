from __future__ import annotations


class AssistantError(RuntimeError):
    """Base class for failures the orchestrator turns into result-bag entries."""


class GatewayConnectionError(AssistantError):
    """Raised when a tool server cannot be reached or the MCP handshake fails."""


class NotConnected(AssistantError):
    """Raised when a gateway is used before connect() or after disconnect()."""


class ToolError(AssistantError):
    """Raised when a remote tool answers with an error payload or malformed data."""


class ValidationError(AssistantError):
    """Raised when a candidate parameter does not satisfy its naming rule."""


class MissingPrerequisite(AssistantError):
    """Raised when a dependent directive has no upstream artifact to work from."""


class InputUnavailable(AssistantError):
    """Raised when interactive resolution needs input but the stream is closed."""


__all__ = [
    "AssistantError",
    "GatewayConnectionError",
    "NotConnected",
    "ToolError",
    "ValidationError",
    "MissingPrerequisite",
    "InputUnavailable",
]
