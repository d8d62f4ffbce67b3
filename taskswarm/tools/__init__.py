"""Tool catalog, tool-call parsing, correlation and command execution."""

from .catalog import TOOL_DEFINITIONS, ToolDefinition
from .parser import AgentCall, InvalidCall, TerminalCall, ToolCall, ToolCallParser
from .correlator import Correlator, CorrelationTimeout
from .terminal import CommandExecutor, CommandRejected, CommandResult

__all__ = [
    "TOOL_DEFINITIONS",
    "ToolDefinition",
    "AgentCall",
    "InvalidCall",
    "TerminalCall",
    "ToolCall",
    "ToolCallParser",
    "Correlator",
    "CorrelationTimeout",
    "CommandExecutor",
    "CommandRejected",
    "CommandResult",
]
