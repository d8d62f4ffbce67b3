"""
Tool-call parsing - turns free-form model output into a closed set of call variants
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from taskswarm.tools.catalog import TERMINAL_TOOL, TOOL_DEFINITIONS, ToolDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerminalCall:
    """Run an allowlisted external command."""

    command: str
    args: List[str] = field(default_factory=list)
    cwd: Optional[str] = None
    tool: str = TERMINAL_TOOL


@dataclass(frozen=True)
class AgentCall:
    """A capability/action pair routed through the correlator."""

    tool: str
    capability: str
    action: str
    params: Dict[str, Any] = field(default_factory=dict)
    destructive: bool = False


@dataclass(frozen=True)
class InvalidCall:
    """Malformed or rejected call; reported back to the model, never dispatched."""

    error: str
    tool: Optional[str] = None


ToolCall = Union[TerminalCall, AgentCall, InvalidCall]


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    trimmed = text.strip()
    if not trimmed.startswith("{") or not trimmed.endswith("}"):
        return None
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


class ToolCallParser:
    """Extracts at most one tool call from a model reply and validates it."""

    def __init__(self, definitions: Iterable[ToolDefinition] = TOOL_DEFINITIONS):
        self._definitions: List[ToolDefinition] = list(definitions)
        self._by_name: Dict[str, ToolDefinition] = {d.name: d for d in self._definitions}

    @property
    def definitions(self) -> List[ToolDefinition]:
        return list(self._definitions)

    def describe(self) -> str:
        """Render the catalog for a model prompt, in declaration order."""
        lines = []
        for definition in self._definitions:
            params = definition.param_names
            params_text = f"params: {', '.join(params)}" if params else "no params"
            lines.append(f"- {definition.name}: {definition.description} ({params_text})")
        return "\n".join(lines)

    def parse(self, text: str) -> Optional[ToolCall]:
        """
        Parse a model reply.

        Returns None when the reply is not a single JSON object carrying a string
        ``tool`` field: that is a final answer, not an error.
        """
        parsed = _load_object(text or "")
        if parsed is None:
            return None

        tool = parsed.get("tool")
        if not isinstance(tool, str) or not tool:
            return None

        params = self._extract_params(parsed)

        if tool == TERMINAL_TOOL:
            return self._parse_terminal(params)

        definition = self._by_name.get(tool)
        if definition is None:
            return InvalidCall(error=f"Unknown tool: {tool}", tool=tool)

        missing = [key for key in definition.required if _is_missing(params.get(key))]
        if missing:
            return InvalidCall(error=f"Missing params: {', '.join(missing)}", tool=tool)

        if definition.validate is not None:
            error = definition.validate(params)
            if error:
                return InvalidCall(error=error, tool=tool)

        return AgentCall(
            tool=tool,
            capability=definition.capability,
            action=definition.action,
            params=params,
            destructive=definition.destructive,
        )

    @staticmethod
    def _extract_params(parsed: Dict[str, Any]) -> Dict[str, Any]:
        nested = parsed.get("params")
        if isinstance(nested, dict):
            return dict(nested)
        # Flat form: every top-level field except the envelope keys
        return {k: v for k, v in parsed.items() if k not in ("tool", "params")}

    @staticmethod
    def _parse_terminal(params: Dict[str, Any]) -> ToolCall:
        command = params.get("command")
        command = command.strip() if isinstance(command, str) else ""
        if not command:
            return InvalidCall(error=f"{TERMINAL_TOOL} requires command", tool=TERMINAL_TOOL)

        raw_args = params.get("args")
        args = [str(arg) for arg in raw_args] if isinstance(raw_args, list) else []
        cwd = params.get("cwd") if isinstance(params.get("cwd"), str) else None
        logger.debug(f"Parsed terminal call: {command} {args}")
        return TerminalCall(command=command, args=args, cwd=cwd)
