"""
Static catalog of agent tools that can be routed to the external executor
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

Validator = Callable[[Dict[str, Any]], Optional[str]]

TERMINAL_TOOL = "terminalExec"

DESCRIPTOR_MODES = ("full", "balanced")


@dataclass(frozen=True)
class ToolDefinition:
    """One catalog entry; the catalog is the source of truth for destructiveness."""

    name: str
    capability: str
    action: str
    description: str
    required: Tuple[str, ...] = ()
    optional: Tuple[str, ...] = ()
    destructive: bool = False
    validate: Optional[Validator] = None

    @property
    def param_names(self) -> List[str]:
        return list(self.required) + list(self.optional)


def _validate_dom_automation(params: Dict[str, Any]) -> Optional[str]:
    if not isinstance(params.get("actions"), list):
        return "actions must be a list"
    mode = params.get("descriptorMode")
    if mode is not None and mode not in DESCRIPTOR_MODES:
        return f"descriptorMode must be one of: {', '.join(DESCRIPTOR_MODES)}"
    return None


TOOL_DEFINITIONS: Tuple[ToolDefinition, ...] = (
    ToolDefinition("tab.navigate", "tab", "navigate", "Navigate a tab to a URL.",
                   required=("url",), optional=("tabId",)),
    ToolDefinition("browser.navigate", "stagehand", "navigate", "Navigate with Stagehand.",
                   required=("url",)),
    ToolDefinition("browser.act", "stagehand", "act", "Perform an action with Stagehand.",
                   required=("instruction",)),
    ToolDefinition("browser.extract", "stagehand", "extract", "Extract data with Stagehand.",
                   required=("instruction",), optional=("schema",)),
    ToolDefinition("browser.observe", "stagehand", "observe", "Observe the page with Stagehand.",
                   required=("instruction",)),
    ToolDefinition("browser.screenshot", "stagehand", "screenshot",
                   "Capture a screenshot with Stagehand.", optional=("fullPage",)),
    ToolDefinition(
        "dom.automation",
        "dom",
        "automation",
        "Run a batch of DOM actions (click, type, read) in a tab.",
        required=("actions",),
        optional=("tabId", "timeoutMs", "returnMode", "descriptorMode"),
        validate=_validate_dom_automation,
    ),
    ToolDefinition("file.dialog.open", "fileDialog", "open", "Open file dialog.",
                   optional=("title", "multiple", "filters")),
    ToolDefinition("file.dialog.save", "fileDialog", "save", "Save file dialog.",
                   optional=("title", "defaultPath", "filters")),
    ToolDefinition("clipboard.read", "clipboard", "read", "Read clipboard text."),
    ToolDefinition("clipboard.write", "clipboard", "write", "Write clipboard text.",
                   required=("text",)),
    ToolDefinition("filesystem.read", "filesystem", "read", "Read a file.", required=("path",)),
    ToolDefinition("filesystem.write", "filesystem", "write", "Write a file.",
                   required=("path", "content")),
    ToolDefinition("filesystem.list", "filesystem", "list", "List a directory.",
                   required=("path",)),
    ToolDefinition("filesystem.delete", "filesystem", "delete", "Delete a file.",
                   required=("path",), destructive=True),
    ToolDefinition("window.focus", "window", "focus", "Focus the window.",
                   optional=("windowId",)),
    ToolDefinition("window.resize", "window", "resize", "Resize the window.",
                   required=("width", "height"), optional=("windowId",)),
    ToolDefinition("window.move", "window", "move", "Move the window.",
                   required=("x", "y"), optional=("windowId",)),
    ToolDefinition("window.minimize", "window", "minimize", "Minimize the window.",
                   optional=("windowId",)),
    ToolDefinition("window.maximize", "window", "maximize", "Maximize the window.",
                   optional=("windowId",)),
    ToolDefinition("window.restore", "window", "restore", "Restore the window.",
                   optional=("windowId",)),
)
