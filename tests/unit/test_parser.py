"""
Unit tests for tool-call parsing and the tool catalog
"""

from taskswarm.tools import (
    TOOL_DEFINITIONS,
    AgentCall,
    InvalidCall,
    TerminalCall,
    ToolCallParser,
    ToolDefinition,
)


def test_catalog_names_unique():
    names = [d.name for d in TOOL_DEFINITIONS]
    assert len(names) == len(set(names))
    assert "terminalExec" not in names


def test_only_filesystem_delete_is_destructive():
    destructive = [d.name for d in TOOL_DEFINITIONS if d.destructive]
    assert destructive == ["filesystem.delete"]


def test_plain_text_is_not_a_call():
    parser = ToolCallParser()

    assert parser.parse("The page title is Example Domain.") is None
    assert parser.parse("") is None
    assert parser.parse('Here you go: {"tool": "clipboard.read"}') is None


def test_malformed_json_is_not_a_call():
    assert ToolCallParser().parse('{"tool": "clipboard.read",}') is None


def test_missing_or_non_string_tool_is_not_a_call():
    parser = ToolCallParser()

    assert parser.parse('{"params": {"url": "https://example.com"}}') is None
    assert parser.parse('{"tool": 42}') is None


def test_agent_call_with_nested_params():
    call = ToolCallParser().parse(
        '  {"tool": "tab.navigate", "params": {"url": "https://example.com", "tabId": 3}}  '
    )

    assert call == AgentCall(
        tool="tab.navigate",
        capability="tab",
        action="navigate",
        params={"url": "https://example.com", "tabId": 3},
        destructive=False,
    )


def test_agent_call_with_flat_params():
    call = ToolCallParser().parse('{"tool": "clipboard.write", "text": "hello"}')

    assert isinstance(call, AgentCall)
    assert call.capability == "clipboard"
    assert call.action == "write"
    assert call.params == {"text": "hello"}


def test_destructive_flag_comes_from_catalog():
    parser = ToolCallParser()

    delete = parser.parse('{"tool": "filesystem.delete", "params": {"path": "/tmp/x"}}')
    read = parser.parse('{"tool": "filesystem.read", "params": {"path": "/tmp/x", "destructive": true}}')

    assert isinstance(delete, AgentCall) and delete.destructive is True
    assert isinstance(read, AgentCall) and read.destructive is False


def test_unknown_tool():
    call = ToolCallParser().parse('{"tool": "teleport", "params": {}}')

    assert call == InvalidCall(error="Unknown tool: teleport", tool="teleport")


def test_missing_params_listed_in_order():
    call = ToolCallParser().parse('{"tool": "filesystem.write", "params": {"content": ""}}')

    assert isinstance(call, InvalidCall)
    assert call.error == "Missing params: path, content"


def test_custom_validator_message():
    parser = ToolCallParser()

    not_list = parser.parse('{"tool": "dom.automation", "params": {"actions": "click"}}')
    bad_mode = parser.parse(
        '{"tool": "dom.automation", "params": {"actions": [], "descriptorMode": "terse"}}'
    )
    ok = parser.parse('{"tool": "dom.automation", "params": {"actions": [], "descriptorMode": "balanced"}}')

    assert not_list == InvalidCall(error="actions must be a list", tool="dom.automation")
    assert bad_mode.error == "descriptorMode must be one of: full, balanced"
    assert isinstance(ok, AgentCall)


def test_terminal_call():
    call = ToolCallParser().parse(
        '{"tool": "terminalExec", "command": " codex ", "args": ["--project", 7], "cwd": "/work"}'
    )

    assert call == TerminalCall(command="codex", args=["--project", "7"], cwd="/work")


def test_terminal_call_defaults():
    call = ToolCallParser().parse('{"tool": "terminalExec", "params": {"command": "claude"}}')

    assert call == TerminalCall(command="claude", args=[], cwd=None)


def test_terminal_requires_command():
    call = ToolCallParser().parse('{"tool": "terminalExec", "command": "   "}')

    assert isinstance(call, InvalidCall)
    assert call.error == "terminalExec requires command"


def test_describe_lists_params():
    parser = ToolCallParser(
        [
            ToolDefinition("a.one", "a", "one", "First.", required=("x",), optional=("y",)),
            ToolDefinition("a.two", "a", "two", "Second."),
        ]
    )

    assert parser.describe() == "- a.one: First. (params: x, y)\n- a.two: Second. (no params)"
