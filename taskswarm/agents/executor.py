"""
Executor Agent - runs one plan step, optionally through a bounded tool-call loop
"""

import json
import logging
import re
from typing import Any, Dict, List

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from taskswarm.agents.base import SwarmRuntime, invoke_with_recovery
from taskswarm.state import OrchestrationState
from taskswarm.tools.parser import AgentCall, InvalidCall, TerminalCall, ToolCall

logger = logging.getLogger(__name__)

EXECUTOR_SYSTEM_PROMPT = """You are the executor of a browser-based AI agent.
You are given a specific step to execute as part of a larger task.
Execute the step and provide a clear, concise result.
You have context about previous steps that have already been completed."""

TOOL_INSTRUCTIONS = """
If you need to perform an action, respond ONLY with a single JSON tool call and nothing else.
Format: {{"tool":"<tool-name>","params":{{...}}}}
Terminal: {{"tool":"terminalExec","command":"<command>","args":["arg1","arg2"],"cwd":"/path/optional"}}
Only use allowlisted commands.
Available tools:
{tools}
After each tool call you receive its result as JSON. When the step is done, reply in plain text with the result."""

FAILURE_SUMMARY_PROMPT = (
    "Several tool calls in a row have failed. Do not call any more tools. "
    "Reply in plain text with what you accomplished for this step and what could not be done."
)

CANCELLED_RESULT = "Step cancelled before completion."


def compress_for_llm(text: str, max_length: int) -> str:
    """Strip HTML tags and collapse whitespace, then truncate to ``max_length`` characters."""
    compressed = re.sub(r"<[^>]+>", " ", text)
    compressed = re.sub(r"\s+", " ", compressed).strip()
    if len(compressed) <= max_length:
        return compressed
    return compressed[:max_length] + f"... [truncated, {len(text)} chars total]"


def build_step_prompt(state: OrchestrationState) -> str:
    index = state["current_step"]
    plan = state["plan"]
    step = plan[index] if index < len(plan) else state["task"]

    parts = [f"Overall task: {state['task']}"]

    if state["context"]:
        lines = "\n".join(f"{k}: {v}" for k, v in state["context"].items())
        parts.append(f"\nContext:\n{lines}")

    browser = state["browser_context"]
    browser_lines = []
    if browser.get("activeTabUrl"):
        browser_lines.append(
            f"Current tab: {browser.get('activeTabTitle') or 'Untitled'} ({browser['activeTabUrl']})"
        )
    if browser.get("tabCount") is not None:
        browser_lines.append(f"Open tabs: {browser['tabCount']}")
    if browser_lines:
        parts.append("\nBrowser:\n" + "\n".join(browser_lines))

    if state["step_results"]:
        previous = "\n".join(f"Step {i + 1}: {r}" for i, r in enumerate(state["step_results"]))
        parts.append(f"\nCompleted steps:\n{previous}")

    parts.append(f"\nCurrent step ({index + 1}/{max(len(plan), 1)}): {step}")
    return "\n".join(parts)


def _error_text(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or "Agent action failed")
    return str(error) if error else "Agent action failed"


async def dispatch_tool_call(call: ToolCall, runtime: SwarmRuntime) -> Dict[str, Any]:
    """Execute a parsed call and describe the outcome as an observation dict."""
    if isinstance(call, InvalidCall):
        return {"tool": call.tool or "unknown", "ok": False, "error": call.error}

    if isinstance(call, TerminalCall):
        if runtime.command_executor is None:
            return {"tool": call.tool, "ok": False, "error": "Tool execution unavailable."}
        try:
            result = await runtime.command_executor.execute(call.command, call.args, call.cwd)
        except Exception as e:
            return {"tool": call.tool, "ok": False, "error": str(e)}
        return {"tool": call.tool, "ok": result.exit_code == 0, **result.to_dict()}

    if isinstance(call, AgentCall):
        if runtime.correlator is None:
            return {"tool": call.tool, "ok": False, "error": "Agent tool dispatcher unavailable."}
        descriptor = {
            "capability": call.capability,
            "action": call.action,
            "params": call.params,
            "destructive": call.destructive,
        }
        try:
            result = await runtime.correlator.request(descriptor, timeout_ms=runtime.settings.tool_timeout_ms)
        except Exception as e:
            return {"tool": call.tool, "ok": False, "error": str(e) or type(e).__name__}
        if result.get("ok"):
            return {"tool": call.tool, "ok": True, "data": result.get("data")}
        return {"tool": call.tool, "ok": False, "error": _error_text(result.get("error"))}

    raise TypeError(f"Unhandled tool call variant: {type(call).__name__}")


async def _run_tool_loop(
    model: Any,
    messages: List[BaseMessage],
    step_index: int,
    runtime: SwarmRuntime,
) -> str:
    settings = runtime.settings
    history = list(messages)
    last_content = ""
    consecutive_failures = 0

    for iteration in range(settings.max_tool_iterations):
        if runtime.is_cancelled():
            logger.info(f"Executor: step {step_index + 1} cancelled before iteration {iteration}")
            break

        content = await invoke_with_recovery(
            runtime, model, history, f"step {step_index + 1} iteration {iteration}"
        )
        last_content = content

        call = runtime.parser.parse(content)
        if call is None:
            return content

        observation = await dispatch_tool_call(call, runtime)
        logger.info(
            f"Executor: step {step_index + 1} tool {observation['tool']} ok={observation['ok']}"
        )
        runtime.events.tool_executed(step_index, observation["tool"], observation["ok"])

        serialized = json.dumps(observation, ensure_ascii=False, default=str)
        history = history + [
            AIMessage(content=content),
            HumanMessage(content=compress_for_llm(serialized, settings.max_tool_result_chars)),
        ]

        if observation["ok"]:
            consecutive_failures = 0
            continue

        consecutive_failures += 1
        if consecutive_failures >= settings.max_tool_failures:
            logger.warning(
                f"Executor: {consecutive_failures} consecutive tool failures in step "
                f"{step_index + 1}, asking for a summary"
            )
            history = history + [HumanMessage(content=FAILURE_SUMMARY_PROMPT)]
            return await invoke_with_recovery(
                runtime, model, history, f"step {step_index + 1} failure summary"
            )
    else:
        logger.warning(
            f"Executor: step {step_index + 1} reached {settings.max_tool_iterations} tool iterations"
        )

    if not last_content and runtime.is_cancelled():
        return CANCELLED_RESULT
    return last_content


async def executor_node(state: OrchestrationState, runtime: SwarmRuntime) -> Dict[str, Any]:
    """
    Executor Agent - executes ``plan[current_step]``.

    Uses the subagent model (falling back to primary). Errors never escape:
    an unrecovered model failure becomes an ``Error: <message>`` step result.
    """
    step_index = state["current_step"]
    plan = state["plan"]
    step = plan[step_index] if step_index < len(plan) else state["task"]
    runtime.events.step_started(step_index, step, len(plan))
    logger.info(f"Executor: starting step {step_index + 1}/{len(plan)}: {step}")

    model = runtime.models.pick_model("subagent")
    if model is None:
        result = f"[Step {step_index + 1}] No model available"
    else:
        system_prompt = EXECUTOR_SYSTEM_PROMPT
        if runtime.parser is not None:
            system_prompt += TOOL_INSTRUCTIONS.format(tools=runtime.parser.describe())
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=build_step_prompt(state))]

        try:
            if runtime.parser is None:
                result = await invoke_with_recovery(runtime, model, messages, f"step {step_index + 1}")
            else:
                result = await _run_tool_loop(model, messages, step_index, runtime)
        except Exception as e:
            logger.error(f"Executor: step {step_index + 1} failed: {type(e).__name__}: {e}")
            result = f"Error: {e}"

    logger.info(f"Executor: step {step_index + 1} complete")
    runtime.events.step_completed(step_index, result)
    return {
        "step_results": [result],
        "current_step": step_index + 1,
        "total_steps_executed": state["total_steps_executed"] + 1,
    }
