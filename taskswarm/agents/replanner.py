"""
Replanner Agent - revises the remaining steps after failures
"""

import logging
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from taskswarm.agents.base import SwarmRuntime, invoke_model, parse_step_list
from taskswarm.state import OrchestrationState, remaining_steps

logger = logging.getLogger(__name__)

REPLANNER_SYSTEM_PROMPT = """You revise plans for a browser-based AI agent.
Some steps of the current plan did not go as expected. Given the task, the
completed steps with their results and the steps that were still pending,
propose a new sequence of steps that finishes the task from here.
Do not repeat steps that already succeeded.
Respond ONLY with a JSON array of step strings. Keep it to 1-6 steps."""


def _replan_request(state: OrchestrationState) -> str:
    lines = [f"Task: {state['task']}", "", "Completed steps:"]
    done = state["plan"][: state["current_step"]]
    for i, step in enumerate(done):
        result = state["step_results"][i] if i < len(state["step_results"]) else "(no result)"
        status = "FAILED" if result.startswith("Error:") else "done"
        lines.append(f"{i + 1}. {step} [{status}]\n   Result: {result}")

    pending = remaining_steps(state)
    lines.append("")
    lines.append("Pending steps:")
    if pending:
        lines.extend(f"- {step}" for step in pending)
    else:
        lines.append("(none)")
    return "\n".join(lines)


async def replanner_node(state: OrchestrationState, runtime: SwarmRuntime) -> Dict[str, Any]:
    """
    Replanner Agent - entered only on a ``needs_replan`` verdict.

    Keeps the completed prefix of the plan and appends the new steps. Without
    a usable answer the verdict becomes ``done`` so the run can finish.
    """
    model = runtime.models.create_model("primary")
    if model is None:
        logger.info("Replanner: no primary model, finishing with current results")
        return {"eval_verdict": "done"}

    messages = [
        SystemMessage(content=REPLANNER_SYSTEM_PROMPT),
        HumanMessage(content=_replan_request(state)),
    ]
    try:
        content = await invoke_model(model, messages, runtime.run_config("replanner"))
    except Exception as e:
        logger.warning(f"Replanner: model invocation failed: {e}")
        return {"eval_verdict": "done"}

    logger.debug(f"Replanner: raw reply (first 500 chars): {content[:500]}")
    new_steps = parse_step_list(content)
    if new_steps is None:
        logger.warning("Replanner: no valid step array in reply, finishing")
        return {"eval_verdict": "done"}

    previous_plan = list(state["plan"])
    plan = previous_plan[: state["current_step"]] + new_steps
    logger.info(f"Replanner: {len(new_steps)} new steps after step {state['current_step']}")
    runtime.events.replan(new_steps, previous_plan)
    return {"plan": plan, "eval_verdict": "ok"}
