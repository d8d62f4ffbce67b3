"""
Planner Agent - decomposes the task into an ordered list of steps
"""

import logging
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from taskswarm.agents.base import SwarmRuntime, invoke_model, parse_step_list
from taskswarm.state import OrchestrationState

logger = logging.getLogger(__name__)

PLANNER_SYSTEM_PROMPT = """You are the task planner for a browser-based AI agent.
Break down the user's task into a list of concrete, actionable steps.
Each step should be a single action that can be executed independently.
Respond ONLY with a JSON array of step strings. Example:
["Search for the topic on Google", "Open the first relevant result", "Extract the key information", "Summarize findings for the user"]
Keep it to 2-6 steps. If the task is simple, use fewer steps.
{tools_section}"""


def _tools_section(runtime: SwarmRuntime) -> str:
    if runtime.parser is None:
        return ""
    return (
        "\nThe executor can use these tools, so plan steps they can accomplish:\n"
        + runtime.parser.describe()
    )


async def planner_node(state: OrchestrationState, runtime: SwarmRuntime) -> Dict[str, Any]:
    """
    Planner Agent - first node in the graph.

    Asks the primary model for a JSON array of steps. Any failure (no model,
    unparsable reply, empty array) yields the single-step plan ``[task]``.
    """
    task = state["task"]
    fallback = {"plan": [task], "current_step": 0}

    model = runtime.models.create_model("primary")
    if model is None:
        logger.info("Planner: no primary model, using single-step plan")
        return fallback

    messages = [
        SystemMessage(content=PLANNER_SYSTEM_PROMPT.format(tools_section=_tools_section(runtime))),
        HumanMessage(content=task),
    ]

    try:
        content = await invoke_model(model, messages, runtime.run_config("planner"))
    except Exception as e:
        logger.warning(f"Planner: model invocation failed, using single-step plan: {e}")
        return fallback

    logger.debug(f"Planner: raw reply (first 500 chars): {content[:500]}")
    steps = parse_step_list(content)
    if steps is None:
        logger.warning("Planner: no valid step array in reply, using single-step plan")
        return fallback

    logger.info(f"Planner: {len(steps)} steps planned")
    runtime.events.plan_ready(steps, task)
    return {"plan": steps, "current_step": 0}
