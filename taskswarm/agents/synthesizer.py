"""
Synthesizer Agent - combines the step results into the final answer
"""

import logging
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from taskswarm.agents.base import SwarmRuntime, invoke_model
from taskswarm.state import OrchestrationState

logger = logging.getLogger(__name__)

SYNTHESIZER_SYSTEM_PROMPT = (
    "Synthesize the results of the completed steps into a clear, cohesive response "
    "for the user. Be concise."
)


def _format_step_results(state: OrchestrationState) -> str:
    blocks = []
    for i, result in enumerate(state["step_results"]):
        step = state["plan"][i] if i < len(state["plan"]) else f"Step {i + 1}"
        blocks.append(f"Step: {step}\nResult: {result or '(no result)'}")
    return "\n\n".join(blocks)


async def synthesizer_node(state: OrchestrationState, runtime: SwarmRuntime) -> Dict[str, Any]:
    """
    Synthesizer Agent - final node.

    A single step result is returned verbatim; otherwise the primary model
    merges them, falling back to the results joined by blank lines.
    """
    results = state["step_results"]
    if len(results) == 1:
        return {"final_result": results[0]}

    joined = "\n\n".join(results)
    if not results:
        return {"final_result": joined}

    model = runtime.models.create_model("primary")
    if model is None:
        return {"final_result": joined}

    messages = [
        SystemMessage(content=SYNTHESIZER_SYSTEM_PROMPT),
        HumanMessage(content=f"Task: {state['task']}\n\n{_format_step_results(state)}"),
    ]
    try:
        content = await invoke_model(model, messages, runtime.run_config("synthesizer"))
    except Exception as e:
        logger.warning(f"Synthesizer: model invocation failed, joining step results: {e}")
        return {"final_result": joined}

    logger.info(f"Synthesizer: final answer of {len(content)} chars")
    return {"final_result": content}
