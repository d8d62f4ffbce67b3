"""
Evaluator Agent - decides whether to continue, replan or finish after each step
"""

import logging
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from taskswarm.agents.base import SwarmRuntime, extract_json, invoke_model
from taskswarm.schema import EvaluatorVerdict
from taskswarm.state import EVAL_VERDICTS, OrchestrationState

logger = logging.getLogger(__name__)

EVALUATOR_SYSTEM_PROMPT = """You review the progress of an AI agent working through a plan.
Given the task, the plan and the results so far, decide how to proceed:
- "ok": the work is on track; continue with the next planned step.
- "done": the results already satisfy the task; stop and answer.
- "needs_replan": steps failed or the plan no longer fits; the remaining steps must be revised.

Respond ONLY with a JSON object in this exact format:
{"verdict": "ok" | "done" | "needs_replan"}"""


def _progress_report(state: OrchestrationState) -> str:
    lines = [f"Task: {state['task']}", "", "Plan:"]
    for i, step in enumerate(state["plan"]):
        marker = "x" if i < state["current_step"] else " "
        lines.append(f"[{marker}] {i + 1}. {step}")
    lines.append("")
    lines.append("Results:")
    for i, result in enumerate(state["step_results"]):
        lines.append(f"Step {i + 1}: {result}")
    return "\n".join(lines)


def _parse_verdict(content: str):
    parsed = extract_json(content, "{")
    if not isinstance(parsed, dict):
        return None
    verdict = parsed.get("verdict")
    if verdict not in EVAL_VERDICTS:
        return None
    return EvaluatorVerdict(verdict=verdict, reason=str(parsed.get("reason") or ""))


async def _structured_review(model, messages, config):
    """Ask for an EvaluatorVerdict directly when the model supports structured output."""
    with_structured_output = getattr(model, "with_structured_output", None)
    if with_structured_output is None:
        return None
    try:
        structured_llm = with_structured_output(EvaluatorVerdict)
        review = await structured_llm.ainvoke(messages, config=config)
    except Exception as e:
        logger.debug(f"Evaluator: structured output failed, parsing text reply: {e}")
        return None
    return review if isinstance(review, EvaluatorVerdict) else None


async def evaluator_node(state: OrchestrationState, runtime: SwarmRuntime) -> Dict[str, Any]:
    """
    Evaluator Agent - runs after every executor step.

    The deterministic guards (cancellation, step cap, node-visit bail) never
    call the model.
    """
    settings = runtime.settings
    steps_remain = state["current_step"] < len(state["plan"])
    fallback = "ok" if steps_remain else "done"

    if runtime.is_cancelled():
        logger.info("Evaluator: run cancelled")
        return {"eval_verdict": "done"}

    if state["total_steps_executed"] >= settings.max_total_steps:
        logger.warning(f"Evaluator: step cap of {settings.max_total_steps} reached")
        return {"eval_verdict": "done"}

    if state["node_visits"] >= settings.node_visit_bail:
        logger.warning(f"Evaluator: {state['node_visits']} node visits, bailing out")
        return {"eval_verdict": "done"}

    model = runtime.models.create_model("primary")
    if model is None:
        return {"eval_verdict": fallback}

    messages = [
        SystemMessage(content=EVALUATOR_SYSTEM_PROMPT),
        HumanMessage(content=_progress_report(state)),
    ]
    config = runtime.run_config("evaluator")

    # Use structured output if available, otherwise parse JSON from the reply
    review = await _structured_review(model, messages, config)
    if review is None:
        try:
            content = await invoke_model(model, messages, config)
        except Exception as e:
            logger.warning(f"Evaluator: model invocation failed, verdict {fallback}: {e}")
            return {"eval_verdict": fallback}

        logger.debug(f"Evaluator: raw reply (first 500 chars): {content[:500]}")
        review = _parse_verdict(content)
        if review is None:
            logger.warning(f"Evaluator: no valid verdict in reply, verdict {fallback}")
            return {"eval_verdict": fallback}

    logger.info(f"Evaluator: verdict {review.verdict} ({review.reason or 'no reason given'})")
    return {"eval_verdict": review.verdict}
