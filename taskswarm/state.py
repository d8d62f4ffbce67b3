"""OrchestrationState definition and the per-field merge rules between nodes."""

from typing import Any, Dict, List, Literal, Mapping, Optional, TypedDict

EvalVerdict = Literal["ok", "done", "needs_replan"]

EVAL_VERDICTS = ("ok", "done", "needs_replan")


class OrchestrationState(TypedDict):
    """Single record threaded through the planner/executor/evaluator cycle."""

    # The natural-language task, fixed at creation
    task: str

    # Ordered step descriptions; replaced wholesale by the planner/replanner
    plan: List[str]

    # Index of the next step to execute (0 <= current_step <= len(plan))
    current_step: int

    # One result per executed step, append-only
    step_results: List[str]

    # Set once by the synthesizer
    final_result: str

    # Caller-supplied auxiliary facts
    context: Dict[str, str]

    # Environment hints such as the active tab and tab count
    browser_context: Dict[str, Any]

    # Routing decision produced by the evaluator
    eval_verdict: EvalVerdict

    # Executor invocations across the whole run (survives replans)
    total_steps_executed: int

    # Graph-node invocations of any kind
    node_visits: int


# Fields a node update replaces outright
REPLACE_FIELDS = frozenset(
    {
        "plan",
        "current_step",
        "final_result",
        "context",
        "browser_context",
        "eval_verdict",
        "total_steps_executed",
        "node_visits",
    }
)

# Fields a node update extends
APPEND_FIELDS = frozenset({"step_results"})


def create_initial_state(
    task: str,
    context: Optional[Mapping[str, str]] = None,
    browser_context: Optional[Mapping[str, Any]] = None,
) -> OrchestrationState:
    """Build the state a run starts from."""
    return {
        "task": task,
        "plan": [],
        "current_step": 0,
        "step_results": [],
        "final_result": "",
        "context": {str(k): str(v) for k, v in (context or {}).items()},
        "browser_context": dict(browser_context or {}),
        "eval_verdict": "ok",
        "total_steps_executed": 0,
        "node_visits": 0,
    }


def merge_update(state: OrchestrationState, update: Mapping[str, Any]) -> OrchestrationState:
    """
    Merge a node's partial update into a new state.

    Replace-fields overwrite, append-fields extend, ``task`` can never change.
    Unknown keys are rejected so that a typo in a node cannot silently drop data.
    """
    merged: Dict[str, Any] = dict(state)
    for key, value in update.items():
        if key == "task":
            if value != state["task"]:
                raise ValueError("task is immutable once a run has started")
            continue
        if key in APPEND_FIELDS:
            merged[key] = list(merged.get(key, [])) + list(value)
        elif key in REPLACE_FIELDS:
            merged[key] = list(value) if key == "plan" else value
        else:
            raise KeyError(f"Unknown state field: {key}")

    if merged["eval_verdict"] not in EVAL_VERDICTS:
        raise ValueError(f"Invalid eval_verdict: {merged['eval_verdict']!r}")
    if merged["current_step"] < state["current_step"]:
        raise ValueError("current_step must not decrease")
    return merged  # type: ignore[return-value]


def remaining_steps(state: OrchestrationState) -> List[str]:
    return state["plan"][state["current_step"]:]
