"""
Fire-and-forget orchestration events for observers (UI, logs, the executor channel)
"""

import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Notify = Callable[[str, Dict[str, Any]], None]

PLAN_READY = "swarmPlanReady"
STEP_STARTED = "swarmStepStarted"
TOOL_EXECUTED = "swarmToolExecuted"
STEP_COMPLETED = "swarmStepCompleted"
REPLAN = "swarmReplan"
RECOVERY_ATTEMPTED = "swarmRecoveryAttempted"


class EventEmitter:
    """
    Wraps an optional notify callable; a failing sink never affects the run.

    When bound to a run, every payload carries its ``runId`` so observers can
    tell concurrent runs apart and cancel one of them.
    """

    def __init__(self, notify: Optional[Notify] = None, run_id: Optional[str] = None):
        self._notify = notify
        self.run_id = run_id

    def emit(self, method: str, **params: Any) -> None:
        if self._notify is None:
            return
        if self.run_id:
            params["runId"] = self.run_id
        try:
            self._notify(method, params)
        except Exception:
            logger.exception(f"Event sink failed for {method}")

    def plan_ready(self, steps: List[str], task: str) -> None:
        self.emit(PLAN_READY, steps=list(steps), task=task)

    def step_started(self, step_index: int, description: str, total_steps: int) -> None:
        self.emit(STEP_STARTED, stepIndex=step_index, description=description, totalSteps=total_steps)

    def tool_executed(self, step_index: int, tool: str, ok: bool) -> None:
        self.emit(TOOL_EXECUTED, stepIndex=step_index, tool=tool, ok=ok)

    def step_completed(self, step_index: int, result: str) -> None:
        self.emit(STEP_COMPLETED, stepIndex=step_index, result=result)

    def replan(self, new_steps: List[str], previous_plan: List[str]) -> None:
        self.emit(REPLAN, newSteps=list(new_steps), previousPlan=list(previous_plan))

    def recovery_attempted(self, operation: str, error: str, attempt: int) -> None:
        self.emit(RECOVERY_ATTEMPTED, operation=operation, error=error, attempt=attempt)
