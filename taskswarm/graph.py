"""
Orchestration graph - the planner/executor/evaluator/replanner/synthesizer cycle
"""

import logging
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from taskswarm.agents import (
    SwarmRuntime,
    evaluator_node,
    executor_node,
    planner_node,
    replanner_node,
    synthesizer_node,
)
from taskswarm.config import OrchestratorSettings
from taskswarm.state import OrchestrationState, create_initial_state, merge_update
from taskswarm.tools.correlator import Correlator
from taskswarm.tools.parser import ToolCallParser
from taskswarm.tools.terminal import CommandExecutor
from taskswarm.utils.events import EventEmitter, Notify
from taskswarm.utils.llm import ModelManager

logger = logging.getLogger(__name__)


class NodeName(str, Enum):
    PLANNER = "planner"
    EXECUTOR = "executor"
    EVALUATOR = "evaluator"
    REPLANNER = "replanner"
    SYNTHESIZER = "synthesizer"
    TERMINAL = "terminal"


NodeFn = Callable[[OrchestrationState, SwarmRuntime], Awaitable[Dict[str, Any]]]

NODES: Dict[NodeName, NodeFn] = {
    NodeName.PLANNER: planner_node,
    NodeName.EXECUTOR: executor_node,
    NodeName.EVALUATOR: evaluator_node,
    NodeName.REPLANNER: replanner_node,
    NodeName.SYNTHESIZER: synthesizer_node,
}


def route_after_evaluator(state: OrchestrationState) -> NodeName:
    """
    Routing function after Evaluator.

    ``ok`` continues with the next step while one remains, ``needs_replan``
    goes to the Replanner, anything else finishes.
    """
    verdict = state["eval_verdict"]
    if verdict == "needs_replan":
        return NodeName.REPLANNER
    if verdict == "ok" and state["current_step"] < len(state["plan"]):
        return NodeName.EXECUTOR
    return NodeName.SYNTHESIZER


def route_after_replanner(state: OrchestrationState) -> NodeName:
    """A revised plan is re-checked by the Evaluator; a failed replan finishes the run."""
    if state["eval_verdict"] == "done":
        return NodeName.SYNTHESIZER
    return NodeName.EVALUATOR


def next_node(current: NodeName, state: OrchestrationState) -> NodeName:
    if current == NodeName.PLANNER:
        return NodeName.EXECUTOR
    if current == NodeName.EXECUTOR:
        return NodeName.EVALUATOR
    if current == NodeName.EVALUATOR:
        return route_after_evaluator(state)
    if current == NodeName.REPLANNER:
        return route_after_replanner(state)
    return NodeName.TERMINAL


class Orchestrator:
    """
    Runs one task at a time through the node cycle.

    Flow:
    1. Planner (once)
    2. Executor -> Evaluator, repeated per step
    3. Evaluator -> Replanner -> Evaluator when the plan needs revising
    4. Synthesizer -> done

    Concurrent runs use separate instances; they may share one Correlator.
    """

    def __init__(
        self,
        models: ModelManager,
        parser: Optional[ToolCallParser] = None,
        correlator: Optional[Correlator] = None,
        command_executor: Optional[CommandExecutor] = None,
        notify: Optional[Notify] = None,
        settings: Optional[OrchestratorSettings] = None,
    ):
        self.models = models
        self.parser = parser
        self.correlator = correlator
        self.command_executor = command_executor
        self.notify = notify
        self.settings = settings or OrchestratorSettings.from_env()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop the current run at the next tool iteration or evaluation."""
        if not self._cancelled:
            logger.info("Orchestrator: cancellation requested")
        self._cancelled = True

    def _runtime(self, run_id: str) -> SwarmRuntime:
        return SwarmRuntime(
            models=self.models,
            settings=self.settings,
            events=EventEmitter(self.notify, run_id=run_id),
            parser=self.parser,
            correlator=self.correlator,
            command_executor=self.command_executor,
            run_id=run_id,
            is_cancelled=lambda: self._cancelled,
        )

    async def run(
        self,
        task: str,
        context: Optional[Mapping[str, str]] = None,
        browser_context: Optional[Mapping[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> OrchestrationState:
        """Run the full cycle and return the final state."""
        self._cancelled = False
        run_id = run_id or str(uuid.uuid4())
        runtime = self._runtime(run_id)
        state = create_initial_state(task, context, browser_context)
        logger.info(f"Orchestrator: run {run_id} started: {task[:200]}")

        node = NodeName.PLANNER
        while node != NodeName.TERMINAL:
            state = merge_update(state, {"node_visits": state["node_visits"] + 1})
            logger.debug(f"Orchestrator: visit {state['node_visits']} -> {node.value}")
            update = await NODES[node](state, runtime)
            state = merge_update(state, update)
            node = next_node(node, state)

        logger.info(
            f"Orchestrator: run {run_id} finished after {state['total_steps_executed']} steps "
            f"and {state['node_visits']} node visits"
        )
        return state

    async def execute(
        self,
        task: str,
        context: Optional[Mapping[str, str]] = None,
        browser_context: Optional[Mapping[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> str:
        """Run a task and return the synthesized answer."""
        state = await self.run(task, context, browser_context, run_id=run_id)
        return state["final_result"]
