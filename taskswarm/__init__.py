"""TaskSwarm - autonomous task orchestration with planner, executor, evaluator, replanner and synthesizer."""

from taskswarm.graph import NodeName, Orchestrator
from taskswarm.state import OrchestrationState, create_initial_state, merge_update

__version__ = "1.0.0"

__all__ = [
    "NodeName",
    "Orchestrator",
    "OrchestrationState",
    "create_initial_state",
    "merge_update",
]
