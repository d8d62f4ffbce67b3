"""Orchestration nodes: planner, executor, evaluator, replanner, synthesizer."""

from .base import SwarmRuntime
from .planner import planner_node
from .executor import executor_node
from .evaluator import evaluator_node
from .replanner import replanner_node
from .synthesizer import synthesizer_node

__all__ = [
    "SwarmRuntime",
    "planner_node",
    "executor_node",
    "evaluator_node",
    "replanner_node",
    "synthesizer_node",
]
