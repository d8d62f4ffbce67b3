"""
Example usage of the TaskSwarm orchestrator

This script runs the orchestrator in-process, without the API server.

Note: This example does not require API keys. With no models configured the
planner falls back to a single-step plan and the executor reports that no
model is available; set TASKSWARM_PRIMARY_PROVIDER / TASKSWARM_PRIMARY_MODEL
(and the provider's API key) to see the full plan/execute/evaluate cycle.
"""

import asyncio
import logging

from taskswarm import Orchestrator
from taskswarm.tools import CommandExecutor, ToolCallParser
from taskswarm.utils.llm import ModelManager


def print_event(method, params):
    print(f"  [{method}] {params}")


async def example_task():
    """Example: plan and answer a simple task"""
    print("\n" + "=" * 60)
    print("Example: run a task through the orchestrator")
    print("=" * 60)

    models = ModelManager.from_env()
    for role in ("primary", "subagent"):
        config = models.get_config(role)
        print(f"{role}: {config.provider}/{config.model}" if config else f"{role}: not configured")

    orchestrator = Orchestrator(
        models,
        parser=ToolCallParser(),
        command_executor=CommandExecutor.from_env(),
        notify=print_event,
    )

    state = await orchestrator.run(
        "List three facts about the Python programming language",
        context={"audience": "beginners"},
    )

    print("\nPlan:")
    for i, step in enumerate(state["plan"], start=1):
        print(f"  {i}. {step}")
    print(f"\nSteps executed: {state['total_steps_executed']}")
    print(f"\nResult:\n{state['final_result']}")


def main():
    """Run all examples"""
    logging.basicConfig(level=logging.WARNING)
    print("\n" + "=" * 60)
    print("TaskSwarm - Example Usage")
    print("=" * 60)

    asyncio.run(example_task())

    print("\n" + "=" * 60)
    print("Examples complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
