"""
Shared runtime and model-call helpers for the orchestration nodes
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from langchain_core.messages import BaseMessage, HumanMessage

from taskswarm.config import OrchestratorSettings
from taskswarm.tools.correlator import Correlator
from taskswarm.tools.parser import ToolCallParser
from taskswarm.tools.terminal import CommandExecutor
from taskswarm.utils.errors import is_retryable
from taskswarm.utils.events import EventEmitter
from taskswarm.utils.langsmith_config import create_run_config
from taskswarm.utils.llm import ModelManager

logger = logging.getLogger(__name__)


def _never_cancelled() -> bool:
    return False


@dataclass
class SwarmRuntime:
    """Collaborators and limits shared by every node of one run."""

    models: ModelManager
    settings: OrchestratorSettings = field(default_factory=OrchestratorSettings)
    events: EventEmitter = field(default_factory=EventEmitter)
    parser: Optional[ToolCallParser] = None
    correlator: Optional[Correlator] = None
    command_executor: Optional[CommandExecutor] = None
    run_id: str = ""
    is_cancelled: Callable[[], bool] = _never_cancelled

    def run_config(self, node: str) -> Dict[str, Any]:
        return create_run_config(run_id=self.run_id, run_name=f"swarm.{node}", tags=["taskswarm", node])


def message_text(response: Any) -> str:
    """Text of a chat model reply; structured content blocks are JSON-encoded."""
    content = getattr(response, "content", response)
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)


async def invoke_model(model: Any, messages: List[BaseMessage], config: Optional[Dict[str, Any]] = None) -> str:
    response = await model.ainvoke(messages, config=config)
    return message_text(response)


async def invoke_with_recovery(
    runtime: SwarmRuntime,
    model: Any,
    messages: List[BaseMessage],
    operation: str,
    node: str = "executor",
) -> str:
    """
    Invoke a model, retrying transient failures.

    Each retry emits a recovery event and tells the model what went wrong so
    it can adapt. Fatal errors, and transient ones once retries are spent,
    propagate to the caller.
    """
    attempt = 0
    current = list(messages)
    while True:
        try:
            return await invoke_model(model, current, runtime.run_config(node))
        except Exception as e:
            if not is_retryable(e) or attempt >= runtime.settings.model_retries:
                raise
            attempt += 1
            logger.warning(f"Retryable error on {operation} (attempt {attempt}): {e}")
            runtime.events.recovery_attempted(operation, str(e), attempt)
            current = current + [
                HumanMessage(
                    content=f"The previous model call failed: {e}. "
                    "Adjust your approach - try a simpler action or a different tool."
                )
            ]


def extract_json(content: str, opener: str = "[") -> Any:
    """
    Find a JSON array (``opener="["``) or object (``opener="{"``) in a model reply.

    Tries a fenced ```json block, then the outermost bracket pair, then the
    whole reply. Returns None when nothing parses.
    """
    closer = "]" if opener == "[" else "}"

    fenced = re.search(r"```(?:json)?\s*(" + re.escape(opener) + r".*?" + re.escape(closer) + r")\s*```", content, re.DOTALL)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            logger.debug("Found fenced block but JSON parsing failed")

    start = content.find(opener)
    end = content.rfind(closer)
    if start != -1 and end > start:
        try:
            return json.loads(content[start:end + 1])
        except json.JSONDecodeError:
            logger.debug("Found bracket structure but JSON parsing failed")

    try:
        return json.loads(content.strip())
    except json.JSONDecodeError:
        return None


def parse_step_list(content: str) -> Optional[List[str]]:
    """A non-empty JSON array of strings, or None."""
    parsed = extract_json(content, "[")
    if not isinstance(parsed, list) or not parsed:
        return None
    if not all(isinstance(step, str) for step in parsed):
        return None
    return list(parsed)
