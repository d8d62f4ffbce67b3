"""
Runtime configuration - limits, model roles and the command allowlist
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables before anything reads them
load_dotenv()

logger = logging.getLogger(__name__)

MODEL_ROLES = ("primary", "secondary", "subagent")

DEFAULT_COMMAND_ALLOWLIST: List[Dict[str, Any]] = [
    {"command": "codex", "argsRegex": ["^--project$", "^.+$"]},
    {"command": "claude", "argsRegex": ["^code$", "^--project$", "^.+$"]},
]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}, using {default}")
        return default
    if value < 1:
        logger.warning(f"Ignoring non-positive {name}={raw!r}, using {default}")
        return default
    return value


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}")
        return None


@dataclass
class OrchestratorSettings:
    """Guard rails for one orchestration run.

    The step cap and node-visit bail threshold bound the
    planner/executor/evaluator cycle; reaching either ends the run normally.
    """

    max_total_steps: int = 15
    node_visit_bail: int = 27
    max_tool_iterations: int = 10
    max_tool_failures: int = 3
    max_tool_result_chars: int = 4_000
    tool_timeout_ms: int = 30_000
    model_retries: int = 1

    @classmethod
    def from_env(cls) -> "OrchestratorSettings":
        defaults = cls()
        return cls(
            max_total_steps=_env_int("TASKSWARM_MAX_TOTAL_STEPS", defaults.max_total_steps),
            node_visit_bail=_env_int("TASKSWARM_NODE_VISIT_BAIL", defaults.node_visit_bail),
            max_tool_iterations=_env_int("TASKSWARM_MAX_TOOL_ITERATIONS", defaults.max_tool_iterations),
            max_tool_failures=_env_int("TASKSWARM_MAX_TOOL_FAILURES", defaults.max_tool_failures),
            max_tool_result_chars=_env_int(
                "TASKSWARM_MAX_TOOL_RESULT_CHARS", defaults.max_tool_result_chars
            ),
            tool_timeout_ms=_env_int("TASKSWARM_TOOL_TIMEOUT_MS", defaults.tool_timeout_ms),
            model_retries=_env_int("TASKSWARM_MODEL_RETRIES", defaults.model_retries),
        )


@dataclass
class RoleSettings:
    """Model selection for one role, as read from the environment."""

    role: str
    provider: str
    model: str
    base_url: Optional[str] = None
    temperature: Optional[float] = None


def load_role_settings() -> List[RoleSettings]:
    """
    Read TASKSWARM_<ROLE>_PROVIDER / _MODEL / _BASE_URL / _TEMPERATURE.

    Roles without both a provider and a model are left unconfigured.
    """
    roles = []
    for role in MODEL_ROLES:
        prefix = f"TASKSWARM_{role.upper()}_"
        provider = os.getenv(prefix + "PROVIDER")
        model = os.getenv(prefix + "MODEL")
        if not provider or not model:
            continue
        roles.append(
            RoleSettings(
                role=role,
                provider=provider.lower(),
                model=model,
                base_url=os.getenv(prefix + "BASE_URL") or None,
                temperature=_env_float(prefix + "TEMPERATURE"),
            )
        )
    return roles


def load_command_allowlist() -> List[Dict[str, Any]]:
    """Parse TASKSWARM_COMMAND_ALLOWLIST (JSON), falling back to the defaults."""
    raw = os.getenv("TASKSWARM_COMMAND_ALLOWLIST")
    if not raw:
        return [dict(entry) for entry in DEFAULT_COMMAND_ALLOWLIST]
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("TASKSWARM_COMMAND_ALLOWLIST is not valid JSON, using defaults")
        return [dict(entry) for entry in DEFAULT_COMMAND_ALLOWLIST]

    entries = []
    for item in data if isinstance(data, list) else []:
        if not isinstance(item, dict) or not isinstance(item.get("command"), str):
            continue
        patterns = item.get("argsRegex") or []
        entries.append(
            {
                "command": item["command"],
                "argsRegex": [str(p) for p in patterns if isinstance(p, str)],
            }
        )
    return entries


def get_workspace_dir() -> Optional[Path]:
    raw = os.getenv("TASKSWARM_WORKSPACE_DIR")
    if not raw:
        return None
    return Path(raw).expanduser().resolve()
