"""
LangSmith Configuration and Utilities

This module provides utilities for configuring and using LangSmith tracing.
"""

import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Ensure environment variables are loaded
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_PROJECT = "taskswarm"


def is_langsmith_enabled() -> bool:
    """
    Check if LangSmith tracing is enabled.

    Returns:
        True if LANGCHAIN_TRACING_V2 is set to 'true', False otherwise
    """
    return os.getenv("LANGCHAIN_TRACING_V2", "").lower() == "true"


def get_langsmith_project() -> Optional[str]:
    return os.getenv("LANGCHAIN_PROJECT")


def get_langsmith_api_key() -> Optional[str]:
    return os.getenv("LANGCHAIN_API_KEY")


def get_langsmith_config() -> Dict[str, Any]:
    """
    Get LangSmith configuration status.

    Returns:
        Dictionary with configuration status and values (without sensitive data)
    """
    return {
        "enabled": is_langsmith_enabled(),
        "project": get_langsmith_project(),
        "api_key_set": bool(get_langsmith_api_key()),
        "endpoint": os.getenv("LANGCHAIN_ENDPOINT", "https://api.smith.langchain.com"),
    }


def create_run_config(
    run_id: Optional[str] = None,
    run_name: Optional[str] = None,
    tags: Optional[list[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Create a RunnableConfig carrying LangSmith tracing metadata for one model call.

    Args:
        run_id: Orchestration run the call belongs to (groups traces together)
        run_name: Name for this call (appears in LangSmith UI), e.g. "swarm.planner"
        tags: Optional list of tags for filtering in LangSmith
        metadata: Optional metadata dictionary for additional context

    Returns:
        Configuration dictionary for chat model ``ainvoke`` calls
    """
    config: Dict[str, Any] = {}

    if run_name:
        config["run_name"] = run_name

    if tags:
        config["tags"] = list(tags)

    merged_metadata = dict(metadata or {})
    if run_id:
        merged_metadata["swarm_run_id"] = run_id
    if merged_metadata:
        config["metadata"] = merged_metadata

    return config


def validate_langsmith_config() -> tuple[bool, list[str]]:
    """
    Validate LangSmith configuration and return status with any issues.

    Returns:
        Tuple of (is_valid, list_of_issues)
    """
    issues = []

    if not is_langsmith_enabled():
        return True, []

    if not get_langsmith_api_key():
        issues.append("LANGCHAIN_API_KEY is not set (required when LANGCHAIN_TRACING_V2=true)")

    return len(issues) == 0, issues


def log_langsmith_status() -> None:
    """Log LangSmith configuration status; used at server startup."""
    config = get_langsmith_config()

    if config["enabled"]:
        logger.info(
            "LangSmith tracing ENABLED (project=%s, api_key=%s, endpoint=%s)",
            config["project"] or DEFAULT_PROJECT,
            "set" if config["api_key_set"] else "NOT SET",
            config["endpoint"],
        )
    else:
        logger.info("LangSmith tracing DISABLED; set LANGCHAIN_TRACING_V2=true to enable")
