"""
Utilities package initialization
"""

from taskswarm.utils.errors import ErrorKind, classify_error, is_retryable
from taskswarm.utils.events import EventEmitter
from taskswarm.utils.langsmith_config import (
    is_langsmith_enabled,
    get_langsmith_config,
    create_run_config,
    validate_langsmith_config,
    log_langsmith_status,
)
from taskswarm.utils.llm import ModelConfig, ModelManager, get_llm

__all__ = [
    "ErrorKind",
    "classify_error",
    "is_retryable",
    "EventEmitter",
    "is_langsmith_enabled",
    "get_langsmith_config",
    "create_run_config",
    "validate_langsmith_config",
    "log_langsmith_status",
    "ModelConfig",
    "ModelManager",
    "get_llm",
]
