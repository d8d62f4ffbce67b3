"""
LLM Model Factory - per-role chat model configuration
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI

from taskswarm.config import MODEL_ROLES, load_role_settings

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "anthropic", "ollama", "llamacpp")

# Local servers that speak the OpenAI chat/completions protocol
LOCAL_BASE_URLS = {
    "ollama": "http://localhost:11434/v1",
    "llamacpp": "http://localhost:8080/v1",
}

DEFAULT_TEMPERATURE = 0.7


@dataclass
class ModelConfig:
    provider: str
    model: str
    role: str = "primary"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: Optional[float] = None

    def public_dict(self) -> Dict[str, Any]:
        """Configuration without the API key, for status endpoints."""
        return {
            "provider": self.provider,
            "model": self.model,
            "role": self.role,
            "baseUrl": self.base_url,
            "temperature": self.temperature,
            "apiKeySet": bool(self.api_key),
        }


def get_llm(config: ModelConfig, streaming: bool = False):
    """
    Create a LangChain chat model for a configuration.

    Args:
        config: provider, model name, credentials and sampling settings
        streaming: Whether to enable streaming

    Returns:
        A configured LangChain chat model instance
    """
    temperature = DEFAULT_TEMPERATURE if config.temperature is None else config.temperature

    if config.provider == "openai":
        api_key = config.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY not found in environment variables")
        base_url = config.base_url or os.getenv("OPENAI_API_BASE")
        return ChatOpenAI(
            model=config.model,
            temperature=temperature,
            streaming=streaming,
            api_key=api_key,
            base_url=base_url.rstrip("/") if base_url else None,
        )

    elif config.provider == "anthropic":
        api_key = config.api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY not found in environment variables")
        kwargs: Dict[str, Any] = {}
        if config.base_url:
            kwargs["base_url"] = config.base_url
        return ChatAnthropic(
            model=config.model, temperature=temperature, streaming=streaming, api_key=api_key, **kwargs
        )

    elif config.provider in LOCAL_BASE_URLS:
        # Local servers ignore the key, but the client requires one
        return ChatOpenAI(
            model=config.model,
            temperature=temperature,
            streaming=streaming,
            api_key=config.api_key or config.provider,
            base_url=config.base_url or LOCAL_BASE_URLS[config.provider],
        )

    else:
        raise ValueError(f"Unsupported provider: {config.provider}")


class ModelManager:
    """Holds one model configuration per role and hands out ready-to-invoke models."""

    def __init__(self):
        self._configs: Dict[str, ModelConfig] = {}
        self._models: Dict[str, Any] = {}

    @classmethod
    def from_env(cls) -> "ModelManager":
        manager = cls()
        for role_settings in load_role_settings():
            try:
                manager.configure(
                    ModelConfig(
                        provider=role_settings.provider,
                        model=role_settings.model,
                        role=role_settings.role,
                        base_url=role_settings.base_url,
                        temperature=role_settings.temperature,
                    )
                )
            except ValueError as e:
                logger.warning(f"Skipping {role_settings.role} model from environment: {e}")
        return manager

    def configure(self, config: ModelConfig) -> None:
        if config.role not in MODEL_ROLES:
            raise ValueError(f"Unknown model role: {config.role}")
        if config.provider not in PROVIDERS:
            raise ValueError(f"Unsupported provider: {config.provider}")
        self._configs[config.role] = config
        self._models.pop(config.role, None)
        logger.info(f"Configured {config.role}: {config.provider}/{config.model}")

    def register(self, role: str, model: Any) -> None:
        """Bind an already constructed chat model (anything with ``ainvoke``) to a role."""
        if role not in MODEL_ROLES:
            raise ValueError(f"Unknown model role: {role}")
        self._models[role] = model

    def is_configured(self, role: str) -> bool:
        return role in self._models or role in self._configs

    def get_config(self, role: str) -> Optional[ModelConfig]:
        return self._configs.get(role)

    def list_configs(self) -> List[ModelConfig]:
        return list(self._configs.values())

    def create_model(self, role: str):
        """Return the chat model for ``role``, or None when it is not configured."""
        if role in self._models:
            return self._models[role]
        config = self._configs.get(role)
        if config is None:
            return None
        try:
            model = get_llm(config)
        except Exception:
            logger.exception(f"Could not build the {role} model ({config.provider}/{config.model})")
            return None
        self._models[role] = model
        return model

    def pick_model(self, role: str):
        """Like create_model, but secondary and subagent fall back to primary."""
        model = self.create_model(role)
        if model is None and role != "primary":
            model = self.create_model("primary")
        return model
