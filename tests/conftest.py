"""Pytest configuration and shared fakes for the orchestration tests."""

from typing import Any, Callable, List, Optional

import pytest
from langchain_core.messages import AIMessage

from taskswarm.agents import SwarmRuntime
from taskswarm.config import OrchestratorSettings
from taskswarm.utils.events import EventEmitter
from taskswarm.utils.llm import ModelManager


class FakeChatModel:
    """Scripted chat model: replies are consumed in order, exceptions are raised."""

    def __init__(self, replies=(), default: str = "Done."):
        self.replies: List[Any] = list(replies)
        self.default = default
        self.calls: List[list] = []
        self.configs: List[Any] = []

    async def ainvoke(self, messages, config=None, **kwargs):
        self.calls.append(list(messages))
        self.configs.append(config)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, BaseException):
            raise reply
        return AIMessage(content=reply)

    @property
    def call_count(self) -> int:
        return len(self.calls)


class RecordingSink:
    """Collects ``notify(method, params)`` calls."""

    def __init__(self):
        self.events: List[tuple] = []

    def __call__(self, method: str, params: dict) -> None:
        self.events.append((method, params))

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.events]

    def params_for(self, method: str) -> List[dict]:
        return [params for m, params in self.events if m == method]


@pytest.fixture
def fake_model() -> Callable[..., FakeChatModel]:
    return FakeChatModel


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_manager() -> Callable[..., ModelManager]:
    def _make(primary=None, subagent=None) -> ModelManager:
        manager = ModelManager()
        if primary is not None:
            manager.register("primary", primary)
        if subagent is not None:
            manager.register("subagent", subagent)
        return manager

    return _make


@pytest.fixture
def make_runtime(make_manager, sink) -> Callable[..., SwarmRuntime]:
    def _make(
        primary=None,
        subagent=None,
        parser=None,
        correlator=None,
        command_executor=None,
        settings: Optional[OrchestratorSettings] = None,
        is_cancelled: Optional[Callable[[], bool]] = None,
    ) -> SwarmRuntime:
        runtime = SwarmRuntime(
            models=make_manager(primary=primary, subagent=subagent),
            settings=settings or OrchestratorSettings(),
            events=EventEmitter(sink),
            parser=parser,
            correlator=correlator,
            command_executor=command_executor,
            run_id="test-run",
        )
        if is_cancelled is not None:
            runtime.is_cancelled = is_cancelled
        return runtime

    return _make
