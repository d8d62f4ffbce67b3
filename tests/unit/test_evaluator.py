"""
Unit tests for the Evaluator agent
"""

import logging

import pytest
from langchain_core.messages import AIMessage

from taskswarm.agents import evaluator_node
from taskswarm.config import OrchestratorSettings
from taskswarm.schema import EvaluatorVerdict
from taskswarm.state import create_initial_state, merge_update


def state_with(plan=("a", "b"), current_step=1, results=("r1",), **extra):
    state = create_initial_state("task")
    update = {"plan": list(plan), "current_step": current_step, "step_results": list(results)}
    update.update(extra)
    return merge_update(state, update)


@pytest.mark.asyncio
async def test_cancelled_is_done_without_model_call(make_runtime, fake_model):
    model = fake_model(['{"verdict": "ok"}'])
    runtime = make_runtime(primary=model, is_cancelled=lambda: True)

    assert await evaluator_node(state_with(), runtime) == {"eval_verdict": "done"}
    assert model.call_count == 0


@pytest.mark.asyncio
async def test_step_cap(make_runtime, fake_model):
    model = fake_model(['{"verdict": "ok"}'])

    update = await evaluator_node(state_with(total_steps_executed=15), make_runtime(primary=model))

    assert update == {"eval_verdict": "done"}
    assert model.call_count == 0


@pytest.mark.asyncio
async def test_node_visit_bail(make_runtime, fake_model):
    model = fake_model(['{"verdict": "needs_replan"}'])

    update = await evaluator_node(state_with(node_visits=27), make_runtime(primary=model))

    assert update == {"eval_verdict": "done"}
    assert model.call_count == 0


@pytest.mark.asyncio
async def test_limits_come_from_settings(make_runtime, fake_model):
    model = fake_model(['{"verdict": "ok"}'])
    runtime = make_runtime(primary=model, settings=OrchestratorSettings(max_total_steps=2))

    update = await evaluator_node(state_with(total_steps_executed=2), runtime)

    assert update == {"eval_verdict": "done"}


@pytest.mark.asyncio
async def test_without_model_continues_while_steps_remain(make_runtime):
    runtime = make_runtime()

    assert await evaluator_node(state_with(current_step=1), runtime) == {"eval_verdict": "ok"}
    assert await evaluator_node(state_with(current_step=2, results=("r1", "r2")), runtime) == {
        "eval_verdict": "done"
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("verdict", ["ok", "done", "needs_replan"])
async def test_model_verdict(make_runtime, fake_model, verdict):
    model = fake_model([f'Assessment:\n```json\n{{"verdict": "{verdict}", "reason": "because"}}\n```'])

    update = await evaluator_node(state_with(), make_runtime(primary=model))

    assert update == {"eval_verdict": verdict}
    report = model.calls[0][1].content
    assert "[x] 1. a" in report
    assert "[ ] 2. b" in report
    assert "Step 1: r1" in report


@pytest.mark.asyncio
async def test_unparsable_verdict_falls_back(make_runtime, fake_model):
    runtime = make_runtime(primary=fake_model(['{"verdict": "perhaps"}', "looks fine to me"]))

    assert await evaluator_node(state_with(current_step=1), runtime) == {"eval_verdict": "ok"}
    assert await evaluator_node(state_with(current_step=2, results=("r1", "r2")), runtime) == {
        "eval_verdict": "done"
    }


@pytest.mark.asyncio
async def test_model_error_falls_back(make_runtime, fake_model):
    runtime = make_runtime(primary=fake_model([RuntimeError("boom")]))

    assert await evaluator_node(state_with(), runtime) == {"eval_verdict": "ok"}


class StructuredModel:
    """Chat model whose structured-output runnable returns a fixed verdict."""

    def __init__(self, review=None, error=None, text_reply='{"verdict": "done"}'):
        self.review = review
        self.error = error
        self.text_reply = text_reply
        self.schemas = []
        self.text_calls = 0

    def with_structured_output(self, schema):
        self.schemas.append(schema)
        if self.error is not None:
            raise self.error
        model = self

        class _Structured:
            async def ainvoke(self, messages, config=None):
                return model.review

        return _Structured()

    async def ainvoke(self, messages, config=None):
        self.text_calls += 1
        return AIMessage(content=self.text_reply)


@pytest.mark.asyncio
async def test_structured_output_is_preferred(make_runtime, caplog):
    model = StructuredModel(review=EvaluatorVerdict(verdict="needs_replan", reason="step 1 failed"))

    with caplog.at_level(logging.INFO, logger="taskswarm.agents.evaluator"):
        update = await evaluator_node(state_with(), make_runtime(primary=model))

    assert update == {"eval_verdict": "needs_replan"}
    assert model.schemas == [EvaluatorVerdict]
    assert model.text_calls == 0
    assert "step 1 failed" in caplog.text


@pytest.mark.asyncio
async def test_structured_output_failure_falls_back_to_text(make_runtime):
    model = StructuredModel(error=NotImplementedError("no tool calling"))

    update = await evaluator_node(state_with(), make_runtime(primary=model))

    assert update == {"eval_verdict": "done"}
    assert model.text_calls == 1
