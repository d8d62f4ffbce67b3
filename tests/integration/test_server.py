"""
Integration tests for the HTTP and WebSocket surface
"""

import asyncio
import logging

import pytest
from fastapi.testclient import TestClient

from taskswarm import server
from taskswarm.channel import NotificationHub, make_notification
from taskswarm.utils.llm import ModelManager


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(server, "models", ModelManager())
    with TestClient(server.app) as test_client:
        yield test_client


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["endpoints"]["tasks"] == "/tasks"


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_run_task_without_models(client):
    response = client.post("/tasks", json={"task": "Say hello", "context": {"lang": "en"}})

    assert response.status_code == 200
    body = response.json()
    assert body["result"] == "[Step 1] No model available"
    assert body["plan"] == ["Say hello"]
    assert body["stepResults"] == ["[Step 1] No model available"]
    assert body["runId"]


def test_run_task_uses_supplied_run_id(client):
    response = client.post("/tasks", json={"task": "Say hello", "runId": "run-42"})

    assert response.json()["runId"] == "run-42"


def test_events_name_their_run(client):
    with client.websocket_connect("/channel") as websocket:
        body = client.post("/tasks", json={"task": "Say hello"}).json()

        started = websocket.receive_json()
        completed = websocket.receive_json()

    assert started["method"] == "swarmStepStarted"
    assert started["params"]["runId"] == body["runId"]
    assert completed["method"] == "swarmStepCompleted"
    assert completed["params"]["runId"] == body["runId"]


def test_run_task_requires_task(client):
    assert client.post("/tasks", json={"task": ""}).status_code == 422


def test_cancel_without_active_runs(client):
    response = client.post("/tasks/cancel", json={})

    assert response.json() == {"status": "ok", "cancelled": 0}
    assert client.post("/tasks/cancel", json={"runId": "missing"}).status_code == 404


def test_configure_and_list_models(client):
    response = client.post(
        "/models",
        json={"provider": "ollama", "model": "llama3", "primary": False, "apiKey": "secret"},
    )

    assert response.json() == {"status": "ok", "role": "subagent"}
    models = client.get("/models").json()["models"]
    assert models == [
        {
            "provider": "ollama",
            "model": "llama3",
            "role": "subagent",
            "baseUrl": None,
            "temperature": None,
            "apiKeySet": True,
        }
    ]


def test_configure_model_rejects_unknown_provider(client):
    assert client.post("/models", json={"provider": "bard", "model": "x"}).status_code == 422


def test_unknown_agent_result_is_ignored(client):
    response = client.post("/agent-results", json={"requestId": "nobody", "ok": True, "data": 1})

    assert response.json() == {"status": "ignored"}
    assert client.post("/agent-results", json={"ok": True}).status_code == 422


def test_terminal_rejects_command(client):
    response = client.post("/terminal", json={"command": "rm", "args": ["-rf", "/"]})

    assert response.status_code == 400
    assert "Command not allowlisted: rm" in response.json()["detail"]


def test_channel_receives_notifications(client):
    with client.websocket_connect("/channel") as websocket:
        server.hub.notify("swarmPlanReady", {"steps": ["a"], "task": "t"})

        message = websocket.receive_json()

    assert message == {
        "jsonrpc": "2.0",
        "method": "swarmPlanReady",
        "params": {"steps": ["a"], "task": "t"},
    }


def test_channel_ignores_garbage(client):
    with client.websocket_connect("/channel") as websocket:
        websocket.send_text("not json")
        websocket.send_json({"jsonrpc": "2.0", "method": "agentResult", "params": {"ok": True}})
        server.hub.notify("ping", {})

        assert websocket.receive_json()["method"] == "ping"


@pytest.mark.asyncio
async def test_hub_delivers_to_every_subscriber():
    hub = NotificationHub()
    first = hub.subscribe()
    second = hub.subscribe()

    hub.notify("swarmStepStarted", {"stepIndex": 0})
    await asyncio.sleep(0)

    expected = make_notification("swarmStepStarted", {"stepIndex": 0})
    assert first.get_nowait() == expected
    assert second.get_nowait() == expected

    hub.unsubscribe(first)
    assert hub.subscriber_count == 1


@pytest.mark.asyncio
async def test_stop_task_collects_forwarding_errors(caplog):
    async def broken():
        raise RuntimeError("socket closed")

    task = asyncio.create_task(broken())
    await asyncio.sleep(0)

    with caplog.at_level(logging.ERROR, logger="taskswarm.server"):
        await server.stop_task(task)

    assert task.done()
    assert "notification forwarding failed" in caplog.text


@pytest.mark.asyncio
async def test_stop_task_cancels_running_task():
    task = asyncio.create_task(asyncio.sleep(60))

    await server.stop_task(task)

    assert task.cancelled()
