"""
FastAPI Server with LangServe - API Entry Point
"""

# IMPORTANT: Load environment variables FIRST, before importing anything else
# This ensures LangSmith tracing is configured before LangChain components are initialized
from dotenv import load_dotenv
load_dotenv()

import asyncio
import json
import logging
import os
import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from langchain_core.runnables import RunnableLambda
from langserve import add_routes
from pydantic import ValidationError

from taskswarm.channel import NotificationHub
from taskswarm.graph import Orchestrator
from taskswarm.schema import (
    AgentResult,
    CancelInput,
    ModelConfigInput,
    TaskInput,
    TaskOutput,
    TerminalInput,
)
from taskswarm.tools import CommandExecutor, CommandRejected, Correlator, ToolCallParser
from taskswarm.utils.langsmith_config import log_langsmith_status, validate_langsmith_config
from taskswarm.utils.llm import ModelConfig, ModelManager

# Check for debug mode
debug_mode = os.getenv("DEBUG", "false").lower() == "true"

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "DEBUG" if debug_mode else "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Shared collaborators; every run gets its own Orchestrator
hub = NotificationHub()
correlator = Correlator(hub.notify)
models = ModelManager.from_env()
command_executor = CommandExecutor.from_env()
parser = ToolCallParser()
active_runs: Dict[str, Orchestrator] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    is_valid, issues = validate_langsmith_config()
    if not is_valid:
        for issue in issues:
            logger.warning(f"LangSmith configuration issue: {issue}")
        logger.warning("Traces may not be sent to LangSmith.")
    log_langsmith_status()
    yield
    # Shutdown
    for orchestrator in active_runs.values():
        orchestrator.cancel()
    correlator.close()


app = FastAPI(
    title="TaskSwarm Backend",
    version="1.0.0",
    description="Autonomous task orchestration: plan, execute with tools, evaluate, replan, synthesize",
    lifespan=lifespan,
    debug=debug_mode,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler to log errors and return detailed error messages."""
    error_traceback = traceback.format_exc()
    logger.error(f"Error occurred: {type(exc).__name__}: {exc}\n{error_traceback}")
    return JSONResponse(
        status_code=500,
        content={
            "error": str(exc),
            "type": type(exc).__name__,
            "detail": error_traceback if debug_mode else "Internal server error. Check server logs for details. Set DEBUG=true to see full traceback.",
        },
    )


def new_orchestrator() -> Orchestrator:
    return Orchestrator(
        models,
        parser=parser,
        correlator=correlator,
        command_executor=command_executor,
        notify=hub.notify,
    )


async def run_task(payload: TaskInput) -> TaskOutput:
    run_id = payload.run_id or str(uuid.uuid4())
    if run_id in active_runs:
        raise HTTPException(status_code=409, detail=f"Run {run_id} is already active")
    orchestrator = new_orchestrator()
    active_runs[run_id] = orchestrator
    browser_context = (
        payload.browser_context.model_dump(by_alias=True, exclude_none=True)
        if payload.browser_context
        else None
    )
    try:
        state = await orchestrator.run(payload.task, payload.context, browser_context, run_id=run_id)
    finally:
        active_runs.pop(run_id, None)
    return TaskOutput(
        result=state["final_result"],
        run_id=run_id,
        plan=state["plan"],
        step_results=state["step_results"],
    )


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "TaskSwarm Backend API",
        "version": "1.0.0",
        "endpoints": {
            "tasks": "/tasks",
            "cancel": "/tasks/cancel",
            "models": "/models",
            "agent_results": "/agent-results",
            "terminal": "/terminal",
            "channel": "/channel",
            "invoke": "/swarm/invoke",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "active_runs": len(active_runs),
        "pending_requests": correlator.pending_count,
        "channel_subscribers": hub.subscriber_count,
    }


@app.post("/tasks")
async def create_task(payload: TaskInput):
    output = await run_task(payload)
    return output.model_dump(by_alias=True)


@app.post("/tasks/cancel")
async def cancel_tasks(payload: CancelInput = CancelInput()):
    if payload.run_id:
        orchestrator = active_runs.get(payload.run_id)
        if orchestrator is None:
            raise HTTPException(status_code=404, detail=f"No active run {payload.run_id}")
        orchestrator.cancel()
        return {"status": "ok", "cancelled": 1}
    for orchestrator in active_runs.values():
        orchestrator.cancel()
    return {"status": "ok", "cancelled": len(active_runs)}


@app.post("/models")
async def configure_model(payload: ModelConfigInput):
    config = ModelConfig(
        provider=payload.provider,
        model=payload.model,
        role=payload.resolved_role(),
        api_key=payload.api_key,
        base_url=payload.base_url,
        temperature=payload.temperature,
    )
    try:
        models.configure(config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "role": config.role}


@app.get("/models")
async def list_models():
    return {"models": [config.public_dict() for config in models.list_configs()]}


@app.post("/agent-results")
async def agent_results(payload: AgentResult):
    resolved = correlator.complete(payload.to_wire())
    return {"status": "ok" if resolved else "ignored"}


@app.post("/terminal")
async def terminal_exec(payload: TerminalInput):
    try:
        result = await command_executor.execute(payload.command, payload.args, payload.cwd)
    except CommandRejected as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


def handle_channel_message(raw: str) -> None:
    """Route an ``agentResult`` notification from a connected executor."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Channel: dropping non-JSON message")
        return
    if not isinstance(message, dict) or message.get("method") != "agentResult":
        logger.debug(f"Channel: ignoring message {str(message)[:200]}")
        return
    try:
        result = AgentResult.model_validate(message.get("params") or {})
    except ValidationError as e:
        logger.warning(f"Channel: invalid agentResult: {e}")
        return
    correlator.complete(result.to_wire())


async def stop_task(task: asyncio.Task) -> None:
    """Cancel a background task and collect its outcome so no exception goes unretrieved."""
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.exception("Channel: notification forwarding failed")


async def _forward_notifications(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@app.websocket("/channel")
async def channel(websocket: WebSocket):
    # Subscribe before accepting so no notification sent after the handshake is missed
    queue = hub.subscribe()
    await websocket.accept()
    logger.info("Channel: executor connected")
    sender = asyncio.create_task(_forward_notifications(websocket, queue))
    try:
        while True:
            handle_channel_message(await websocket.receive_text())
    except WebSocketDisconnect:
        logger.info("Channel: executor disconnected")
    finally:
        hub.unsubscribe(queue)
        await stop_task(sender)


async def invoke_swarm(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """LangServe entry point: same contract as POST /tasks."""
    output = await run_task(TaskInput.model_validate(input_data))
    return output.model_dump(by_alias=True)


add_routes(
    app,
    RunnableLambda(invoke_swarm),
    path="/swarm",
    enabled_endpoints=["invoke"],
)


if __name__ == "__main__":
    import uvicorn

    # When using reload=True, uvicorn requires the app as an import string
    if debug_mode:
        uvicorn.run(
            "taskswarm.server:app",
            host="0.0.0.0",
            port=int(os.getenv("PORT", "8000")),
            reload=True,
            log_level="debug",
        )
    else:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=int(os.getenv("PORT", "8000")),
            log_level="info",
        )
