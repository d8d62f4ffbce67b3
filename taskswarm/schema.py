"""
Pydantic models for Input/Output schemas
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase keys used on the wire."""

    model_config = ConfigDict(populate_by_name=True)


class BrowserContext(_CamelModel):
    active_tab_url: Optional[str] = Field(None, alias="activeTabUrl")
    active_tab_title: Optional[str] = Field(None, alias="activeTabTitle")
    tab_count: Optional[int] = Field(None, alias="tabCount")


class TaskInput(_CamelModel):
    """Input schema for running a task"""

    task: str = Field(..., min_length=1, description="Natural-language task")
    context: Dict[str, str] = Field(default_factory=dict, description="Auxiliary facts")
    browser_context: Optional[BrowserContext] = Field(None, alias="browserContext")
    run_id: Optional[str] = Field(
        None, alias="runId", min_length=1, description="Caller-chosen run id; generated when omitted"
    )


class TaskOutput(_CamelModel):
    """Output schema for a finished run"""

    result: str = Field(..., description="The final answer")
    run_id: str = Field(..., alias="runId")
    plan: List[str] = Field(default_factory=list, description="The plan as executed")
    step_results: List[str] = Field(default_factory=list, alias="stepResults")


class CancelInput(_CamelModel):
    run_id: Optional[str] = Field(None, alias="runId", description="Cancel one run; all runs when omitted")


class AgentError(BaseModel):
    message: str


class AgentResult(_CamelModel):
    """Result delivered by the external executor for a correlated request"""

    request_id: str = Field(..., min_length=1, alias="requestId")
    ok: bool
    data: Optional[Any] = None
    error: Optional[AgentError] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ModelConfigInput(_CamelModel):
    provider: Literal["openai", "anthropic", "ollama", "llamacpp"]
    model: str = Field(..., min_length=1)
    role: Optional[Literal["primary", "secondary", "subagent"]] = None
    primary: Optional[bool] = None
    api_key: Optional[str] = Field(None, alias="apiKey")
    base_url: Optional[str] = Field(None, alias="baseUrl")
    temperature: Optional[float] = None

    def resolved_role(self) -> str:
        if self.role:
            return self.role
        return "primary" if self.primary is None or self.primary else "subagent"


class TerminalInput(_CamelModel):
    command: str = Field(..., min_length=1)
    args: List[str] = Field(default_factory=list)
    cwd: Optional[str] = None


class EvaluatorVerdict(BaseModel):
    """Structured output from the Evaluator agent"""

    verdict: Literal["ok", "done", "needs_replan"] = Field(..., description="How the run should proceed")
    reason: str = Field("", description="Optional explanation of the decision")
