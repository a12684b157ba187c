"""
Core data models and types for the Stepwright test runner.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_MODEL_FAMILY = "openai"

# Tags written by the flow-canvas editor before step kinds were shortened.
LEGACY_STEP_TYPES: Dict[str, str] = {
    "aiTap": "tap",
    "aiInput": "input",
    "aiWaitFor": "waitFor",
    "aiAssert": "assert",
    "aiNavigate": "navigate",
}


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class DocumentModel(BaseModel):
    """Base for models persisted as camelCase JSON documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize using the persisted (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StepType(str, Enum):
    """Kinds of steps a test case can declare."""

    TAP = "tap"
    INPUT = "input"
    WAIT_FOR = "waitFor"
    ASSERT = "assert"
    NAVIGATE = "navigate"


def normalize_step_type(raw: Union[str, "StepType"]) -> Union["StepType", str]:
    """
    Map a stored step tag onto a StepType.

    Legacy ``ai*`` tags are accepted. Unrecognized tags are returned unchanged
    so that execution, not loading, reports them.
    """
    if isinstance(raw, StepType):
        return raw
    value = LEGACY_STEP_TYPES.get(raw, raw)
    try:
        return StepType(value)
    except ValueError:
        return raw


class StepStatus(str, Enum):
    """Outcome of a single executed step."""

    PASSED = "passed"
    FAILED = "failed"


class RunStatus(str, Enum):
    """Overall verdict of a test case execution."""

    PASSED = "passed"
    FAILED = "failed"


class StepPosition(BaseModel):
    """Canvas position of a step node; ignored by the runner."""

    x: float = 0
    y: float = 0


class StepParams(DocumentModel):
    """Parameter bag of a step. Valid fields depend on the step kind."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    target: Optional[str] = Field(None, description="Natural-language target description")
    value: Optional[str] = Field(None, description="Text to type or condition to assert")
    url: Optional[str] = Field(None, description="Destination of a navigate step")
    timeout_ms: Optional[int] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("timeoutMs", "timeout_ms", "timeout"),
        description="Timeout of a waitFor step",
    )


class TestCaseStep(DocumentModel):
    """A single declared browser action within a test case."""

    __test__ = False

    id: str = Field(..., description="Stable step id used for result correlation")
    type: Union[StepType, str] = Field(..., description="Step kind tag")
    params: StepParams = Field(default_factory=StepParams)
    position: Optional[StepPosition] = Field(None, description="Editor canvas position")

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_step_type(value)
        return value

    @field_validator("params", mode="before")
    @classmethod
    def default_params(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def type_name(self) -> str:
        """Step kind as written in documents and results."""
        return self.type.value if isinstance(self.type, StepType) else str(self.type)


class TestCase(DocumentModel):
    """A named, ordered sequence of steps run against a base URL."""

    __test__ = False

    id: str = Field(..., description="Opaque unique id, immutable for the record's life")
    name: str = Field(..., description="Human-readable test case name")
    base_url: str = Field(..., description="Page opened before the first declared step")
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    steps: List[TestCaseStep] = Field(default_factory=list)


class CreateTestCaseInput(DocumentModel):
    """Input for creating a test case; id and timestamps are assigned by the store."""

    name: str
    base_url: str
    steps: List[TestCaseStep] = Field(default_factory=list)


class UpdateTestCaseInput(DocumentModel):
    """Partial update of a test case; ``None`` leaves a field unchanged."""

    name: Optional[str] = None
    base_url: Optional[str] = None
    steps: Optional[List[TestCaseStep]] = None


class ModelConfig(DocumentModel):
    """Credentials and model identification used by the AI capability."""

    api_key: str = ""
    base_url: str = ""
    model_name: str = ""
    model_family: Optional[str] = Field(
        DEFAULT_MODEL_FAMILY, description="Model family, defaults to a generic family"
    )
    updated_at: Optional[str] = None


class ModelConfigInput(DocumentModel):
    """Input for persisting a model configuration."""

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model_name: Optional[str] = None
    model_family: Optional[str] = None


def validate_model_config(config: Union[ModelConfig, ModelConfigInput]) -> Optional[str]:
    """Return the first validation problem of a model configuration, if any."""
    if not config.api_key or not config.api_key.strip():
        return "apiKey is required"
    if not config.base_url or not config.base_url.strip():
        return "baseUrl is required"
    if not config.model_name or not config.model_name.strip():
        return "modelName is required"
    return None


class StepDispatchResult(BaseModel):
    """Timing and error captured while dispatching one step."""

    duration_ms: int = Field(..., ge=0)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class StepOutcome(DocumentModel):
    """Recorded result of attempting one declared step."""

    step_id: str
    step_type: str
    status: StepStatus
    duration_ms: int = Field(..., ge=0)
    error: Optional[str] = None


class ExecutionResult(DocumentModel):
    """Terminal result of one test case run."""

    status: RunStatus
    test_case_id: str
    duration_ms: int = Field(0, ge=0)
    error: Optional[str] = None
    report_path: Optional[str] = None
    executed_steps: List[StepOutcome] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == RunStatus.PASSED

    @property
    def failed_step(self) -> Optional[StepOutcome]:
        """The step that ended the run, if a step failed."""
        for outcome in self.executed_steps:
            if outcome.status == StepStatus.FAILED:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in the camelCase shape returned to API callers."""
        return self.to_document()
