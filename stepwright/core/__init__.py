"""
Core module exports.
"""

from stepwright.core.interfaces import (
    ActionCapability,
    TestCaseRepository,
)
from stepwright.core.types import (
    CreateTestCaseInput,
    ExecutionResult,
    ModelConfig,
    ModelConfigInput,
    RunStatus,
    StepDispatchResult,
    StepOutcome,
    StepParams,
    StepStatus,
    StepType,
    TestCase,
    TestCaseStep,
    UpdateTestCaseInput,
    normalize_step_type,
    validate_model_config,
)

__all__ = [
    # Interfaces
    "ActionCapability",
    "TestCaseRepository",
    # Types
    "StepType",
    "StepStatus",
    "RunStatus",
    "StepParams",
    "TestCaseStep",
    "TestCase",
    "CreateTestCaseInput",
    "UpdateTestCaseInput",
    "ModelConfig",
    "ModelConfigInput",
    "StepDispatchResult",
    "StepOutcome",
    "ExecutionResult",
    "normalize_step_type",
    "validate_model_config",
]
