"""
Error types for Stepwright.

The execution engine converts every one of these into a failed
ExecutionResult; storage and CLI code raise them directly.
"""

from .exceptions import (
    StepwrightError,
    NotFoundError,
    TestCaseNotFoundError,
    ModelConfigNotFoundError,
    SessionAcquisitionError,
    StepExecutionError,
    UnsupportedStepKindError,
    CapabilityError,
    StorageError,
    ValidationError,
)

__all__ = [
    "StepwrightError",
    "NotFoundError",
    "TestCaseNotFoundError",
    "ModelConfigNotFoundError",
    "SessionAcquisitionError",
    "StepExecutionError",
    "UnsupportedStepKindError",
    "CapabilityError",
    "StorageError",
    "ValidationError",
]
