"""
Custom exception hierarchy for Stepwright error handling.

Every failure the execution engine can observe maps onto one of these types,
so that results and logs can name the category without inspecting messages.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class StepwrightError(Exception):
    """Base exception for all Stepwright errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class NotFoundError(StepwrightError):
    """A requested record does not exist."""


class TestCaseNotFoundError(NotFoundError):
    """Raised when a test case id has no stored document."""

    __test__ = False

    def __init__(self, test_case_id: str, **kwargs):
        super().__init__(f"Test case not found: {test_case_id}", **kwargs)
        self.test_case_id = test_case_id
        self.details.update({"test_case_id": test_case_id})


class ModelConfigNotFoundError(NotFoundError):
    """Raised when neither a stored nor an environment model configuration exists."""

    def __init__(self, message: Optional[str] = None, **kwargs):
        super().__init__(
            message or "No model configuration found; configure an AI model first",
            **kwargs
        )


class SessionAcquisitionError(StepwrightError):
    """Browser, context or page could not be created."""

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.stage = stage
        self.details.update({"stage": stage})


class StepExecutionError(StepwrightError):
    """A declared step failed while being executed."""

    def __init__(
        self,
        message: str,
        step_id: Optional[str] = None,
        step_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.step_id = step_id
        self.step_type = step_type
        self.details.update({
            "step_id": step_id,
            "step_type": step_type
        })


class UnsupportedStepKindError(StepExecutionError):
    """A step's tag does not name a known step kind."""

    def __init__(self, step_type: str, step_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"Unsupported step type: {step_type}",
            step_id=step_id,
            step_type=step_type,
            **kwargs
        )


class CapabilityError(StepwrightError):
    """The AI action capability could not carry out an action or assertion."""

    def __init__(
        self,
        message: str,
        action: Optional[str] = None,
        target: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.action = action
        self.target = target
        self.details.update({
            "action": action,
            "target": target
        })


class StorageError(StepwrightError):
    """A persisted document is unreadable or malformed."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.path = path
        self.details.update({"path": path})


class ValidationError(StepwrightError):
    """Edit-time validation of a test case or model configuration failed."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.details.update({"field": field})
