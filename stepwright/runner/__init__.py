"""
Test case execution module exports.
"""

from stepwright.runner.executor import TestCaseExecutor
from stepwright.runner.step_executor import StepExecutor

__all__ = [
    "TestCaseExecutor",
    "StepExecutor",
]
