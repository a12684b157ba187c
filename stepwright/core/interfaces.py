"""
Core interfaces and abstract base classes for the Stepwright test runner.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from stepwright.core.types import TestCase


class ActionCapability(ABC):
    """
    AI-driven interpreter that turns natural-language descriptions into
    concrete page interactions.

    Implementations are bound to one page and one model configuration for
    the duration of a run. Any method may raise; callers treat the exception
    message as opaque failure text.
    """

    @abstractmethod
    async def tap(self, target: str) -> None:
        """Click the element described by ``target``."""
        pass

    @abstractmethod
    async def input(self, value: str, target: Optional[str] = None) -> None:
        """Type ``value`` into the element described by ``target``."""
        pass

    @abstractmethod
    async def wait_for(self, target: str, timeout_ms: int) -> None:
        """Wait until the condition described by ``target`` holds."""
        pass

    @abstractmethod
    async def assert_condition(self, description: str) -> None:
        """Raise unless the page satisfies ``description``."""
        pass


class TestCaseRepository(ABC):
    """Read/write access to persisted test case documents."""

    __test__ = False

    @abstractmethod
    def get(self, test_case_id: str) -> Optional[TestCase]:
        """Return the test case, or None when it does not exist."""
        pass

    @abstractmethod
    def list(self) -> List[TestCase]:
        """Return all stored test cases."""
        pass

