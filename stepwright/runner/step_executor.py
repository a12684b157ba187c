"""
Dispatch of declared steps onto the AI action capability.
"""

import time
from typing import Optional

from playwright.async_api import Page

from stepwright.config.settings import get_settings
from stepwright.core.interfaces import ActionCapability
from stepwright.core.types import StepDispatchResult, StepType, TestCaseStep
from stepwright.error_handling import UnsupportedStepKindError
from stepwright.monitoring.logger import get_logger

logger = get_logger(__name__)


class StepExecutor:
    """
    Translates one step into exactly one capability call.

    Absent parameters are passed through as empty strings; the capability's
    own failure is what surfaces a bad step at run time. ``execute`` never
    raises: every failure is returned as the result's error text.
    """

    def __init__(
        self,
        default_wait_timeout_ms: Optional[int] = None,
        wait_until: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        if default_wait_timeout_ms is None:
            default_wait_timeout_ms = settings.step_wait_timeout_ms
        self.default_wait_timeout_ms = default_wait_timeout_ms
        self.wait_until = wait_until or settings.navigation_wait_until

    async def execute(
        self,
        step: TestCaseStep,
        capability: ActionCapability,
        page: Page,
    ) -> StepDispatchResult:
        """
        Execute a single step.

        Args:
            step: Declared step to execute
            capability: AI action capability bound to ``page``
            page: Live page, used for raw navigation

        Returns:
            Wall-clock duration and, on failure, the error message
        """
        start_time = time.perf_counter()
        error: Optional[str] = None

        try:
            await self._dispatch(step, capability, page)
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.warning(
                "Step failed",
                extra={"step_id": step.id, "step_type": step.type_name, "error": error},
            )

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        return StepDispatchResult(duration_ms=duration_ms, error=error)

    async def _dispatch(
        self,
        step: TestCaseStep,
        capability: ActionCapability,
        page: Page,
    ) -> None:
        params = step.params
        target = params.target or ""

        if step.type == StepType.TAP:
            await capability.tap(target)
        elif step.type == StepType.INPUT:
            await capability.input(params.value or "", target)
        elif step.type == StepType.WAIT_FOR:
            timeout_ms = params.timeout_ms
            if timeout_ms is None:
                timeout_ms = self.default_wait_timeout_ms
            await capability.wait_for(target, timeout_ms=timeout_ms)
        elif step.type == StepType.ASSERT:
            await capability.assert_condition(params.value or params.target or "")
        elif step.type == StepType.NAVIGATE:
            await page.goto(params.url or "", wait_until=self.wait_until)
        else:
            raise UnsupportedStepKindError(step.type_name, step_id=step.id)
