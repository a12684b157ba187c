"""
Test case execution orchestration.

Runs one stored test case against a fresh browser session and returns an
ExecutionResult. The flow for a run:

1. Load the test case and resolve the model configuration.
2. Open a browser session and bind an action capability to its page,
   injecting the per-run model environment.
3. Open the test case's base URL (implicit phase, not part of the results).
4. Execute declared steps in order, stopping at the first failure.
5. Close the session on every exit path.
"""

import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from playwright.async_api import Page

from stepwright.agents.action_agent import create_action_agent
from stepwright.browser.session import BrowserSession
from stepwright.config.model_config import ModelConfigResolver, build_model_environment
from stepwright.config.settings import get_settings
from stepwright.core.interfaces import ActionCapability, TestCaseRepository
from stepwright.core.types import (
    ExecutionResult,
    RunStatus,
    StepOutcome,
    StepStatus,
    TestCase,
)
from stepwright.error_handling import (
    ModelConfigNotFoundError,
    StepExecutionError,
    StepwrightError,
    TestCaseNotFoundError,
)
from stepwright.monitoring.logger import get_logger, log_test_event
from stepwright.monitoring.reporter import HTMLReporter, default_report_path
from stepwright.runner.step_executor import StepExecutor

logger = get_logger(__name__)

CapabilityFactory = Callable[[Page, Dict[str, str]], ActionCapability]
SessionFactory = Callable[[], BrowserSession]


class TestCaseExecutor:
    """Execution orchestrator for stored test cases."""

    __test__ = False

    def __init__(
        self,
        store: TestCaseRepository,
        resolver: Optional[ModelConfigResolver] = None,
        session_factory: Optional[SessionFactory] = None,
        capability_factory: Optional[CapabilityFactory] = None,
        step_executor: Optional[StepExecutor] = None,
        reporter: Optional[HTMLReporter] = None,
        reports_dir: Optional[Path] = None,
        vl_model_marker: Optional[str] = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            store: Source of test case documents
            resolver: Model configuration resolver
            session_factory: Creates an unopened browser session per run
            capability_factory: Builds the action capability for an open page
            step_executor: Step dispatcher
            reporter: Optional HTML report emitter
            reports_dir: Directory for emitted reports
            vl_model_marker: Marker identifying visually grounded models
        """
        settings = get_settings()
        self.store = store
        self.resolver = resolver or ModelConfigResolver()
        self.session_factory = session_factory or BrowserSession
        self.capability_factory = capability_factory or create_action_agent
        self.step_executor = step_executor or StepExecutor()
        self.reporter = reporter
        self.reports_dir = Path(reports_dir or settings.reports_dir)
        self.vl_model_marker = (
            vl_model_marker if vl_model_marker is not None else settings.vl_model_marker
        )

    async def run(self, test_case_id: str) -> ExecutionResult:
        """
        Execute a stored test case.

        Never raises for execution failures; they are reported as a failed
        result. Cancellation still propagates after the session is closed.

        Args:
            test_case_id: Id of the stored test case

        Returns:
            Terminal execution result
        """
        start_time = time.perf_counter()
        executed_steps: List[StepOutcome] = []
        test_case: Optional[TestCase] = None
        session: Optional[BrowserSession] = None
        status = RunStatus.FAILED
        error: Optional[str] = None

        log_test_event("run_started", test_case_id)

        try:
            test_case = self._load_test_case(test_case_id)

            config = self.resolver.resolve()
            if config is None:
                raise ModelConfigNotFoundError()

            session = self.session_factory()
            page = await session.open()

            environment = build_model_environment(config, self.vl_model_marker)
            capability = self.capability_factory(page, environment)

            await self._open_base_url(session, test_case.base_url)
            await self._run_steps(test_case, capability, page, executed_steps)

            status = RunStatus.PASSED
        except StepwrightError as e:
            error = e.message
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.exception(
                "Unexpected error during test case execution",
                extra={"test_case_id": test_case_id},
            )
        finally:
            if session is not None:
                await self._teardown(session)

        result = ExecutionResult(
            status=status,
            test_case_id=test_case_id,
            duration_ms=int((time.perf_counter() - start_time) * 1000),
            error=error,
            executed_steps=executed_steps,
        )

        log_test_event(
            "run_finished",
            test_case_id,
            data={
                "status": result.status.value,
                "duration_ms": result.duration_ms,
                "error": result.error,
            },
        )

        if self.reporter is not None and test_case is not None:
            self._emit_report(test_case, result)

        return result

    def _load_test_case(self, test_case_id: str) -> TestCase:
        test_case = self.store.get(test_case_id)
        if test_case is None:
            raise TestCaseNotFoundError(test_case_id)
        return test_case

    async def _open_base_url(self, session: BrowserSession, base_url: str) -> None:
        """Phase 0: start every run from the test case's base URL."""
        try:
            await session.navigate(base_url)
        except Exception as e:
            raise StepwrightError(f"Failed to open base URL {base_url}: {e}", cause=e) from e

    async def _run_steps(
        self,
        test_case: TestCase,
        capability: ActionCapability,
        page: Page,
        executed_steps: List[StepOutcome],
    ) -> None:
        """Execute declared steps in order, raising at the first failure."""
        for step in test_case.steps:
            dispatch = await self.step_executor.execute(step, capability, page)

            outcome = StepOutcome(
                step_id=step.id,
                step_type=step.type_name,
                status=StepStatus.PASSED if dispatch.succeeded else StepStatus.FAILED,
                duration_ms=dispatch.duration_ms,
                error=dispatch.error,
            )
            executed_steps.append(outcome)

            log_test_event(
                "step_completed" if dispatch.succeeded else "step_failed",
                test_case.id,
                step_id=step.id,
                data={"step_type": outcome.step_type, "duration_ms": outcome.duration_ms},
            )

            if not dispatch.succeeded:
                raise StepExecutionError(
                    f"Step execution failed [{outcome.step_type}]: {dispatch.error}",
                    step_id=step.id,
                    step_type=outcome.step_type,
                )

    async def _teardown(self, session: BrowserSession) -> None:
        try:
            await session.close()
        except Exception as e:
            logger.warning("Browser session teardown failed", extra={"error": str(e)})

    def _emit_report(self, test_case: TestCase, result: ExecutionResult) -> None:
        output_path = default_report_path(self.reports_dir, test_case.id)
        try:
            report_path = self.reporter.generate_report(test_case, result, output_path)
        except Exception as e:
            logger.warning(
                "Failed to write HTML report",
                extra={"test_case_id": test_case.id, "error": str(e)},
            )
            return
        result.report_path = str(report_path)
