#!/usr/bin/env python3
"""
Demonstration of a test case run without a model endpoint.

This script showcases:
- Importing a test case document into a temporary store
- Plugging a scripted action capability into the executor
- Browser session lifecycle and first-failure halting
- HTML report generation
"""

import asyncio
import json
import sys
import tempfile
from pathlib import Path
from typing import Dict, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from playwright.async_api import Page

from stepwright.core.interfaces import ActionCapability
from stepwright.core.types import ModelConfig
from stepwright.monitoring.logger import setup_logging
from stepwright.monitoring.reporter import HTMLReporter
from stepwright.runner.executor import TestCaseExecutor
from stepwright.storage.store import TestCaseStore

logger = setup_logging()


class ScriptedCapability(ActionCapability):
    """Resolves targets through a fixed target-to-selector table."""

    def __init__(self, page: Page, selectors: Dict[str, str]):
        self.page = page
        self.selectors = selectors

    def _selector(self, target: Optional[str]) -> str:
        if not target or target not in self.selectors:
            raise RuntimeError(f"Element not found: {target}")
        return self.selectors[target]

    async def tap(self, target: str) -> None:
        await self.page.click(self._selector(target))

    async def input(self, value: str, target: str) -> None:
        await self.page.fill(self._selector(target), value)

    async def wait_for(self, target: str, timeout_ms: int) -> None:
        await self.page.wait_for_selector("#flash.success", timeout=timeout_ms)

    async def assert_condition(self, description: str) -> None:
        heading = await self.page.text_content("h2")
        if "Secure Area" not in (heading or ""):
            raise RuntimeError(f"Assertion failed: {description}")


class StaticResolver:
    """Model configuration resolver that never touches disk or environment."""

    def resolve(self) -> ModelConfig:
        return ModelConfig(api_key="unused", base_url="http://localhost", model_name="scripted")


SELECTORS = {
    "Username field": "#username",
    "Password field": "#password",
    "Login button": "button[type=submit]",
}


async def main() -> None:
    document = json.loads((Path(__file__).parent / "login_test_case.json").read_text())

    with tempfile.TemporaryDirectory() as workdir:
        store = TestCaseStore(Path(workdir) / "test-cases")
        test_case = store.import_document(document)
        print(f"Imported '{test_case.name}' with {len(test_case.steps)} steps")

        executor = TestCaseExecutor(
            store=store,
            resolver=StaticResolver(),
            capability_factory=lambda page, environment: ScriptedCapability(page, SELECTORS),
            reporter=HTMLReporter(),
            reports_dir=Path("reports"),
        )

        result = await executor.run(test_case.id)

    print(f"\nStatus: {result.status.value} in {result.duration_ms} ms")
    for outcome in result.executed_steps:
        print(f"  {outcome.step_type:<8} {outcome.status.value:<6} {outcome.duration_ms} ms {outcome.error or ''}")
    if result.error:
        print(f"Error: {result.error}")
    if result.report_path:
        print(f"Report: {result.report_path}")


if __name__ == "__main__":
    asyncio.run(main())
