"""
Stepwright - AI-driven browser test case runner
Main entry point for the application.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from stepwright import __version__
from stepwright.config.model_config import ModelConfigResolver
from stepwright.config.settings import get_settings
from stepwright.core.types import ExecutionResult, ModelConfigInput, StepStatus
from stepwright.error_handling import StepwrightError
from stepwright.monitoring.logger import get_logger, setup_logging
from stepwright.monitoring.reporter import HTMLReporter
from stepwright.runner.executor import TestCaseExecutor
from stepwright.security.sanitizer import mask_sensitive_data
from stepwright.storage.store import ModelConfigStore, TestCaseStore

console = Console()
logger = get_logger("main")


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        description=f"Stepwright - AI-driven browser test case runner v{__version__}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Save the model configuration
  stepwright --set-config --api-key sk-... --base-url https://api.openai.com/v1 --model-name gpt-4o

  # Import a test case document and list stored test cases
  stepwright --create examples/login_test_case.json
  stepwright --list

  # Run a stored test case with a visible browser
  stepwright --run 3f1c... --headed
        """,
    )

    # Commands
    command_group = parser.add_mutually_exclusive_group()
    command_group.add_argument(
        "--run",
        metavar="ID",
        help="Run the stored test case with this id",
    )
    command_group.add_argument(
        "--list",
        action="store_true",
        help="List stored test cases",
    )
    command_group.add_argument(
        "--show",
        metavar="ID",
        help="Show a stored test case",
    )
    command_group.add_argument(
        "--create",
        metavar="FILE",
        type=Path,
        help="Import a test case from a JSON document",
    )
    command_group.add_argument(
        "--delete",
        metavar="ID",
        help="Delete a stored test case",
    )
    command_group.add_argument(
        "--show-config",
        action="store_true",
        help="Show the effective model configuration",
    )
    command_group.add_argument(
        "--set-config",
        action="store_true",
        help="Save the model configuration (see --api-key, --base-url, --model-name)",
    )
    command_group.add_argument(
        "--version",
        action="store_true",
        help="Show version information",
    )

    # Model configuration
    parser.add_argument("--api-key", help="Model API key")
    parser.add_argument("--base-url", help="OpenAI-compatible endpoint URL")
    parser.add_argument("--model-name", help="Model name")
    parser.add_argument(
        "--model-family",
        help="Model family (default: openai)",
    )

    # Execution options
    headless_group = parser.add_mutually_exclusive_group()
    headless_group.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=None,
        help="Run browser in headless mode",
    )
    headless_group.add_argument(
        "--headed",
        dest="headless",
        action="store_false",
        help="Run browser with a visible window",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose structured logging output (JSON)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Overall run timeout in seconds",
    )

    # Output options
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Do not write an HTML report",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Output directory for HTML reports (default: reports/)",
    )

    return parser


def show_version() -> int:
    """Show version information."""
    console.print("\n[bold cyan]Stepwright - AI-driven browser test case runner[/bold cyan]")
    console.print(f"Version: [green]{__version__}[/green]")
    console.print("Python: [dim]3.10+[/dim]")
    return 0


def list_test_cases(store: TestCaseStore) -> int:
    """Print a table of stored test cases."""
    test_cases = store.list()
    if not test_cases:
        console.print("[yellow]No test cases stored[/yellow]")
        return 0

    table = Table(title="Test Cases", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Base URL")
    table.add_column("Steps", justify="right")
    table.add_column("Updated", style="dim")

    for test_case in test_cases:
        table.add_row(
            escape(test_case.id),
            escape(test_case.name),
            escape(test_case.base_url),
            str(len(test_case.steps)),
            test_case.updated_at or "",
        )

    console.print(table)
    return 0


def show_test_case(store: TestCaseStore, test_case_id: str) -> int:
    """Print a stored test case and its steps."""
    test_case = store.get(test_case_id)
    if test_case is None:
        console.print(f"[red]Test case not found: {escape(test_case_id)}[/red]")
        return 1

    console.print(
        Panel(
            f"[bold]{escape(test_case.name)}[/bold]\n"
            f"ID: {escape(test_case.id)}\n"
            f"Base URL: {escape(test_case.base_url)}\n"
            f"Created: {test_case.created_at or '-'}\n"
            f"Updated: {test_case.updated_at or '-'}",
            title="Test Case",
            border_style="cyan",
        )
    )

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Parameters")

    for index, step in enumerate(test_case.steps, start=1):
        params = step.params.model_dump(by_alias=True, exclude_none=True)
        table.add_row(
            str(index),
            escape(step.type_name),
            escape(json.dumps(params, ensure_ascii=False)),
        )

    console.print(table)
    return 0


def create_test_case(store: TestCaseStore, file_path: Path) -> int:
    """Import a test case document from a JSON file."""
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {escape(str(file_path))}[/red]")
        return 1

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]Error reading file: {escape(str(e))}[/red]")
        return 1

    if not isinstance(document, dict):
        console.print("[red]Error: Test case document must be a JSON object[/red]")
        return 1

    test_case = store.import_document(document)
    console.print(f"[green]✓ Stored test case:[/green] {escape(test_case.name)} ({escape(test_case.id)})")
    return 0


def delete_test_case(store: TestCaseStore, test_case_id: str) -> int:
    """Delete a stored test case."""
    store.delete(test_case_id)
    console.print(f"[green]✓ Deleted test case:[/green] {escape(test_case_id)}")
    return 0


def show_model_config(resolver: ModelConfigResolver) -> int:
    """Print the effective model configuration with the API key masked."""
    config = resolver.resolve()
    if config is None:
        console.print("[yellow]No model configuration found[/yellow]")
        console.print("[dim]Use --set-config or the STEPWRIGHT_MODEL_* environment variables[/dim]")
        return 1

    table = Table(title="Model Configuration", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("API key", mask_sensitive_data(config.api_key))
    table.add_row("Base URL", escape(config.base_url))
    table.add_row("Model name", escape(config.model_name))
    table.add_row("Model family", escape(config.model_family or ""))
    table.add_row("Updated", config.updated_at or "-")
    console.print(table)
    return 0


def set_model_config(store: ModelConfigStore, parsed_args: argparse.Namespace) -> int:
    """Persist the model configuration from command line arguments."""
    config = store.save(
        ModelConfigInput(
            api_key=parsed_args.api_key,
            base_url=parsed_args.base_url,
            model_name=parsed_args.model_name,
            model_family=parsed_args.model_family,
        )
    )
    console.print(
        f"[green]✓ Saved model configuration:[/green] {escape(config.model_name)} "
        f"({escape(config.model_family or '')}), key {mask_sensitive_data(config.api_key)}"
    )
    return 0


def print_execution_result(result: ExecutionResult) -> None:
    """Print the step outcomes and the run verdict."""
    table = Table(title="Step Results", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Error")

    for index, outcome in enumerate(result.executed_steps, start=1):
        status = (
            "[green]passed[/green]"
            if outcome.status == StepStatus.PASSED
            else "[red]failed[/red]"
        )
        table.add_row(
            str(index),
            escape(outcome.step_type),
            status,
            f"{outcome.duration_ms / 1000:.2f}s",
            escape(outcome.error or ""),
        )

    console.print(table)

    if result.passed:
        console.print(f"\n[bold green]✓ PASSED[/bold green] in {result.duration_ms / 1000:.2f}s")
    else:
        console.print(f"\n[bold red]✗ FAILED[/bold red] in {result.duration_ms / 1000:.2f}s")
        if result.error:
            console.print(f"[red]{escape(result.error)}[/red]")

    if result.report_path:
        console.print(f"[dim]Report: {escape(result.report_path)}[/dim]")


async def run_test_case(
    store: TestCaseStore,
    test_case_id: str,
    output_dir: Optional[Path] = None,
    write_report: bool = True,
    timeout: Optional[int] = None,
) -> int:
    """Run a stored test case and print its outcome."""
    executor = TestCaseExecutor(
        store=store,
        reporter=HTMLReporter() if write_report else None,
        reports_dir=output_dir,
    )

    console.print(f"\n[cyan]Running test case:[/cyan] {escape(test_case_id)}")

    try:
        if timeout:
            result = await asyncio.wait_for(executor.run(test_case_id), timeout=timeout)
        else:
            result = await executor.run(test_case_id)
    except asyncio.TimeoutError:
        logger.warning("Test execution timed out", extra={"test_case_id": test_case_id})
        console.print(f"\n[red]Test execution timed out after {timeout} seconds[/red]")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Test execution interrupted by user[/yellow]")
        return 130

    print_execution_result(result)
    return 0 if result.passed else 1


async def async_main(args: Optional[list[str]] = None) -> int:
    """Async main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    # Handle utility commands first
    if parsed_args.version:
        return show_version()

    # Initialize configuration
    settings = get_settings()

    # Override settings with command line arguments
    if parsed_args.debug:
        settings.log_level = "DEBUG"

    if parsed_args.verbose:
        settings.log_format = "json"

    if parsed_args.headless is not None:
        settings.browser_headless = parsed_args.headless

    # Set up logging
    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        sanitize_logs=settings.sanitize_logs,
    )
    settings.create_directories()

    store = TestCaseStore(settings.test_cases_dir)
    config_store = ModelConfigStore(settings.model_config_path)

    try:
        if parsed_args.run:
            return await run_test_case(
                store,
                parsed_args.run,
                output_dir=parsed_args.output,
                write_report=not parsed_args.no_report,
                timeout=parsed_args.timeout,
            )
        if parsed_args.list:
            return list_test_cases(store)
        if parsed_args.show:
            return show_test_case(store, parsed_args.show)
        if parsed_args.create:
            return create_test_case(store, parsed_args.create)
        if parsed_args.delete:
            return delete_test_case(store, parsed_args.delete)
        if parsed_args.show_config:
            return show_model_config(ModelConfigResolver(store=config_store))
        if parsed_args.set_config:
            return set_model_config(config_store, parsed_args)
    except StepwrightError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        return 1

    # No command provided
    parser.print_help()
    return 1


def main(args: Optional[list[str]] = None) -> int:
    """
    Main entry point for Stepwright.

    Args:
        args: Command line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    try:
        return asyncio.run(async_main(args))
    except Exception as e:
        console.print(f"[red]Fatal error: {escape(str(e))}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
